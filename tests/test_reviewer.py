"""
Integration Tests for the Review Service

Storage is a temporary SQLite database, the AI service is a FakeSession and
the call serializer runs on the test thread via drain().
"""
import json
import pytest
from unittest.mock import Mock
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from proofreader.config.constants import (
    AIOperation, ReviewStatus, EMPTY_PAIR_MESSAGE, INVALID_API_KEY_MESSAGE,
    MISSING_API_KEY_MESSAGE
)
from proofreader.models.schemas import StructuredResult, TextResult
from proofreader.models.segment import Segment, WordBreakdownEntry
from proofreader.services.call_serializer import CallSerializer
from proofreader.services.gemini_client import GeminiClient
from proofreader.services.reviewer import (
    ReviewService, SubmitResult, audit_changes, translation_changes,
    word_analysis_changes, build_review_service
)
from proofreader.services.segment_store import SegmentStore
from tests.helpers import FakeSession, gemini_text, gemini_error


SOURCE = "The quick brown fox jumps over the lazy dog."
TARGET = "Le renard brun rapide saute par-dessus le chien paresseux."


@pytest.fixture
def serializer():
    return CallSerializer(min_interval=0, autostart=False)


@pytest.fixture
def make_service(repository, preferences, serializer):
    """Build a ReviewService whose client replays the given responses."""
    preferences.api_key = 'test-api-key'
    store = SegmentStore(repository)
    store.load()

    def factory(*responses, structured_output=False):
        session = FakeSession(*responses)
        client = GeminiClient(session=session, sleep=lambda seconds: None,
                              base_delay=0, structured_output=structured_output)
        return ReviewService(store, client, serializer, preferences), session

    return factory


class TestChangeMapping:
    """Test how AI results map onto segment changes."""

    def test_audit_text(self):
        assert audit_changes(TextResult("- ok")) == {
            'ai_feedback': "- ok", 'status': ReviewStatus.REVIEWED
        }

    def test_audit_error_keeps_status(self):
        assert audit_changes(TextResult("Invalid", error=True)) == {'ai_feedback': "Invalid"}

    def test_audit_structured(self):
        entries = [WordBreakdownEntry('chien', 'dog')]
        changes = audit_changes(StructuredResult(feedback="- ok", word_breakdown=entries))
        assert changes == {
            'ai_feedback': "- ok", 'word_breakdown': entries, 'status': ReviewStatus.REVIEWED
        }

    def test_word_analysis(self):
        entries = [WordBreakdownEntry('chien', 'dog')]
        assert word_analysis_changes(StructuredResult(None, entries)) == {'word_breakdown': entries}
        assert word_analysis_changes(TextResult("failed", error=True)) == {'ai_feedback': "failed"}

    def test_translation(self):
        assert translation_changes(TextResult("Bonjour")) == {'target_text': "Bonjour"}
        assert translation_changes(TextResult("Error", error=True)) == {'ai_feedback': "Error"}


class TestAudit:
    """End-to-end audits."""

    def test_empty_target_stays_pending(self, make_service, serializer):
        service, session = make_service(gemini_text("unused"))
        segment = service.store.append(Segment(source_text=SOURCE, target_text=""))

        assert service.request_audit(segment.id) is SubmitResult.QUEUED
        serializer.drain()

        result = service.store.get(segment.id)
        assert result.status == ReviewStatus.PENDING
        assert result.ai_feedback == EMPTY_PAIR_MESSAGE
        assert not result.is_analyzing
        assert session.calls == []

    def test_successful_audit_marks_reviewed(self, make_service, serializer):
        service, session = make_service(gemini_text("* 'lazy' is rendered correctly."))

        service.request_audit('1')
        serializer.drain()

        segment = service.store.get('1')
        assert segment.status == ReviewStatus.REVIEWED
        assert segment.ai_feedback == "* 'lazy' is rendered correctly."
        assert not segment.is_analyzing
        assert len(session.calls) == 1

    def test_structured_audit_fills_breakdown(self, make_service, serializer):
        reply = json.dumps({
            'feedback': "No significant errors found.",
            'wordBreakdown': [{'targetWord': 'renard', 'sourceEquivalent': 'fox', 'context': 'Noun'}],
        })
        service, _ = make_service(gemini_text(reply), structured_output=True)

        service.request_audit('1')
        serializer.drain()

        segment = service.store.get('1')
        assert segment.ai_feedback == "No significant errors found."
        assert segment.word_breakdown == [WordBreakdownEntry('renard', 'fox', 'Noun')]
        assert segment.status == ReviewStatus.REVIEWED

    def test_flag_raised_and_feedback_cleared_while_queued(self, make_service):
        service, _ = make_service(gemini_text("ok"))
        service.store.update('1', ai_feedback="old feedback")

        service.request_audit('1')

        segment = service.store.get('1')
        assert segment.is_analyzing
        assert segment.ai_feedback is None

    def test_rejected_key_keeps_status(self, make_service, serializer):
        service, session = make_service(gemini_error(403, "denied", "PERMISSION_DENIED"))
        service.store.update('1', status=ReviewStatus.APPROVED)

        service.request_audit('1')
        serializer.drain()

        segment = service.store.get('1')
        assert segment.status == ReviewStatus.APPROVED
        assert segment.ai_feedback == INVALID_API_KEY_MESSAGE
        assert len(session.calls) == 1

    def test_missing_key_makes_no_request(self, make_service, serializer, preferences):
        service, session = make_service(gemini_text("unused"))
        preferences.clear_api_key()

        service.request_audit('1')
        serializer.drain()

        assert service.store.get('1').ai_feedback == MISSING_API_KEY_MESSAGE
        assert session.calls == []


class TestQueueing:
    """Test de-duplication and run-time reads."""

    def test_double_click_sends_one_request(self, make_service, serializer):
        service, session = make_service(gemini_text("ok"))

        assert service.request_audit('1') is SubmitResult.QUEUED
        assert service.request_audit('1') is SubmitResult.DUPLICATE
        serializer.drain()

        assert len(session.calls) == 1

    def test_different_operations_on_one_segment(self, make_service, serializer):
        service, session = make_service(gemini_text("ok"))

        assert service.request_audit('1') is SubmitResult.QUEUED
        assert service.request_translation('1') is SubmitResult.QUEUED
        serializer.drain()

        assert len(session.calls) == 2

    def test_unknown_segment(self, make_service, serializer):
        service, _ = make_service(gemini_text("ok"))
        assert service.request_audit('missing') is SubmitResult.NOT_FOUND
        assert serializer.pending_count() == 0

    def test_uses_text_at_execution_time(self, make_service, serializer):
        service, session = make_service(gemini_text("ok"))

        service.request_audit('1')
        service.store.update('1', target_text="Le renard saute.")
        serializer.drain()

        assert 'Target Translation: "Le renard saute."' in session.prompt()

    def test_uses_language_at_execution_time(self, make_service, serializer, preferences):
        service, session = make_service(gemini_text("ok"))

        service.request_audit('1')
        preferences.target_language = 'Spanish'
        serializer.drain()

        assert 'Target Language: Spanish' in session.prompt()

    def test_deleted_while_queued(self, make_service, serializer):
        service, session = make_service(gemini_text("ok"))

        service.request_audit('1')
        service.store.remove('1')
        serializer.drain()

        assert session.calls == []
        assert service.store.get('1') is None
        assert serializer.stats()['failed'] == 0

    def test_unexpected_exception_clears_flag(self, make_service, serializer, preferences):
        service, _ = make_service(gemini_text("ok"))
        service.client = Mock(spec=GeminiClient)
        service.client.analyze_translation.side_effect = RuntimeError("boom")

        service.request_audit('1')
        serializer.drain()

        segment = service.store.get('1')
        assert not segment.is_analyzing
        assert segment.ai_feedback == "Analysis failed: boom"
        assert service.request_audit('1') is SubmitResult.QUEUED

    def test_request_dispatch(self, make_service, serializer):
        service, _ = make_service(gemini_text("Hola"))
        assert service.request(AIOperation.TRANSLATE, '2') is SubmitResult.QUEUED
        assert service.request('word-analysis', '1') is SubmitResult.QUEUED
        assert service.store.get('2').is_translating
        assert service.store.get('1').is_analyzing_words


class TestTranslation:
    """End-to-end translations."""

    def test_fills_target_text(self, make_service, serializer):
        service, _ = make_service(gemini_text('"Veuillez respecter les protocoles."'))

        service.request_translation('2')
        assert service.store.get('2').is_translating
        serializer.drain()

        segment = service.store.get('2')
        assert segment.target_text == "Veuillez respecter les protocoles."
        assert not segment.is_translating
        assert segment.status == ReviewStatus.PENDING

    def test_error_goes_to_feedback(self, make_service, serializer):
        service, _ = make_service(gemini_error(403, "denied", "PERMISSION_DENIED"))

        service.request_translation('2')
        serializer.drain()

        segment = service.store.get('2')
        assert segment.target_text == ""
        assert segment.ai_feedback == INVALID_API_KEY_MESSAGE


class TestWordAnalysis:
    """End-to-end word breakdowns."""

    def test_fills_breakdown(self, make_service, serializer):
        reply = json.dumps([
            {'targetWord': 'Le', 'sourceEquivalent': 'The', 'context': 'Article'},
            {'targetWord': 'renard', 'sourceEquivalent': 'fox', 'context': 'Noun'},
        ])
        service, _ = make_service(gemini_text(reply))

        service.request_word_analysis('1')
        serializer.drain()

        segment = service.store.get('1')
        assert [e.target_word for e in segment.word_breakdown] == ['Le', 'renard']
        assert not segment.is_analyzing_words
        assert segment.status == ReviewStatus.PENDING

    def test_result_survives_reload(self, make_service, serializer, repository):
        reply = json.dumps([{'targetWord': 'renard', 'sourceEquivalent': 'fox', 'context': 'Noun'}])
        service, _ = make_service(gemini_text(reply))

        service.request_word_analysis('1')
        serializer.drain()

        reloaded = SegmentStore(repository)
        reloaded.load()
        assert reloaded.get('1').word_breakdown == [WordBreakdownEntry('renard', 'fox', 'Noun')]


class TestBuildReviewService:

    def test_builds_from_database_path(self, tmp_path, serializer):
        client = GeminiClient(session=FakeSession(gemini_text("ok")))
        service = build_review_service(str(tmp_path / 'built.db'), client=client, serializer=serializer)
        assert [s.id for s in service.store.all()] == ['1', '2']
        assert service.serializer is serializer
        assert service.client is client
        service.store.repository.db.close()
