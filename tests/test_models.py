"""
Unit Tests for Segment Models, Schemas and Text Utilities
"""
import pytest
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from proofreader.config.constants import ReviewStatus, ReviewCategory
from proofreader.models.segment import (
    Segment, WordBreakdownEntry, breakdown_from_markdown, breakdown_from_list,
    generate_segment_id
)
from proofreader.models.schemas import TextResult, StructuredResult, SegmentUpdate, ReviewStats
from proofreader.utils.text_processing import (
    clean_model_response, extract_json, parse_markdown_table, strip_code_fences, is_blank
)
from proofreader.utils.validators import (
    validate_language, validate_status, validate_category, validate_text, validate_api_key
)


GLOSS_TABLE = """| English | French | Role/Note |
|---|---|---|
| The | Le | Article |
| quick | rapide | Adjective |
| fox | renard | Noun, subject |"""


class TestSegmentIds:
    """Test segment id generation."""

    def test_length_and_alphabet(self):
        segment_id = generate_segment_id()
        assert len(segment_id) == 9
        assert segment_id.isalnum()
        assert segment_id == segment_id.lower()

    def test_ids_differ(self):
        assert len({generate_segment_id() for _ in range(200)}) == 200


class TestSegment:
    """Test Segment serialization."""

    def test_defaults(self):
        segment = Segment()
        assert segment.status == ReviewStatus.PENDING
        assert segment.category == ReviewCategory.NONE
        assert segment.ai_feedback is None
        assert segment.word_breakdown is None
        assert not segment.is_busy

    def test_to_dict_uses_camel_case(self):
        segment = Segment(
            id='a1', source_text='Hello', target_text='Bonjour',
            status=ReviewStatus.NEEDS_WORK, category=ReviewCategory.STYLE,
            word_breakdown=[WordBreakdownEntry('Bonjour', 'Hello', 'Greeting')],
            is_translating=True
        )
        data = segment.to_dict()
        assert data['sourceText'] == 'Hello'
        assert data['targetText'] == 'Bonjour'
        assert data['status'] == 'Needs Work'
        assert data['category'] == 'Style'
        assert data['wordBreakdown'] == [
            {'targetWord': 'Bonjour', 'sourceEquivalent': 'Hello', 'context': 'Greeting'}
        ]
        assert data['isTranslating'] is True

    def test_to_dict_without_transient_flags(self):
        data = Segment(is_analyzing=True).to_dict(include_transient=False)
        assert 'isAnalyzing' not in data
        assert 'isTranslating' not in data
        assert 'isAnalyzingWords' not in data

    def test_from_dict_resets_flags(self):
        data = Segment(id='x', is_analyzing=True, is_analyzing_words=True).to_dict()
        segment = Segment.from_dict(data)
        assert segment.id == 'x'
        assert not segment.is_busy

    def test_from_dict_unknown_enum_values(self):
        segment = Segment.from_dict({'id': 'x', 'status': 'Done', 'category': 'Grammar'})
        assert segment.status == ReviewStatus.PENDING
        assert segment.category == ReviewCategory.NONE

    def test_from_dict_missing_fields(self):
        segment = Segment.from_dict({})
        assert segment.id
        assert segment.source_text == ''
        assert segment.target_text == ''

    def test_from_dict_rejects_non_objects(self):
        with pytest.raises(ValueError):
            Segment.from_dict(['not', 'a', 'segment'])

    def test_from_dict_converts_legacy_markdown(self):
        segment = Segment.from_dict({'id': 'old', 'wordByWord': GLOSS_TABLE})
        assert [e.target_word for e in segment.word_breakdown] == ['Le', 'rapide', 'renard']
        assert segment.word_breakdown[2].source_equivalent == 'fox'
        assert segment.word_breakdown[2].context == 'Noun, subject'

    def test_round_trip(self):
        segment = Segment(
            id='r1', source_text='Church', target_text='Église',
            status=ReviewStatus.APPROVED, ai_feedback='- Looks good',
            word_breakdown=[WordBreakdownEntry('Église', 'Church')]
        )
        assert Segment.from_dict(segment.to_dict(include_transient=False)) == segment


class TestBreakdown:
    """Test word breakdown conversions."""

    def test_from_list_accepts_both_key_styles(self):
        entries = breakdown_from_list([
            {'targetWord': 'chien', 'sourceEquivalent': 'dog', 'context': 'Noun'},
            {'target_word': 'paresseux', 'source_equivalent': 'lazy'},
            'garbage',
            {'unrelated': True},
        ])
        assert entries == [
            WordBreakdownEntry('chien', 'dog', 'Noun'),
            WordBreakdownEntry('paresseux', 'lazy', ''),
        ]

    def test_from_list_rejects_non_lists(self):
        assert breakdown_from_list({'targetWord': 'x'}) is None
        assert breakdown_from_list(None) is None

    def test_from_markdown_without_table(self):
        assert breakdown_from_markdown("No table here") is None
        assert breakdown_from_markdown("") is None


class TestResults:
    """Test tagged AI result types."""

    def test_text_result(self):
        result = TextResult("All good")
        assert result.kind == "text"
        assert result.error is False

    def test_structured_result(self):
        result = StructuredResult(feedback="- Fine", word_breakdown=[])
        assert result.kind == "structured"
        assert result.error is False


class TestSegmentUpdate:
    """Test segment edit validation."""

    def test_valid_update(self):
        update = SegmentUpdate({'targetText': 'Bonjour', 'status': 'Approved', 'category': 'Omission'})
        assert update.validate() == []
        assert update.to_changes() == {
            'target_text': 'Bonjour',
            'status': ReviewStatus.APPROVED,
            'category': ReviewCategory.OMISSION,
        }

    def test_empty_text_is_allowed(self):
        assert SegmentUpdate({'targetText': ''}).validate() == []

    def test_invalid_status(self):
        errors = SegmentUpdate({'status': 'Done'}).validate()
        assert any('Invalid status' in e for e in errors)

    def test_non_editable_fields(self):
        errors = SegmentUpdate({'aiFeedback': 'x'}).validate()
        assert any('not editable' in e for e in errors)

    def test_non_object_body(self):
        assert SegmentUpdate(None).validate() == ["Request body must be a JSON object"]

    def test_non_string_text(self):
        errors = SegmentUpdate({'sourceText': 42}).validate()
        assert errors == ["sourceText must be a string"]


class TestReviewStats:
    """Test review progress computation."""

    def test_empty_collection(self):
        assert ReviewStats().progress == 0

    def test_progress_counts_approved_and_reviewed(self):
        stats = ReviewStats(total=3, approved=1, needs_work=1, reviewed=1)
        assert stats.progress == 67
        assert stats.to_dict()['progress'] == 67


class TestTextProcessing:
    """Test model response cleanup and parsing."""

    def test_is_blank(self):
        assert is_blank(None)
        assert is_blank("   \n")
        assert not is_blank(" a ")

    def test_clean_strips_quotes_and_preamble(self):
        assert clean_model_response('"Bonjour le monde"') == 'Bonjour le monde'
        assert clean_model_response('Translation: Bonjour') == 'Bonjour'
        assert clean_model_response('<think>hmm</think>Hola') == 'Hola'

    def test_clean_empty(self):
        assert clean_model_response('') == ''
        assert clean_model_response(None) == ''

    def test_strip_code_fences(self):
        assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'
        assert strip_code_fences('plain') == 'plain'

    def test_extract_json(self):
        assert extract_json('{"feedback": "ok"}') == {'feedback': 'ok'}
        assert extract_json('```json\n[1, 2]\n```') == [1, 2]
        assert extract_json('Sure! {"feedback": "ok"} Hope that helps') == {'feedback': 'ok'}
        assert extract_json('not json at all') is None

    def test_parse_markdown_table(self):
        rows = parse_markdown_table(GLOSS_TABLE)
        assert rows[0] == ['The', 'Le', 'Article']
        assert len(rows) == 3


class TestValidators:
    """Test input validation helpers."""

    def test_language(self):
        assert validate_language('Spanish') == (True, None)
        assert validate_language('Klingon')[0] is False
        assert validate_language('')[0] is False

    def test_status_and_category(self):
        assert validate_status('Needs Work')[0] is True
        assert validate_status('needs work')[0] is False
        assert validate_category('Terminology')[0] is True
        assert validate_category(None)[0] is False

    def test_text_length(self):
        assert validate_text('x' * 20000, 'sourceText')[0] is True
        assert validate_text('x' * 20001, 'sourceText')[0] is False

    def test_api_key(self):
        assert validate_api_key('AIzaSyExample123')[0] is True
        assert validate_api_key('   ')[0] is False
        assert validate_api_key('has space')[0] is False
        assert validate_api_key(None)[0] is False
