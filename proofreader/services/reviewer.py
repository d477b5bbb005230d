"""
Review Service
==============
Connects the segment store, the Gemini client and the call serializer.

An AI action marks the segment busy, queues a task and returns at once. The
task reads the segment and the target language when it runs, not when it was
queued, so edits made while waiting are honoured.
"""
from enum import Enum
from typing import Any, Callable, Dict, Optional

from proofreader.config.constants import AIOperation, ReviewStatus
from proofreader.database.connection import Database
from proofreader.database.repositories import KeyValueRepository, PreferencesRepository
from proofreader.models.schemas import AnalysisResult
from proofreader.models.segment import Segment
from proofreader.services.call_serializer import CallSerializer, get_call_serializer
from proofreader.services.gemini_client import GeminiClient
from proofreader.services.segment_store import SegmentStore
from proofreader.utils.logging import get_logger


class SubmitResult(str, Enum):
    """Outcome of asking for an AI action."""
    QUEUED = "queued"
    DUPLICATE = "duplicate"
    NOT_FOUND = "not_found"


# Transient flag raised on the segment while each action is queued or running
BUSY_FLAGS = {
    AIOperation.AUDIT: 'is_analyzing',
    AIOperation.WORD_ANALYSIS: 'is_analyzing_words',
    AIOperation.TRANSLATE: 'is_translating',
}


def audit_changes(result: AnalysisResult) -> Dict[str, Any]:
    """Segment changes for an audit result."""
    if result.kind == "structured":
        return {
            'ai_feedback': result.feedback,
            'word_breakdown': result.word_breakdown,
            'status': ReviewStatus.REVIEWED,
        }
    if result.error:
        return {'ai_feedback': result.value}
    return {'ai_feedback': result.value, 'status': ReviewStatus.REVIEWED}


def word_analysis_changes(result: AnalysisResult) -> Dict[str, Any]:
    """Segment changes for a word-by-word result."""
    if result.kind == "structured":
        return {'word_breakdown': result.word_breakdown}
    if result.error:
        return {'ai_feedback': result.value}
    return {}


def translation_changes(result: AnalysisResult) -> Dict[str, Any]:
    """Segment changes for a translation result."""
    if result.error:
        return {'ai_feedback': result.value}
    return {'target_text': result.value}


class ReviewService:
    """Review operations over the segment collection."""

    def __init__(
        self,
        store: SegmentStore,
        client: GeminiClient,
        serializer: CallSerializer,
        preferences: PreferencesRepository
    ):
        self.store = store
        self.client = client
        self.serializer = serializer
        self.preferences = preferences
        self.logger = get_logger().app_logger

    def request_audit(self, segment_id: str) -> SubmitResult:
        """Queue an audit of the segment's translation."""
        def run(segment: Segment, language: str, api_key: str) -> Dict[str, Any]:
            result = self.client.analyze_translation(
                segment.source_text, segment.target_text, language, api_key
            )
            return audit_changes(result)

        return self._submit(AIOperation.AUDIT, segment_id, run, ai_feedback=None)

    def request_word_analysis(self, segment_id: str) -> SubmitResult:
        """Queue a word-by-word breakdown of the segment."""
        def run(segment: Segment, language: str, api_key: str) -> Dict[str, Any]:
            result = self.client.analyze_word_by_word(
                segment.source_text, segment.target_text, language, api_key
            )
            return word_analysis_changes(result)

        return self._submit(AIOperation.WORD_ANALYSIS, segment_id, run)

    def request_translation(self, segment_id: str) -> SubmitResult:
        """Queue a machine translation of the segment's source text."""
        def run(segment: Segment, language: str, api_key: str) -> Dict[str, Any]:
            result = self.client.translate_text(segment.source_text, language, api_key)
            return translation_changes(result)

        return self._submit(AIOperation.TRANSLATE, segment_id, run)

    def request(self, operation: AIOperation, segment_id: str) -> SubmitResult:
        handlers = {
            AIOperation.AUDIT: self.request_audit,
            AIOperation.WORD_ANALYSIS: self.request_word_analysis,
            AIOperation.TRANSLATE: self.request_translation,
        }
        return handlers[AIOperation(operation)](segment_id)

    def _submit(
        self,
        operation: AIOperation,
        segment_id: str,
        run: Callable[[Segment, str, str], Dict[str, Any]],
        **start_changes
    ) -> SubmitResult:
        flag = BUSY_FLAGS[operation]
        key = f"{operation.value}:{segment_id}"

        if self.store.get(segment_id) is None:
            return SubmitResult.NOT_FOUND
        if self.serializer.is_in_flight(key):
            return SubmitResult.DUPLICATE

        # Raise the flag before queueing so the task can never clear it first
        self.store.update(segment_id, **{flag: True}, **start_changes)

        def task() -> None:
            changes: Dict[str, Any] = {}
            try:
                segment = self.store.get(segment_id)
                if segment is None:
                    self.logger.info(f"Segment {segment_id} was deleted before {operation.value} ran")
                    return
                changes = run(segment, self.preferences.target_language, self.preferences.api_key)
            except Exception as e:
                self.logger.exception(f"{operation.value} failed for segment {segment_id}")
                changes = {'ai_feedback': f"Analysis failed: {e}"}
            finally:
                self.store.update(segment_id, **{flag: False}, **changes)

        if not self.serializer.enqueue(key, task):
            return SubmitResult.DUPLICATE

        self.logger.info(f"{operation.value} queued for segment {segment_id}")
        return SubmitResult.QUEUED


def build_review_service(
    db_path: str = None,
    client: Optional[GeminiClient] = None,
    serializer: Optional[CallSerializer] = None
) -> ReviewService:
    """Construct the review service with its storage, client and serializer."""
    database = Database(db_path) if db_path else Database.get_instance()
    database.initialize()
    repository = KeyValueRepository(database)

    store = SegmentStore(repository)
    store.load()

    return ReviewService(
        store=store,
        client=client or GeminiClient(),
        serializer=serializer or get_call_serializer(),
        preferences=PreferencesRepository(repository)
    )
