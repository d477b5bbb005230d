"""
Segment Data Models
===================
Core data structures for review segments.
"""
import secrets
import string
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any

from proofreader.config.constants import ReviewStatus, ReviewCategory
from proofreader.utils.text_processing import parse_markdown_table

TRANSIENT_FIELDS = ('is_analyzing', 'is_translating', 'is_analyzing_words')

# snake_case attribute -> camelCase JSON key
FIELD_ALIASES: Dict[str, str] = {
    'id': 'id',
    'source_text': 'sourceText',
    'target_text': 'targetText',
    'status': 'status',
    'category': 'category',
    'ai_feedback': 'aiFeedback',
    'word_breakdown': 'wordBreakdown',
    'is_analyzing': 'isAnalyzing',
    'is_translating': 'isTranslating',
    'is_analyzing_words': 'isAnalyzingWords',
}

_ID_ALPHABET = string.ascii_lowercase + string.digits


def generate_segment_id(length: int = 9) -> str:
    """Generate a short opaque segment id."""
    return ''.join(secrets.choice(_ID_ALPHABET) for _ in range(length))


@dataclass
class WordBreakdownEntry:
    """One row of a word-by-word gloss."""
    target_word: str
    source_equivalent: str
    context: str = ""

    def to_dict(self) -> dict:
        return {
            'targetWord': self.target_word,
            'sourceEquivalent': self.source_equivalent,
            'context': self.context,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Optional['WordBreakdownEntry']:
        """Build an entry from camelCase or snake_case keys; None if unusable."""
        if not isinstance(data, dict):
            return None
        target = data.get('targetWord', data.get('target_word'))
        source = data.get('sourceEquivalent', data.get('source_equivalent'))
        if target is None and source is None:
            return None
        return cls(
            target_word=str(target or ''),
            source_equivalent=str(source or ''),
            context=str(data.get('context') or ''),
        )


def breakdown_from_markdown(markdown: str) -> Optional[List[WordBreakdownEntry]]:
    """
    Convert a Markdown gloss table into breakdown entries.

    Tables use the column order ``| Source | Target | Role/Note |``.
    Returns None when the text holds no usable table.
    """
    entries = []
    for cells in parse_markdown_table(markdown):
        if len(cells) < 2:
            continue
        entries.append(WordBreakdownEntry(
            target_word=cells[1],
            source_equivalent=cells[0],
            context=' '.join(cells[2:]),
        ))
    return entries or None


def breakdown_from_list(items: Any) -> Optional[List[WordBreakdownEntry]]:
    """Convert a JSON array of breakdown objects; None if it is not a list."""
    if not isinstance(items, list):
        return None
    entries = [WordBreakdownEntry.from_dict(item) for item in items]
    return [e for e in entries if e is not None]


def _coerce_enum(enum_cls, value, default):
    try:
        return enum_cls(value)
    except ValueError:
        return default


@dataclass
class Segment:
    """A source/target sentence pair under review."""
    id: str = field(default_factory=generate_segment_id)
    source_text: str = ""
    target_text: str = ""
    status: ReviewStatus = ReviewStatus.PENDING
    category: ReviewCategory = ReviewCategory.NONE
    ai_feedback: Optional[str] = None
    word_breakdown: Optional[List[WordBreakdownEntry]] = None

    # In-flight request flags, never restored from storage
    is_analyzing: bool = False
    is_translating: bool = False
    is_analyzing_words: bool = False

    @property
    def is_busy(self) -> bool:
        return self.is_analyzing or self.is_translating or self.is_analyzing_words

    def to_dict(self, include_transient: bool = True) -> dict:
        """Convert to the camelCase dictionary used for JSON and storage."""
        result = {
            'id': self.id,
            'sourceText': self.source_text,
            'targetText': self.target_text,
            'status': self.status.value if isinstance(self.status, ReviewStatus) else self.status,
            'category': self.category.value if isinstance(self.category, ReviewCategory) else self.category,
            'aiFeedback': self.ai_feedback,
            'wordBreakdown': (
                [entry.to_dict() for entry in self.word_breakdown]
                if self.word_breakdown is not None else None
            ),
        }
        if include_transient:
            result.update({
                'isAnalyzing': self.is_analyzing,
                'isTranslating': self.is_translating,
                'isAnalyzingWords': self.is_analyzing_words,
            })
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Segment':
        """
        Build a segment from a stored dictionary.

        Unknown keys are ignored, unknown status/category values fall back to
        the defaults and the in-flight flags always start out False. A
        ``wordByWord`` Markdown table from the v1 schema is converted.
        """
        if not isinstance(data, dict):
            raise ValueError(f"Segment data must be an object, got {type(data).__name__}")

        breakdown = breakdown_from_list(data.get('wordBreakdown'))
        if breakdown is None and data.get('wordByWord'):
            breakdown = breakdown_from_markdown(data['wordByWord'])

        segment_id = data.get('id')
        return cls(
            id=str(segment_id) if segment_id else generate_segment_id(),
            source_text=data.get('sourceText') or '',
            target_text=data.get('targetText') or '',
            status=_coerce_enum(ReviewStatus, data.get('status'), ReviewStatus.PENDING),
            category=_coerce_enum(ReviewCategory, data.get('category'), ReviewCategory.NONE),
            ai_feedback=data.get('aiFeedback'),
            word_breakdown=breakdown,
        )
