"""
Request/Response Schemas
========================
Validation schemas for API requests and AI results.
"""
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any, Union

from proofreader.config.constants import ReviewStatus, ReviewCategory
from proofreader.models.segment import WordBreakdownEntry
from proofreader.utils.validators import validate_status, validate_category, validate_text


@dataclass
class TextResult:
    """Plain-text AI result. ``error`` marks a user-facing failure message."""
    value: str
    error: bool = False
    kind: str = field(default="text", init=False)


@dataclass
class StructuredResult:
    """Schema-constrained AI result."""
    feedback: Optional[str]
    word_breakdown: List[WordBreakdownEntry] = field(default_factory=list)
    kind: str = field(default="structured", init=False)
    error: bool = field(default=False, init=False)


AnalysisResult = Union[TextResult, StructuredResult]


# camelCase request key -> segment attribute
_EDITABLE_FIELDS = {
    'sourceText': 'source_text',
    'targetText': 'target_text',
    'status': 'status',
    'category': 'category',
}


@dataclass
class SegmentUpdate:
    """Partial update of the user-editable segment fields."""
    payload: Dict[str, Any]

    def validate(self) -> List[str]:
        """Validate the request and return list of errors."""
        errors = []
        if not isinstance(self.payload, dict):
            return ["Request body must be a JSON object"]

        unknown = [key for key in self.payload if key not in _EDITABLE_FIELDS]
        if unknown:
            errors.append(f"Fields not editable: {', '.join(sorted(unknown))}")
        if not any(key in _EDITABLE_FIELDS for key in self.payload):
            errors.append(f"Provide at least one of: {', '.join(_EDITABLE_FIELDS)}")

        for key in ('sourceText', 'targetText'):
            if key in self.payload:
                valid, error = validate_text(self.payload[key], key)
                if not valid:
                    errors.append(error)
        if 'status' in self.payload:
            valid, error = validate_status(self.payload['status'])
            if not valid:
                errors.append(error)
        if 'category' in self.payload:
            valid, error = validate_category(self.payload['category'])
            if not valid:
                errors.append(error)
        return errors

    def to_changes(self) -> Dict[str, Any]:
        """Segment attribute changes; call after validate() returned no errors."""
        changes = {}
        for key, attr in _EDITABLE_FIELDS.items():
            if key not in self.payload:
                continue
            value = self.payload[key]
            if attr == 'status':
                value = ReviewStatus(value)
            elif attr == 'category':
                value = ReviewCategory(value)
            changes[attr] = value
        return changes


@dataclass
class ReviewStats:
    """Progress summary of the review collection."""
    total: int = 0
    approved: int = 0
    needs_work: int = 0
    reviewed: int = 0

    @property
    def progress(self) -> int:
        if self.total == 0:
            return 0
        return round((self.approved + self.reviewed) / self.total * 100)

    def to_dict(self) -> dict:
        return {
            'total': self.total,
            'approved': self.approved,
            'needs_work': self.needs_work,
            'reviewed': self.reviewed,
            'progress': self.progress,
        }
