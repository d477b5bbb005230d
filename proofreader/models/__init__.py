"""
SGC Proofreader - Data Models
"""
from proofreader.models.segment import (
    Segment,
    WordBreakdownEntry,
    generate_segment_id
)
from proofreader.models.schemas import (
    TextResult,
    StructuredResult,
    AnalysisResult,
    SegmentUpdate,
    ReviewStats
)

__all__ = [
    "Segment",
    "WordBreakdownEntry",
    "generate_segment_id",
    "TextResult",
    "StructuredResult",
    "AnalysisResult",
    "SegmentUpdate",
    "ReviewStats"
]
