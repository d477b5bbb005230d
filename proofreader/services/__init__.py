"""
SGC Proofreader - Services
"""
from proofreader.services.gemini_client import GeminiClient
from proofreader.services.call_serializer import CallSerializer, get_call_serializer
from proofreader.services.segment_store import SegmentStore
from proofreader.services.reviewer import ReviewService, SubmitResult, build_review_service

__all__ = [
    "GeminiClient",
    "CallSerializer",
    "get_call_serializer",
    "SegmentStore",
    "ReviewService",
    "SubmitResult",
    "build_review_service"
]
