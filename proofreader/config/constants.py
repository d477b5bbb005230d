"""
Constants and Enums for SGC Proofreader
"""
from enum import Enum
from typing import Dict, List, Any


class ReviewStatus(str, Enum):
    """Review status of a segment."""
    PENDING = "Pending"
    REVIEWED = "Reviewed"
    APPROVED = "Approved"
    NEEDS_WORK = "Needs Work"


class ReviewCategory(str, Enum):
    """Error category assigned by the reviewer."""
    ACCURACY = "Accuracy"
    OMISSION = "Omission"
    FORMATTING = "Formatting"
    TERMINOLOGY = "Terminology"
    STYLE = "Style"
    NONE = "None"


class LogLevel(str, Enum):
    """Log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class AIOperation(str, Enum):
    """AI actions a reviewer can trigger on a segment."""
    TRANSLATE = "translate"
    AUDIT = "analyze"
    WORD_ANALYSIS = "word-analysis"


TARGET_LANGUAGES: List[str] = [
    "Arabic", "Armenian", "Bassa", "Bengali", "Chichewa", "Chinese (Simplified)",
    "Chinese (Traditional Mandarin)", "English", "French", "Georgian", "Haitian Creole",
    "Hindi", "Hungarian", "Kazakh", "Kinyarwanda", "Kiswahili", "Kannada", "Luganda",
    "Manipuri", "Mongolian", "Nepali", "Oriya (Odia)", "Polish", "Portuguese",
    "Punjabi", "Romanian", "Rongmei", "Russian", "Sesotho", "Spanish", "Tagalog",
    "Tamil", "Telugu", "Thai", "Turkish", "Ukrainian", "Urdu", "Uzbek",
]

DEFAULT_TARGET_LANGUAGE = "French"

# Target column is rendered right-to-left for these
RTL_LANGUAGES: List[str] = ["Arabic", "Urdu", "Persian", "Hebrew"]

# Storage keys are versioned by suffix; bumping a version orphans the old key
SEGMENTS_STORAGE_KEY = "bilingual_proofreader_data_v2"
LEGACY_SEGMENTS_STORAGE_KEYS = ("bilingual_proofreader_data_v1",)
LANGUAGE_STORAGE_KEY = "bilingual_proofreader_lang_v1"
API_KEY_STORAGE_KEY = "bilingual_proofreader_api_key"

DEFAULT_SEGMENTS: List[Dict[str, Any]] = [
    {
        'id': '1',
        'sourceText': "The quick brown fox jumps over the lazy dog.",
        'targetText': "Le renard brun rapide saute par-dessus le chien paresseux.",
        'status': ReviewStatus.PENDING.value,
        'category': ReviewCategory.NONE.value,
        'aiFeedback': None,
        'wordBreakdown': None,
    },
    {
        'id': '2',
        'sourceText': "Please ensure that all safety protocols are followed strictly within the laboratory environment.",
        'targetText': "",
        'status': ReviewStatus.PENDING.value,
        'category': ReviewCategory.NONE.value,
        'aiFeedback': None,
        'wordBreakdown': None,
    },
]

# User-facing messages. Every AI failure ends up as one of these in aiFeedback.
MISSING_API_KEY_MESSAGE = (
    "API Key is missing. Please open Settings and add your Google Gemini API Key."
)
INVALID_API_KEY_MESSAGE = (
    "Invalid API Key. Please open Settings to verify your Google Gemini API Key."
)
QUOTA_EXCEEDED_MESSAGE = (
    "API Quota exceeded. The free tier has strict limits (often 15 requests per minute).\n\n"
    "Please wait 60 seconds before trying again, or consider using a paid API key from a "
    "billing-enabled project (https://ai.google.dev/gemini-api/docs/billing)."
)
SERVICE_UNAVAILABLE_MESSAGE = (
    "The AI service is currently overloaded or unavailable. Please try again in a few minutes."
)
EMPTY_SOURCE_MESSAGE = "Error: Source text is empty."
EMPTY_PAIR_MESSAGE = "Please provide both source and target text for analysis."
EMPTY_PAIR_WORDS_MESSAGE = "Error: Source and target text required."
NO_RESPONSE_MESSAGE = "No response generated."
UNREADABLE_BREAKDOWN_MESSAGE = "Word analysis failed: the AI response could not be read as a word table."
NO_ISSUES_TEXT = "No significant errors found."
