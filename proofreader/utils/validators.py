"""
Validation Utilities
====================
Functions for validating input data.
"""
from typing import Tuple, Optional, Any
from proofreader.config.constants import TARGET_LANGUAGES, ReviewStatus, ReviewCategory

MAX_TEXT_LENGTH = 20000
MAX_API_KEY_LENGTH = 256


def validate_language(language: str) -> Tuple[bool, Optional[str]]:
    """
    Validate a target language name.

    Args:
        language: The language name to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not language:
        return False, "Language is required"

    if language not in TARGET_LANGUAGES:
        return False, f"Unsupported language: {language}"

    return True, None


def validate_status(status: Any) -> Tuple[bool, Optional[str]]:
    """Validate a review status value."""
    allowed = [s.value for s in ReviewStatus]
    if status not in allowed:
        return False, f"Invalid status: {status}. Allowed: {', '.join(allowed)}"
    return True, None


def validate_category(category: Any) -> Tuple[bool, Optional[str]]:
    """Validate a review category value."""
    allowed = [c.value for c in ReviewCategory]
    if category not in allowed:
        return False, f"Invalid category: {category}. Allowed: {', '.join(allowed)}"
    return True, None


def validate_text(value: Any, field_name: str) -> Tuple[bool, Optional[str]]:
    """Validate a free-form segment text field. Empty text is allowed."""
    if not isinstance(value, str):
        return False, f"{field_name} must be a string"
    if len(value) > MAX_TEXT_LENGTH:
        return False, f"{field_name} is too long (max {MAX_TEXT_LENGTH} characters)"
    return True, None


def validate_api_key(api_key: Any) -> Tuple[bool, Optional[str]]:
    """
    Validate a user-supplied API key.

    Only the shape is checked here; the service itself decides whether the key works.
    """
    if not isinstance(api_key, str) or not api_key.strip():
        return False, "API key is required"
    if len(api_key) > MAX_API_KEY_LENGTH or any(c.isspace() for c in api_key.strip()):
        return False, "Invalid API key format"
    return True, None
