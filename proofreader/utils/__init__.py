"""
SGC Proofreader - Utility Functions
"""
from proofreader.utils.text_processing import (
    is_blank,
    clean_model_response,
    extract_json,
    parse_markdown_table
)
from proofreader.utils.validators import (
    validate_language,
    validate_status,
    validate_category,
    validate_text,
    validate_api_key
)
from proofreader.utils.logging import (
    LogBuffer,
    AppLogger,
    BufferHandler,
    get_logger,
    debug_print
)

__all__ = [
    "is_blank",
    "clean_model_response",
    "extract_json",
    "parse_markdown_table",
    "validate_language",
    "validate_status",
    "validate_category",
    "validate_text",
    "validate_api_key",
    "LogBuffer",
    "AppLogger",
    "BufferHandler",
    "get_logger",
    "debug_print"
]
