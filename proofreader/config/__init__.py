"""
SGC Proofreader - Configuration Module
"""
from proofreader.config.settings import Config, config
from proofreader.config.constants import (
    TARGET_LANGUAGES,
    RTL_LANGUAGES,
    ReviewStatus,
    ReviewCategory,
    AIOperation,
    LogLevel
)

__all__ = [
    "Config",
    "config",
    "TARGET_LANGUAGES",
    "RTL_LANGUAGES",
    "ReviewStatus",
    "ReviewCategory",
    "AIOperation",
    "LogLevel"
]
