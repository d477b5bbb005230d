"""
Database Repositories
=====================
Data access patterns for the persisted key-value entries.
"""
from typing import Optional, List

from proofreader.config.constants import (
    DEFAULT_TARGET_LANGUAGE,
    LANGUAGE_STORAGE_KEY,
    API_KEY_STORAGE_KEY
)
from proofreader.database.connection import Database, get_database
from proofreader.utils.logging import get_logger
from proofreader.utils.validators import validate_language


class KeyValueRepository:
    """
    Repository for string values stored by key.

    Mirrors the browser's local storage: every write replaces the previous
    value and the last write wins.
    """

    def __init__(self, database: Database = None):
        self.db = database or get_database()
        self.db.initialize()
        self.logger = get_logger().storage_logger

    def get(self, key: str) -> Optional[str]:
        """Get the value stored under key."""
        row = self.db.fetchone("SELECT value FROM key_value WHERE key = ?", (key,))
        return row['value'] if row else None

    def set(self, key: str, value: str) -> None:
        """Store value under key, replacing any previous value."""
        with self.db.transaction() as conn:
            conn.execute("""
                INSERT INTO key_value (key, value, updated_at)
                VALUES (?, ?, CURRENT_TIMESTAMP)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = CURRENT_TIMESTAMP
            """, (key, value))

    def delete(self, key: str) -> bool:
        """Delete key. Returns True if it existed."""
        with self.db.transaction() as conn:
            cursor = conn.execute("DELETE FROM key_value WHERE key = ?", (key,))
            return cursor.rowcount > 0

    def keys(self) -> List[str]:
        """List stored keys."""
        return [row['key'] for row in self.db.fetchall("SELECT key FROM key_value ORDER BY key")]


class PreferencesRepository:
    """Reviewer preferences: selected target language and the Gemini API key."""

    def __init__(self, repository: KeyValueRepository = None):
        self.repository = repository or KeyValueRepository()
        self.logger = get_logger().storage_logger

    @property
    def target_language(self) -> str:
        language = self.repository.get(LANGUAGE_STORAGE_KEY)
        valid, _ = validate_language(language)
        return language if valid else DEFAULT_TARGET_LANGUAGE

    @target_language.setter
    def target_language(self, language: str) -> None:
        valid, error = validate_language(language)
        if not valid:
            raise ValueError(error)
        self.repository.set(LANGUAGE_STORAGE_KEY, language)

    @property
    def api_key(self) -> str:
        return self.repository.get(API_KEY_STORAGE_KEY) or ''

    @api_key.setter
    def api_key(self, api_key: str) -> None:
        self.repository.set(API_KEY_STORAGE_KEY, api_key.strip())
        self.logger.info("API key updated")

    @property
    def has_api_key(self) -> bool:
        return bool(self.api_key)

    def clear_api_key(self) -> None:
        self.repository.delete(API_KEY_STORAGE_KEY)
        self.logger.info("API key removed")
