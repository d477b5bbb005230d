"""
Database Module
===============
Database connection and repository implementations.
"""
from proofreader.database.connection import Database, get_database, reset_database
from proofreader.database.repositories import (
    KeyValueRepository,
    PreferencesRepository
)

__all__ = [
    'Database',
    'get_database',
    'reset_database',
    'KeyValueRepository',
    'PreferencesRepository'
]
