"""
Database Connection Manager
===========================
SQLite file holding the proofreader's key-value state.
"""
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Optional, Generator, List

from proofreader.config import config
from proofreader.utils.logging import get_logger

SCHEMA = """
CREATE TABLE IF NOT EXISTS key_value (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
)
"""


class Database:
    """
    Thread-safe SQLite database manager.

    Flask request threads and the AI call worker each get their own
    connection; all of them are tracked so close() can release every one.
    """

    _instance: Optional['Database'] = None
    _instance_lock = threading.Lock()

    def __init__(self, db_path: Path = None):
        self.db_path = Path(db_path or config.paths.db_path)
        self.logger = get_logger().storage_logger
        self._local = threading.local()
        self._connections: List[sqlite3.Connection] = []
        self._lock = threading.Lock()
        self._initialized = False

        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    @classmethod
    def get_instance(cls, db_path: Path = None) -> 'Database':
        """Get singleton instance."""
        with cls._instance_lock:
            if cls._instance is None:
                cls._instance = cls(db_path)
            return cls._instance

    @property
    def connection(self) -> sqlite3.Connection:
        """Connection owned by the calling thread."""
        conn = getattr(self._local, 'connection', None)
        if conn is None:
            conn = self._connect()
            self._local.connection = conn
        return conn

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(
            str(self.db_path),
            timeout=config.security.db_timeout,
            check_same_thread=False
        )
        conn.row_factory = sqlite3.Row
        # WAL lets the page read while the worker writes a result
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA synchronous=NORMAL")

        with self._lock:
            self._connections.append(conn)
        return conn

    def initialize(self) -> None:
        """Create the schema once per database."""
        if self._initialized:
            return
        with self.transaction() as conn:
            conn.execute(SCHEMA)
        self._initialized = True
        self.logger.info(f"Database initialized: {self.db_path}")

    @contextmanager
    def transaction(self) -> Generator[sqlite3.Connection, None, None]:
        """Commit on success, roll back and re-raise on error."""
        conn = self.connection
        try:
            yield conn
            conn.commit()
        except Exception as e:
            conn.rollback()
            self.logger.error(f"Transaction rolled back: {e}")
            raise

    def fetchone(self, query: str, params: tuple = ()) -> Optional[sqlite3.Row]:
        try:
            return self.connection.execute(query, params).fetchone()
        except sqlite3.Error as e:
            self.logger.error(f"Database error: {e}")
            raise

    def fetchall(self, query: str, params: tuple = ()) -> List[sqlite3.Row]:
        try:
            return self.connection.execute(query, params).fetchall()
        except sqlite3.Error as e:
            self.logger.error(f"Database error: {e}")
            raise

    def is_healthy(self) -> bool:
        """Check that the database answers a trivial query."""
        try:
            self.fetchone("SELECT 1")
            return True
        except sqlite3.Error:
            return False

    def close(self) -> None:
        """Close every connection opened by this manager."""
        with self._lock:
            connections, self._connections = self._connections, []
        for conn in connections:
            conn.close()
        self._local = threading.local()


# Global accessor
_database: Optional[Database] = None


def get_database() -> Database:
    """Get database singleton."""
    global _database
    if _database is None:
        _database = Database.get_instance()
        _database.initialize()
    return _database


def reset_database() -> None:
    """Reset database singleton (for testing)."""
    global _database
    if _database:
        _database.close()
    _database = None
    Database._instance = None
