"""
Logging Utilities
=================
Named loggers for the application, the AI client, the API and storage.

Records from every named logger go to a rotating file, the console and an
in-memory buffer that the review page polls through ``/logs``.
"""
import os
import logging
import threading
from collections import deque
from datetime import datetime
from logging.handlers import RotatingFileHandler
from typing import List, Dict, Optional
from proofreader.config import config

# attribute name -> (logger name, file name)
LOGGERS = {
    'app_logger': ('proofreader.app', 'app.log'),
    'ai_logger': ('proofreader.ai', 'ai.log'),
    'api_logger': ('proofreader.api', 'api.log'),
    'storage_logger': ('proofreader.storage', 'storage.log'),
}


class LogBuffer:
    """Thread-safe ring buffer of recent log entries, numbered from 1."""

    def __init__(self, max_size: int = None):
        self.entries = deque(maxlen=max_size or config.logging.log_buffer_size)
        self.lock = threading.Lock()
        self.last_id = 0

    def add(self, level: str, source: str, message: str) -> Dict:
        with self.lock:
            self.last_id += 1
            entry = {
                'id': self.last_id,
                'timestamp': datetime.now().strftime('%H:%M:%S.%f')[:-3],
                'level': level,
                'source': source,
                'message': message
            }
            self.entries.append(entry)
            return entry

    def get_all(self) -> List[Dict]:
        with self.lock:
            return list(self.entries)

    def get_since(self, since_id: int) -> List[Dict]:
        """Entries newer than since_id, for incremental polling."""
        with self.lock:
            return [e for e in self.entries if e['id'] > since_id]

    def clear(self):
        with self.lock:
            self.entries.clear()
            self.last_id = 0


# Global log buffer instance
log_buffer = LogBuffer()


class BufferHandler(logging.Handler):
    """Copies records into a LogBuffer, tagged with the logger's short name."""

    def __init__(self, buffer: LogBuffer, level: int = logging.INFO):
        super().__init__(level)
        self.buffer = buffer

    def emit(self, record: logging.LogRecord) -> None:
        try:
            source = record.name.rsplit('.', 1)[-1].upper()
            self.buffer.add(record.levelname, source, record.getMessage())
        except Exception:
            self.handleError(record)


class AppLogger:
    """Holds the named loggers, each wired to file, console and buffer."""

    def __init__(self, log_dir: str = None, buffer: LogBuffer = None):
        self.log_dir = log_dir or config.paths.log_folder
        self.buffer = buffer or log_buffer
        os.makedirs(self.log_dir, exist_ok=True)

        for attribute, (name, filename) in LOGGERS.items():
            setattr(self, attribute, self._setup_logger(name, filename))

    def _setup_logger(self, name: str, filename: str) -> logging.Logger:
        logger = logging.getLogger(name)
        level = logging.DEBUG if config.logging.verbose_debug else logging.INFO
        logger.setLevel(level)

        # Loggers are process-wide; configure each one once
        if logger.handlers:
            return logger

        file_handler = RotatingFileHandler(
            os.path.join(self.log_dir, filename),
            maxBytes=config.logging.log_file_max_bytes,
            backupCount=config.logging.log_file_backup_count,
            encoding='utf-8'
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        ))
        logger.addHandler(file_handler)

        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(levelname)s - %(message)s',
            datefmt='%H:%M:%S'
        ))
        logger.addHandler(console_handler)

        logger.addHandler(BufferHandler(self.buffer))
        return logger


# Global logger instance
_logger_instance: Optional[AppLogger] = None


def get_logger() -> AppLogger:
    """Get or create the global logger instance."""
    global _logger_instance
    if _logger_instance is None:
        _logger_instance = AppLogger()
    return _logger_instance


def debug_print(message: str, level: str = 'DEBUG', source: str = 'DEBUG'):
    """
    Trace for the page console only.

    Goes to the log buffer, and to stdout when VERBOSE_DEBUG is on, but not
    to the log files.
    """
    log_buffer.add(level, source, message)
    if config.logging.verbose_debug:
        print(f"[{source}] {message}")
