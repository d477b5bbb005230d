"""
Centralized Configuration for SGC Proofreader
=============================================
All configuration values in one place, configurable via environment variables.
"""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List


def _get_bool_env(key: str, default: bool) -> bool:
    """Get boolean from environment variable."""
    val = os.environ.get(key, "").lower()
    if val in ("true", "1", "yes", "on"):
        return True
    elif val in ("false", "0", "no", "off"):
        return False
    return default


def _get_int_env(key: str, default: int) -> int:
    """Get integer from environment variable."""
    try:
        return int(os.environ.get(key, default))
    except (ValueError, TypeError):
        return default


def _get_float_env(key: str, default: float) -> float:
    """Get float from environment variable."""
    try:
        return float(os.environ.get(key, default))
    except (ValueError, TypeError):
        return default


PACKAGE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


def get_app_dir() -> str:
    """Directory holding the database and logs."""
    return os.environ.get('PROOFREADER_APP_DIR', os.path.dirname(PACKAGE_DIR))


@dataclass
class ServerConfig:
    """Flask server configuration."""
    host: str = field(default_factory=lambda: os.environ.get("PROOFREADER_HOST", "127.0.0.1"))
    port: int = field(default_factory=lambda: _get_int_env("PROOFREADER_PORT", 5002))
    debug: bool = field(default_factory=lambda: _get_bool_env("PROOFREADER_DEBUG", False))
    secret_key: str = field(default_factory=lambda: os.environ.get("SECRET_KEY", "dev-key-change-in-production"))

    # CORS settings
    cors_origins: List[str] = field(default_factory=lambda: [
        "http://localhost:5002",
        "http://127.0.0.1:5002"
    ])


@dataclass
class GeminiConfig:
    """Generative Language API configuration."""
    base_url: str = field(default_factory=lambda: os.environ.get(
        "GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta"))
    model: str = field(default_factory=lambda: os.environ.get("GEMINI_MODEL", "gemini-3-flash-preview"))

    # Timeouts
    connect_timeout: int = field(default_factory=lambda: _get_int_env("GEMINI_CONNECT_TIMEOUT", 10))
    read_timeout: int = field(default_factory=lambda: _get_int_env("GEMINI_READ_TIMEOUT", 120))

    # Retry settings (delay doubles on every attempt)
    max_retries: int = field(default_factory=lambda: _get_int_env("GEMINI_MAX_RETRIES", 6))
    base_delay: float = field(default_factory=lambda: _get_float_env("GEMINI_BASE_DELAY", 3.0))

    # Ask for {feedback, wordBreakdown} JSON on audits
    structured_output: bool = field(default_factory=lambda: _get_bool_env("GEMINI_STRUCTURED_OUTPUT", True))
    temperature: float = field(default_factory=lambda: _get_float_env("GEMINI_TEMPERATURE", 0.2))

    def generate_url(self, model: str = None) -> str:
        return f"{self.base_url}/models/{model or self.model}:generateContent"


@dataclass
class QueueConfig:
    """AI call serialization settings."""
    # Minimum spacing between the start of two consecutive AI calls
    min_interval: float = field(default_factory=lambda: _get_float_env("AI_CALL_MIN_INTERVAL", 1.2))
    idle_timeout: float = field(default_factory=lambda: _get_float_env("AI_QUEUE_IDLE_TIMEOUT", 30.0))


@dataclass
class LoggingConfig:
    """Logging configuration."""
    verbose_debug: bool = field(default_factory=lambda: _get_bool_env("VERBOSE_DEBUG", False))
    log_buffer_size: int = field(default_factory=lambda: _get_int_env("LOG_BUFFER_SIZE", 500))
    log_file_max_bytes: int = field(default_factory=lambda: _get_int_env("LOG_FILE_MAX_BYTES", 5 * 1024 * 1024))
    log_file_backup_count: int = field(default_factory=lambda: _get_int_env("LOG_FILE_BACKUP_COUNT", 3))


@dataclass
class SecurityConfig:
    """Security configuration."""
    rate_limit_per_minute: int = field(default_factory=lambda: _get_int_env("RATE_LIMIT_PER_MINUTE", 60))
    db_timeout: int = field(default_factory=lambda: _get_int_env("DB_TIMEOUT", 30))


@dataclass
class PathConfig:
    """Path configuration."""
    app_dir: str = field(default_factory=get_app_dir)
    package_dir: str = field(default_factory=lambda: PACKAGE_DIR)

    @property
    def static_folder(self) -> str:
        return os.path.join(self.package_dir, 'static')

    @property
    def log_folder(self) -> Path:
        return Path(self.app_dir) / 'logs'

    @property
    def db_path(self) -> str:
        return os.path.join(self.app_dir, 'proofreader.db')


@dataclass
class Config:
    """Main application configuration container."""
    server: ServerConfig = field(default_factory=ServerConfig)
    gemini: GeminiConfig = field(default_factory=GeminiConfig)
    queue: QueueConfig = field(default_factory=QueueConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    security: SecurityConfig = field(default_factory=SecurityConfig)
    paths: PathConfig = field(default_factory=PathConfig)

    def __post_init__(self):
        """Create necessary directories after initialization."""
        self._create_directories()
        self._validate()

    def _create_directories(self):
        """Create necessary directories."""
        os.makedirs(self.paths.log_folder, exist_ok=True)

    def _validate(self):
        """Validate configuration values."""
        if self.gemini.max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        if self.gemini.base_delay < 0:
            raise ValueError("base_delay must not be negative")
        if self.queue.min_interval < 0:
            raise ValueError("min_interval must not be negative")


# Global configuration instance
config = Config()
