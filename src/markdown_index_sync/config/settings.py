"""
Configuration management for the markdown index synchronizer.

Handles environment variables and ``.env`` loading, and provides defaults
with validation. A single ``SyncConfig`` is built at startup and passed to
every component that needs it.
"""

import fnmatch
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from markdown_index_sync.models.exceptions import ConfigurationError

DEV_POLL_INTERVAL = 1.0
PROD_POLL_INTERVAL = 60.0


class LogLevel(str, Enum):
    """Logging level enumeration."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class Environment(str, Enum):
    """Runtime environment; selects the default polling interval."""

    DEV = "dev"
    TEST = "test"
    PROD = "prod"


class SyncConfig(BaseSettings):
    """
    Central configuration class for the synchronizer.

    Handles all configuration options with environment variable support,
    validation, and defaults matching a local gofound-style search service.
    """

    model_config = SettingsConfigDict(
        env_prefix="MARKDOWN_INDEX_SYNC_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Content Configuration ===
    content_dir: Path = Field(default=Path("md"), description="Root directory of the markdown files")
    content_extensions: list[str] = Field(default=[".md"], description="File extensions to track")
    ignored_patterns: list[str] = Field(
        default=[".git/*", "*.swp", "*.tmp", ".DS_Store"],
        description="fnmatch patterns (relative path or file name) to ignore",
    )

    # === Metadata Store Configuration ===
    db_path: Path = Field(default=Path("idx.db"), description="SQLite metadata store file")

    # === Indexing Behaviour ===
    force_reindex: bool = Field(default=False, description="Drop the downstream index and re-push every document")
    prune_orphans: bool = Field(
        default=False, description="Delete records for files that vanished while the process was offline"
    )

    # === File Monitoring Configuration ===
    environment: Environment = Field(default=Environment.PROD, description="Runtime environment, dev|test|prod")
    poll_interval_seconds: float | None = Field(
        default=None, gt=0.0, le=3600.0, description="Watcher polling interval override"
    )

    # === Search Service Configuration ===
    search_url: str = Field(default="http://127.0.0.1:5678/api", description="Base address of the search service")
    search_database: str = Field(default="default", min_length=1, description="Index namespace on the service")
    request_timeout_seconds: float = Field(default=10.0, gt=0.0, le=600.0, description="Per-request timeout")
    dry_run: bool = Field(default=False, description="Skip all calls to the search service")

    # === Logging Configuration ===
    log_level: LogLevel = Field(default=LogLevel.INFO, description="Logging level")
    log_file: Path | None = Field(default=None, description="Log file path (stderr if None)")
    log_format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s", description="Log message format"
    )
    debug_mode: bool = Field(default=False, description="Enable debug mode with verbose logging")

    @field_validator('content_extensions')
    @classmethod
    def validate_content_extensions(cls, v):
        """Ensure file extensions start with dot."""
        validated = []
        for ext in v:
            if not ext.startswith('.'):
                ext = f'.{ext}'
            validated.append(ext.lower())
        return validated

    @field_validator('search_url')
    @classmethod
    def validate_search_url(cls, v):
        """Require an http(s) address and drop the trailing slash."""
        if not v.startswith(("http://", "https://")):
            raise ConfigurationError(
                "search_url must be an http or https address",
                config_key="search_url",
                expected_type="http(s) URL",
                actual_value=v,
            )
        return v.rstrip('/')

    @model_validator(mode='after')
    def validate_extensions_present(self):
        """Ensure at least one content extension is tracked."""
        if not self.content_extensions:
            raise ConfigurationError(
                "content_extensions cannot be empty",
                config_key="content_extensions",
                expected_type="non-empty list",
                actual_value=self.content_extensions,
            )
        return self

    @property
    def poll_interval(self) -> float:
        """Resolve the watcher polling interval for the current environment."""
        if self.poll_interval_seconds is not None:
            return self.poll_interval_seconds
        if self.environment == Environment.PROD:
            return PROD_POLL_INTERVAL
        return DEV_POLL_INTERVAL

    @property
    def effective_log_level(self) -> str:
        return LogLevel.DEBUG.value if self.debug_mode else self.log_level.value

    def resolve_content_dir(self) -> Path:
        return self.content_dir.expanduser().absolute()

    def resolve_db_path(self) -> Path:
        return self.db_path.expanduser().absolute()

    def endpoint(self, name: str) -> str:
        """Build the full URL of a search service endpoint."""
        return f"{self.search_url}/{name.lstrip('/')}"

    def is_file_supported(self, file_path: str | Path) -> bool:
        """Check if a file type is tracked."""
        extension = Path(file_path).suffix.lower()
        return extension in self.content_extensions

    def should_ignore_file(self, file_path: str | Path) -> bool:
        """Check if a file should be ignored based on patterns."""
        path = Path(file_path)
        try:
            relative = path.relative_to(self.resolve_content_dir()).as_posix()
        except ValueError:
            relative = path.as_posix()
        return any(
            fnmatch.fnmatch(relative, pattern) or fnmatch.fnmatch(path.name, pattern)
            for pattern in self.ignored_patterns
        )

    def get_log_config(self) -> dict[str, Any]:
        """Get logging configuration dictionary."""
        level = self.effective_log_level
        config = {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"standard": {"format": self.log_format}},
            "handlers": {
                "default": {
                    "level": level,
                    "formatter": "standard",
                    "class": "logging.StreamHandler" if not self.log_file else "logging.FileHandler",
                }
            },
            "loggers": {"markdown_index_sync": {"handlers": ["default"], "level": level, "propagate": False}},
        }

        if self.log_file:
            config["handlers"]["default"]["filename"] = str(self.log_file)

        return config
