"""Configuration management and settings."""

from markdown_index_sync.config.settings import Environment, LogLevel, SyncConfig

__all__ = ["SyncConfig", "Environment", "LogLevel"]
