"""Keep a full-text search index in sync with a directory of markdown files."""

__version__ = "0.1.0"
