"""orphanscan — reconciles a file tree against database records and flags orphaned files."""

__version__ = "1.0.0"
