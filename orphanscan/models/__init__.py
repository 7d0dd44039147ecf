"""SQLAlchemy models package."""

from .base import Base, SourceBase
from .file_search_result import FileSearchResult
from .source import FileLink, SettingEntry, TreeReport

__all__ = [
    "Base",
    "SourceBase",
    "FileSearchResult",
    "FileLink",
    "SettingEntry",
    "TreeReport",
]
