"""Filesystem traversal."""

from .walker import DirectoryWalker, display_path

__all__ = ["DirectoryWalker", "display_path"]
