"""Directory walker — lazy recursive traversal producing file descriptors."""

import fnmatch
import os
from collections.abc import Iterator
from datetime import datetime
from typing import Optional

from ..core.paths import normalize
from ..core.records import FileDescriptor
from ..errors import TraversalError
from ..utils.logging import get_logger

logger = get_logger("scanner.walker")


def display_path(fpath: str) -> str:
    """Text form of a filesystem path that always encodes as UTF-8.

    Undecodable bytes in file names (surrogate-escaped by ``os``) become
    U+FFFD. A ``\\xNN`` escape would be split into separators by ``normalize``.
    """
    try:
        fpath.encode("utf-8")
    except UnicodeEncodeError:
        return os.fsencode(fpath).decode("utf-8", "replace")
    return fpath


class DirectoryWalker:
    """Walks one root folder and yields a descriptor per non-directory entry.

    Unreadable subdirectories and files that vanish before they can be
    stat'ed are logged and skipped. Failure to read the root itself raises
    ``TraversalError``.
    """

    def __init__(self, root_folder: str, exclusion_patterns: Optional[list[str]] = None):
        self.root_folder = os.path.abspath(root_folder)
        self._exclusion_patterns = exclusion_patterns or []
        self.errors = 0

    def _is_excluded(self, name: str) -> bool:
        """Check if a file/dir name matches any exclusion pattern."""
        return any(fnmatch.fnmatch(name, pat) for pat in self._exclusion_patterns)

    def _on_error(self, error: OSError) -> None:
        if os.path.abspath(error.filename or "") == self.root_folder:
            raise TraversalError(self.root_folder, error.strerror or str(error)) from error
        self.errors += 1
        logger.warning("directory_unreadable", path=error.filename, error=str(error))

    def _check_root(self) -> None:
        if not os.path.exists(self.root_folder):
            raise TraversalError(self.root_folder, "no such directory")
        if not os.path.isdir(self.root_folder):
            raise TraversalError(self.root_folder, "not a directory")

    def walk(self) -> Iterator[FileDescriptor]:
        self._check_root()
        for root, dirs, files in os.walk(self.root_folder, onerror=self._on_error):
            # Filter excluded directories in-place
            dirs[:] = [d for d in dirs if not self._is_excluded(d)]
            # Symlinks to directories are entries, not subtrees
            links = [d for d in dirs if os.path.islink(os.path.join(root, d))]
            dirs[:] = [d for d in dirs if d not in links]
            for fname in links + files:
                if self._is_excluded(fname):
                    continue
                descriptor = self._describe(os.path.join(root, fname))
                if descriptor is not None:
                    yield descriptor

    def _describe(self, fpath: str) -> Optional[FileDescriptor]:
        try:
            st = os.lstat(fpath)
        except OSError as e:
            self.errors += 1
            logger.warning("file_stat_failed", path=fpath, error=str(e))
            return None
        return FileDescriptor(
            path=normalize(display_path(fpath)),
            size=st.st_size,
            last_modified=datetime.fromtimestamp(st.st_mtime),
        )

    def __iter__(self) -> Iterator[FileDescriptor]:
        return self.walk()

