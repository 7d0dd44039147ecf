"""Path normalization and root-location parsing.

Filesystem paths and database-stored paths are both run through ``normalize``
so comparisons do not depend on separator style. Case is folded only at
comparison time; stored values keep their original casing.
"""

import re
from typing import Optional

DEFAULT_PARAMETER_MARKER = "${"
DEFAULT_MIN_PREFIX_LENGTH = 5

_DUPLICATE_SEPARATORS = re.compile(r"/{2,}")


def normalize(path: str) -> str:
    """Unify separators to ``/`` and collapse repeated separators."""
    return _DUPLICATE_SEPARATORS.sub("/", path.replace("\\", "/"))


def fold(path: str) -> str:
    """Comparison key for a normalized path."""
    return path.casefold()


def is_prefix(prefix: str, path: str) -> bool:
    """Case-insensitive starts-with test between two normalized paths."""
    return fold(path).startswith(fold(prefix))


def parse_root_location(
    raw: Optional[str],
    min_length: int = DEFAULT_MIN_PREFIX_LENGTH,
    marker: str = DEFAULT_PARAMETER_MARKER,
) -> Optional[str]:
    """Extract the literal prefix of a templated location.

    Everything from the first ``marker`` on is dropped, the rest is
    normalized. Returns None when nothing longer than ``min_length``
    characters remains, since such a prefix would match nearly every path.
    """
    if raw is None:
        return None
    literal = raw.split(marker, 1)[0]
    parsed = normalize(literal)
    if len(parsed) > min_length:
        return parsed
    return None
