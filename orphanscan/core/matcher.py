"""Matcher — decides which record source a file path belongs to.

Sources are tried in fixed priority order and the first hit wins:

1. direct link, exact match on the normalized path
2. root location, case-insensitive prefix, first in load order
3. settings entry, case-insensitive prefix, first in name order

Nested prefixes are not resolved to the most specific one; the earlier record
in load order takes the file.
"""

from typing import Callable, Optional

from .paths import is_prefix
from .records import NO_MATCH, LinkRecord, Match, RecordSets, SourceKind

LinkLookup = Callable[[str], Optional[LinkRecord]]


class Matcher:
    """Classifies normalized paths against a fixed set of records.

    Direct links come either from ``records.links`` (preloaded) or from
    ``link_lookup``, a per-file query. Exceptions raised by ``link_lookup``
    propagate to the caller.
    """

    def __init__(self, records: RecordSets, link_lookup: Optional[LinkLookup] = None):
        if records.links is None and link_lookup is None:
            raise ValueError("Matcher needs preloaded links or a link_lookup callable")
        self._records = records
        self._link_lookup = link_lookup

    def find_link(self, path: str) -> Optional[LinkRecord]:
        if self._records.links is not None:
            return self._records.links.get(path)
        return self._link_lookup(path)

    def classify(self, path: str) -> Match:
        """Return the first matching source for ``path`` (already normalized)."""
        link = self.find_link(path)
        if link is not None:
            return Match(SourceKind.LINKED, link.id, link.module or "")

        for root in self._records.root_locations:
            if is_prefix(root.root_prefix, path):
                return Match(SourceKind.ROOTED, root.id)

        for setting in self._records.settings:
            if is_prefix(setting.path_prefix, path):
                return Match(SourceKind.SETTINGS, setting.id, setting.name)

        return NO_MATCH
