"""Exception hierarchy for reconciliation runs.

Fatal conditions raise one of these and abort the run. Per-file problems are
logged where they happen and never surface as exceptions.
"""


class OrphanScanError(Exception):
    """Base class for errors that abort a reconciliation run."""


class ConfigurationError(OrphanScanError):
    """Required connection or scan settings are missing or invalid."""


class RecordSourceError(OrphanScanError):
    """A record source could not be fetched; partial record sets are never used."""

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Error querying {source} table: {reason}")


class TraversalError(OrphanScanError):
    """The traversal root could not be accessed."""

    def __init__(self, root: str, reason: str):
        self.root = root
        self.reason = reason
        super().__init__(f"Error walking through files under {root}: {reason}")


class PersistenceError(OrphanScanError):
    """The results database could not be opened or committed."""
