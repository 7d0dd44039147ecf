"""Value types passed between the loader, matcher, driver, and sink."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional


class SourceKind(str, Enum):
    """Which record source a file was matched against."""

    LINKED = "linked"
    ROOTED = "rooted"
    SETTINGS = "settings"
    NONE = "none"

    @property
    def table_name(self) -> str:
        """Source table name as persisted in the results database."""
        return _TABLE_NAMES[self]


_TABLE_NAMES = {
    SourceKind.LINKED: "file_link",
    SourceKind.ROOTED: "tree_report",
    SourceKind.SETTINGS: "settings",
    SourceKind.NONE: "",
}


@dataclass(frozen=True)
class FileDescriptor:
    path: str
    size: int
    last_modified: datetime


@dataclass(frozen=True)
class LinkRecord:
    id: int
    path: str
    module: Optional[str] = None


@dataclass(frozen=True)
class RootLocationRecord:
    id: int
    root_prefix: str


@dataclass(frozen=True)
class SettingRecord:
    id: int
    name: str
    path_prefix: str


@dataclass(frozen=True)
class Match:
    """Outcome of classifying one path."""

    source_kind: SourceKind
    record_id: int = 0
    label: str = ""

    @property
    def is_orphaned(self) -> bool:
        return self.source_kind is SourceKind.NONE


NO_MATCH = Match(SourceKind.NONE)


@dataclass(frozen=True)
class ClassificationResult:
    path: str
    size: int
    last_modified: datetime
    source_kind: SourceKind
    record_id: int = 0
    module: str = ""

    @property
    def is_orphaned(self) -> bool:
        return self.source_kind is SourceKind.NONE

    @property
    def table_name(self) -> str:
        return self.source_kind.table_name

    @classmethod
    def from_match(cls, descriptor: FileDescriptor, match: Match) -> "ClassificationResult":
        return cls(
            path=descriptor.path,
            size=descriptor.size,
            last_modified=descriptor.last_modified,
            source_kind=match.source_kind,
            record_id=match.record_id,
            module=match.label,
        )

    def to_row(self) -> dict:
        """Column values for the results table."""
        return {
            "path": self.path,
            "size": self.size,
            "last_modified": self.last_modified,
            "table_name": self.table_name,
            "record_id": self.record_id,
            "module": self.module,
            "is_orphaned": self.is_orphaned,
        }


@dataclass(frozen=True)
class RecordSets:
    """Read-only candidate sets loaded once at the start of a run.

    ``links`` is keyed by normalized path. It is None when direct links are
    looked up per file instead of preloaded.
    """

    root_locations: tuple[RootLocationRecord, ...] = ()
    settings: tuple[SettingRecord, ...] = ()
    links: Optional[Mapping[str, LinkRecord]] = None

    def __post_init__(self):
        object.__setattr__(self, "root_locations", tuple(self.root_locations))
        object.__setattr__(self, "settings", tuple(self.settings))
        if self.links is not None:
            object.__setattr__(self, "links", MappingProxyType(dict(self.links)))


@dataclass
class ScanSummary:
    root_folder: str
    results_path: str = ""
    files_processed: int = 0
    files_orphaned: int = 0
    files_failed: int = 0
    by_source: dict[str, int] = field(default_factory=dict)

    def as_dict(self) -> dict:
        return {
            "root_folder": self.root_folder,
            "results_path": self.results_path,
            "files_processed": self.files_processed,
            "files_orphaned": self.files_orphaned,
            "files_failed": self.files_failed,
            "by_source": dict(self.by_source),
        }
