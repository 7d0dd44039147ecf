"""Reconciliation core: path rules, record types, and the matcher."""

from .matcher import Matcher
from .paths import is_prefix, normalize, parse_root_location
from .records import (
    ClassificationResult,
    FileDescriptor,
    LinkRecord,
    Match,
    RecordSets,
    RootLocationRecord,
    ScanSummary,
    SettingRecord,
    SourceKind,
)

__all__ = [
    "Matcher",
    "is_prefix",
    "normalize",
    "parse_root_location",
    "ClassificationResult",
    "FileDescriptor",
    "LinkRecord",
    "Match",
    "RecordSets",
    "RootLocationRecord",
    "ScanSummary",
    "SettingRecord",
    "SourceKind",
]
