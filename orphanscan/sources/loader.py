"""Record source loader — one-shot fetch of the candidate records for a run.

Every fetch either returns a complete record set or raises
``RecordSourceError``. A partial set would turn linked files into false
orphans, so there is no best-effort mode.
"""

from typing import Optional

from sqlalchemy import Engine, String, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ..config import OrphanScanConfig
from ..core.paths import normalize, parse_root_location
from ..core.records import LinkRecord, RecordSets, RootLocationRecord, SettingRecord
from ..errors import RecordSourceError
from ..models.source import FileLink, SettingEntry, TreeReport
from ..utils.logging import get_logger

logger = get_logger("sources.loader")


class RecordSourceLoader:
    """Loads file_link, tree_report and settings rows from the source database."""

    def __init__(self, engine: Engine, config: OrphanScanConfig):
        self._session_factory: sessionmaker[Session] = sessionmaker(engine)
        self._config = config

    def _parse(self, raw: Optional[str]) -> Optional[str]:
        return parse_root_location(
            raw,
            min_length=self._config.min_prefix_length,
            marker=self._config.parameter_marker,
        )

    def _fetch(self, source: str, stmt) -> list:
        try:
            with self._session_factory() as session:
                return session.execute(stmt).all()
        except SQLAlchemyError as exc:
            logger.error("record_source_fetch_failed", source=source, error=str(exc))
            raise RecordSourceError(source, str(exc)) from exc

    # --- Direct links ---

    def load_links(self) -> dict[str, LinkRecord]:
        """Preload every direct link keyed by normalized path.

        When two rows normalize to the same path the lower id wins.
        """
        rows = self._fetch(
            "file_link",
            select(FileLink.id, FileLink.path, FileLink.module).order_by(FileLink.id),
        )
        links: dict[str, LinkRecord] = {}
        for row in rows:
            if not row.path:
                continue
            path = normalize(row.path)
            if path in links:
                logger.debug("file_link_duplicate_path", id=row.id, path=path)
                continue
            links[path] = LinkRecord(id=row.id, path=path, module=row.module)

        logger.info("file_links_loaded", count=len(links))
        return links

    def lookup_link(self, path: str) -> Optional[LinkRecord]:
        """Query the direct link for one normalized path.

        Errors propagate as ``SQLAlchemyError``; the caller decides whether
        they are fatal.
        """
        # Stored paths may use either separator, doubled or not; narrow on the
        # file name and compare normalized paths below.
        basename = path.rsplit("/", 1)[-1]
        stmt = (
            select(FileLink.id, FileLink.path, FileLink.module)
            .where(FileLink.path.endswith(basename, autoescape=True))
            .order_by(FileLink.id)
        )
        with self._session_factory() as session:
            rows = session.execute(stmt).all()

        # The collation may be case-insensitive; exact match is decided here.
        for row in rows:
            if normalize(row.path) == path:
                return LinkRecord(id=row.id, path=path, module=row.module)
        return None

    # --- Root locations ---

    def load_root_locations(self) -> list[RootLocationRecord]:
        """Fetch tree_report rows and keep those with a usable root prefix, in id order."""
        rows = self._fetch(
            "tree_report",
            select(TreeReport.id, TreeReport.rootlocation).order_by(TreeReport.id),
        )
        records = []
        for row in rows:
            prefix = self._parse(normalize(row.rootlocation) if row.rootlocation else None)
            if prefix is None:
                logger.debug(
                    "tree_report_row_skipped",
                    id=row.id,
                    rootlocation=row.rootlocation,
                )
                continue
            records.append(RootLocationRecord(id=row.id, root_prefix=prefix))

        logger.info(
            "tree_reports_loaded",
            valid=len(records),
            skipped=len(rows) - len(records),
        )
        return records

    # --- Settings ---

    def settings_filter(self) -> list:
        """WHERE clauses selecting settings rows that may hold a path prefix."""
        cfg = self._config
        name = func.lower(SettingEntry.name, type_=String)
        value = func.lower(SettingEntry.value, type_=String)

        clauses = [SettingEntry.value.contains(cfg.settings_value_marker, autoescape=True)]
        if cfg.settings_excluded_name_fragment:
            clauses.append(
                ~name.contains(cfg.settings_excluded_name_fragment.lower(), autoescape=True)
            )
        if cfg.settings_reserved_name:
            clauses.append(name != cfg.settings_reserved_name.lower())
        for prefix in cfg.settings_excluded_value_prefixes:
            clauses.append(~value.startswith(prefix.lower(), autoescape=True))
        return clauses

    def load_settings(self) -> list[SettingRecord]:
        """Fetch filtered settings rows ordered by name and keep usable prefixes."""
        stmt = (
            select(SettingEntry.id, SettingEntry.name, SettingEntry.value)
            .where(*self.settings_filter())
            .order_by(SettingEntry.name, SettingEntry.id)
        )
        rows = self._fetch("settings", stmt)
        records = []
        for row in rows:
            prefix = self._parse(normalize(row.value) if row.value else None)
            if prefix is None:
                logger.debug("settings_row_skipped", id=row.id, name=row.name)
                continue
            records.append(SettingRecord(id=row.id, name=row.name, path_prefix=prefix))

        logger.info(
            "settings_loaded",
            valid=len(records),
            skipped=len(rows) - len(records),
        )
        return records

    # --- All sources ---

    def load_all(self) -> RecordSets:
        """Load every source needed for a run into an immutable bundle."""
        links = self.load_links() if self._config.link_lookup == "preload" else None
        return RecordSets(
            root_locations=self.load_root_locations(),
            settings=self.load_settings(),
            links=links,
        )
