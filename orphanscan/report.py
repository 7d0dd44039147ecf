"""Result reporter — read-only inspection and CSV/JSON export of scan results."""

import csv
import json
import os
from pathlib import Path
from typing import Optional

from sqlalchemy import Engine, func, select
from sqlalchemy.orm import Session, sessionmaker

from .models.file_search_result import FileSearchResult
from .utils.logging import get_logger

logger = get_logger("report")

EXPORT_FIELDS = [
    "path",
    "size",
    "last_modified",
    "table_name",
    "record_id",
    "module",
    "is_orphaned",
]


def _row_to_dict(row: FileSearchResult) -> dict:
    return {
        "path": row.path,
        "size": row.size,
        "last_modified": row.last_modified.isoformat() if row.last_modified else None,
        "table_name": row.table_name,
        "record_id": row.record_id,
        "module": row.module,
        "is_orphaned": row.is_orphaned,
    }


class ResultReporter:
    """Queries the file_search_results table written by a scan."""

    def __init__(self, engine: Engine):
        self._session_factory: sessionmaker[Session] = sessionmaker(engine)

    def summary(self) -> dict:
        """Counts of all results, orphans, and results per source table."""
        with self._session_factory() as session:
            total = session.scalar(select(func.count()).select_from(FileSearchResult)) or 0
            orphaned = session.scalar(
                select(func.count())
                .select_from(FileSearchResult)
                .where(FileSearchResult.is_orphaned.is_(True))
            ) or 0
            rows = session.execute(
                select(FileSearchResult.table_name, func.count())
                .where(FileSearchResult.is_orphaned.is_(False))
                .group_by(FileSearchResult.table_name)
                .order_by(FileSearchResult.table_name)
            ).all()

        return {
            "total": total,
            "orphaned": orphaned,
            "by_table": {table_name: count for table_name, count in rows},
        }

    def results(self, orphaned_only: bool = False, limit: Optional[int] = None) -> list[dict]:
        """Persisted results ordered by path."""
        query = select(FileSearchResult).order_by(FileSearchResult.path)
        if orphaned_only:
            query = query.where(FileSearchResult.is_orphaned.is_(True))
        if limit is not None:
            query = query.limit(limit)
        with self._session_factory() as session:
            return [_row_to_dict(row) for row in session.scalars(query).all()]

    def orphans(self, limit: Optional[int] = None) -> list[dict]:
        return self.results(orphaned_only=True, limit=limit)

    def export(self, path: str, fmt: str = "csv", orphaned_only: bool = False) -> int:
        """Write results to ``path`` as CSV or JSON. Returns the row count."""
        handlers = {
            "csv": self._write_csv,
            "json": self._write_json,
        }
        handler = handlers.get(fmt)
        if handler is None:
            raise ValueError(f"Unsupported export format: {fmt}")

        records = self.results(orphaned_only=orphaned_only)
        parent = Path(path).parent
        if str(parent):
            parent.mkdir(parents=True, exist_ok=True)
        handler(path, records)

        logger.info(
            "export_completed",
            format=fmt,
            file_path=path,
            rows=len(records),
            file_size=os.path.getsize(path),
        )
        return len(records)

    @staticmethod
    def _write_csv(path: str, rows: list[dict]) -> None:
        with open(path, "w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=EXPORT_FIELDS)
            writer.writeheader()
            for row in rows:
                writer.writerow({k: "" if v is None else v for k, v in row.items()})

    @staticmethod
    def _write_json(path: str, rows: list[dict]) -> None:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(rows, f, indent=2)
