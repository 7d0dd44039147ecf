"""Shared test fixtures."""

import os
import tempfile
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from orphanscan.config import OrphanScanConfig
from orphanscan.core.paths import normalize
from orphanscan.models.base import SourceBase
from orphanscan.models.source import FileLink, SettingEntry, TreeReport


# --- File tree fixtures ---

@pytest.fixture
def temp_tree():
    """Create a temporary directory tree to reconcile.

    Layout:
        linked/report.pdf     -> file_link row
        shared/a/b.txt        -> tree_report root "<tmp>/shared${env}"
        portal/upload.bin     -> settings row
        stray/lost.doc        -> nothing
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        (root / "linked").mkdir()
        (root / "linked" / "report.pdf").write_bytes(b"%PDF-1.4")
        (root / "shared" / "a").mkdir(parents=True)
        (root / "shared" / "a" / "b.txt").write_text("shared content")
        (root / "portal").mkdir()
        (root / "portal" / "upload.bin").write_bytes(b"\x00\x01\x02")
        (root / "stray").mkdir()
        (root / "stray" / "lost.doc").write_text("nobody knows me")
        yield tmpdir


def tree_path(root: str, *parts: str) -> str:
    """Normalized absolute path of a file inside ``root``."""
    return normalize(os.path.join(os.path.abspath(root), *parts))


# --- Source database fixtures ---

def make_source_db(db_path: str, links=(), reports=(), settings=()) -> str:
    """Create a SQLite stand-in for the SQL Server source tables.

    ``links`` are (id, path, module) tuples, ``reports`` (id, rootlocation),
    ``settings`` (id, name, value). Returns the SQLAlchemy URL.
    """
    url = f"sqlite:///{db_path}"
    engine = create_engine(url)
    SourceBase.metadata.create_all(engine)
    with Session(engine) as session:
        session.add_all(FileLink(id=i, path=p, module=m) for i, p, m in links)
        session.add_all(TreeReport(id=i, rootlocation=r) for i, r in reports)
        session.add_all(SettingEntry(id=i, name=n, value=v) for i, n, v in settings)
        session.commit()
    engine.dispose()
    return url


@pytest.fixture
def source_db(tmp_path, temp_tree):
    """Source database whose records cover three of the four files in ``temp_tree``."""
    root = os.path.abspath(temp_tree)
    return make_source_db(
        str(tmp_path / "source.db"),
        links=[
            (7, os.path.join(root, "linked", "report.pdf").replace("/", "\\"), "Contracts"),
        ],
        reports=[
            (1, "/abc"),
            (2, root + "/shared${env}"),
        ],
        settings=[
            (10, "PortalRoot", root + "/portal/csdportal"),
            (11, "PortalRootDir", root + "/portal"),
            (12, "PortalUrl", "http://csdportal/x"),
        ],
    )


@pytest.fixture
def make_config(tmp_path):
    """Build a config that never touches the environment's real databases."""
    def _make(**overrides) -> OrphanScanConfig:
        values = {
            "results_db_path": str(tmp_path / "results.db"),
            "log_dir": None,
            "settings_value_marker": "portal",
            "_env_file": None,
        }
        values.update(overrides)
        return OrphanScanConfig(**values)

    return _make
