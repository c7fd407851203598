"""App: central object that wires together recall_dir, settings, store, lock, adapter."""

import pathlib
import sqlite3
from typing import Any

from recall.adapters import load_adapter
from recall.config import get_recall_dir, load_settings
from recall.db import init_db
from recall.lock import ProcessLock
from recall.models import ScanReport
from recall.scanner import scan_sources
from recall.sync import ScanMode, sync_cards


class App:
    """Holds all shared state for a recall invocation.

    Usage:
        app = App(recall_dir="/path/to/recall")
        with app.lock():
            app.init_db()                # uses recall_dir/recall.db
            report = app.scan([...], mode=ScanMode.FULL)
        app.close()

    For testing:
        app = App(recall_dir=tmp_path)
        app.init_db(":memory:")
    """

    def __init__(self, recall_dir: pathlib.Path | str | None = None):
        if recall_dir is None:
            recall_dir = get_recall_dir()
        self.recall_dir = pathlib.Path(recall_dir)
        self.settings = load_settings(self.recall_dir)
        self._adapter_cache: dict[str, Any] = {}
        self.conn: sqlite3.Connection | None = None

    @property
    def db_path(self) -> pathlib.Path:
        return self.recall_dir / "recall.db"

    def init_db(self, db_path: pathlib.Path | str | None = None) -> sqlite3.Connection:
        """Initialize (or connect to) the database.

        Args:
            db_path: Path to the SQLite database file, or ":memory:" for
                     in-memory databases (useful for testing). Defaults to
                     recall_dir/recall.db.
        """
        if db_path is None:
            db_path = self.db_path
        self.conn = init_db(db_path)
        return self.conn

    def lock(self) -> ProcessLock:
        """The process lock; use as a context manager around store mutations."""
        return ProcessLock(self.recall_dir / "recall.lock")

    def get_adapter(self, name: str | None = None):
        """Load an adapter by name (cached). Defaults to settings["adapter"]."""
        if name is None:
            name = self.settings.get("adapter", "flashcard")
        if name not in self._adapter_cache:
            self._adapter_cache[name] = load_adapter(name, self.recall_dir)
        return self._adapter_cache[name]

    def scan(self, paths: list[pathlib.Path], mode: ScanMode = ScanMode.INCREMENTAL,
             file_types=None, algorithm: str | None = None) -> ScanReport:
        """Scan paths and reconcile the found cards with the store."""
        if file_types is None:
            file_types = self.settings.get("file_types")
        if isinstance(file_types, str):
            file_types = [ft.strip() for ft in file_types.split(",") if ft.strip()]
        if algorithm is None:
            algorithm = self.settings.get("algorithm", "sm2")
        candidates, scanned_files = scan_sources(paths, self.get_adapter(), file_types)
        return sync_cards(self.conn, candidates, mode, scanned_files, algorithm)

    def close(self):
        """Close the database connection."""
        if self.conn:
            self.conn.close()
            self.conn = None
