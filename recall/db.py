"""Card store: SQLite schema, load/save of Card records, review log."""

import json
import pathlib
import sqlite3
import sys
from collections.abc import Iterable
from datetime import datetime, timezone

from recall.errors import AlgorithmStateMismatch, StoreIoError
from recall.models import Card, ReviewHistory, SourceLocation
from recall.schedulers import state_from_dict, state_to_dict

SCHEMA = """
CREATE TABLE IF NOT EXISTS cards (
    id TEXT PRIMARY KEY,
    prompt TEXT NOT NULL,
    response TEXT NOT NULL,
    tags JSON NOT NULL,
    file_path TEXT NOT NULL,
    line_start INTEGER NOT NULL DEFAULT 0,
    line_end INTEGER NOT NULL DEFAULT 0,
    algorithm_state JSON,
    repetitions INTEGER NOT NULL DEFAULT 0,
    last_reviewed TEXT,
    failures INTEGER NOT NULL DEFAULT 0,
    leech BOOLEAN NOT NULL DEFAULT 0,
    next_due TEXT,
    orphaned BOOLEAN NOT NULL DEFAULT 0,
    added TEXT
);

CREATE TABLE IF NOT EXISTS review_log (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    card_id TEXT NOT NULL,
    timestamp TEXT NOT NULL,
    grade INTEGER NOT NULL CHECK(grade BETWEEN 0 AND 5),
    algorithm TEXT NOT NULL,
    cram BOOLEAN NOT NULL DEFAULT 0
);
"""

_COLUMNS = ("id", "prompt", "response", "tags", "file_path", "line_start", "line_end",
            "algorithm_state", "repetitions", "last_reviewed", "failures", "leech",
            "next_due", "orphaned", "added")


def init_db(db_path: pathlib.Path | str) -> sqlite3.Connection:
    db_path = pathlib.Path(db_path)
    try:
        if str(db_path) != ":memory:":
            db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(db_path), timeout=5)
        conn.row_factory = sqlite3.Row
        if str(db_path) != ":memory:":
            conn.execute("PRAGMA journal_mode=WAL")
        conn.executescript(SCHEMA)
        conn.commit()
    except (OSError, sqlite3.Error) as e:
        raise StoreIoError(f"cannot open store {db_path}: {e}") from e
    return conn


def _format_dt(dt: datetime | None) -> str | None:
    return dt.isoformat() if dt is not None else None


def _parse_dt(value: str | None) -> datetime | None:
    if not value:
        return None
    dt = datetime.fromisoformat(value)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _card_to_row(card: Card) -> tuple:
    loc = card.source_location
    hist = card.review_history
    state = state_to_dict(card.algorithm_state)
    return (card.id, card.prompt, card.response, json.dumps(sorted(card.tags)),
            loc.file_path, loc.line_start, loc.line_end,
            json.dumps(state) if state is not None else None,
            hist.repetitions, _format_dt(hist.last_reviewed), hist.failures, hist.leech,
            _format_dt(hist.next_due), card.orphaned, _format_dt(card.added))


def _row_to_card(row: sqlite3.Row) -> Card:
    state = None
    if row["algorithm_state"]:
        try:
            state = state_from_dict(json.loads(row["algorithm_state"]))
        except (AlgorithmStateMismatch, ValueError) as e:
            print(f"Warning: card {row['id'][:12]} has unreadable scheduling state ({e}), "
                  f"it will be reinitialized", file=sys.stderr)
    return Card(
        id=row["id"],
        prompt=row["prompt"],
        response=row["response"],
        tags=set(json.loads(row["tags"])),
        source_location=SourceLocation(row["file_path"], row["line_start"], row["line_end"]),
        algorithm_state=state,
        review_history=ReviewHistory(
            repetitions=row["repetitions"],
            last_reviewed=_parse_dt(row["last_reviewed"]),
            failures=row["failures"],
            leech=bool(row["leech"]),
            next_due=_parse_dt(row["next_due"]),
        ),
        orphaned=bool(row["orphaned"]),
        added=_parse_dt(row["added"]),
    )


def load_cards(conn: sqlite3.Connection) -> dict[str, Card]:
    try:
        rows = conn.execute("SELECT * FROM cards ORDER BY id").fetchall()
    except sqlite3.Error as e:
        raise StoreIoError(f"cannot read cards: {e}") from e
    return {row["id"]: _row_to_card(row) for row in rows}


def save_cards(conn: sqlite3.Connection, cards: Iterable[Card]):
    """Replace the whole card set. Nothing is written unless everything is."""
    rows = [_card_to_row(c) for c in cards]
    placeholders = ",".join("?" * len(_COLUMNS))
    try:
        with conn:
            conn.execute("DELETE FROM cards")
            conn.executemany(
                f"INSERT INTO cards ({','.join(_COLUMNS)}) VALUES ({placeholders})", rows)
    except sqlite3.Error as e:
        raise StoreIoError(f"cannot save cards: {e}") from e


def update_cards(conn: sqlite3.Connection, cards: Iterable[Card]):
    """Insert or replace the given cards, leaving all others alone."""
    rows = [_card_to_row(c) for c in cards]
    placeholders = ",".join("?" * len(_COLUMNS))
    try:
        with conn:
            conn.executemany(
                f"INSERT OR REPLACE INTO cards ({','.join(_COLUMNS)}) VALUES ({placeholders})",
                rows)
    except sqlite3.Error as e:
        raise StoreIoError(f"cannot update cards: {e}") from e


def delete_card(conn: sqlite3.Connection, card_id: str):
    try:
        with conn:
            cur = conn.execute("DELETE FROM cards WHERE id=?", (card_id,))
    except sqlite3.Error as e:
        raise StoreIoError(f"cannot delete card {card_id}: {e}") from e
    if cur.rowcount == 0:
        raise KeyError(f"Card not found: {card_id}")


def log_review(conn: sqlite3.Connection, card_id: str, grade: int, timestamp: datetime,
               algorithm: str, cram: bool = False):
    try:
        with conn:
            conn.execute(
                "INSERT INTO review_log (card_id, timestamp, grade, algorithm, cram) "
                "VALUES (?, ?, ?, ?, ?)",
                (card_id, _format_dt(timestamp), grade, algorithm, cram))
    except sqlite3.Error as e:
        raise StoreIoError(f"cannot log review: {e}") from e


def review_counts(conn: sqlite3.Connection, since: datetime) -> tuple[int, int]:
    """Return (reviews since ``since``, total reviews)."""
    recent = conn.execute("SELECT COUNT(*) AS cnt FROM review_log WHERE timestamp >= ?",
                          (_format_dt(since),)).fetchone()["cnt"]
    total = conn.execute("SELECT COUNT(*) AS cnt FROM review_log").fetchone()["cnt"]
    return recent, total
