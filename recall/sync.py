"""Card synchronization: reconcile scanned candidates with the stored card set."""

import dataclasses
import sqlite3
import sys
from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from enum import Enum

from recall.db import load_cards, save_cards
from recall.errors import MalformedCandidate
from recall.models import Card, CardCandidate, ReviewHistory, ScanReport
from recall.scanner import card_id, normalize_tags
from recall.schedulers import load_scheduler


class ScanMode(str, Enum):
    INCREMENTAL = "incremental"
    FULL = "full"


def _new_card(cid: str, candidate: CardCandidate, initial_state, now: datetime) -> Card:
    return Card(
        id=cid,
        prompt=candidate.prompt.strip(),
        response=candidate.response.strip(),
        tags=set(normalize_tags(candidate.tags)),
        source_location=candidate.source_location,
        algorithm_state=initial_state,
        review_history=ReviewHistory(),
        orphaned=False,
        added=now,
    )


def reconcile(existing: Mapping[str, Card] | Iterable[Card],
              candidates: Iterable[CardCandidate],
              mode: ScanMode = ScanMode.INCREMENTAL,
              scanned_files: Iterable[str] | None = None,
              algorithm: str = "sm2",
              now: datetime | None = None) -> tuple[dict[str, Card], ScanReport]:
    """Merge freshly extracted candidates into the existing card set.

    Cards are matched by content hash only, so a card keeps its schedule when
    it moves within or between files. Inputs are never mutated; changed cards
    are copies.

    Args:
        existing: Stored cards, as an id->Card mapping or an iterable.
        candidates: Candidates from this scan; for duplicate ids the last wins.
        mode: INCREMENTAL orphans missing cards only if their file is in
            ``scanned_files``; FULL orphans every missing card.
        scanned_files: Paths read by this scan (needed for INCREMENTAL).
        algorithm: Scheduler whose initial state new cards receive.
        now: Creation time for new cards.

    Returns (cards by id, report).
    """
    mode = ScanMode(mode)
    now = now or datetime.now(timezone.utc)
    if isinstance(existing, Mapping):
        existing = existing.values()
    current = {card.id: card for card in existing}
    scanned = set(scanned_files or ())
    scheduler = load_scheduler(algorithm)
    report = ScanReport()

    found: dict[str, CardCandidate] = {}
    for candidate in candidates:
        try:
            found[card_id(candidate)] = candidate
        except MalformedCandidate as e:
            print(f"Warning: skipping malformed card: {e}", file=sys.stderr)

    result: dict[str, Card] = {}
    for cid, candidate in found.items():
        card = current.get(cid)
        if card is None:
            result[cid] = _new_card(cid, candidate, scheduler.initial_state(), now)
            report.new += 1
        elif card.source_location != candidate.source_location or card.orphaned:
            result[cid] = dataclasses.replace(
                card, source_location=candidate.source_location, orphaned=False)
            report.updated += 1
        else:
            result[cid] = card
            report.unchanged += 1

    for cid, card in current.items():
        if cid in found:
            continue
        missing = mode is ScanMode.FULL or card.source_location.file_path in scanned
        if missing and not card.orphaned:
            result[cid] = dataclasses.replace(card, orphaned=True)
            report.orphaned += 1
        else:
            result[cid] = card

    return result, report


def sync_cards(conn: sqlite3.Connection, candidates: Iterable[CardCandidate],
               mode: ScanMode = ScanMode.INCREMENTAL,
               scanned_files: Iterable[str] | None = None,
               algorithm: str = "sm2",
               now: datetime | None = None) -> ScanReport:
    """Reconcile candidates against the store and save the result."""
    cards, report = reconcile(load_cards(conn), candidates, mode, scanned_files,
                              algorithm, now)
    save_cards(conn, cards.values())
    return report
