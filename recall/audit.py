"""Audit: orphaned and leeched cards, and explicit pruning."""

import sqlite3
from collections.abc import Iterable

from recall.db import delete_card, load_cards
from recall.models import Card


def audit_cards(cards: Iterable[Card]) -> list[Card]:
    """Orphaned and leeched cards, orphans first, then by id."""
    flagged = [c for c in cards if c.orphaned or c.review_history.leech]
    return sorted(flagged, key=lambda c: (not c.orphaned, c.id))


def prune_card(conn: sqlite3.Connection, card_id: str) -> Card:
    """Delete an orphaned or leeched card and return it.

    Raises KeyError for unknown ids and ValueError for cards that are
    neither orphaned nor leeches.
    """
    card = load_cards(conn).get(card_id)
    if card is None:
        raise KeyError(f"Card not found: {card_id}")
    if not (card.orphaned or card.review_history.leech):
        raise ValueError(f"Card {card_id[:12]} is neither orphaned nor a leech")
    delete_card(conn, card_id)
    return card
