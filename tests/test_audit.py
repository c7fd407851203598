"""Tests for recall.audit."""

import pytest

from recall.audit import audit_cards, prune_card
from recall.db import load_cards, save_cards
from recall.models import Card, ReviewHistory, SourceLocation


def card(cid, orphaned=False, leech=False):
    return Card(id=cid, prompt=f"q {cid}", response="a", tags=set(),
                source_location=SourceLocation("/notes/a.md"),
                review_history=ReviewHistory(failures=15 if leech else 0, leech=leech),
                orphaned=orphaned)


def test_audit_lists_orphans_then_leeches():
    cards = [card("d", leech=True), card("c"), card("b", orphaned=True),
             card("a", leech=True), card("e", orphaned=True, leech=True)]
    assert [c.id for c in audit_cards(cards)] == ["b", "e", "a", "d"]


def test_audit_empty():
    assert audit_cards([card("a")]) == []


def test_prune_orphan(db_conn):
    save_cards(db_conn, [card("a", orphaned=True), card("b")])
    pruned = prune_card(db_conn, "a")
    assert pruned.id == "a"
    assert list(load_cards(db_conn)) == ["b"]


def test_prune_leech(db_conn):
    save_cards(db_conn, [card("a", leech=True)])
    prune_card(db_conn, "a")
    assert load_cards(db_conn) == {}


def test_prune_healthy_card_refused(db_conn):
    save_cards(db_conn, [card("a")])
    with pytest.raises(ValueError):
        prune_card(db_conn, "a")
    assert list(load_cards(db_conn)) == ["a"]


def test_prune_unknown(db_conn):
    with pytest.raises(KeyError):
        prune_card(db_conn, "nope")
