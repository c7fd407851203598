"""Leech classification: cards that keep failing."""

from enum import Enum


class LeechMethod(str, Enum):
    SKIP = "skip"
    WARN = "warn"


def is_leech(failures: int, threshold: int) -> bool:
    return failures >= threshold


def apply_leech_method(items, method: LeechMethod, threshold: int):
    """Drop leeches from ``items`` for SKIP; keep them all for WARN.

    Cards are classified against ``threshold`` from their failure count, not
    from the cached ``leech`` flag, so a changed threshold applies at once.
    """
    method = LeechMethod(method)
    if method is LeechMethod.SKIP:
        return [c for c in items if not is_leech(c.review_history.failures, threshold)]
    return list(items)
