"""Plain-text formatting helpers for CLI output."""

from datetime import datetime


def format_datetime(dt: datetime) -> str:
    return dt.astimezone().strftime("%Y-%m-%d %H:%M")


def format_datetime_opt(dt: datetime | None, fallback: str = "never") -> str:
    return format_datetime(dt) if dt is not None else fallback


def format_tags(tags) -> str:
    return ", ".join(sorted(tags))


def format_card_line(card) -> str:
    """One-line summary: short id, status markers, location, prompt."""
    markers = []
    if card.orphaned:
        markers.append("ORPHAN")
    if card.review_history.leech:
        markers.append("LEECH")
    status = f"[{','.join(markers)}] " if markers else ""
    loc = card.source_location
    return f"{card.id[:12]} {status}{loc.file_path}:{loc.line_start + 1}  {card.prompt}"
