"""recall: flashcards from plain-text notes, scheduled by spaced repetition."""

__version__ = "0.1.0"

from recall.models import Card, CardCandidate, ReviewHistory, ScanReport, SourceLocation
from recall.app import App

__all__ = ["App", "Card", "CardCandidate", "ReviewHistory", "ScanReport", "SourceLocation"]
