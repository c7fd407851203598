"""Shared data classes used across recall, adapters, and schedulers."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class SourceLocation:
    file_path: str
    line_start: int = 0
    line_end: int = 0


@dataclass
class CardCandidate:
    prompt: str
    response: str
    tags: set[str] = field(default_factory=set)
    source_location: SourceLocation = field(default_factory=lambda: SourceLocation(""))


@dataclass(frozen=True)
class SM2State:
    algorithm = "sm2"

    ease_factor: float = 2.5
    interval: float = 0.0
    repetitions: int = 0


@dataclass(frozen=True)
class SM5State:
    algorithm = "sm5"

    # Index into recall.schedulers.sm5.EASE_LEVELS
    difficulty: int = 12
    interval: float = 0.0
    repetitions: int = 0


@dataclass(frozen=True)
class Simple8State:
    algorithm = "simple8"

    # Most recent last. A failure clears grades and reseeds intervals.
    intervals: tuple[float, ...] = ()
    grades: tuple[int, ...] = ()
    repetitions: int = 0
    lapses: int = 0

    @property
    def interval(self) -> float:
        return self.intervals[-1] if self.intervals else 0.0


AlgorithmState = SM2State | SM5State | Simple8State


@dataclass
class ReviewHistory:
    repetitions: int = 0
    last_reviewed: datetime | None = None
    failures: int = 0
    leech: bool = False
    next_due: datetime | None = None


@dataclass
class Card:
    id: str
    prompt: str
    response: str
    tags: set[str]
    source_location: SourceLocation
    algorithm_state: AlgorithmState | None = None
    review_history: ReviewHistory = field(default_factory=ReviewHistory)
    orphaned: bool = False
    added: datetime | None = None

    @property
    def due(self) -> datetime | None:
        """When the card is next due; never-reviewed cards are due from creation."""
        return self.review_history.next_due or self.added


@dataclass
class ScanReport:
    new: int = 0
    updated: int = 0
    unchanged: int = 0
    orphaned: int = 0
