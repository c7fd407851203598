"""ReviewSession: due-card selection and grading, independent of any UI."""

import dataclasses
import random
import time
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from recall.config import ReviewConfig
from recall.leech import apply_leech_method, is_leech
from recall.models import Card
from recall.schedulers import Scheduler, check_grade, is_failure, load_scheduler

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _sort_key(card: Card):
    return (card.due or _EPOCH, card.id)


def _matches(card: Card, tag_filter, include_orphans: bool) -> bool:
    if card.orphaned and not include_orphans:
        return False
    if tag_filter and not (card.tags & set(tag_filter)):
        return False
    return True


def due_cards(cards: Iterable[Card], now: datetime, tag_filter=None,
              include_orphans: bool = False, algorithm: str = "sm2",
              warn: bool = True) -> list[Card]:
    """Cards due at ``now``, ordered by due date then id.

    A card matches ``tag_filter`` if it carries any of its tags; an empty
    filter matches everything. Scheduling states that do not belong to
    ``algorithm`` are reinitialized in the returned copies; ``warn=False``
    keeps that quiet for read-only callers.
    """
    scheduler = load_scheduler(algorithm)
    due = []
    for card in cards:
        if not _matches(card, tag_filter, include_orphans):
            continue
        if card.due is not None and card.due > now:
            continue
        state = scheduler.coerce_state(card.algorithm_state, warn=warn)
        if state is not card.algorithm_state:
            card = dataclasses.replace(card, algorithm_state=state)
        due.append(card)
    return sorted(due, key=_sort_key)


def cram_cards(cards: Iterable[Card], now: datetime, cram_hours: int, tag_filter=None,
               include_orphans: bool = False) -> list[Card]:
    """Every matching card not reviewed within the last ``cram_hours``, due or not."""
    cutoff = now - timedelta(hours=cram_hours)
    selected = []
    for card in cards:
        if not _matches(card, tag_filter, include_orphans):
            continue
        last = card.review_history.last_reviewed
        if last is not None and last > cutoff:
            continue
        selected.append(card)
    return sorted(selected, key=_sort_key)


def apply_review(card: Card, grade: int, now: datetime, scheduler: Scheduler,
                 leech_threshold: int) -> Card:
    """Grade ``card`` and return the updated copy.

    A failing grade increments the failure counter by one; the cached leech
    flag is refreshed from the new count.
    """
    state, next_due = scheduler.review(card.algorithm_state, grade, now)
    history = card.review_history
    failures = history.failures + (1 if is_failure(grade) else 0)
    new_history = dataclasses.replace(
        history,
        repetitions=history.repetitions + 1,
        last_reviewed=now,
        failures=failures,
        leech=is_leech(failures, leech_threshold),
        next_due=next_due,
    )
    return dataclasses.replace(card, algorithm_state=state, review_history=new_history)


@dataclass
class ReviewItem:
    card: Card
    reversed: bool = False
    leech: bool = False

    @property
    def front(self) -> str:
        return self.card.response if self.reversed else self.card.prompt

    @property
    def back(self) -> str:
        return self.card.prompt if self.reversed else self.card.response

    @property
    def leech_warning(self) -> bool:
        return self.leech


class ReviewSession:
    def __init__(self, cards: Iterable[Card], config: ReviewConfig,
                 now_fn=None, clock=time.monotonic, rng: random.Random | None = None):
        self.config = config
        self.scheduler = load_scheduler(config.algorithm)
        self._now = now_fn or (lambda: datetime.now(timezone.utc))
        self._clock = clock
        self._rng = rng or random.Random()
        self.started = self._clock()
        self.current: ReviewItem | None = None
        self.reviewed: dict[str, Card] = {}
        # (card id, grade, graded at)
        self.grades: list[tuple[str, int, datetime]] = []
        self.queue = self._build_queue(list(cards))

    def _build_queue(self, cards: list[Card]) -> list[ReviewItem]:
        now = self._now()
        cfg = self.config
        if cfg.cram:
            selected = cram_cards(cards, now, cfg.cram_hours, cfg.tags, cfg.include_orphans)
        else:
            selected = due_cards(cards, now, cfg.tags, cfg.include_orphans, cfg.algorithm)
        selected = apply_leech_method(selected, cfg.leech_method, cfg.leech_failure_threshold)
        selected = selected[:cfg.maximum_cards_per_session]
        return [ReviewItem(card, self._rng.random() < cfg.reverse_probability,
                           is_leech(card.review_history.failures, cfg.leech_failure_threshold))
                for card in selected]

    def expired(self) -> bool:
        return self._clock() - self.started >= self.config.maximum_duration_minutes * 60

    def remaining_count(self) -> int:
        return len(self.queue) + (1 if self.current else 0)

    def get_next_card(self) -> ReviewItem | None:
        if self.current is None:
            if not self.queue or self.expired():
                return None
            self.current = self.queue.pop(0)
        return self.current

    def grade_current(self, grade: int) -> Card:
        if self.current is None:
            raise ValueError("No current card")
        card = self.current.card
        now = self._now()
        if self.config.cram:
            # Cramming does not move the schedule.
            check_grade(grade)
            updated = dataclasses.replace(
                card, review_history=dataclasses.replace(card.review_history, last_reviewed=now))
        else:
            updated = apply_review(card, grade, now, self.scheduler,
                                   self.config.leech_failure_threshold)
        self.reviewed[card.id] = updated
        self.grades.append((card.id, grade, now))
        self.current = None
        return updated

    def skip_current(self):
        self.current = None
