"""Grade classification and the review policy shared by every scheduler."""

import sys
from datetime import datetime, timedelta

MIN_GRADE = 0
MAX_GRADE = 5
FAILURE_GRADES = frozenset({0, 1, 2})

# ~15 minutes, as a fraction of a day. Failed cards restart from here.
MINIMUM_INTERVAL = 0.01


def check_grade(grade: int) -> int:
    if isinstance(grade, bool) or not isinstance(grade, int):
        raise ValueError(f"Grade must be an integer, got {grade!r}")
    if not MIN_GRADE <= grade <= MAX_GRADE:
        raise ValueError(f"Grade must be between {MIN_GRADE} and {MAX_GRADE}, got {grade}")
    return grade


def is_failure(grade: int) -> bool:
    return check_grade(grade) in FAILURE_GRADES


def clamp_interval(days: float) -> float:
    return max(float(days), MINIMUM_INTERVAL)


def next_due(now: datetime, interval_days: float) -> datetime:
    return now + timedelta(days=clamp_interval(interval_days))


class Scheduler:
    """Base class for the scheduling algorithms.

    Subclasses set ``scheduler_id`` and ``state_type`` and implement
    ``initial_state``, ``_on_success`` and ``_on_failure``. Both hooks take
    a state of the subclass's own shape and return ``(new_state, interval)``
    with the interval in days.
    """

    scheduler_id = ""
    state_type: type = object

    def initial_state(self):
        raise NotImplementedError

    def coerce_state(self, state, warn: bool = True):
        """Return ``state`` if it belongs to this algorithm, else a fresh one."""
        if isinstance(state, self.state_type):
            return state
        if state is not None and warn:
            print(f"Warning: {type(state).__name__} is not a {self.scheduler_id} state, "
                  f"reinitializing", file=sys.stderr)
        return self.initial_state()

    def review(self, state, grade: int, now: datetime):
        """Schedule the next review. Returns (new_state, next_due)."""
        state = self.coerce_state(state)
        if is_failure(grade):
            new_state, interval = self._on_failure(state, grade)
        else:
            new_state, interval = self._on_success(state, grade)
        return new_state, next_due(now, interval)

    def _on_success(self, state, grade: int):
        raise NotImplementedError

    def _on_failure(self, state, grade: int):
        raise NotImplementedError
