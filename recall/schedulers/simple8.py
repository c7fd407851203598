"""Simple8 Scheduler.

Keeps a window of the last eight successful intervals and grades. The next
interval multiplies the latest interval by a factor that shrinks with the
repetition count and grows with the recency-weighted mean grade of the window.
A failure truncates the window to the seed interval.
"""

import math

from recall.models import Simple8State
from recall.schedulers.base import MINIMUM_INTERVAL, Scheduler

WINDOW = 8


def first_interval(lapses: int) -> float:
    """Optimal first interval for a card that has lapsed ``lapses`` times."""
    return 2.4849 * math.exp(-0.057 * lapses)


def interval_factor(ease: float, repetitions: int) -> float:
    log_r = math.log2(repetitions) if repetitions > 0 else 0.0
    return 1.2 + (ease - 1.2) * 0.5 ** log_r


def quality_to_ease(q: float) -> float:
    return 0.0542 * q ** 4 - 0.4848 * q ** 3 + 1.4916 * q ** 2 - 1.2403 * q + 1.4515


def weighted_quality(grades) -> float:
    """Mean of ``grades`` weighted 1..n, most recent heaviest."""
    grades = list(grades)
    if not grades:
        raise ValueError("empty grade window")
    weights = range(1, len(grades) + 1)
    return sum(w * g for w, g in zip(weights, grades)) / sum(weights)


class Simple8Scheduler(Scheduler):
    scheduler_id = "simple8"
    state_type = Simple8State

    def initial_state(self) -> Simple8State:
        return Simple8State()

    def _on_success(self, state: Simple8State, grade: int):
        grades = (state.grades + (grade,))[-WINDOW:]
        if state.repetitions == 0 or not state.intervals:
            interval = max(1, round(first_interval(state.lapses)))
        else:
            ease = quality_to_ease(weighted_quality(grades))
            factor = interval_factor(ease, state.repetitions)
            interval = max(1, round(state.intervals[-1] * factor))
        new_state = Simple8State(
            intervals=(state.intervals + (float(interval),))[-WINDOW:],
            grades=grades,
            repetitions=state.repetitions + 1,
            lapses=state.lapses,
        )
        return new_state, interval

    def _on_failure(self, state: Simple8State, grade: int):
        new_state = Simple8State(intervals=(MINIMUM_INTERVAL,), lapses=state.lapses + 1)
        return new_state, MINIMUM_INTERVAL
