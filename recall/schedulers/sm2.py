"""SM-2 scheduler: SuperMemo 2 algorithm implementation.

Per-card state: ease factor, interval (days), repetition count.
"""

import dataclasses

from recall.models import SM2State
from recall.schedulers.base import MINIMUM_INTERVAL, Scheduler

MIN_EASE_FACTOR = 1.3


def new_ease_factor(grade: int, ease_factor: float) -> float:
    """SM-2 ease update for a response of quality ``grade``, floored at 1.3."""
    q = 5 - grade
    return max(ease_factor + 0.1 - q * (0.08 + q * 0.02), MIN_EASE_FACTOR)


class SM2Scheduler(Scheduler):
    scheduler_id = "sm2"
    state_type = SM2State

    def initial_state(self) -> SM2State:
        return SM2State()

    def _on_success(self, state: SM2State, grade: int):
        if state.repetitions == 0:
            interval = 1
        elif state.repetitions == 1:
            interval = 6
        else:
            interval = max(1, round(state.interval * state.ease_factor))
        new_state = SM2State(
            ease_factor=new_ease_factor(grade, state.ease_factor),
            interval=float(interval),
            repetitions=state.repetitions + 1,
        )
        return new_state, interval

    def _on_failure(self, state: SM2State, grade: int):
        new_state = dataclasses.replace(state, interval=MINIMUM_INTERVAL, repetitions=0)
        return new_state, MINIMUM_INTERVAL
