"""SM-5 scheduler: SuperMemo 5 with a fixed optimal-factor matrix.

Per-card state: a difficulty index, interval (days), repetition count.
The difficulty index selects a column of the optimal-factor matrix; the
repetition count selects the row. Both lookups saturate at the matrix edges.
"""

import dataclasses

from recall.models import SM5State
from recall.schedulers.base import MINIMUM_INTERVAL, Scheduler
from recall.schedulers.sm2 import new_ease_factor

# Discretized ease factors, one matrix column each.
EASE_LEVELS = tuple(round(1.3 + 0.1 * i, 1) for i in range(18))
DEFAULT_DIFFICULTY = EASE_LEVELS.index(2.5)

MATRIX_ROWS = 20
FIRST_INTERVAL = 4.0

# Fraction governing how quickly spacing grows with response quality.
OF_FRACTION = 0.5


def _build_matrix() -> tuple[tuple[float, ...], ...]:
    rows = [tuple(FIRST_INTERVAL for _ in EASE_LEVELS)]
    for _ in range(1, MATRIX_ROWS):
        rows.append(EASE_LEVELS)
    return tuple(rows)


OPTIMAL_FACTORS = _build_matrix()


def clamp_difficulty(index: int) -> int:
    return min(max(index, 0), len(EASE_LEVELS) - 1)


def optimal_factor(repetitions: int, difficulty: int) -> float:
    row = OPTIMAL_FACTORS[min(max(repetitions, 0), MATRIX_ROWS - 1)]
    return row[clamp_difficulty(difficulty)]


def adjust_difficulty(difficulty: int, grade: int) -> int:
    """Move to the ease level nearest the SM-2 ease update for ``grade``."""
    ease = EASE_LEVELS[clamp_difficulty(difficulty)]
    updated = new_ease_factor(grade, ease)
    return clamp_difficulty(round((updated - EASE_LEVELS[0]) * 10))


def quality_modifier(grade: int) -> float:
    return (1.0 - OF_FRACTION) + OF_FRACTION * (0.72 + grade * 0.07)


class SM5Scheduler(Scheduler):
    scheduler_id = "sm5"
    state_type = SM5State

    def initial_state(self) -> SM5State:
        return SM5State(difficulty=DEFAULT_DIFFICULTY)

    def _on_success(self, state: SM5State, grade: int):
        difficulty = adjust_difficulty(state.difficulty, grade)
        factor = optimal_factor(state.repetitions, difficulty) * quality_modifier(grade)
        if state.repetitions == 0:
            interval = max(1, round(factor))
        else:
            interval = max(1, round(state.interval * factor))
        new_state = SM5State(
            difficulty=difficulty,
            interval=float(interval),
            repetitions=state.repetitions + 1,
        )
        return new_state, interval

    def _on_failure(self, state: SM5State, grade: int):
        new_state = dataclasses.replace(
            state, difficulty=clamp_difficulty(state.difficulty),
            interval=MINIMUM_INTERVAL, repetitions=0)
        return new_state, MINIMUM_INTERVAL
