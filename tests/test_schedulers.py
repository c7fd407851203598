"""Tests for the scheduling algorithms and their shared review policy."""

from datetime import timedelta

import pytest

from recall.errors import AlgorithmStateMismatch
from recall.models import SM2State, SM5State, Simple8State
from recall.schedulers import (
    ALGORITHMS, MINIMUM_INTERVAL, check_grade, is_failure, load_scheduler,
    state_from_dict, state_to_dict,
)
from recall.schedulers.simple8 import (
    first_interval, interval_factor, quality_to_ease, weighted_quality,
)
from recall.schedulers.sm2 import new_ease_factor
from recall.schedulers.sm5 import (
    DEFAULT_DIFFICULTY, EASE_LEVELS, OPTIMAL_FACTORS, adjust_difficulty, optimal_factor,
)


def run(scheduler, grades, now, state=None):
    """Review one card with ``grades`` in turn; return (states, intervals in days)."""
    states, intervals = [], []
    for grade in grades:
        state, due = scheduler.review(state, grade, now)
        states.append(state)
        intervals.append((due - now) / timedelta(days=1))
    return states, intervals


# --- grade policy ---

@pytest.mark.parametrize("grade", [0, 1, 2])
def test_failure_grades(grade):
    assert is_failure(grade)


@pytest.mark.parametrize("grade", [3, 4, 5])
def test_success_grades(grade):
    assert not is_failure(grade)


@pytest.mark.parametrize("grade", [-1, 6, 2.5, "3", None, True])
def test_invalid_grade(grade):
    with pytest.raises(ValueError):
        check_grade(grade)


def test_load_scheduler_unknown():
    with pytest.raises(ValueError, match="Unknown scheduler"):
        load_scheduler("sm17")


def test_load_scheduler_case_insensitive():
    assert load_scheduler("SM2").scheduler_id == "sm2"


# --- properties shared by every algorithm ---

@pytest.mark.parametrize("algorithm", ALGORITHMS)
def test_initial_state_type(algorithm):
    scheduler = load_scheduler(algorithm)
    assert scheduler.initial_state().algorithm == algorithm


@pytest.mark.parametrize("algorithm", ALGORITHMS)
def test_repeated_perfect_grades_grow_interval(algorithm, now):
    _, intervals = run(load_scheduler(algorithm), [5] * 6, now)
    assert all(i >= 1 for i in intervals)
    assert intervals == sorted(intervals)
    assert intervals[-1] > intervals[0]


@pytest.mark.parametrize("algorithm", ALGORITHMS)
@pytest.mark.parametrize("fail_grade", [0, 1, 2])
def test_failure_resets_to_minimum_interval(algorithm, fail_grade, now):
    scheduler = load_scheduler(algorithm)
    states, intervals = run(scheduler, [5, 5, 5, 4, fail_grade], now)
    assert intervals[-1] == pytest.approx(MINIMUM_INTERVAL)
    assert states[-1].interval == MINIMUM_INTERVAL
    assert states[-1].repetitions == 0


@pytest.mark.parametrize("algorithm", ALGORITHMS)
def test_recovery_after_failure(algorithm, now):
    _, intervals = run(load_scheduler(algorithm), [5, 5, 5, 1, 4], now)
    assert intervals[-1] >= 1


@pytest.mark.parametrize("algorithm", ALGORITHMS)
@pytest.mark.parametrize("grade", range(6))
def test_next_due_is_in_the_future(algorithm, grade, now):
    _, due = load_scheduler(algorithm).review(None, grade, now)
    assert due > now


@pytest.mark.parametrize("algorithm", ALGORITHMS)
def test_review_rejects_invalid_grade(algorithm, now):
    with pytest.raises(ValueError):
        load_scheduler(algorithm).review(None, 7, now)


@pytest.mark.parametrize("algorithm,foreign", [
    ("sm2", SM5State(interval=30.0, repetitions=4)),
    ("sm5", Simple8State(intervals=(2.0, 12.0), grades=(5, 5), repetitions=2)),
    ("simple8", SM2State(interval=16.0, repetitions=3)),
])
def test_foreign_state_is_reinitialized(algorithm, foreign, now, capsys):
    scheduler = load_scheduler(algorithm)
    fresh, fresh_due = scheduler.review(None, 5, now)
    state, due = scheduler.review(foreign, 5, now)
    assert state == fresh
    assert due == fresh_due
    assert "reinitializing" in capsys.readouterr().err


@pytest.mark.parametrize("algorithm", ALGORITHMS)
def test_review_does_not_mutate_state(algorithm, now):
    scheduler = load_scheduler(algorithm)
    state = scheduler.initial_state()
    scheduler.review(state, 5, now)
    assert state == scheduler.initial_state()


# --- SM-2 ---

def test_sm2_perfect_sequence(now):
    states, intervals = run(load_scheduler("sm2"), [5, 5, 5], now)
    assert intervals == [1, 6, 16]
    assert [s.repetitions for s in states] == [1, 2, 3]
    assert states[-1].ease_factor == pytest.approx(2.8)


def test_sm2_ease_update():
    assert new_ease_factor(5, 2.5) == pytest.approx(2.6)
    assert new_ease_factor(4, 2.5) == pytest.approx(2.5)
    assert new_ease_factor(3, 2.5) == pytest.approx(2.36)


def test_sm2_ease_floor():
    assert new_ease_factor(0, 1.3) == 1.3
    assert new_ease_factor(3, 1.35) == 1.3


def test_sm2_failure_keeps_ease(now):
    states, _ = run(load_scheduler("sm2"), [5, 5, 1], now)
    assert states[-1].ease_factor == states[-2].ease_factor


# --- SM-5 ---

def test_sm5_matrix_shape():
    assert len(OPTIMAL_FACTORS) == 20
    assert all(len(row) == len(EASE_LEVELS) for row in OPTIMAL_FACTORS)
    assert EASE_LEVELS[DEFAULT_DIFFICULTY] == 2.5


def test_sm5_optimal_factor_saturates():
    assert optimal_factor(0, DEFAULT_DIFFICULTY) == 4.0
    assert optimal_factor(500, 500) == EASE_LEVELS[-1]
    assert optimal_factor(-3, -3) == 4.0


def test_sm5_adjust_difficulty():
    assert adjust_difficulty(DEFAULT_DIFFICULTY, 5) == DEFAULT_DIFFICULTY + 1
    assert adjust_difficulty(DEFAULT_DIFFICULTY, 4) == DEFAULT_DIFFICULTY
    assert adjust_difficulty(0, 3) == 0
    assert adjust_difficulty(len(EASE_LEVELS) - 1, 5) == len(EASE_LEVELS) - 1


def test_sm5_perfect_sequence(now):
    states, intervals = run(load_scheduler("sm5"), [5, 5, 5], now)
    assert intervals == [4, 11, 32]
    assert states[-1].difficulty == DEFAULT_DIFFICULTY + 3


def test_sm5_harder_grades_shorter_intervals(now):
    _, easy = run(load_scheduler("sm5"), [5, 5, 5], now)
    _, hard = run(load_scheduler("sm5"), [3, 3, 3], now)
    assert hard[-1] < easy[-1]


# --- Simple8 ---

def test_simple8_first_interval():
    assert first_interval(0) == pytest.approx(2.4849)
    assert first_interval(5) < first_interval(0)


def test_simple8_interval_factor_decays_with_repetitions():
    ease = quality_to_ease(5)
    assert interval_factor(ease, 1) == pytest.approx(ease)
    assert interval_factor(ease, 2) < interval_factor(ease, 1)
    assert interval_factor(ease, 1024) == pytest.approx(1.2, abs=0.01)


def test_simple8_weighted_quality_favours_recent():
    assert weighted_quality([5, 5]) == 5
    assert weighted_quality([3, 5]) > 4
    assert weighted_quality([5, 3]) < 4
    with pytest.raises(ValueError):
        weighted_quality([])


def test_simple8_perfect_sequence(now):
    states, intervals = run(load_scheduler("simple8"), [5, 5, 5], now)
    assert intervals == [2, 12, 42]
    assert states[-1].intervals == (2.0, 12.0, 42.0)
    assert states[-1].grades == (5, 5, 5)


def test_simple8_window_is_bounded(now):
    states, _ = run(load_scheduler("simple8"), [4] * 12, now)
    assert len(states[-1].intervals) == 8
    assert len(states[-1].grades) == 8
    assert states[-1].repetitions == 12


def test_simple8_failure_counts_lapse(now):
    states, _ = run(load_scheduler("simple8"), [5, 5, 0, 5], now)
    assert states[2].lapses == 1
    assert states[2].intervals == (MINIMUM_INTERVAL,)
    assert states[2].grades == ()
    assert states[3].lapses == 1


# --- state serialization ---

@pytest.mark.parametrize("state", [
    SM2State(ease_factor=2.36, interval=6.0, repetitions=2),
    SM5State(difficulty=14, interval=11.0, repetitions=2),
    Simple8State(intervals=(2.0, 12.0), grades=(5, 4), repetitions=2, lapses=1),
])
def test_state_dict_roundtrip(state):
    data = state_to_dict(state)
    assert data["algorithm"] == state.algorithm
    assert state_from_dict(data) == state


def test_state_none_roundtrip():
    assert state_to_dict(None) is None
    assert state_from_dict(None) is None


def test_state_from_dict_fills_defaults():
    assert state_from_dict({"algorithm": "sm2"}) == SM2State()


@pytest.mark.parametrize("data", [
    "sm2",
    {"algorithm": "fsrs"},
    {"interval": 3},
    {"algorithm": "sm2", "interval": "soon"},
    {"algorithm": "sm5", "difficulty": None},
    {"algorithm": "simple8", "intervals": [1.0, "x"]},
    {"algorithm": "simple8", "grades": 5},
    {"algorithm": "sm5", "difficulty": 12.0, "interval": 4.0, "repetitions": 1},
    {"algorithm": "sm2", "repetitions": 2.5},
    {"algorithm": "simple8", "lapses": 1.0},
    {"algorithm": "simple8", "grades": [5, 4.0]},
])
def test_state_from_dict_rejects_bad_data(data):
    with pytest.raises(AlgorithmStateMismatch):
        state_from_dict(data)


def test_state_from_dict_accepts_ints_for_float_fields():
    state = state_from_dict({"algorithm": "sm5", "difficulty": 12, "interval": 4, "repetitions": 1})
    assert state == SM5State(difficulty=12, interval=4, repetitions=1)
