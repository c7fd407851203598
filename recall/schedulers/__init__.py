"""Scheduler registry and algorithm-state (de)serialization."""

import dataclasses

from recall.errors import AlgorithmStateMismatch
from recall.models import SM2State, SM5State, Simple8State
from recall.schedulers.base import (
    FAILURE_GRADES, MAX_GRADE, MIN_GRADE, MINIMUM_INTERVAL, Scheduler,
    check_grade, is_failure,
)
from recall.schedulers.simple8 import Simple8Scheduler
from recall.schedulers.sm2 import SM2Scheduler
from recall.schedulers.sm5 import SM5Scheduler

_BUILTIN_SCHEDULERS = {
    "sm2": SM2Scheduler,
    "sm5": SM5Scheduler,
    "simple8": Simple8Scheduler,
}

_STATE_TYPES = {cls.algorithm: cls for cls in (SM2State, SM5State, Simple8State)}

ALGORITHMS = tuple(_BUILTIN_SCHEDULERS)

# Counters and indices; every other numeric field may be a float.
_INTEGER_FIELDS = frozenset({"difficulty", "repetitions", "lapses", "grades"})


def load_scheduler(name: str) -> Scheduler:
    try:
        return _BUILTIN_SCHEDULERS[name.lower()]()
    except KeyError:
        raise ValueError(f"Unknown scheduler: {name} (choose from {', '.join(ALGORITHMS)})") from None


def state_to_dict(state) -> dict | None:
    if state is None:
        return None
    data = {"algorithm": state.algorithm}
    for f in dataclasses.fields(state):
        value = getattr(state, f.name)
        data[f.name] = list(value) if isinstance(value, tuple) else value
    return data


def state_from_dict(data: dict | None):
    """Rebuild an algorithm state. Raises AlgorithmStateMismatch on bad data."""
    if data is None:
        return None
    if not isinstance(data, dict):
        raise AlgorithmStateMismatch(f"expected a mapping, got {type(data).__name__}")
    algorithm = data.get("algorithm")
    state_type = _STATE_TYPES.get(algorithm)
    if state_type is None:
        raise AlgorithmStateMismatch(f"unknown algorithm {algorithm!r}")
    kwargs = {}
    for f in dataclasses.fields(state_type):
        if f.name not in data:
            continue
        value = data[f.name]
        check = _is_integer if f.name in _INTEGER_FIELDS else _is_number
        if isinstance(f.default, tuple):
            if not isinstance(value, (list, tuple)) or not all(check(v) for v in value):
                raise AlgorithmStateMismatch(f"bad {algorithm} field {f.name}: {value!r}")
            value = tuple(value)
        elif not check(value):
            raise AlgorithmStateMismatch(f"bad {algorithm} field {f.name}: {value!r}")
        kwargs[f.name] = value
    return state_type(**kwargs)


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_integer(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


__all__ = [
    "ALGORITHMS", "FAILURE_GRADES", "MAX_GRADE", "MIN_GRADE", "MINIMUM_INTERVAL",
    "Scheduler", "check_grade", "is_failure", "load_scheduler",
    "state_from_dict", "state_to_dict",
]
