"""Counter reducer built from a dispatch table."""

from __future__ import annotations

from propflow.reducer import create_reducer

INITIAL_COUNT = 0


def increment(state: int, payload: int | None) -> int:
    return state + (1 if payload is None else payload)


def decrement(state: int, payload: int | None) -> int:
    return state - (1 if payload is None else payload)


def reset(state: int, payload: int | None) -> int:
    return INITIAL_COUNT if payload is None else payload


counter = create_reducer(
    INITIAL_COUNT,
    [
        ("INCREMENT", increment),
        ("DECREMENT", decrement),
        ("RESET", reset),
    ],
    name="counter",
)
