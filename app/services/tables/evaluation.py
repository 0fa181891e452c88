"""Evaluator helpers shared by columns, actions, groups and cards."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

Evaluator = Callable[[Any, Any], Any]
RecordEvaluator = Callable[[Any], Any]


def as_evaluator(value: Any) -> Evaluator | None:
    """Normalize a static value or ``(state, record)`` callable.

    Static values are wrapped into a constant-returning function so callers
    never have to check whether a setting is callable at evaluation time.
    """
    if value is None:
        return None
    if callable(value):
        return value
    return lambda _state, _record: value


def as_record_evaluator(value: Any) -> RecordEvaluator | None:
    """Like :func:`as_evaluator` for callables that only receive the record."""
    if value is None:
        return None
    if callable(value):
        return value
    return lambda _record: value


def call_evaluator(evaluator: Evaluator | None, state: Any, record: Any) -> Any:
    if evaluator is None:
        return None
    return evaluator(state, record)
