"""Condition matching for event triggers.

Trigger conditions are plain JSON-compatible dictionaries evaluated against an
event payload. Every key of the condition must match:

- a plain value matches when the payload value is equal to it,
- a list matches when the payload value is one of its items,
- a dict holds operators such as ``{"$gte": 5}``.

Dotted keys (``"file.size"``) address nested payload values.

Example:
    >>> matches({"tool_id": ["text-cleaner", "markdown-formatter"]}, {"tool_id": "text-cleaner"})
    True
    >>> matches({"count": {"$gte": 10}}, {"count": 3})
    False
"""

from __future__ import annotations

import operator
from collections.abc import Callable, Mapping
from typing import Any

__all__ = ["OPERATORS", "matches", "resolve"]

_MISSING = object()


def _contains(container: Any, item: Any) -> bool:
    try:
        return item in container
    except TypeError:
        return False


def _compare(op: Callable[[Any, Any], bool]) -> Callable[[Any, Any], bool]:
    def check(actual: Any, expected: Any) -> bool:
        if actual is _MISSING or actual is None:
            return False
        try:
            return op(actual, expected)
        except TypeError:
            return False

    return check


OPERATORS: dict[str, Callable[[Any, Any], bool]] = {
    "$eq": lambda actual, expected: actual is not _MISSING and actual == expected,
    "$ne": lambda actual, expected: actual is _MISSING or actual != expected,
    "$gt": _compare(operator.gt),
    "$gte": _compare(operator.ge),
    "$lt": _compare(operator.lt),
    "$lte": _compare(operator.le),
    "$in": lambda actual, expected: actual is not _MISSING and _contains(expected, actual),
    "$nin": lambda actual, expected: actual is _MISSING or not _contains(expected, actual),
    "$exists": lambda actual, expected: (actual is not _MISSING) == bool(expected),
    "$contains": lambda actual, expected: actual is not _MISSING and _contains(actual, expected),
}
"""Supported condition operators keyed by name."""


def resolve(payload: Mapping[str, Any], key: str) -> Any:
    """Look up a possibly dotted key in a nested payload.

    Returns:
        The value, or a private sentinel when any path segment is missing.
    """
    current: Any = payload
    for part in key.split("."):
        if not isinstance(current, Mapping) or part not in current:
            return _MISSING
        current = current[part]
    return current


def _match_value(actual: Any, expected: Any) -> bool:
    if isinstance(expected, Mapping) and expected and all(str(k).startswith("$") for k in expected):
        for name, argument in expected.items():
            check = OPERATORS.get(name)
            if check is None:
                msg = f"Unknown condition operator '{name}'"
                raise ValueError(msg)
            if not check(actual, argument):
                return False
        return True
    if actual is _MISSING:
        return False
    if isinstance(expected, list):
        return actual in expected
    return actual == expected


def matches(conditions: Mapping[str, Any] | None, payload: Mapping[str, Any]) -> bool:
    """Evaluate trigger conditions against an event payload.

    The evaluation is pure: neither argument is modified. Empty conditions
    match every payload.

    Args:
        conditions: The trigger's condition payload.
        payload: The event payload.

    Returns:
        True if every condition holds.

    Raises:
        ValueError: If a condition uses an unknown operator.
    """
    if not conditions:
        return True
    return all(_match_value(resolve(payload, key), expected) for key, expected in conditions.items())
