"""Value tree helpers for LayerConf configurations.

A configuration tree is made of plain Python objects:

- table: ``dict`` with string keys
- array: ``list`` (``tuple`` is accepted on input)
- scalars: ``str``, ``int``, ``float``, ``bool`` and dates/times from ``datetime``
"""

import datetime
from typing import Any, Dict, Iterable

Table = Dict[str, Any]

DATETIME_TYPES = (datetime.datetime, datetime.date, datetime.time)
SCALAR_TYPES = (str, int, float, bool) + DATETIME_TYPES


def is_table(value: Any) -> bool:
    """Check if a value is a table."""
    return isinstance(value, dict)


def is_array(value: Any) -> bool:
    """Check if a value is an array."""
    return isinstance(value, (list, tuple))


def is_scalar(value: Any) -> bool:
    """Check if a value is a scalar that may be interpolated into a string."""
    return isinstance(value, SCALAR_TYPES)


def value_to_string(value: Any) -> str:
    """Convert a scalar to its canonical text form.

    Args:
        value: Scalar value  # (str, int, float, bool or datetime/date/time)

    Returns:
        Canonical string  # (strings unchanged, booleans as true/false, dates in ISO-8601)

    Raises:
        TypeError: If the value is not a scalar
    """
    # bool is checked before int, it is a subclass of int
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return repr(value)
    if isinstance(value, DATETIME_TYPES):
        return value.isoformat()
    raise TypeError(f"Cannot convert {type(value).__name__} to string")


def join_path(segments: Iterable[str]) -> str:
    """Join path segments into a dotted path."""
    return ".".join(segments)


def copy_value(value: Any) -> Any:
    """Deep copy a value, turning tuples into lists.

    Args:
        value: Value to copy  # (table, array or scalar)

    Returns:
        Copy sharing no tables or arrays with the input
    """
    if not is_table(value) and not is_array(value):
        return value

    copied = _empty_like(value)
    # Explicit stack, trees may be nested deeper than the recursion limit
    stack = [(value, copied)]
    while stack:
        source, target = stack.pop()
        items = source.items() if is_table(source) else enumerate(source)
        for key, item in items:
            if is_table(item) or is_array(item):
                child = _empty_like(item)
                stack.append((item, child))
            else:
                child = item
            target[key] = child
    return copied


def _empty_like(container: Any) -> Any:
    """Create an empty table, or a list with one slot per array item."""
    return {} if is_table(container) else [None] * len(container)
