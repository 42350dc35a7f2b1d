"""Target schema introspection for deserialization and help display."""

import datetime
import enum
import inspect
import typing
from typing import Any, Callable, Dict, List, Type, get_args, get_origin

import docstring_parser

from .exceptions import format_type

TARGET_TYPE = Callable | Type[Any]

EMPTY = inspect.Parameter.empty
VAR_KEYWORD = inspect.Parameter.VAR_KEYWORD
VAR_POSITIONAL = inspect.Parameter.VAR_POSITIONAL

# Classes that hold a single value rather than a table of parameters
_VALUE_CLASSES = (
    str,
    int,
    float,
    bool,
    bytes,
    list,
    tuple,
    set,
    frozenset,
    dict,
    type(None),
    datetime.date,
    datetime.time,
)


def is_schema_class(annotation: Any) -> bool:
    """Check if an annotation is a class deserialized from a table.

    Args:
        annotation: Type annotation to check

    Returns:
        True for user classes such as dataclasses, False for value types and enums
    """
    return (
        get_origin(annotation) is None
        and inspect.isclass(annotation)
        and not issubclass(annotation, _VALUE_CLASSES)
        and not issubclass(annotation, enum.Enum)
        and annotation.__module__ not in ("builtins", "typing", "collections.abc")
    )


def get_parameters(target: TARGET_TYPE) -> Dict[str, Dict[str, Any]]:
    """Get the parameters a target accepts.

    String annotations (``from __future__ import annotations``) are resolved
    where possible, otherwise they are kept as written.

    Args:
        target: Class or function to inspect

    Returns:
        Dict mapping parameter names to parameter info  # (name -> {"annotation", "default", "kind"})
    """
    if inspect.isclass(target):
        func = target.__init__
    elif inspect.isfunction(target) or inspect.ismethod(target):
        func = target
    else:
        return {}

    sig = inspect.signature(func)
    hints = _get_type_hints(target, func)
    result = {}  # Dict[str, Dict[str, Any]] (parameter name -> parameter info)

    for index, (name, param) in enumerate(sig.parameters.items()):
        if index == 0 and name in ["self", "cls"] and inspect.isclass(target):
            continue
        if param.kind == VAR_POSITIONAL:
            continue
        annotation = hints.get(name, param.annotation)
        result[name] = {"annotation": annotation, "default": param.default, "kind": param.kind}

    return result


def _get_type_hints(target: TARGET_TYPE, func: Callable) -> Dict[str, Any]:
    """Resolve annotations of a target, falling back to an empty mapping."""
    hints: Dict[str, Any] = {}
    for obj in (target, func):
        try:
            hints.update(typing.get_type_hints(obj))
        except (NameError, TypeError, AttributeError):
            # Unresolvable forward references stay as written in the signature
            continue
    hints.pop("return", None)
    return hints


def get_target_name(target: TARGET_TYPE) -> str:
    """Get display name for a target."""
    if hasattr(target, "__qualname__") and hasattr(target, "__module__"):
        return f"{target.__module__}.{target.__qualname__}"
    elif hasattr(target, "__name__"):
        return target.__name__
    return str(target)


def get_parameter_docs(target: TARGET_TYPE) -> Dict[str, str]:
    """Get all parameter descriptions from a target's docstrings in one parse.

    Class docstrings (``Attributes:`` or ``Args:``) and ``__init__`` docstrings are
    both read, the latter taking precedence.

    Args:
        target: Class or function containing the parameters

    Returns:
        Dict mapping parameter names to their descriptions  # (parameter name -> description)
    """
    docstrings = []
    if inspect.isclass(target):
        docstrings.append(target.__doc__)
        if "__init__" in vars(target):
            docstrings.append(target.__init__.__doc__)
    else:
        docstrings.append(getattr(target, "__doc__", None))

    param_docs = {}  # Dict[str, str] (parameter name -> description)
    for docstring in docstrings:
        if not docstring:
            continue
        docstring = inspect.cleandoc(docstring)

        # Parsers expect a short description before the sections
        if docstring.startswith(("Args:", "Attributes:")):
            docstring = f"Description.\n\n{docstring}"

        try:
            parsed = docstring_parser.parse(docstring)
        except docstring_parser.ParseError:
            continue

        for param in parsed.params:
            if param.description:
                param_docs[param.arg_name] = param.description.strip().rstrip(".")

    return param_docs


def describe_target(target: TARGET_TYPE) -> str:
    """Format the parameters of a target, and of nested schema classes, for help display.

    Args:
        target: Class or function to describe

    Returns:
        Formatted help string  # (multi-line string for console output)
    """
    lines: List[str] = []
    _describe_recursive(target, lines, depth=0, seen=set())
    return "\n".join(lines)


def _describe_recursive(target: TARGET_TYPE, lines: List[str], depth: int, seen: set) -> None:
    """Append the help lines of one target.

    Args:
        target: Class or function to describe
        lines: Output lines  # (appended in-place)
        depth: Nesting depth of the target
        seen: Targets already on the current branch, to stop on self-referencing schemas
    """
    header_indent = "    " * depth + ("→ " if depth else "")
    param_indent = "    " * (depth + 1)
    lines.append(f"{header_indent}{get_target_name(target)}:")
    seen = seen | {target}

    param_docs = get_parameter_docs(target)
    for param_name, param_info in get_parameters(target).items():
        if param_info["kind"] == VAR_KEYWORD:
            lines.append(f"{param_indent}**{param_name}")
            continue

        param_line = f"{param_indent}{param_name}"
        details = []
        if param_info["annotation"] is not EMPTY:
            details.append(format_type(param_info["annotation"]))
        if param_info["default"] is not EMPTY:
            details.append(f"default={_format_default(param_info['default'])}")
        if details:
            param_line += f"({', '.join(details)})"

        docstring = param_docs.get(param_name)
        if docstring:
            param_line += f": {docstring}"
        lines.append(param_line)

        # Nested schema classes are described right below their parameter
        for nested in _nested_schema_classes(param_info["annotation"]):
            if nested not in seen:
                _describe_recursive(nested, lines, depth + 1, seen)


def _nested_schema_classes(annotation: Any) -> List[type]:
    """Collect schema classes used by an annotation, including inside containers and unions."""
    if is_schema_class(annotation):
        return [annotation]
    classes = []
    for arg in get_args(annotation):
        classes.extend(_nested_schema_classes(arg))
    return classes


def _format_default(default_value: Any) -> str:
    """Format default value for display."""
    if isinstance(default_value, str):
        return f"'{default_value}'"  # Use single quotes for consistency
    if isinstance(default_value, enum.Enum):
        return repr(default_value.value)
    return str(default_value)
