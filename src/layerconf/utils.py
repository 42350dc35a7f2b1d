"""Utility functions for LayerConf."""

import importlib
import re
from typing import Any, Callable, Type

import yaml

OBJECT_TYPE = Callable | Type[Any]


class _ConfigLoader(yaml.SafeLoader):
    """Safe YAML loader that also reads ``1e-4`` style numbers as floats."""


# YAML 1.1 requires a dot in floats written with an exponent, configuration authors rarely do
_ConfigLoader.add_implicit_resolver(
    tag="tag:yaml.org,2002:float",
    regexp=re.compile(r"^ -? [1-9] ( \. [0-9]* [1-9] )? ( e [-+] [1-9] [0-9]* )? $", re.X),
    first=list("-+0123456789."),
)


def load_yaml(stream: Any) -> Any:
    """Load YAML content from a stream.

    Args:
        stream: Stream to read YAML from  # (file-like object or string)

    Returns:
        Parsed YAML content  # (nested dict structure, or a scalar for a scalar document)
    """
    return yaml.load(stream, Loader=_ConfigLoader)


def dump_yaml(data: Any) -> str:
    """Dump configuration data as block-style YAML, keeping key order."""
    return yaml.safe_dump(data, default_flow_style=False, indent=2, sort_keys=False, allow_unicode=True)


def import_object(path: str) -> OBJECT_TYPE:
    """Import an object by its module path.

    Args:
        path: Import path like 'module.submodule.ClassName' or 'module.ClassName.Nested'

    Returns:
        Imported object  # (class, function, or other importable object)

    Raises:
        ImportError: If object cannot be imported
    """
    if "." not in path:
        raise ImportError(f"Cannot import {path}: expected a dotted module path")

    parts = path.split(".")  # List[str] (path components)

    # Start from the full path and work backwards
    for i in range(len(parts) - 1, 0, -1):
        module_path = ".".join(parts[:i])  # Module path to try
        remaining_parts = parts[i:]  # Remaining attribute path

        try:
            module = importlib.import_module(module_path)

            # Navigate through the remaining parts (classes, nested classes, etc.)
            obj = module
            for part in remaining_parts:
                obj = getattr(obj, part)

            return obj
        except (ImportError, AttributeError):
            # Try shorter module path
            continue

    raise ImportError(f"Cannot import {path}")
