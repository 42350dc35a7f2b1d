"""LayerConf configuration object module."""

from __future__ import annotations

from typing import Any, Dict, Iterator, NoReturn

from .exceptions import FrozenConfigError
from .values import is_array, is_table


class Config:
    """Read-only configuration object supporting both dict and attribute access.

    Nested tables are exposed as ``Config`` objects and arrays as tuples, so a
    built configuration can be shared between readers without copying.
    """

    __slots__ = ("_data",)

    def __init__(self, data: Dict[str, Any]):
        """Initialize configuration object.

        Args:
            data: Configuration data dictionary  # (nested dict with resolved values)
        """
        object.__setattr__(self, "_data", _freeze(data)._data)

    def __getitem__(self, key: str) -> Config | Any:
        """Dict-style getter with support for dot notation paths."""
        return self._get_nested_value(key)

    def __contains__(self, key: object) -> bool:
        """Dict-style contains check with support for dot notation paths."""
        if not isinstance(key, str):
            return False
        try:
            self._get_nested_value(key)
        except KeyError:
            return False
        return True

    def get(self, key: str, default: Any = None) -> Config | Any:
        """Dict-style get with default and support for dot notation paths."""
        try:
            return self._get_nested_value(key)
        except KeyError:
            return default

    def keys(self):
        """Return keys like a dict."""
        return self._data.keys()

    def values(self):
        """Return values like a dict."""
        return self._data.values()

    def items(self):
        """Return items like a dict."""
        return self._data.items()

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __getattr__(self, name: str) -> Config | Any:
        """Attribute-style getter."""
        # Lookups of private and dunder names must not fall back to config keys
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self._data[name]
        except KeyError as e:
            raise AttributeError(f"Key path '{name}' does not exist") from e

    def __setattr__(self, name: str, value: Any) -> NoReturn:
        raise FrozenConfigError(f"Cannot set '{name}': configuration is read-only")

    def __delattr__(self, name: str) -> NoReturn:
        raise FrozenConfigError(f"Cannot delete '{name}': configuration is read-only")

    def __setitem__(self, key: str, value: Any) -> NoReturn:
        raise FrozenConfigError(f"Cannot set '{key}': configuration is read-only")

    def __delitem__(self, key: str) -> NoReturn:
        raise FrozenConfigError(f"Cannot delete '{key}': configuration is read-only")

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Config):
            return self._data == other._data
        if isinstance(other, dict):
            return self.to_dict() == other
        return NotImplemented

    def __deepcopy__(self, memo: Dict[int, Any]) -> Config:
        # Immutable, sharing is safe
        return self

    def __copy__(self) -> Config:
        return self

    def __reduce__(self):
        return (Config, (self.to_dict(),))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to plain dictionary.

        Returns:
            Plain dictionary representation  # (nested dict and lists, safe to modify)
        """
        return _thaw(self)

    def flatten(self) -> Dict[str, Any]:
        """Flatten the configuration into dotted keys.

        Returns:
            Flattened configuration dictionary  # (e.g., {"server.host": "localhost"})
        """
        result = {}  # Dict[str, Any] (flattened configuration)

        def _flatten(data: Config, prefix: str = "") -> None:
            for key, value in data.items():
                full_key = f"{prefix}.{key}" if prefix else key
                if isinstance(value, Config) and len(value):
                    _flatten(value, full_key)
                else:
                    result[full_key] = value

        _flatten(self)
        return result

    def _get_nested_value(self, key_path: str) -> Any:
        """Get value using key path (supports both simple and nested keys).

        Args:
            key_path: Key path (simple key or dot-separated path)  # (e.g., "key" or "parent.child.grandchild")

        Returns:
            Value at the specified path

        Raises:
            KeyError: If path doesn't exist
        """
        keys = key_path.split(".")  # Split path into individual keys
        current: Any = self

        for key in keys:
            if isinstance(current, Config):
                if key not in current._data:
                    raise KeyError(f"Key '{key}' not found in path '{key_path}'")
                current = current._data[key]
            else:
                raise KeyError(f"Cannot access '{key}' on non-config object in path '{key_path}'")

        return current

    def __repr__(self) -> str:
        """String representation."""
        return f"Config({self.to_dict()})"


def _freeze(value: Any) -> Any:
    """Convert tables to ``Config`` and arrays to tuples, at any depth."""
    if not is_table(value) and not is_array(value):
        return value

    # Post-order walk with an explicit stack, a container is frozen after its children
    frozen: Dict[int, Any] = {}
    stack = [(value, False)]
    while stack:
        node, children_frozen = stack.pop()
        children = node.values() if is_table(node) else node
        if not children_frozen:
            stack.append((node, True))
            stack.extend((child, False) for child in children if is_table(child) or is_array(child))
            continue

        if is_table(node):
            config = Config.__new__(Config)
            object.__setattr__(config, "_data", {key: frozen.get(id(child), child) for key, child in node.items()})
            frozen[id(node)] = config
        else:
            frozen[id(node)] = tuple(frozen.get(id(child), child) for child in node)
    return frozen[id(value)]


def _thaw(value: Any) -> Any:
    """Convert ``Config`` back to dicts and tuples back to lists, at any depth."""
    if not isinstance(value, (Config, tuple)):
        return value

    thawed = {} if isinstance(value, Config) else [None] * len(value)
    stack = [(value, thawed)]
    while stack:
        source, target = stack.pop()
        items = source.items() if isinstance(source, Config) else enumerate(source)
        for key, item in items:
            if isinstance(item, Config):
                child = {}
                stack.append((item, child))
            elif isinstance(item, tuple):
                child = [None] * len(item)
                stack.append((item, child))
            else:
                child = item
            target[key] = child
    return thawed
