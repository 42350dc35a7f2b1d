"""Configuration sources for LayerConf.

Every source (files, environment variables, command line overrides, custom
providers) produces a list of ``ConfigEntry`` objects. The builder merges the
entries of all sources in registration order, later entries overriding
earlier ones.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Sequence, Tuple

import yaml

from .exceptions import InvalidConfigRootError, InvalidOverrideError
from .utils import load_yaml
from .values import is_table, join_path


@dataclass(frozen=True)
class ConfigEntry:
    """A single contribution to the configuration tree.

    Attributes:
        path: Path segments to the target location, empty for the root
        value: Value merged at the target location
    """

    path: Tuple[str, ...]
    value: Any

    def __post_init__(self):
        # Accept any sequence of segments, keep a hashable tuple
        object.__setattr__(self, "path", tuple(self.path))

    @classmethod
    def root(cls, table: Dict[str, Any]) -> ConfigEntry:
        """Create a root-level entry merging a complete table."""
        return cls((), table)

    @classmethod
    def at_path(cls, path: Sequence[str], value: Any) -> ConfigEntry:
        """Create an entry targeting a nested location."""
        return cls(tuple(path), value)

    @property
    def dotted_path(self) -> str:
        return join_path(self.path)


class ConfigSource(ABC):
    """A source of configuration entries.

    Subclass this to plug custom providers into ``ConfigBuilder.with_source``.
    """

    @abstractmethod
    def entries(self) -> List[ConfigEntry]:
        """Produce the entries to merge, in the order they should be applied.

        Returns:
            Entries of this source  # (later entries override earlier ones)

        Raises:
            ConfigSourceError: If the source cannot produce its entries
        """

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class DictSource(ConfigSource):
    """Source contributing an in-memory mapping."""

    def __init__(self, data: Dict[str, Any], path: Sequence[str] = ()):
        """Initialize dict source.

        Args:
            data: Mapping to contribute
            path: Location to merge the mapping at, the root by default
        """
        if not path and not is_table(data):
            raise InvalidConfigRootError("DictSource", data)
        self.data = data
        self.path = tuple(path)

    def entries(self) -> List[ConfigEntry]:
        return [ConfigEntry.at_path(self.path, self.data)]

    def __repr__(self) -> str:
        return f"DictSource(path={join_path(self.path)!r}, keys={list(self.data)})"


class OverrideSource(ConfigSource):
    """Source made of ``key.path=value`` parameter overrides.

    Values are read as YAML, so ``port=8080`` gives an integer, ``debug=true`` a
    boolean and ``tags=[a, b]`` a list.
    """

    def __init__(self, overrides: Iterable[str]):
        """Initialize override source.

        Args:
            overrides: Overrides in format <key path>=<value in yaml>
        """
        self.overrides = list(overrides)

    def entries(self) -> List[ConfigEntry]:
        return [parse_override(override) for override in self.overrides]

    def __repr__(self) -> str:
        return f"OverrideSource({self.overrides!r})"


def parse_override(override: str) -> ConfigEntry:
    """Parse one ``key.path=value`` override into an entry.

    Args:
        override: Override string  # (e.g., "server.port=9090")

    Returns:
        Entry at the key path with the YAML-parsed value

    Raises:
        InvalidOverrideError: If there is no ``=``, the key path has an empty segment
            or the value is not valid YAML
    """
    key, sep, value_str = override.partition("=")
    segments = key.strip().split(".")
    if not sep or any(not segment for segment in segments):
        raise InvalidOverrideError(override)

    try:
        value = load_yaml(value_str)
    except yaml.YAMLError as e:
        raise InvalidOverrideError(override) from e

    # Null has no place in a configuration tree, keep the raw text instead
    if value is None:
        value = value_str
    return ConfigEntry.at_path(segments, value)
