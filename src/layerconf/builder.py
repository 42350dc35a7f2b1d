"""Configuration builder assembling sources into one resolved configuration."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from .config import Config
from .deserialize import deserialize
from .env import EnvSource
from .exceptions import InvalidConfigRootError
from .files import FileSource
from .merge import merge_at_path
from .resolve import MAX_PASSES, resolve_references
from .schema import TARGET_TYPE
from .sources import ConfigSource, DictSource, OverrideSource
from .values import is_table

logger = logging.getLogger(__name__)


class ConfigBuilder:
    """Builder collecting configuration sources in precedence order.

    Sources are applied in registration order, so later sources override
    earlier ones. After merging, ``${...}`` references are resolved and the
    result is frozen or deserialized into a target.

    Example:
        config = (
            ConfigBuilder()
            .with_file("config/default.yaml")
            .with_file("config/local.yaml", required=False)
            .with_env("MYAPP")
            .build()
        )
    """

    def __init__(self, max_passes: int = MAX_PASSES, strict: bool = True):
        """Initialize configuration builder.

        Args:
            max_passes: Resolution passes allowed before references are considered circular
            strict: Report keys a deserialization target does not accept as errors
        """
        self.sources: List[ConfigSource] = []
        self.max_passes = max_passes
        self.strict = strict

    @classmethod
    def builder(cls, **kwargs: Any) -> ConfigBuilder:
        """Create a new builder."""
        return cls(**kwargs)

    def with_file(self, path: str | Path, required: bool = True) -> ConfigBuilder:
        """Add a YAML, JSON or TOML file."""
        return self.with_source(FileSource(path, required=required))

    def with_env(self, prefix: str, separator: str = "__") -> ConfigBuilder:
        """Add the environment variables starting with ``prefix + separator``."""
        return self.with_source(EnvSource(prefix, separator))

    def with_overrides(self, overrides: Iterable[str]) -> ConfigBuilder:
        """Add ``key.path=value`` parameter overrides."""
        return self.with_source(OverrideSource(overrides))

    def with_dict(self, data: Dict[str, Any]) -> ConfigBuilder:
        """Add an in-memory mapping."""
        return self.with_source(DictSource(data))

    def with_source(self, source: ConfigSource) -> ConfigBuilder:
        """Add a custom source."""
        self.sources.append(source)
        return self

    def build_tree(self) -> Dict[str, Any]:
        """Merge all sources and resolve references.

        Returns:
            Resolved configuration tree  # (plain nested dict)

        Raises:
            ConfigSourceError: If a source cannot produce its entries
            InvalidConfigRootError: If the merged root is not a table
            ResolutionError: If a reference cannot be resolved
        """
        tree: Any = {}

        # Step 1: Merge the entries of every source in order
        for source in self.sources:
            entries = list(source.entries())
            logger.debug("Merging %d entries from %r", len(entries), source)
            for entry in entries:
                tree = merge_at_path(tree, entry.path, entry.value)

        if not is_table(tree):
            raise InvalidConfigRootError("merged configuration", tree)

        # Step 2: Resolve references after all sources are merged
        resolve_references(tree, max_passes=self.max_passes)

        logger.info("Built configuration from %d source(s)", len(self.sources))
        return tree

    def build(self, target: Optional[TARGET_TYPE] = None) -> Any:
        """Build the configuration.

        Args:
            target: Class or function to deserialize into, a read-only ``Config`` if not given

        Returns:
            ``Config`` object or instance of the target

        Raises:
            LayerConfError: If a source, the resolution or the deserialization fails
        """
        tree = self.build_tree()

        # Step 3: Freeze or deserialize into the target schema
        if target is None:
            return Config(tree)
        return deserialize(tree, target, strict=self.strict)

    def __repr__(self) -> str:
        return f"ConfigBuilder(sources={self.sources!r})"
