"""LayerConf - Layered Configuration Management System.

Builds one configuration from ordered sources (files, environment variables,
parameter overrides), resolves ``${section.field}`` references across the
merged result and hands it out as a read-only ``Config`` or as an instance of
a typed target.
"""
# ruff: noqa: F401

from .builder import ConfigBuilder
from .config import Config
from .context import AppContext, AppContextBuilder
from .deserialize import deserialize
from .env import EnvSource
from .exceptions import (
    CircularReferenceError,
    ConfigFileNotFoundError,
    ConfigParseError,
    ConfigReadError,
    ConfigSourceError,
    DeserializationError,
    FrozenConfigError,
    InvalidConfigRootError,
    InvalidOverrideError,
    InvalidReferencePathError,
    LayerConfError,
    MissingConfigError,
    NonScalarReferenceError,
    ReferenceNotFoundError,
    ResolutionError,
    UnclosedReferenceError,
    UnsupportedConfigFormatError,
)
from .files import FileSource
from .merge import deep_merge, merge_at_path
from .resolve import MAX_PASSES, resolve_references
from .schema import describe_target
from .sources import ConfigEntry, ConfigSource, DictSource, OverrideSource

__version__ = "0.1.0"
