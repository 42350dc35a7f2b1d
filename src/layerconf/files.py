"""File-based configuration source.

Supported formats, chosen by file suffix:

- YAML (.yaml, .yml)
- JSON (.json)
- TOML (.toml)
"""

import json
import logging
import tomllib
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .exceptions import (
    ConfigFileNotFoundError,
    ConfigParseError,
    ConfigReadError,
    InvalidConfigRootError,
    UnsupportedConfigFormatError,
)
from .sources import ConfigEntry, ConfigSource
from .utils import load_yaml

logger = logging.getLogger(__name__)

YAML_SUFFIXES = (".yaml", ".yml")
SUPPORTED_SUFFIXES = YAML_SUFFIXES + (".json", ".toml")


class FileSource(ConfigSource):
    """Source loading one configuration file as a root-level entry.

    Required files that don't exist are an error, optional files that don't
    exist contribute nothing.
    """

    def __init__(self, path: str | Path, required: bool = True):
        """Initialize file source.

        Args:
            path: Path to the configuration file
            required: Fail the build if the file does not exist
        """
        self.path = Path(path)
        self.required = required

    def entries(self) -> List[ConfigEntry]:
        table = load_config_file(self.path, required=self.required)
        if table is None:
            return []
        return [ConfigEntry.root(table)]

    def __repr__(self) -> str:
        return f"FileSource({str(self.path)!r}, required={self.required})"


def load_config_file(path: Path, required: bool = True) -> Optional[Dict[str, Any]]:
    """Load and parse a configuration file.

    Args:
        path: Path to the configuration file
        required: Raise if the file does not exist instead of returning None

    Returns:
        Parsed table, or None if an optional file does not exist  # (empty files give an empty table)

    Raises:
        UnsupportedConfigFormatError: If the suffix is not supported
        ConfigFileNotFoundError: If a required file does not exist
        ConfigReadError: If the file cannot be read
        ConfigParseError: If the file content is malformed
        InvalidConfigRootError: If the file content is not a mapping
    """
    suffix = path.suffix.lower()
    if suffix not in SUPPORTED_SUFFIXES:
        raise UnsupportedConfigFormatError(path)

    try:
        content = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        if required:
            raise ConfigFileNotFoundError(path) from None
        logger.debug("Skipping optional config file %s, it does not exist", path)
        return None
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigReadError(path, str(e)) from e

    try:
        if suffix in YAML_SUFFIXES:
            data = load_yaml(content)
        elif suffix == ".json":
            data = json.loads(content) if content.strip() else None
        else:
            data = tomllib.loads(content)
    except (yaml.YAMLError, json.JSONDecodeError, tomllib.TOMLDecodeError) as e:
        raise ConfigParseError(path, str(e)) from e

    # Empty documents are empty tables
    if data is None:
        data = {}

    if not isinstance(data, dict):
        raise InvalidConfigRootError(str(path), data)

    logger.debug("Loaded config file %s with %d top-level key(s)", path, len(data))
    return data
