"""Pytest configuration and shared fixtures for LayerConf tests."""

import json
import tempfile
from pathlib import Path
from typing import Any, Dict, Iterator

import pytest
import yaml

from layerconf import ConfigBuilder


@pytest.fixture
def temp_dir() -> Iterator[Path]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmp_dir:
        yield Path(tmp_dir)


@pytest.fixture
def builder() -> ConfigBuilder:
    """Create a basic ConfigBuilder instance."""
    return ConfigBuilder()


def write_yaml_file(file_path: Path, data: Dict[str, Any]) -> None:
    """Write data to YAML file.

    Args:
        file_path: Path to write file
        data: Data to write
    """
    with open(file_path, "w") as f:
        yaml.dump(data, f, default_flow_style=False)


def write_json_file(file_path: Path, data: Dict[str, Any]) -> None:
    """Write data to JSON file."""
    with open(file_path, "w") as f:
        json.dump(data, f)


def write_text_file(file_path: Path, content: str) -> None:
    """Write raw text, for formats and malformed content the dumpers cannot produce."""
    file_path.write_text(content, encoding="utf-8")
