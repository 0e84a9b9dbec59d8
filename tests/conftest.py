"""
Pytest configuration and shared fixtures for DataWorkstation tests.

This module provides reusable fixtures and test utilities used across
the test suite.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
import tomli_w
import yaml

from dataworkstation.io.registry import HandlerRegistry
from dataworkstation.logging import get_global_logger, set_global_logger


@pytest.fixture
def tmp_test_dir(tmp_path: Path) -> Path:
    """
    Provide a temporary directory for test artifacts.

    Automatically cleaned up after test completion.
    """
    return tmp_path


@pytest.fixture
def registry() -> HandlerRegistry:
    """Provide an empty registry isolated from the process-wide one."""
    return HandlerRegistry()


@pytest.fixture
def text_handlers() -> tuple:
    """Provide a (loader, saver) pair reading/writing a whole file as str."""

    def load_text(path, *args, **kwargs):
        return Path(path).read_text(encoding="utf-8")

    def save_text(path, obj, *args, **kwargs):
        Path(path).write_text(obj, encoding="utf-8")

    return load_text, save_text


@pytest.fixture
def sample_config_data() -> dict[str, Any]:
    """
    Provide sample nested configuration data.

    Mirrors the layout of a small training configuration.
    """
    return {
        "name": "experiment-1",
        "epochs": 10,
        "optimizer": {"kind": "adam", "lr": 0.001, "betas": [0.9, 0.999]},
        "data": {
            "train": {"path": "data/train.csv", "shuffle": True},
            "valid": {"path": "data/valid.csv", "shuffle": False},
        },
        "tags": ["baseline", "gru"],
    }


@pytest.fixture
def create_yaml_file(tmp_test_dir: Path):
    """
    Factory fixture for creating temporary YAML files.

    Usage:
        yaml_path = create_yaml_file("test.yaml", {"key": "value"})
    """

    def _create(filename: str, data: dict[str, Any]) -> Path:
        path = tmp_test_dir / filename
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as f:
            yaml.dump(data, f)
        return path

    return _create


@pytest.fixture
def create_toml_file(tmp_test_dir: Path):
    """
    Factory fixture for creating temporary TOML files.

    Usage:
        toml_path = create_toml_file("test.toml", {"key": "value"})
    """

    def _create(filename: str, data: dict[str, Any]) -> Path:
        path = tmp_test_dir / filename
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("wb") as f:
            tomli_w.dump(data, f)
        return path

    return _create


@pytest.fixture
def restore_global_logger():
    """Restore the global logger after a test replaces it."""
    previous = get_global_logger()
    yield
    set_global_logger(previous)
