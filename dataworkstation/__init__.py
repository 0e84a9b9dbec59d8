"""
DataWorkstation - configuration and file I/O utilities for data workflows

A small Python library providing two building blocks for data-processing
programs:

  - An immutable, recursively structured configuration object (ConfigTree)
    that can be built from nested dicts or loaded from files, including
    files that reference other files
  - A thread-safe registry of file handlers keyed by extension and version,
    behind generic load_file() / save_file() entry points
  - Default handlers for YAML, JSON, TOML, CSV, pickle and plain text
  - A formatted logger that can be installed process-wide

Quick Start
-----------
Register the formats you need, then load and save by file name:

    from dataworkstation import load_config, load_file, save_file
    from dataworkstation.io.handlers import register_default_toml_file_handler

    register_default_toml_file_handler()
    save_file("configs/train.toml", {"epochs": 10, "model": "$(gru.toml)"})
    cfg = load_config("train.toml", "configs")

Package Structure
-----------------
config : package
    ConfigTree and configuration loading/parsing.
io : package
    File handler registry, load_file/save_file and default handlers.
exceptions : module
    Exception hierarchy.
logging : module
    Logger protocol, formatted logger and global logger.

Public API
----------
    from dataworkstation.config import ConfigTree, load_config, parse_config
    from dataworkstation.io import load_file, save_file, register_file_handler
    from dataworkstation.logging import get_formatted_logger, set_global_logger

For more details, see the individual module docstrings.
"""

__version__ = "0.3.0"
__author__ = "Roger Cibrian"
__license__ = "GPL-3.0-only"
__description__ = "DataWorkstation - configuration trees and pluggable file I/O"

# Re-export commonly used functions for convenience
from dataworkstation.config import (
    ConfigTree,
    load_config,
    parse_config,
    update_config,
)
from dataworkstation.io import (
    HandlerRegistry,
    load_file,
    methods_load_file,
    methods_save_file,
    register_file_handler,
    save_file,
    unregister_file_handler,
)

__all__ = [
    "__version__",
    "__author__",
    "__license__",
    "__description__",
    "ConfigTree",
    "load_config",
    "parse_config",
    "update_config",
    "HandlerRegistry",
    "load_file",
    "save_file",
    "register_file_handler",
    "unregister_file_handler",
    "methods_load_file",
    "methods_save_file",
]
