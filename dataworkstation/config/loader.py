# Copyright 2025 Roger Cibrian
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Configuration loading and parsing for DataWorkstation.

This module turns files and nested mappings into ConfigTree instances. Files
are read through load_file(), so any format with a registered handler can
hold configuration (TOML, YAML, JSON, ...).

File References
---------------
A string value of the form `$(path/to/file.ext)` is a reference to another
configuration file. While parsing, the reference is replaced by the
ConfigTree loaded from that file:

    # configs/main.toml
    model = "$(model.toml)"
    epochs = 10

    >>> cfg = load_config("main.toml", "configs")
    >>> cfg.model
    ConfigTree({'layers': 4, 'dropout': 0.1})

Referenced paths are joined with the same root that was given to
load_config() or parse_config(). Without a root they are relative to the
current working directory. References are resolved recursively; a file
that (directly or indirectly) references itself raises
CyclicReferenceError. Two keys referencing the same file are fine.

Functions
---------
load_config : function
    Load a file as a ConfigTree, resolving file references.
parse_config : function
    Build a ConfigTree from a mapping, or load a file from a reference.
update_config : function
    Add or replace top-level entries.
merge_config : function
    Right-biased shallow merge of two trees.
collect_config : function
    Convert a tree back to plain nested dicts.

Error Handling
--------------
- FileLoadError: the file could not be loaded (missing handler, failing
  handler, content that is not a mapping). The cause is chained.
- CyclicReferenceError: file references form a cycle.
- Both errors from nested files propagate unchanged, so the error names the
  innermost file that failed.
"""

from __future__ import annotations

from collections.abc import Mapping
import os
from pathlib import Path
import re
from typing import Any

from dataworkstation.config.tree import ConfigTree
from dataworkstation.exceptions import ConfigError, CyclicReferenceError, FileLoadError
from dataworkstation.io.files import load_file
from dataworkstation.io.registry import HandlerRegistry
from dataworkstation.logging import get_global_logger

__all__ = [
    "collect_config",
    "file_reference",
    "load_config",
    "merge_config",
    "parse_config",
    "update_config",
]

_REFERENCE_PATTERN = re.compile(r"^\s*\$\((.+)\)\s*$")

PathType = str | os.PathLike[str]


def file_reference(value: Any) -> str | None:
    """Get the path named by a file reference string.

    Returns:
        The referenced path for strings like `"$(other.toml)"`, or None for
            any other value.

    Example:
        ```python
        file_reference("$(models/gru.toml)")  # "models/gru.toml"
        file_reference("plain text")  # None
        ```
    """
    if not isinstance(value, str):
        return None
    match = _REFERENCE_PATTERN.match(value)
    return match.group(1).strip() if match else None


# -------------------------------
# Resolution
# -------------------------------


def _join(root: PathType, filename: PathType) -> Path:
    return Path(root) / filename if os.fspath(root) else Path(filename)


def _load(
    filename: PathType,
    root: PathType,
    registry: HandlerRegistry | None,
    chain: tuple[str, ...],
) -> ConfigTree:
    """Load one file, with `chain` holding the files being resolved above it."""
    path = _join(root, filename)
    key = str(path.resolve())
    if key in chain:
        raise CyclicReferenceError([*chain, key])

    logger = get_global_logger()
    logger.debug("CONFIG", f"Loading configuration: {path}")

    try:
        content = load_file(str(path), registry=registry)
    except Exception as err:
        raise FileLoadError(str(path), err) from err

    if not isinstance(content, Mapping):
        raise FileLoadError(
            str(path),
            f"top-level content must be a mapping, got {type(content).__name__}",
        )

    try:
        return _parse(content, root, registry, (*chain, key))
    except ConfigError:
        raise
    except Exception as err:
        raise FileLoadError(str(path), err) from err


def _parse(
    value: Any,
    root: PathType,
    registry: HandlerRegistry | None,
    chain: tuple[str, ...],
) -> Any:
    # Already parsed trees are kept as they are
    if isinstance(value, ConfigTree):
        return value

    if isinstance(value, Mapping):
        return ConfigTree(
            {k: _parse(v, root, registry, chain) for k, v in value.items()}
        )

    if isinstance(value, str):
        reference = file_reference(value)
        if reference is None:
            return value
        get_global_logger().debug("CONFIG", f"Resolving file reference: {reference}")
        return _load(reference, root, registry, chain)

    # Sequence subclasses (e.g. namedtuples) are opaque values
    if type(value) in (list, tuple):
        return type(value)(_parse(v, root, registry, chain) for v in value)

    return value


# -------------------------------
# Public API
# -------------------------------


def parse_config(
    value: Any,
    root: PathType = "",
    *,
    registry: HandlerRegistry | None = None,
) -> Any:
    """Parse an input to build a ConfigTree.

    The behaviour depends on the input:

    - ConfigTree: returned unchanged.
    - Mapping: converted into a ConfigTree. Nested mappings are parsed the
      same way and file reference strings are replaced by the loaded file.
    - File reference string (`"$(file.toml)"`): the referenced file is
      loaded and its ConfigTree returned directly.
    - Any other value (plain strings included): returned unchanged.

    Args:
        value: The input to parse.
        root: Directory that referenced paths are joined with.
        registry: Registry used to load referenced files. Defaults to the
            process-wide registry.

    Returns:
        A ConfigTree, or the input itself when it is neither a mapping nor a
            file reference.

    Raises:
        FileLoadError: If a referenced file cannot be loaded.
        CyclicReferenceError: If referenced files form a cycle.

    Example:
        ```python
        parse_config({"a": 1, "b": {"c": 2}})
        # ConfigTree({'a': 1, 'b': ConfigTree({'c': 2})})

        parse_config({"cfg": "$(other.toml)"}, "configs")
        # ConfigTree({'cfg': ConfigTree({...content of configs/other.toml...})})
        ```
    """
    return _parse(value, root, registry, ())


def load_config(
    filename: PathType,
    root: PathType = "",
    *,
    registry: HandlerRegistry | None = None,
) -> ConfigTree:
    """Load a file as a ConfigTree instance.

    The file is read with load_file(), so a handler must be registered for
    its extension (see dataworkstation.io.handlers). File references in the
    content are resolved recursively against the same root.

    Args:
        filename: Path of the file to load.
        root: Directory that filename (and every referenced path) is joined
            with. Empty means the current working directory.
        registry: Registry used to load files. Defaults to the process-wide
            registry.

    Returns:
        The ConfigTree built from the file content.

    Raises:
        FileLoadError: If the file or a referenced file cannot be loaded, or
            its content is not a mapping.
        CyclicReferenceError: If referenced files form a cycle.

    Example:
        ```python
        from dataworkstation.io.handlers import register_default_toml_file_handler

        register_default_toml_file_handler()
        cfg = load_config("train.toml", "configs")
        print(cfg.optimizer.lr)
        ```
    """
    cfg = _load(filename, root, registry, ())
    get_global_logger().info("CONFIG", f"Loaded configuration: {_join(root, filename)}")
    return cfg


def update_config(
    cfg: ConfigTree, entries: Mapping[str, Any] | None = None, /, **kwargs: Any
) -> ConfigTree:
    """Get a new ConfigTree with entries added or replaced.

    Equivalent to `merge_config(cfg, ConfigTree(entries, **kwargs))`.

    Example:
        ```python
        cfg = ConfigTree({"a": 1, "b": {"c": 3}})
        update_config(cfg, {"e": 5}, f=6)
        # ConfigTree({'a': 1, 'b': ConfigTree({'c': 3}), 'e': 5, 'f': 6})
        ```
    """
    return cfg.update(entries, **kwargs)


def merge_config(base: ConfigTree, overlay: Mapping[str, Any]) -> ConfigTree:
    """Merge two trees; top-level keys of overlay replace those of base."""
    return base.merge(overlay)


def collect_config(cfg: ConfigTree) -> dict[str, Any]:
    """Convert a ConfigTree into plain nested dicts."""
    return cfg.collect()
