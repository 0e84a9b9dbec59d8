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

"""Default file handlers for common formats.

Each register_default_*_file_handler() function registers a loader and a
saver for one format. Nothing is registered on import; call the functions
for the formats a program needs:

    from dataworkstation.io import load_file, save_file
    from dataworkstation.io.handlers import register_default_toml_file_handler

    register_default_toml_file_handler()
    save_file("configs/train.toml", {"epochs": 10})
    load_file("configs/train.toml")  # {"epochs": 10}

Available Formats:
    yaml : PyYAML safe_load / safe_dump
    json : json, 2-space indentation
    toml : tomllib for reading, tomli_w for writing
    csv : csv module, rows as dicts (header) or lists (no header)
    pkl : pickle, for arbitrary Python objects
    txt : whole file as a string

All functions accept `extension`, `version` and `registry` keywords, so the
same format can be registered under other extensions ("yml") or as a named
variant ("pipe" separated CSV). Savers create missing parent directories
and convert ConfigTree objects to plain dicts before writing.

Note:
    pickle files can run arbitrary code when loaded. Only load files from
    trusted sources.
"""

from __future__ import annotations

import csv
import json
import os
from pathlib import Path
import pickle
import tomllib
from typing import Any

import tomli_w
import yaml

from dataworkstation.config.tree import ConfigTree
from dataworkstation.io.files import register_file_handler
from dataworkstation.io.registry import HandlerEntry, HandlerRegistry

__all__ = [
    "register_default_csv_file_handler",
    "register_default_json_file_handler",
    "register_default_serialization_file_handler",
    "register_default_text_file_handler",
    "register_default_toml_file_handler",
    "register_default_yaml_file_handler",
]


def _plain(obj: Any) -> Any:
    """Convert ConfigTree values to plain dicts for serializers."""
    return obj.collect() if isinstance(obj, ConfigTree) else obj


def _prepare(path: str | os.PathLike[str]) -> Path:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    return p


# -------------------------------
# YAML
# -------------------------------


def _load_yaml(path: str | os.PathLike[str]) -> Any:
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f)


def _save_yaml(path: str | os.PathLike[str], obj: Any) -> None:
    with _prepare(path).open("w", encoding="utf-8") as f:
        yaml.safe_dump(_plain(obj), f, default_flow_style=False, sort_keys=False)


def register_default_yaml_file_handler(
    *,
    extension: str = "yaml",
    version: str | None = None,
    registry: HandlerRegistry | None = None,
) -> HandlerEntry:
    """Register a YAML handler based on PyYAML.

    Only the safe loader and dumper are used, so files are limited to plain
    YAML types (mappings, sequences, scalars). An empty file loads as None.

    Raises:
        ConflictError: If a handler already exists for extension and version.
    """
    return register_file_handler(
        extension, _load_yaml, _save_yaml, version=version, registry=registry
    )


# -------------------------------
# JSON
# -------------------------------


def _load_json(path: str | os.PathLike[str]) -> Any:
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def _save_json(path: str | os.PathLike[str], obj: Any) -> None:
    with _prepare(path).open("w", encoding="utf-8") as f:
        json.dump(_plain(obj), f, indent=2)
        f.write("\n")


def register_default_json_file_handler(
    *,
    extension: str = "json",
    version: str | None = None,
    registry: HandlerRegistry | None = None,
) -> HandlerEntry:
    """Register a JSON handler based on the json module.

    Files are written with 2-space indentation and a trailing newline.

    Raises:
        ConflictError: If a handler already exists for extension and version.
    """
    return register_file_handler(
        extension, _load_json, _save_json, version=version, registry=registry
    )


# -------------------------------
# TOML
# -------------------------------


def _load_toml(path: str | os.PathLike[str]) -> dict[str, Any]:
    with open(path, "rb") as f:
        return tomllib.load(f)


def _save_toml(path: str | os.PathLike[str], obj: Any) -> None:
    with _prepare(path).open("wb") as f:
        tomli_w.dump(_plain(obj), f)


def register_default_toml_file_handler(
    *,
    extension: str = "toml",
    version: str | None = None,
    registry: HandlerRegistry | None = None,
) -> HandlerEntry:
    """Register a TOML handler (tomllib to read, tomli_w to write).

    TOML documents are always tables, so the saved object must be a mapping
    (or a ConfigTree).

    Raises:
        ConflictError: If a handler already exists for extension and version.
    """
    return register_file_handler(
        extension, _load_toml, _save_toml, version=version, registry=registry
    )


# -------------------------------
# CSV
# -------------------------------


def register_default_csv_file_handler(
    *,
    extension: str = "csv",
    version: str | None = None,
    registry: HandlerRegistry | None = None,
    delimiter: str = ",",
    header: bool = True,
) -> HandlerEntry:
    """Register a CSV handler based on the csv module.

    With a header, files load as a list of dicts keyed by column name; the
    saver accepts a list of mappings and writes the keys of the first row
    as the header. Without a header, rows load as lists of strings and the
    saver accepts any list of sequences.

    Extra positional and keyword arguments given to load_file()/save_file()
    are passed to the csv reader or writer after the file object. With a
    header they are DictReader/DictWriter arguments, so the first one is
    the list of field names; the saver infers it from the first row when
    it is not given.

    Args:
        extension: Extension served by the handler.
        version: Version tag of the handler.
        registry: Registry to use instead of the default one.
        delimiter: Field separator (e.g. "|" or "\\t").
        header: Whether the first row holds the column names.

    Raises:
        ConflictError: If a handler already exists for extension and version.

    Example:
        Comma and pipe separated files side by side:
            ```python
            register_default_csv_file_handler()
            register_default_csv_file_handler(version="pipe", delimiter="|")
            ```
    """

    def load_csv(
        path: str | os.PathLike[str], *args: Any, **kwargs: Any
    ) -> list[Any]:
        with open(path, encoding="utf-8", newline="") as f:
            if header:
                return list(csv.DictReader(f, *args, delimiter=delimiter, **kwargs))
            return list(csv.reader(f, *args, delimiter=delimiter, **kwargs))

    def save_csv(
        path: str | os.PathLike[str], rows: Any, *args: Any, **kwargs: Any
    ) -> None:
        rows = [_plain(row) for row in rows]
        with _prepare(path).open("w", encoding="utf-8", newline="") as f:
            if header:
                if not args and "fieldnames" not in kwargs:
                    args = (list(rows[0].keys()) if rows else [],)
                writer = csv.DictWriter(f, *args, delimiter=delimiter, **kwargs)
                writer.writeheader()
            else:
                writer = csv.writer(f, *args, delimiter=delimiter, **kwargs)
            writer.writerows(rows)

    return register_file_handler(
        extension, load_csv, save_csv, version=version, registry=registry
    )


# -------------------------------
# Serialization
# -------------------------------


def _load_pickle(path: str | os.PathLike[str]) -> Any:
    with open(path, "rb") as f:
        return pickle.load(f)


def _save_pickle(path: str | os.PathLike[str], obj: Any) -> None:
    with _prepare(path).open("wb") as f:
        pickle.dump(obj, f, protocol=pickle.HIGHEST_PROTOCOL)


def register_default_serialization_file_handler(
    *,
    extension: str = "pkl",
    version: str | None = None,
    registry: HandlerRegistry | None = None,
) -> HandlerEntry:
    """Register a handler storing arbitrary Python objects with pickle.

    Useful for objects like trained models that only need to be read back
    by Python. ConfigTree objects are stored as they are.

    Raises:
        ConflictError: If a handler already exists for extension and version.
    """
    return register_file_handler(
        extension, _load_pickle, _save_pickle, version=version, registry=registry
    )


# -------------------------------
# Plain text
# -------------------------------


def _load_text(path: str | os.PathLike[str]) -> str:
    return Path(path).read_text(encoding="utf-8")


def _save_text(path: str | os.PathLike[str], obj: Any) -> None:
    _prepare(path).write_text(str(obj), encoding="utf-8")


def register_default_text_file_handler(
    *,
    extension: str = "txt",
    version: str | None = None,
    registry: HandlerRegistry | None = None,
) -> HandlerEntry:
    """Register a handler reading and writing a whole file as a string.

    Raises:
        ConflictError: If a handler already exists for extension and version.
    """
    return register_file_handler(
        extension, _load_text, _save_text, version=version, registry=registry
    )
