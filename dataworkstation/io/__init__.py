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

"""File I/O for DataWorkstation.

This package provides a pluggable way of loading and saving files. Functions
for a format are registered once for a file extension (and optionally a
version tag), and load_file() / save_file() dispatch to them based on the
path they receive.

Handlers are keyed by (extension, version):

  - extension: normalized file extension ("csv", ".CSV" -> "csv")
  - version: optional tag for variants of one extension; None is the
    default handler and is distinct from every named version

Default handlers for common formats live in dataworkstation.io.handlers and
are only registered on request.

Example:
    Two CSV variants:

        from dataworkstation.io import load_file, save_file
        from dataworkstation.io.handlers import register_default_csv_file_handler

        register_default_csv_file_handler()
        register_default_csv_file_handler(version="pipe", delimiter="|")

        save_file("out/table.csv", rows, version="pipe")
        rows = load_file("out/table.csv", version="pipe")

"""

from .files import (
    load_file,
    methods_load_file,
    methods_save_file,
    register_file_handler,
    save_file,
    unregister_file_handler,
)
from .registry import (
    HandlerEntry,
    HandlerRegistry,
    extension_of,
    get_default_registry,
    normalize_extension,
)

__all__ = [
    "HandlerEntry",
    "HandlerRegistry",
    "extension_of",
    "get_default_registry",
    "load_file",
    "methods_load_file",
    "methods_save_file",
    "normalize_extension",
    "register_file_handler",
    "save_file",
    "unregister_file_handler",
]
