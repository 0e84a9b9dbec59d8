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

"""Generic file operations for DataWorkstation.

load_file() and save_file() pick the function to use from the extension of
the given path and an optional version tag, so programs can read and write
files without hard-coding the format in every call site:

    from dataworkstation.io import load_file, register_file_handler, save_file

    register_file_handler("txt", load_text, save_text)
    save_file("notes.txt", "hello")
    load_file("notes.txt")  # "hello"

Every function works on the process-wide default registry unless a
HandlerRegistry is passed with the `registry` keyword. The keyword
arguments `version` and `registry` are consumed here; every other argument
is passed through to the registered function.
"""

from __future__ import annotations

import os
from typing import Any

from dataworkstation.io.registry import (
    FileLoader,
    FileSaver,
    HandlerEntry,
    HandlerRegistry,
    get_default_registry,
)

__all__ = [
    "load_file",
    "save_file",
    "register_file_handler",
    "unregister_file_handler",
    "methods_load_file",
    "methods_save_file",
]


def _registry(registry: HandlerRegistry | None) -> HandlerRegistry:
    return registry if registry is not None else get_default_registry()


def load_file(
    path: str | os.PathLike[str],
    *args: Any,
    version: str | None = None,
    registry: HandlerRegistry | None = None,
    **kwargs: Any,
) -> Any:
    """Load the content of a file with a registered handler.

    Args:
        path: File to load. Its extension selects the handler.
        *args: Arguments passed to the registered loader.
        version: Tag of the handler to use. None uses the default handler
            of the extension.
        registry: Registry to use instead of the default one.
        **kwargs: Keyword arguments passed to the registered loader.

    Returns:
        The object returned by the loader.

    Raises:
        NotFoundError: If no handler is registered for the extension of
            path and version.
        HandlerExecutionError: If the loader fails.

    Example:
        Pipe separated CSV files:
            ```python
            register_default_csv_file_handler(version="pipe", delimiter="|")
            rows = load_file("data/table.csv", version="pipe")
            ```
    """
    return _registry(registry).load(path, *args, version=version, **kwargs)


def save_file(
    path: str | os.PathLike[str],
    obj: Any,
    *args: Any,
    version: str | None = None,
    registry: HandlerRegistry | None = None,
    **kwargs: Any,
) -> None:
    """Save an object as a file with a registered handler.

    Args:
        path: Destination file. Its extension selects the handler.
        obj: Object to save.
        *args: Arguments passed to the registered saver.
        version: Tag of the handler to use.
        registry: Registry to use instead of the default one.
        **kwargs: Keyword arguments passed to the registered saver.

    Raises:
        NotFoundError: If no handler is registered for the extension of
            path and version.
        HandlerExecutionError: If the saver fails.
    """
    _registry(registry).save(path, obj, *args, version=version, **kwargs)


def register_file_handler(
    extension: str,
    load_file_function: FileLoader,
    save_file_function: FileSaver,
    *,
    version: str | None = None,
    registry: HandlerRegistry | None = None,
) -> HandlerEntry:
    """Register the functions used by load_file() and save_file().

    Args:
        extension: Extension of the file paths served by the functions.
        load_file_function: Function called as `f(path, *args, **kwargs)`.
        save_file_function: Function called as `f(path, obj, *args, **kwargs)`.
        version: Tag identifying this handler among others for the same
            extension.
        registry: Registry to use instead of the default one.

    Returns:
        The registered entry.

    Raises:
        ConflictError: If a handler already exists for extension and version.
    """
    return _registry(registry).register(
        extension, load_file_function, save_file_function, version=version
    )


def unregister_file_handler(
    extension: str,
    *,
    version: str | None = None,
    registry: HandlerRegistry | None = None,
) -> None:
    """Unregister the handler of an extension and version.

    Raises:
        NotFoundError: If no handler exists for extension and version.
    """
    _registry(registry).unregister(extension, version=version)


def methods_load_file(
    extension: str,
    version: str | None = None,
    *,
    registry: HandlerRegistry | None = None,
) -> list[FileLoader]:
    """Get the loaders available for an extension and version.

    Useful to check whether load_file() will find a handler before calling
    it. The list is empty when nothing is registered.
    """
    return _registry(registry).lookup_loaders(extension, version)


def methods_save_file(
    extension: str,
    version: str | None = None,
    *,
    registry: HandlerRegistry | None = None,
) -> list[FileSaver]:
    """Get the savers available for an extension and version.

    The list is empty when nothing is registered.
    """
    return _registry(registry).lookup_savers(extension, version)
