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

"""File handler registry for DataWorkstation.

This module defines the foundational components for generic file I/O:

- FileLoader / FileSaver protocols: Interfaces of the registered functions
- HandlerEntry: An immutable (loader, saver) pair for one key
- HandlerRegistry: Thread-safe mapping from (extension, version) to entries
- Default registry: A process-wide instance used by load_file()/save_file()

A handler is selected by the extension of the file path and by an optional
version tag. The version tag lets several variants of a format live under
the same extension (e.g. comma and pipe separated CSV files), while the
default slot (version=None) stays distinct from every named version.

Design Philosophy:
    - Loaders and savers are plain callables (structural typing, no base class)
    - One entry per (extension, version); registering twice is an error
    - Registries are instantiable so tests can use an isolated one
    - The lock guards the mapping only; handlers run outside of it

Extension Rules:
    Extensions are normalized by stripping leading dots and lower-casing, so
    "CSV", ".csv" and "csv" name the same handler. The extension of a path is
    the text after the last dot of its final component ("data.tar.gz" ->
    "gz"). Names without a dot, ending in a dot, or made of a leading dot
    only (".env") have no extension.

Example:
    Registering and using a handler:
        ```python
        from pathlib import Path
        from dataworkstation.io.registry import HandlerRegistry

        def load_text(path):
            return Path(path).read_text(encoding="utf-8")

        def save_text(path, obj):
            Path(path).write_text(obj, encoding="utf-8")

        registry = HandlerRegistry()
        registry.register("txt", load_text, save_text)
        registry.save("a.txt", "hello")
        registry.load("a.txt")  # "hello"
        ```

"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import PurePath
import threading
from typing import Any, Protocol

from dataworkstation.exceptions import (
    ConflictError,
    HandlerExecutionError,
    NotFoundError,
)
from dataworkstation.logging import get_global_logger

__all__ = [
    "FileLoader",
    "FileSaver",
    "HandlerEntry",
    "HandlerRegistry",
    "extension_of",
    "get_default_registry",
    "normalize_extension",
]

# -------------------------------
# Handler Protocols
# -------------------------------


class FileLoader(Protocol):
    """Protocol for functions that load a file.

    The loader receives the path given to load_file() followed by any extra
    positional and keyword arguments, and returns the loaded object.
    """

    def __call__(
        self, path: str | os.PathLike[str], *args: Any, **kwargs: Any
    ) -> Any:
        ...


class FileSaver(Protocol):
    """Protocol for functions that save an object to a file.

    The saver receives the path and the object given to save_file() followed
    by any extra positional and keyword arguments. Its return value is
    ignored.
    """

    def __call__(
        self, path: str | os.PathLike[str], obj: Any, *args: Any, **kwargs: Any
    ) -> None:
        ...


@dataclass(frozen=True)
class HandlerEntry:
    """A registered (loader, saver) pair.

    Attributes:
        extension: Normalized extension the entry serves.
        version: Version tag, or None for the default handler.
        loader: Function called by load_file().
        saver: Function called by save_file().
    """

    extension: str
    version: str | None
    loader: FileLoader
    saver: FileSaver


# -------------------------------
# Extension helpers
# -------------------------------


def normalize_extension(extension: str) -> str:
    """Normalize an extension: strip whitespace and leading dots, lower-case.

    Example:
        ```python
        normalize_extension(".CSV")  # "csv"
        ```
    """
    return str(extension).strip().lstrip(".").lower()


def extension_of(path: str | os.PathLike[str]) -> str:
    """Get the normalized extension of a file path.

    Args:
        path: File path. Only its final component is inspected.

    Returns:
        The text after the last dot of the file name, normalized. An empty
            string when the file name has no extension.

    Example:
        ```python
        extension_of("data/train.part1.CSV")  # "csv"
        extension_of("configs/.env")  # ""
        ```
    """
    name = PurePath(os.fspath(path)).name
    stem, dot, suffix = name.rpartition(".")
    if not dot or not stem.strip("."):
        return ""
    return normalize_extension(suffix)


# -------------------------------
# Registry
# -------------------------------


class HandlerRegistry:
    """Thread-safe registry of file handlers keyed by (extension, version).

    All reads and writes of the internal mapping are serialized by a single
    lock. The lock is released before a loader or saver runs, so slow file
    I/O in one thread does not block registry operations in another.

    Example:
        Two variants of the same extension:
            ```python
            registry = HandlerRegistry()
            registry.register("csv", load_csv, save_csv)
            registry.register("csv", load_psv, save_psv, version="pipe")

            registry.save("x.csv", rows, version="pipe")
            registry.load("x.csv", version="pipe")  # uses load_psv
            registry.load("x.csv")  # uses load_csv
            ```
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: dict[tuple[str, str | None], HandlerEntry] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, tuple) or len(key) != 2:
            return False
        extension, version = key
        with self._lock:
            return (normalize_extension(extension), version) in self._entries

    def __repr__(self) -> str:
        with self._lock:
            keys = sorted(self._entries, key=lambda k: (k[0], k[1] or ""))
        return f"HandlerRegistry({keys!r})"

    def register(
        self,
        extension: str,
        loader: FileLoader,
        saver: FileSaver,
        *,
        version: str | None = None,
    ) -> HandlerEntry:
        """Register a loader and a saver for an extension and version.

        Args:
            extension: File extension served by the handler ("csv", ".CSV").
            loader: Function used by load(). See FileLoader.
            saver: Function used by save(). See FileSaver.
            version: Tag identifying the handler among others with the same
                extension. None registers the default handler.

        Returns:
            The stored entry.

        Raises:
            ValueError: If the extension is empty after normalization.
            TypeError: If loader or saver is not callable.
            ConflictError: If a handler is already registered for the same
                extension and version. Existing entries are never replaced;
                unregister() first.

        """
        ext = normalize_extension(extension)
        if not ext:
            raise ValueError(f"Invalid file extension: {extension!r}")
        if not callable(loader):
            raise TypeError(f"loader must be callable, got {type(loader).__name__}")
        if not callable(saver):
            raise TypeError(f"saver must be callable, got {type(saver).__name__}")

        entry = HandlerEntry(extension=ext, version=version, loader=loader, saver=saver)
        with self._lock:
            if (ext, version) in self._entries:
                raise ConflictError(ext, version)
            self._entries[(ext, version)] = entry

        get_global_logger().debug(
            "REGISTRY",
            f"Registered file handler: extension={ext!r}, version={version!r}",
        )
        return entry

    def unregister(self, extension: str, *, version: str | None = None) -> None:
        """Remove the handler registered for an extension and version.

        Raises:
            NotFoundError: If no handler is registered for the key.
        """
        ext = normalize_extension(extension)
        with self._lock:
            if self._entries.pop((ext, version), None) is None:
                raise NotFoundError(ext, version)

        get_global_logger().debug(
            "REGISTRY",
            f"Unregistered file handler: extension={ext!r}, version={version!r}",
        )

    def clear(self) -> None:
        """Remove every registered handler."""
        with self._lock:
            self._entries.clear()

    def get_entry(self, extension: str, version: str | None = None) -> HandlerEntry:
        """Get the entry registered for an extension and version.

        Raises:
            NotFoundError: If no handler is registered for the key. The
                message lists the versions available for the extension.
        """
        ext = normalize_extension(extension)
        with self._lock:
            entry = self._entries.get((ext, version))
            if entry is None:
                available = [v for (e, v) in self._entries if e == ext]
        if entry is None:
            detail = None
            if available:
                detail = "available versions: " + ", ".join(repr(v) for v in available)
            raise NotFoundError(ext, version, detail)
        return entry

    def entries(self) -> list[HandlerEntry]:
        """Get a snapshot of all registered entries, in registration order."""
        with self._lock:
            return list(self._entries.values())

    def lookup_loaders(
        self, extension: str, version: str | None = None
    ) -> list[FileLoader]:
        """Get the loaders registered for an extension and version.

        Returns:
            A list with the registered loader, or an empty list when none
                is registered. Never raises for a missing handler.
        """
        key = (normalize_extension(extension), version)
        with self._lock:
            entry = self._entries.get(key)
        return [entry.loader] if entry is not None else []

    def lookup_savers(
        self, extension: str, version: str | None = None
    ) -> list[FileSaver]:
        """Get the savers registered for an extension and version.

        Returns:
            A list with the registered saver, or an empty list when none
                is registered. Never raises for a missing handler.
        """
        key = (normalize_extension(extension), version)
        with self._lock:
            entry = self._entries.get(key)
        return [entry.saver] if entry is not None else []

    def _resolve(
        self, path: str | os.PathLike[str], version: str | None
    ) -> HandlerEntry:
        ext = extension_of(path)
        if not ext:
            raise NotFoundError(
                ext, version, f"path has no extension: {os.fspath(path)!r}"
            )
        return self.get_entry(ext, version)

    def load(
        self,
        path: str | os.PathLike[str],
        *args: Any,
        version: str | None = None,
        **kwargs: Any,
    ) -> Any:
        """Load a file with the handler matching its extension and version.

        Args:
            path: File to load.
            *args: Passed to the loader after the path.
            version: Version tag of the handler to use.
            **kwargs: Passed to the loader.

        Returns:
            Whatever the loader returns.

        Raises:
            NotFoundError: If no handler matches the path and version.
            HandlerExecutionError: If the loader raises. The original error
                is chained as __cause__.
        """
        entry = self._resolve(path, version)
        get_global_logger().debug(
            "REGISTRY",
            f"Loading {os.fspath(path)} (extension={entry.extension!r}, "
            f"version={version!r})",
        )
        try:
            return entry.loader(path, *args, **kwargs)
        except Exception as err:
            raise HandlerExecutionError(
                "load", os.fspath(path), entry.extension, version, err
            ) from err

    def save(
        self,
        path: str | os.PathLike[str],
        obj: Any,
        *args: Any,
        version: str | None = None,
        **kwargs: Any,
    ) -> None:
        """Save an object with the handler matching the path extension and version.

        Args:
            path: Destination file.
            obj: Object to save.
            *args: Passed to the saver after the object.
            version: Version tag of the handler to use.
            **kwargs: Passed to the saver.

        Raises:
            NotFoundError: If no handler matches the path and version.
            HandlerExecutionError: If the saver raises. The original error
                is chained as __cause__.
        """
        entry = self._resolve(path, version)
        get_global_logger().debug(
            "REGISTRY",
            f"Saving {os.fspath(path)} (extension={entry.extension!r}, "
            f"version={version!r})",
        )
        try:
            entry.saver(path, obj, *args, **kwargs)
        except Exception as err:
            raise HandlerExecutionError(
                "save", os.fspath(path), entry.extension, version, err
            ) from err


# -------------------------------
# Default registry
# -------------------------------

_DEFAULT_REGISTRY = HandlerRegistry()


def get_default_registry() -> HandlerRegistry:
    """Get the process-wide registry used by load_file() and save_file().

    Note:
        The default registry starts empty. Handlers are added with
        register_file_handler() or the register_default_*_file_handler()
        helpers in dataworkstation.io.handlers.
    """
    return _DEFAULT_REGISTRY
