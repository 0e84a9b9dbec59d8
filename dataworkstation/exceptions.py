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

"""Exception hierarchy for DataWorkstation.

This module defines a custom exception hierarchy that allows library users
to distinguish between different types of errors:

- KeyNotFound: Missing key on a ConfigTree
- RegistryError: File handler registry errors (conflicts, missing handlers,
    failing handlers)
- ConfigError: Configuration loading errors (unreadable files, cyclic
    file references)

All exceptions inherit from DataWorkstationError, allowing users to catch all
DataWorkstation errors with a single except clause if needed.

Example:
    Catching specific error types:
        ```python
        from dataworkstation.config import load_config
        from dataworkstation.exceptions import CyclicReferenceError, FileLoadError

        try:
            cfg = load_config("main.toml", "configs")
        except CyclicReferenceError as e:
            print(f"Cycle: {' -> '.join(e.chain)}")
        except FileLoadError as e:
            print(f"Could not load {e.path}: {e.__cause__}")
        ```

    Catching all DataWorkstation errors:
        ```python
        from dataworkstation.exceptions import DataWorkstationError

        try:
            data = load_file("table.csv")
        except DataWorkstationError as e:
            print(f"DataWorkstation error: {e}")
        ```
"""

from __future__ import annotations

__all__ = [
    "DataWorkstationError",
    "KeyNotFound",
    "RegistryError",
    "ConflictError",
    "NotFoundError",
    "HandlerExecutionError",
    "ConfigError",
    "FileLoadError",
    "CyclicReferenceError",
]


def _describe_key(extension: str, version: str | None) -> str:
    return f"extension={extension!r}, version={version!r}"


class DataWorkstationError(Exception):
    """Base exception for all DataWorkstation errors.

    All DataWorkstation-specific exceptions inherit from this class, allowing
    users to catch all of them with a single except clause if needed.
    """

    # Constructor arguments of subclasses that build their own message
    _init_args: tuple = ()

    def __reduce__(self):
        # Unpickling calls the constructor with its original arguments
        args = self._init_args or self.args
        return (type(self), args, self.__dict__)


class KeyNotFound(DataWorkstationError, KeyError, AttributeError):
    """Raised when a ConfigTree has no entry for the requested key.

    It derives from both KeyError and AttributeError so that `cfg["key"]`
    and `cfg.key` fail the way Python code expects them to.

    Attributes:
        key: The key that was requested.
    """

    def __init__(self, key: object) -> None:
        super().__init__(f"Key not found in configuration: {key!r}")
        self._init_args = (key,)
        self.key = key

    def __str__(self) -> str:
        # KeyError.__str__ would repr() the message
        return str(self.args[0])


class RegistryError(DataWorkstationError):
    """Raised for file handler registry errors.

    This is the base class for every error raised by a HandlerRegistry or by
    the load_file()/save_file() entry points.
    """

    pass


class ConflictError(RegistryError):
    """Raised when registering a handler for an occupied (extension, version).

    Attributes:
        extension: Normalized extension of the rejected registration.
        version: Version tag of the rejected registration.
    """

    def __init__(self, extension: str, version: str | None) -> None:
        super().__init__(
            f"A file handler is already registered for "
            f"{_describe_key(extension, version)}"
        )
        self._init_args = (extension, version)
        self.extension = extension
        self.version = version


class NotFoundError(RegistryError):
    """Raised when no handler is registered for an (extension, version).

    Attributes:
        extension: Normalized extension that was looked up.
        version: Version tag that was looked up.
    """

    def __init__(
        self, extension: str, version: str | None, detail: str | None = None
    ) -> None:
        message = f"No file handler registered for {_describe_key(extension, version)}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)
        self._init_args = (extension, version, detail)
        self.extension = extension
        self.version = version


class HandlerExecutionError(RegistryError):
    """Raised when a registered loader or saver fails.

    The original exception is available as `__cause__`.

    Attributes:
        operation: "load" or "save".
        path: The path passed to the handler.
        extension: Extension the handler was resolved for.
        version: Version tag the handler was resolved for.
    """

    def __init__(
        self,
        operation: str,
        path: str,
        extension: str,
        version: str | None,
        cause: BaseException,
    ) -> None:
        super().__init__(
            f"Failed to {operation} {path!r} with handler for "
            f"{_describe_key(extension, version)}: {cause}"
        )
        self._init_args = (operation, path, extension, version, cause)
        self.operation = operation
        self.path = path
        self.extension = extension
        self.version = version


class ConfigError(DataWorkstationError):
    """Raised for configuration-related errors.

    This is the base class for errors raised while loading or parsing
    configuration files into ConfigTree instances.
    """

    pass


class FileLoadError(ConfigError):
    """Raised when a configuration file cannot be loaded or parsed.

    The original exception is available as `__cause__`.

    Attributes:
        path: The configuration file that failed to load.
    """

    def __init__(self, path: str, reason: object) -> None:
        super().__init__(f"Failed to load configuration from {path!r}: {reason}")
        self._init_args = (path, reason)
        self.path = path


class CyclicReferenceError(ConfigError):
    """Raised when configuration file references form a cycle.

    Attributes:
        chain: The resolved paths on the reference chain, ending with the
            path that was visited twice.
    """

    def __init__(self, chain: list[str]) -> None:
        super().__init__(
            "Cyclic configuration file reference: " + " -> ".join(chain)
        )
        self._init_args = (chain,)
        self.chain = chain
