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

"""Logging interface for DataWorkstation.

This module provides a configurable logging interface that library modules
can use for output. The logger can be configured globally or passed as a
parameter for better isolation.

Messages are printed with a prefix made of a timestamp, a set of labels
and the level of the message:

    [ 2022-01-01 00:00:00 | tag=test | REGISTRY | INFO: Happy new year!

The timestamp format, the separator and the labels are configurable. The
logger supports four levels: DEBUG, INFO, WARNING and ERROR.

Example:
    Configure global logger:
        ```python
        from dataworkstation.logging import get_formatted_logger, set_global_logger

        logger = get_formatted_logger("INFO", "pipeline=train")
        set_global_logger(logger)
        ```

    Use in library code:
        ```python
        from dataworkstation.logging import get_global_logger

        logger = get_global_logger()
        logger.debug("REGISTRY", "Registered handler for csv")
        logger.info("CONFIG", "Loaded configs/main.toml")
        ```

    Scoped logger (restoring the previous one is the caller's job):
        ```python
        previous = get_global_logger()
        set_global_logger(get_formatted_logger("DEBUG", "step=eval"))
        try:
            run_evaluation()
        finally:
            set_global_logger(previous)
        ```

Note:
    The default logger is silent, so library functions won't print anything
    unless explicitly configured.
"""

from __future__ import annotations

from datetime import datetime
import sys
from typing import IO, Protocol

LEVELS: dict[str, int] = {"DEBUG": 10, "INFO": 20, "WARNING": 30, "ERROR": 40}

DEFAULT_SEP = " | "
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _level_value(level: str) -> int:
    try:
        return LEVELS[level.upper()]
    except KeyError:
        available = ", ".join(LEVELS)
        raise ValueError(
            f"Unknown log level: {level!r}. Available: {available}"
        ) from None


class Logger(Protocol):
    """Protocol for logger implementations."""

    def debug(self, prefix: str, message: str) -> None:
        """Log a debug message.

        Args:
            prefix: Message prefix (e.g., "REGISTRY", "CONFIG").
            message: Log message.
        """
        ...

    def info(self, prefix: str, message: str) -> None:
        """Log an informational message."""
        ...

    def warning(self, prefix: str, message: str) -> None:
        """Log a warning message."""
        ...

    def error(self, prefix: str, message: str) -> None:
        """Log an error message."""
        ...


def format_log_prefix(
    labels: list[str] | tuple[str, ...] | None,
    level: str,
    *,
    sep: str = DEFAULT_SEP,
    date_format: str | None = DEFAULT_DATE_FORMAT,
    now: datetime | None = None,
) -> str:
    """Build the prefix printed before every log message.

    The format is `[ <timestamp><sep><label1><sep>...<sep><LEVEL>:`. Parts
    without content (no timestamp, no labels) are left out together with
    their separator.

    Args:
        labels: Labels to include after the timestamp. None or an empty
            sequence adds no labels.
        level: Level name of the message (case-insensitive).
        sep: Separator placed between the parts of the prefix.
        date_format: strftime format for the timestamp. None or an empty
            string prints no timestamp.
        now: Timestamp to print. Defaults to the current local time.

    Returns:
        The prefix, without a trailing space.

    Raises:
        ValueError: If the level name is unknown.

    Example:
        Fixed timestamp:
            ```python
            format_log_prefix(["tag=test"], "info", now=datetime(2022, 1, 1))
            # '[ 2022-01-01 00:00:00 | tag=test | INFO:'
            ```
    """
    _level_value(level)
    parts: list[str] = []
    if date_format:
        parts.append((now or datetime.now()).strftime(date_format))
    parts.extend(str(label) for label in labels or ())
    parts.append(f"{level.upper()}:")
    return "[ " + sep.join(parts)


class FormattedLogger:
    """Logger that prints formatted messages to a stream.

    Messages below the minimum level are dropped. The prefix given to each
    call is printed as the last label before the level.
    """

    def __init__(
        self,
        min_level: str = "DEBUG",
        *labels: str,
        stream: IO[str] | None = None,
        sep: str = DEFAULT_SEP,
        date_format: str | None = DEFAULT_DATE_FORMAT,
        **named_labels: object,
    ) -> None:
        """Initialize logger with its output format.

        Args:
            min_level: Minimum level to print ("DEBUG", "INFO", "WARNING"
                or "ERROR").
            *labels: Labels printed in the prefix of every message.
            stream: Stream to print to. Defaults to sys.stderr at the time
                of each call.
            sep: Separator for the parts of the prefix.
            date_format: strftime format for the timestamp, or None to
                omit it.
            **named_labels: Labels printed as "key=value" after the
                positional ones, in keyword order.

        Raises:
            ValueError: If min_level is unknown.
        """
        self._min_level = _level_value(min_level)
        self.labels = (*labels, *(f"{k}={v}" for k, v in named_labels.items()))
        self._stream = stream
        self.sep = sep
        self.date_format = date_format

    def _emit(self, level: str, prefix: str, message: str) -> None:
        if LEVELS[level] < self._min_level:
            return
        labels = [*self.labels, prefix] if prefix else list(self.labels)
        head = format_log_prefix(
            labels, level, sep=self.sep, date_format=self.date_format
        )
        stream = self._stream if self._stream is not None else sys.stderr
        print(f"{head} {message}", file=stream)

    def debug(self, prefix: str, message: str) -> None:
        """Print a debug message (only when min_level is DEBUG)."""
        self._emit("DEBUG", prefix, message)

    def info(self, prefix: str, message: str) -> None:
        """Print an informational message."""
        self._emit("INFO", prefix, message)

    def warning(self, prefix: str, message: str) -> None:
        """Print a warning message."""
        self._emit("WARNING", prefix, message)

    def error(self, prefix: str, message: str) -> None:
        """Print an error message."""
        self._emit("ERROR", prefix, message)


class SilentLogger:
    """Logger that suppresses all output.

    Useful for programmatic usage when output is not desired.
    """

    def debug(self, prefix: str, message: str) -> None:
        """Suppress debug output."""
        pass

    def info(self, prefix: str, message: str) -> None:
        """Suppress info output."""
        pass

    def warning(self, prefix: str, message: str) -> None:
        """Suppress warning output."""
        pass

    def error(self, prefix: str, message: str) -> None:
        """Suppress error output."""
        pass


# Global logger instance (defaults to silent)
_global_logger: Logger = SilentLogger()


def get_formatted_logger(
    min_level: str = "DEBUG",
    *labels: str,
    stream: IO[str] | None = None,
    sep: str = DEFAULT_SEP,
    date_format: str | None = DEFAULT_DATE_FORMAT,
    **named_labels: object,
) -> Logger:
    """Get a logger printing messages in the DataWorkstation format.

    Args:
        min_level: Minimum level of log to print.
        *labels: Labels to be printed in the message prefix.
        stream: Stream for the messages to print. Defaults to stderr.
        sep: Separator for the labels to print in the message prefix.
        date_format: Format for the timestamp. None prints no timestamp.
        **named_labels: Labels printed as "key=value" (e.g. scope="repl").

    Returns:
        A logger instance configured with the given format.

    Example:
        Get an info logger with a label:
            ```python
            logger = get_formatted_logger("INFO", "job=42", sep=" - ")
            logger.info("CONFIG", "Loaded")
            # [ 2024-05-01 10:00:00 - job=42 - CONFIG - INFO: Loaded
            ```

        Keyword labels:
            ```python
            logger = get_formatted_logger(scope="repl", tag="test")
            logger.info("", "Hello")
            # [ 2024-05-01 10:00:00 | scope=repl | tag=test | INFO: Hello
            ```
    """
    return FormattedLogger(
        min_level,
        *labels,
        stream=stream,
        sep=sep,
        date_format=date_format,
        **named_labels,
    )


def get_global_logger() -> Logger:
    """Get the global logger instance.

    Returns:
        The current global logger instance.

    Note:
        The default global logger is silent. Use set_global_logger() to
        configure it, or pass a logger instance directly to functions.
    """
    return _global_logger


def set_global_logger(logger: Logger) -> None:
    """Set the global logger instance.

    Args:
        logger: Logger instance to use as the global logger.

    Note:
        This affects all library functions that use get_global_logger()
        without passing a logger instance. Restoring the previous logger
        after a scoped region is up to the caller.
    """
    global _global_logger
    _global_logger = logger
