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

"""Immutable configuration tree for DataWorkstation.

ConfigTree is a read-only mapping that wraps every nested mapping of its
input into another ConfigTree, so a configuration can be navigated with
either item or attribute access:

    >>> cfg = ConfigTree({"a": 1, "b": {"c": 3, "d": 4}})
    >>> cfg
    ConfigTree({'a': 1, 'b': ConfigTree({'c': 3, 'd': 4})})
    >>> cfg.b.d
    4
    >>> cfg["b"]["c"]
    3

Semantics
---------
- **Immutable**: there is no way to change a tree in place. merge() and
  update() return new instances and never touch their inputs.
- **Ordered**: keys(), values() and iteration follow insertion order, and
  merge() keeps the position of existing keys.
- **Structural equality**: two trees are equal when they have the same keys
  with equal values, regardless of key order. A tree is never equal to a
  plain dict; use collect() to compare against one.
- **Shallow merge**: merge() is right-biased and does not recurse. When both
  trees have a key, the value of the right-hand tree replaces the left one
  entirely, nested trees included.

Nested mappings inside lists and tuples are wrapped as well, which makes
arrays of tables (TOML) and lists of mappings (YAML) navigable too. Only
plain lists and tuples are rebuilt; sequence subclasses such as namedtuples
are stored unchanged.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import Any

from dataworkstation.exceptions import KeyNotFound

__all__ = ["ConfigTree"]

_MISSING = object()


def _wrap(value: Any) -> Any:
    """Convert nested mappings (also inside lists/tuples) into ConfigTree."""
    if isinstance(value, ConfigTree):
        return value
    if isinstance(value, Mapping):
        return ConfigTree(value)
    if type(value) in (list, tuple):
        return type(value)(_wrap(v) for v in value)
    return value


def _unwrap(value: Any) -> Any:
    """Inverse of _wrap(): turn ConfigTree values back into dicts."""
    if isinstance(value, ConfigTree):
        return value.collect()
    if type(value) in (list, tuple):
        return type(value)(_unwrap(v) for v in value)
    return value


class ConfigTree(Mapping):
    """Immutable, recursively structured configuration values.

    Args:
        data: A mapping (or another ConfigTree) with the configuration
            entries. Nested mappings are converted to ConfigTree.
        **entries: Extra entries, added after the ones in data.

    Example:
        Build, merge and collect:
            ```python
            cfg = ConfigTree({"a": 1, "b": {"c": 3, "d": 4}})
            more = cfg.merge(ConfigTree(e=5, f=6))
            # ConfigTree({'a': 1, 'b': ConfigTree({...}), 'e': 5, 'f': 6})
            more.collect()
            # {'a': 1, 'b': {'c': 3, 'd': 4}, 'e': 5, 'f': 6}
            ```
    """

    __slots__ = ("_data",)

    def __init__(
        self, data: Mapping[str, Any] | None = None, /, **entries: Any
    ) -> None:
        if data is not None and not isinstance(data, Mapping):
            raise TypeError(
                f"ConfigTree expects a mapping, got {type(data).__name__}"
            )
        content: dict[str, Any] = {}
        for key, value in (data or {}).items():
            content[key] = _wrap(value)
        for key, value in entries.items():
            content[key] = _wrap(value)
        object.__setattr__(self, "_data", content)

    # -------------------------------
    # Read access
    # -------------------------------

    def __getitem__(self, key: str) -> Any:
        try:
            return self._data[key]
        except KeyError:
            raise KeyNotFound(key) from None

    def __getattr__(self, name: str) -> Any:
        # Only called when regular lookup fails
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self._data[name]
        except KeyError:
            raise KeyNotFound(name) from None

    def get(self, key: str, default: Any = _MISSING) -> Any:
        """Return the value for key.

        Args:
            key: Entry to look up.
            default: Value returned when key is absent. When omitted, a
                missing key raises instead.

        Raises:
            KeyNotFound: If key is absent and no default was given.
        """
        if key in self._data:
            return self._data[key]
        if default is _MISSING:
            raise KeyNotFound(key)
        return default

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def keys(self):
        return self._data.keys()

    def values(self):
        return self._data.values()

    def items(self):
        return self._data.items()

    # -------------------------------
    # Immutability
    # -------------------------------

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"ConfigTree is immutable; cannot set {name!r}")

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"ConfigTree is immutable; cannot delete {name!r}")

    def __reduce__(self):
        return (type(self), (self.collect(),))

    # -------------------------------
    # Comparison and display
    # -------------------------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ConfigTree):
            return NotImplemented
        return self._data == other._data

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._data!r})"

    # -------------------------------
    # Derived trees
    # -------------------------------

    def collect(self) -> dict[str, Any]:
        """Return the content as plain nested dicts.

        This is the inverse of construction for mapping-only input:
        `ConfigTree(d).collect() == d`.
        """
        return {key: _unwrap(value) for key, value in self._data.items()}

    def merge(self, other: Mapping[str, Any]) -> ConfigTree:
        """Return a new tree with the entries of other laid over this one.

        Keys present in both take the value of other as a whole; nested
        trees are not merged recursively. Existing keys keep their position
        and new keys are appended in the order of other.

        Args:
            other: A ConfigTree or a mapping (converted first).

        Returns:
            A new ConfigTree. Neither input is modified.
        """
        if not isinstance(other, ConfigTree):
            other = ConfigTree(other)
        merged = dict(self._data)
        merged.update(other._data)
        return ConfigTree(merged)

    def update(
        self, entries: Mapping[str, Any] | None = None, /, **kwargs: Any
    ) -> ConfigTree:
        """Return a new tree with entries added or replaced.

        Equivalent to `self.merge(ConfigTree(entries, **kwargs))`.
        """
        return self.merge(ConfigTree(entries, **kwargs))
