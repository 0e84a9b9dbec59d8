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

"""Configuration objects and loading for DataWorkstation.

This package provides ConfigTree, an immutable mapping that wraps nested
mappings recursively, and the functions that build ConfigTree instances
from files:

  - Files are read with load_file(), so any registered format works
  - String values like "$(other.toml)" load and embed another file
  - Cyclic file references are detected and reported

Merging is shallow and right-biased: for a key present in both trees the
value of the second tree replaces the first one as a whole.

Public API:

- ConfigTree: Immutable configuration tree
- load_config: Load a file as a ConfigTree
- parse_config: Build a ConfigTree from a mapping or a file reference
- update_config / merge_config / collect_config: Functional helpers

Example:
    Basic usage:

        from dataworkstation.config import ConfigTree, load_config

        cfg = load_config("configs/train.toml")
        cfg = cfg.update(epochs=20)
        print(cfg.optimizer.lr)

"""

from .loader import (
    collect_config,
    file_reference,
    load_config,
    merge_config,
    parse_config,
    update_config,
)
from .tree import ConfigTree

__all__ = [
    "ConfigTree",
    "collect_config",
    "file_reference",
    "load_config",
    "merge_config",
    "parse_config",
    "update_config",
]
