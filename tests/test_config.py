"""
Tests for dataworkstation.config module.

Tests configuration trees and loading including:
- Recursive construction and collection
- Access, immutability and structural equality
- Shallow right-biased merging
- Parsing of file references and cycle detection
- Error handling while loading files
"""

from __future__ import annotations

from collections import namedtuple
import io
import pickle

import pytest

from dataworkstation.config import (
    ConfigTree,
    collect_config,
    file_reference,
    load_config,
    merge_config,
    parse_config,
    update_config,
)
from dataworkstation.exceptions import (
    CyclicReferenceError,
    FileLoadError,
    HandlerExecutionError,
    KeyNotFound,
    NotFoundError,
)
from dataworkstation.io.handlers import (
    register_default_text_file_handler,
    register_default_toml_file_handler,
    register_default_yaml_file_handler,
)
from dataworkstation.logging import FormattedLogger, set_global_logger

Point = namedtuple("Point", ["x", "y"])


@pytest.fixture
def toml_registry(registry):
    """Provide an isolated registry with TOML and YAML handlers."""
    register_default_toml_file_handler(registry=registry)
    register_default_yaml_file_handler(registry=registry)
    return registry


class TestConfigTreeConstruction:
    """Tests for building ConfigTree instances."""

    def test_nested_mappings_are_wrapped(self, sample_config_data):
        """Test that every nested dict becomes a ConfigTree."""
        cfg = ConfigTree(sample_config_data)

        assert isinstance(cfg["optimizer"], ConfigTree)
        assert isinstance(cfg["data"], ConfigTree)
        assert isinstance(cfg["data"]["train"], ConfigTree)
        assert cfg["data"]["train"]["path"] == "data/train.csv"

    def test_collect_is_inverse_of_construction(self, sample_config_data):
        """Test that collect() returns the original nested dict."""
        cfg = ConfigTree(sample_config_data)

        collected = cfg.collect()

        assert collected == sample_config_data
        assert type(collected["optimizer"]) is dict
        assert collect_config(cfg) == sample_config_data

    def test_mappings_inside_lists_are_wrapped(self):
        """Test that dicts inside lists are converted too."""
        cfg = ConfigTree({"layers": [{"units": 32}, {"units": 16}]})

        assert isinstance(cfg["layers"][0], ConfigTree)
        assert cfg["layers"][1]["units"] == 16
        assert cfg.collect() == {"layers": [{"units": 32}, {"units": 16}]}

    def test_sequence_subclasses_are_kept_as_values(self):
        """Test that namedtuples are stored and collected unchanged."""
        origin = Point(0, 0)

        cfg = ConfigTree({"origin": origin, "path": [Point(1, 2)]})

        assert cfg.origin is origin
        assert cfg.path == [Point(1, 2)]
        assert cfg.collect() == {"origin": Point(0, 0), "path": [Point(1, 2)]}
        assert type(cfg.collect()["origin"]) is Point

    def test_copy_from_other_tree(self):
        """Test constructing from another ConfigTree."""
        original = ConfigTree({"a": 1, "b": {"c": 3}})

        copy = ConfigTree(original)

        assert copy == original
        assert copy is not original
        assert list(copy.keys()) == ["a", "b"]

    def test_keyword_entries(self):
        """Test constructing from keyword arguments."""
        cfg = ConfigTree({"a": 1}, b={"c": 2})

        assert cfg["a"] == 1
        assert cfg["b"] == ConfigTree({"c": 2})

    def test_empty_tree(self):
        """Test that a tree without entries is empty."""
        cfg = ConfigTree()

        assert len(cfg) == 0
        assert cfg.collect() == {}

    def test_non_mapping_raises(self):
        """Test that non-mapping input is rejected."""
        with pytest.raises(TypeError, match="expects a mapping"):
            ConfigTree([("a", 1)])

    def test_repr(self):
        """Test the text representation of nested trees."""
        cfg = ConfigTree({"a": 1, "b": {"c": 3}})

        assert repr(cfg) == "ConfigTree({'a': 1, 'b': ConfigTree({'c': 3})})"


class TestConfigTreeAccess:
    """Tests for reading values from a ConfigTree."""

    def test_item_and_attribute_access(self):
        """Test that values are reachable by key and by attribute."""
        cfg = ConfigTree({"a": 1, "b": {"c": 3, "d": 4}})

        assert cfg["a"] == 1
        assert cfg.a == 1
        assert cfg.b.d == 4
        assert cfg.get("b").get("c") == 3

    def test_missing_key_raises_key_not_found(self):
        """Test that missing keys raise KeyNotFound."""
        cfg = ConfigTree({"a": 1})

        with pytest.raises(KeyNotFound) as exc_info:
            cfg.get("missing")

        assert exc_info.value.key == "missing"
        assert "missing" in str(exc_info.value)

    def test_missing_key_is_key_and_attribute_error(self):
        """Test that KeyNotFound behaves like KeyError and AttributeError."""
        cfg = ConfigTree({"a": 1})

        with pytest.raises(KeyError):
            cfg["missing"]
        with pytest.raises(AttributeError):
            cfg.missing
        assert not hasattr(cfg, "missing")

    def test_get_with_default(self):
        """Test that get() returns the default for missing keys."""
        cfg = ConfigTree({"a": 1})

        assert cfg.get("missing", None) is None
        assert cfg.get("missing", 5) == 5
        assert cfg.get("a", 5) == 1

    def test_keys_values_length_follow_insertion_order(self):
        """Test that keys(), values() and len() follow insertion order."""
        cfg = ConfigTree({"z": 1, "a": {"x": 2}, "m": 3})

        assert list(cfg.keys()) == ["z", "a", "m"]
        assert list(cfg.values()) == [1, ConfigTree({"x": 2}), 3]
        assert list(cfg) == ["z", "a", "m"]
        assert len(cfg) == 3
        assert "a" in cfg
        assert "q" not in cfg


class TestConfigTreeImmutability:
    """Tests that ConfigTree cannot be modified in place."""

    def test_attribute_assignment_raises(self):
        """Test that setting attributes fails."""
        cfg = ConfigTree({"a": 1})

        with pytest.raises(AttributeError, match="immutable"):
            cfg.a = 2
        with pytest.raises(AttributeError, match="immutable"):
            del cfg.a

    def test_item_assignment_raises(self):
        """Test that setting or deleting items fails."""
        cfg = ConfigTree({"a": 1})

        with pytest.raises(TypeError):
            cfg["a"] = 2  # type: ignore[index]
        with pytest.raises(TypeError):
            del cfg["a"]  # type: ignore[attr-defined]

        assert cfg["a"] == 1

    def test_input_changes_do_not_leak(self):
        """Test that mutating the input dict does not change the tree."""
        raw = {"a": 1, "b": {"c": 3}}
        cfg = ConfigTree(raw)

        raw["a"] = 100
        raw["b"]["c"] = 300

        assert cfg.a == 1
        assert cfg.b.c == 3

    def test_pickle_round_trip(self):
        """Test that trees survive pickling."""
        cfg = ConfigTree({"a": 1, "b": {"c": [1, 2]}})

        restored = pickle.loads(pickle.dumps(cfg))

        assert restored == cfg
        assert isinstance(restored.b, ConfigTree)


class TestConfigTreeEquality:
    """Tests for structural equality."""

    def test_equal_regardless_of_key_order(self):
        """Test that key order does not affect equality."""
        first = ConfigTree({"a": 1, "b": {"c": 3, "d": 4}})
        second = ConfigTree({"b": {"d": 4, "c": 3}, "a": 1})

        assert first == second
        assert second == first
        assert list(first.keys()) == ["a", "b"]
        assert list(second.keys()) == ["b", "a"]

    def test_reflexive(self, sample_config_data):
        """Test that a tree equals itself."""
        cfg = ConfigTree(sample_config_data)

        assert cfg == cfg
        assert cfg == ConfigTree(sample_config_data)

    def test_different_values_are_not_equal(self):
        """Test that a nested difference breaks equality."""
        first = ConfigTree({"a": 1, "b": {"c": 3}})
        second = ConfigTree({"a": 1, "b": {"c": 4}})

        assert first != second

    def test_different_key_sets_are_not_equal(self):
        """Test that extra keys break equality."""
        assert ConfigTree({"a": 1}) != ConfigTree({"a": 1, "b": 2})

    def test_not_equal_to_plain_dict(self):
        """Test that a tree never equals a dict."""
        cfg = ConfigTree({"a": 1})

        assert cfg != {"a": 1}
        assert cfg.collect() == {"a": 1}

    def test_unhashable(self):
        """Test that trees cannot be used as dict keys."""
        with pytest.raises(TypeError):
            hash(ConfigTree({"a": 1}))


class TestConfigTreeMerge:
    """Tests for merge() and update()."""

    def test_disjoint_merge_is_union(self):
        """Test merging trees without shared keys."""
        cfg = ConfigTree({"a": 1, "b": {"c": 3, "d": 4}})

        merged = cfg.merge(ConfigTree({"e": 5, "f": 6}))

        assert merged == ConfigTree({"a": 1, "b": {"c": 3, "d": 4}, "e": 5, "f": 6})
        assert list(merged.keys()) == ["a", "b", "e", "f"]

    def test_right_side_wins_shallow(self):
        """Test that shared keys are replaced as a whole."""
        left = ConfigTree({"a": 1, "b": {"c": 3, "d": 4}})
        right = ConfigTree({"b": {"c": 30}})

        merged = left.merge(right)

        assert merged.b == ConfigTree({"c": 30})
        assert "d" not in merged.b
        assert merged.get("b") is right.get("b")

    def test_merge_keeps_position_of_existing_keys(self):
        """Test that replaced keys keep their original position."""
        left = ConfigTree({"a": 1, "b": 2, "c": 3})

        merged = left.merge({"b": 20, "d": 4})

        assert list(merged.keys()) == ["a", "b", "c", "d"]
        assert merged.b == 20

    def test_merge_does_not_modify_inputs(self):
        """Test that merging returns a new tree."""
        left = ConfigTree({"a": 1})
        right = ConfigTree({"a": 2, "b": 3})

        merged = left.merge(right)

        assert left == ConfigTree({"a": 1})
        assert right == ConfigTree({"a": 2, "b": 3})
        assert merged is not left

    def test_nested_tree_carried_over_unchanged(self):
        """Test that keys only on the left keep their nested tree."""
        left = ConfigTree({"model": {"layers": 4}})

        merged = left.merge({"epochs": 3})

        assert merged.get("model") is left.get("model")

    def test_update_with_mapping_and_keywords(self):
        """Test update() and update_config()."""
        cfg = ConfigTree({"a": 1, "b": {"c": 3, "d": 4}})

        updated = cfg.update({"e": {"x": 1}}, f=6)

        assert isinstance(updated.e, ConfigTree)
        assert updated.f == 6
        assert update_config(cfg, {"e": {"x": 1}}, f=6) == updated
        assert "e" not in cfg

    def test_merge_config_helper(self):
        """Test the functional merge helper."""
        merged = merge_config(ConfigTree({"a": 1}), ConfigTree({"a": 2}))

        assert merged == ConfigTree({"a": 2})


class TestFileReference:
    """Tests for recognizing file reference strings."""

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("$(other.toml)", "other.toml"),
            ("  $(dir/other.yaml) ", "dir/other.yaml"),
            ("$(/abs/path/cfg.toml)", "/abs/path/cfg.toml"),
            ("other.toml", None),
            ("prefix $(other.toml)", None),
            ("$()", None),
            (42, None),
        ],
    )
    def test_file_reference(self, value, expected):
        """Test which values are file references."""
        assert file_reference(value) == expected


class TestParseConfig:
    """Tests for parse_config()."""

    def test_parse_mapping_without_references(self, sample_config_data):
        """Test that plain mappings behave like construction."""
        cfg = parse_config(sample_config_data)

        assert cfg == ConfigTree(sample_config_data)
        assert cfg.collect() == sample_config_data

    def test_parse_tree_returns_it_unchanged(self):
        """Test that trees are returned as they are."""
        cfg = ConfigTree({"a": 1})

        assert parse_config(cfg) is cfg

    def test_plain_strings_pass_through(self):
        """Test that non-reference strings are scalars."""
        assert parse_config("just text") == "just text"
        assert parse_config({"a": "just text"}).a == "just text"

    def test_sequence_subclasses_pass_through(self):
        """Test that namedtuple values are not rebuilt while parsing."""
        point = Point(1, 2)

        cfg = parse_config({"origin": point, "points": (point, {"z": 3})})

        assert cfg.origin is point
        assert cfg.points[0] is point
        assert isinstance(cfg.points[1], ConfigTree)
        assert parse_config(point) is point

    def test_reference_value_is_loaded(
        self, tmp_test_dir, create_toml_file, toml_registry
    ):
        """Test that a reference inside a mapping is replaced by the file."""
        create_toml_file("other.toml", {"a": 1, "b": {"c": 2, "d": 3}})

        cfg = parse_config(
            {"cfg": "$(other.toml)", "x": 1}, tmp_test_dir, registry=toml_registry
        )

        assert cfg.cfg == ConfigTree({"a": 1, "b": {"c": 2, "d": 3}})
        assert cfg.x == 1

    def test_reference_string_returns_tree_directly(
        self, tmp_test_dir, create_toml_file, toml_registry
    ):
        """Test that a reference string parses to the loaded tree itself."""
        create_toml_file("other.toml", {"a": 1})

        cfg = parse_config("$(other.toml)", str(tmp_test_dir), registry=toml_registry)

        assert cfg == ConfigTree({"a": 1})

    def test_references_in_nested_mappings_and_lists(
        self, tmp_test_dir, create_toml_file, toml_registry
    ):
        """Test that references are resolved at any depth."""
        create_toml_file("model.toml", {"layers": 4})

        cfg = parse_config(
            {"run": {"model": "$(model.toml)"}, "models": ["$(model.toml)"]},
            tmp_test_dir,
            registry=toml_registry,
        )

        assert cfg.run.model.layers == 4
        assert cfg.models[0] == ConfigTree({"layers": 4})

    def test_missing_referenced_file_raises(self, tmp_test_dir, toml_registry):
        """Test that a missing referenced file raises FileLoadError."""
        with pytest.raises(FileLoadError) as exc_info:
            parse_config({"cfg": "$(nope.toml)"}, tmp_test_dir, registry=toml_registry)

        assert exc_info.value.path == str(tmp_test_dir / "nope.toml")
        assert isinstance(exc_info.value.__cause__, HandlerExecutionError)


class TestLoadConfig:
    """Tests for load_config()."""

    def test_load_toml_with_root(self, tmp_test_dir, create_toml_file, toml_registry):
        """Test loading a TOML file relative to a root."""
        create_toml_file("cfg.toml", {"a": 1, "b": {"c": 2, "d": 3}})

        cfg = load_config("cfg.toml", tmp_test_dir, registry=toml_registry)

        assert cfg == ConfigTree({"a": 1, "b": {"c": 2, "d": 3}})

    def test_load_without_root(self, create_yaml_file, toml_registry):
        """Test loading a file given by its full path."""
        path = create_yaml_file("cfg.yaml", {"a": 1})

        cfg = load_config(str(path), registry=toml_registry)

        assert cfg.a == 1

    def test_load_resolves_references_against_root(
        self, tmp_test_dir, create_toml_file, toml_registry
    ):
        """Test that references inside a file use the same root."""
        create_toml_file("sub/model.toml", {"layers": 4})
        create_toml_file("main.toml", {"model": "$(sub/model.toml)", "epochs": 2})

        cfg = load_config("main.toml", tmp_test_dir, registry=toml_registry)

        assert cfg.model.layers == 4
        assert cfg.epochs == 2

    def test_mixed_formats(
        self, tmp_test_dir, create_toml_file, create_yaml_file, toml_registry
    ):
        """Test that a TOML file can reference a YAML file."""
        create_yaml_file("data.yaml", {"batch_size": 32})
        create_toml_file("main.toml", {"data": "$(data.yaml)"})

        cfg = load_config("main.toml", tmp_test_dir, registry=toml_registry)

        assert cfg.data.batch_size == 32

    def test_shared_reference_is_not_a_cycle(
        self, tmp_test_dir, create_toml_file, toml_registry
    ):
        """Test that two keys referencing the same file load fine."""
        create_toml_file("common.toml", {"seed": 7})
        create_toml_file(
            "main.toml", {"train": "$(common.toml)", "valid": "$(common.toml)"}
        )

        cfg = load_config("main.toml", tmp_test_dir, registry=toml_registry)

        assert cfg.train == cfg.valid == ConfigTree({"seed": 7})

    def test_cyclic_reference_raises(
        self, tmp_test_dir, create_toml_file, toml_registry
    ):
        """Test that A -> B -> A raises CyclicReferenceError."""
        create_toml_file("a.toml", {"b": "$(b.toml)"})
        create_toml_file("b.toml", {"a": "$(a.toml)"})

        with pytest.raises(CyclicReferenceError) as exc_info:
            load_config("a.toml", tmp_test_dir, registry=toml_registry)

        chain = exc_info.value.chain
        assert len(chain) == 3
        assert chain[0] == chain[-1]
        assert chain[0].endswith("a.toml")
        assert chain[1].endswith("b.toml")

    def test_self_reference_raises(
        self, tmp_test_dir, create_toml_file, toml_registry
    ):
        """Test that a file referencing itself raises CyclicReferenceError."""
        create_toml_file("self.toml", {"me": {"again": "$(self.toml)"}})

        with pytest.raises(CyclicReferenceError):
            load_config("self.toml", tmp_test_dir, registry=toml_registry)

    def test_missing_handler_raises_file_load_error(self, tmp_test_dir, registry):
        """Test that a missing handler is wrapped in FileLoadError."""
        (tmp_test_dir / "cfg.ini").write_text("[a]\n", encoding="utf-8")

        with pytest.raises(FileLoadError) as exc_info:
            load_config("cfg.ini", tmp_test_dir, registry=registry)

        assert isinstance(exc_info.value.__cause__, NotFoundError)

    def test_missing_file_raises_file_load_error(self, tmp_test_dir, toml_registry):
        """Test that a missing file is wrapped in FileLoadError."""
        with pytest.raises(FileLoadError) as exc_info:
            load_config("missing.toml", tmp_test_dir, registry=toml_registry)

        cause = exc_info.value.__cause__
        assert isinstance(cause, HandlerExecutionError)
        assert isinstance(cause.__cause__, FileNotFoundError)

    def test_invalid_file_raises_file_load_error(self, tmp_test_dir, toml_registry):
        """Test that a syntax error is wrapped in FileLoadError."""
        (tmp_test_dir / "bad.toml").write_text("a = = 1\n", encoding="utf-8")

        with pytest.raises(FileLoadError):
            load_config("bad.toml", tmp_test_dir, registry=toml_registry)

    def test_non_mapping_content_raises(self, tmp_test_dir, registry):
        """Test that files not holding a mapping are rejected."""
        register_default_text_file_handler(registry=registry)
        (tmp_test_dir / "notes.txt").write_text("hello", encoding="utf-8")

        with pytest.raises(FileLoadError, match="must be a mapping"):
            load_config("notes.txt", tmp_test_dir, registry=registry)

    def test_nested_failure_names_inner_file(
        self, tmp_test_dir, create_toml_file, toml_registry
    ):
        """Test that errors from referenced files keep the inner path."""
        create_toml_file("main.toml", {"model": "$(missing.toml)"})

        with pytest.raises(FileLoadError) as exc_info:
            load_config("main.toml", tmp_test_dir, registry=toml_registry)

        assert exc_info.value.path.endswith("missing.toml")

    def test_loading_is_logged(
        self, tmp_test_dir, create_toml_file, toml_registry, restore_global_logger
    ):
        """Test that loading reports through the global logger."""
        stream = io.StringIO()
        set_global_logger(FormattedLogger("DEBUG", stream=stream, date_format=None))
        create_toml_file("cfg.toml", {"a": 1})

        load_config("cfg.toml", tmp_test_dir, registry=toml_registry)

        output = stream.getvalue()
        assert "[ CONFIG | DEBUG: Loading configuration:" in output
        assert "[ CONFIG | INFO: Loaded configuration:" in output
