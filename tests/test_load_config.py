"""Tests for configuration loading and merging."""

from pathlib import Path

import pytest
import yaml

from rbdoc.deep_merge import deep_merge
from rbdoc.errors import RbdocError
from rbdoc.load_config import DEFAULT_CONFIG, load_config
from rbdoc.reporting import config_hash


def test_deep_merge_scalars() -> None:
    """Verify scalar replacement in deep merge."""
    base = {"a": 1, "b": 2}
    update = {"b": 3, "c": 4}
    merged = deep_merge(base, update)
    assert merged == {"a": 1, "b": 3, "c": 4}


def test_deep_merge_nested() -> None:
    """Verify recursive merging of dictionaries."""
    base = {"nested": {"x": 1, "y": 2}}
    update = {"nested": {"y": 3, "z": 4}}
    merged = deep_merge(base, update)
    assert merged == {"nested": {"x": 1, "y": 3, "z": 4}}


def test_deep_merge_arrays_replace() -> None:
    """Verify that arrays are replaced by default."""
    merged = deep_merge({"exclude": ["a"]}, {"exclude": ["b"]})
    assert merged == {"exclude": ["b"]}


def test_deep_merge_file_patterns_additive() -> None:
    """Verify that file patterns are merged additively without duplicates."""
    base = {"file_patterns": ["*.rb", "*.rbw"]}
    update = {"file_patterns": ["*.rake", "*.rb"]}
    merged = deep_merge(base, update)
    assert merged["file_patterns"] == ["*.rb", "*.rbw", "*.rake"]


def test_config_hash_stability() -> None:
    """Verify that config hash is stable regardless of key order."""
    config1 = {"b": 2, "a": 1, "nested": {"y": 2, "x": 1}}
    config2 = {"a": 1, "b": 2, "nested": {"x": 1, "y": 2}}
    assert config_hash(config1) == config_hash(config2)


def test_load_config_defaults() -> None:
    """Verify that default config is loaded when no path is provided."""
    config = load_config(None)
    assert config == DEFAULT_CONFIG
    config["scan"]["exclude"].append("vendor/**")
    assert DEFAULT_CONFIG["scan"]["exclude"] == []


def test_load_config_with_file(tmp_path: Path) -> None:
    """Verify that user config correctly overrides defaults."""
    config_file = tmp_path / "config.yml"
    config_data = {
        "scan": {"workers": 4, "file_patterns": ["*.rake"]},
        "comments": {"markup": "markdown"},
    }
    config_file.write_text(yaml.dump(config_data))

    loaded = load_config(str(config_file))
    workers = 4
    assert loaded["scan"]["workers"] == workers
    assert loaded["scan"]["file_patterns"] == ["*.rb", "*.rbw", "*.rake"]
    assert loaded["comments"]["markup"] == "markdown"
    assert loaded["comments"]["attach_across_blank_lines"] is False


def test_load_config_missing_file_uses_defaults(tmp_path: Path) -> None:
    """Verify that a missing file is not an error."""
    assert load_config(str(tmp_path / "absent.yml")) == DEFAULT_CONFIG


def test_load_config_rejects_unknown_visibility(tmp_path: Path) -> None:
    """Verify that documentation.visibility is validated."""
    config_file = tmp_path / "config.yml"
    config_file.write_text(yaml.dump({"documentation": {"visibility": "secret"}}))
    with pytest.raises(RbdocError):
        load_config(str(config_file))
