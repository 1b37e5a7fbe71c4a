"""
tests/test_config.py
Persisted classifier config: defaults, corrupt files, partial updates,
masking for display.
"""

import json

import pytest

from scamshield.config import (
    CONFIG_FILENAME,
    DEFAULT_CONFIG,
    load_config,
    masked,
    save_config,
    update_config,
)


def test_missing_file_returns_defaults(tmp_path):
    assert load_config(tmp_path) == DEFAULT_CONFIG
    assert load_config(tmp_path)["mock_mode"] is True


def test_corrupt_file_returns_defaults(tmp_path):
    (tmp_path / CONFIG_FILENAME).write_text("{not json", encoding="utf-8")
    assert load_config(tmp_path) == DEFAULT_CONFIG


def test_non_object_file_returns_defaults(tmp_path):
    (tmp_path / CONFIG_FILENAME).write_text("[1, 2]", encoding="utf-8")
    assert load_config(tmp_path) == DEFAULT_CONFIG


def test_partial_file_is_merged_with_defaults(tmp_path):
    (tmp_path / CONFIG_FILENAME).write_text(json.dumps({"ai_key": "abc"}), encoding="utf-8")
    config = load_config(tmp_path)
    assert config["ai_key"] == "abc"
    assert config["mock_mode"] is True
    assert config["db_path"] == "scamshield.db"


def test_save_then_load(tmp_path):
    path = save_config({**DEFAULT_CONFIG, "ai_endpoint": "https://x.example"}, tmp_path)
    assert path.name == CONFIG_FILENAME
    assert load_config(tmp_path)["ai_endpoint"] == "https://x.example"


def test_update_config_touches_only_given_keys(tmp_path):
    update_config({"ai_endpoint": "https://x.example", "ai_key": "k"}, tmp_path)
    update_config({"mock_mode": False}, tmp_path)
    config = load_config(tmp_path)
    assert config["ai_endpoint"] == "https://x.example"
    assert config["ai_key"] == "k"
    assert config["mock_mode"] is False


def test_update_config_rejects_unknown_keys(tmp_path):
    with pytest.raises(ValueError):
        update_config({"ai_endpiont": "typo"}, tmp_path)
    assert not (tmp_path / CONFIG_FILENAME).exists()


def test_masked_hides_key():
    out = masked({**DEFAULT_CONFIG, "ai_key": "supersecret1234"})
    assert out["ai_key"] == "********1234"
    assert "supersecret" not in json.dumps(out)
    assert masked(DEFAULT_CONFIG)["ai_key"] == ""
