"""Tests for configuration loading."""

import json

import pytest

from tinygit import Config, IOFailure, load_config, save_config


class TestConfig:
    def test_defaults(self, tmp_path, monkeypatch):
        monkeypatch.delenv("TINYGIT_AUTHOR", raising=False)
        config = load_config(tmp_path)
        assert config == Config()

    def test_round_trip(self, tmp_path, monkeypatch):
        monkeypatch.delenv("TINYGIT_AUTHOR", raising=False)
        save_config(tmp_path, Config(default_branch="trunk", hash_algorithm="sha256"))
        config = load_config(tmp_path)
        assert config.default_branch == "trunk"
        assert config.hash_algorithm == "sha256"

    def test_unknown_keys_ignored(self, tmp_path, monkeypatch):
        monkeypatch.delenv("TINYGIT_AUTHOR", raising=False)
        path = tmp_path / ".tinygit" / "config.json"
        path.parent.mkdir()
        path.write_text(json.dumps({"author": "Ann <a@x>", "colour": "blue"}))
        assert load_config(tmp_path).author == "Ann <a@x>"

    def test_env_author_override(self, tmp_path, monkeypatch):
        save_config(tmp_path, Config(author="Stored <s@x>"))
        monkeypatch.setenv("TINYGIT_AUTHOR", "Env <e@x>")
        assert load_config(tmp_path).author == "Env <e@x>"

    def test_invalid_json(self, tmp_path):
        path = tmp_path / ".tinygit" / "config.json"
        path.parent.mkdir()
        path.write_text("{not json")
        with pytest.raises(IOFailure, match="config.json"):
            load_config(tmp_path)

    def test_invalid_algorithm(self):
        with pytest.raises(ValueError):
            Config(hash_algorithm="md5")
