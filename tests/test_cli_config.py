"""Tests for layered configuration and CLI parsing."""
import argparse

import pytest

from args import parse_args
from cli_config import AppConfig, apply_cli_overrides, apply_env_overrides, config_from_dict, load_config
from constants import Constants, FetchStrategy


class TestConfigFromDict:
    """YAML mapping -> AppConfig."""

    def test_defaults(self):
        """Test that an empty mapping yields the built-in defaults."""
        cfg = config_from_dict({})
        assert cfg.store.kind == "elasticsearch"
        assert cfg.store.url == Constants.ES_URL
        assert cfg.scheduler.fetch_details_to_index.initial_delay == 30
        assert cfg.scheduler.fetch_add_on_list.period == 3600
        assert cfg.server.port == 8080

    def test_sections_override(self):
        """Test that set keys override and unset keys keep defaults."""
        cfg = config_from_dict({
            "add_on_list": {"strategy": "local", "local_path": "/tmp/list.json"},
            "scheduler": {"fetch_details_to_index": {"period": 60}},
            "store": {"kind": "memory"},
            "bintray": {"username": "u", "api_key": "k"},
            "server": {"port": "9090"},
        })
        assert cfg.add_on_list.strategy is FetchStrategy.LOCAL
        assert cfg.add_on_list.local_path == "/tmp/list.json"
        assert cfg.scheduler.fetch_details_to_index.period == 60.0
        assert cfg.scheduler.fetch_details_to_index.initial_delay == 30.0
        assert cfg.store.kind == "memory"
        assert cfg.bintray.username == "u"
        assert cfg.bintray.api_key == "k"
        assert cfg.server.port == 9090

    def test_non_mapping_section_rejected(self):
        """Test that a scalar where a section is expected raises."""
        with pytest.raises(ValueError):
            config_from_dict({"store": "memory"})


class TestLoadConfig:
    """File loading and environment overrides."""

    def test_yaml_file(self, tmp_path):
        """Test reading a YAML file."""
        path = tmp_path / "addonindex.yml"
        path.write_text("store:\n  kind: memory\n  index: test_index\n", encoding="utf-8")
        cfg = load_config(str(path))
        assert cfg.store.kind == "memory"
        assert cfg.store.index == "test_index"

    def test_missing_file_uses_defaults(self, tmp_path):
        """Test that a missing file falls back to defaults."""
        cfg = load_config(str(tmp_path / "nope.yml"))
        assert cfg.store.index == Constants.ES_INDEX

    def test_non_mapping_file_rejected(self, tmp_path):
        """Test that a YAML list is rejected."""
        path = tmp_path / "bad.yml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ValueError):
            load_config(str(path))

    def test_env_overrides(self):
        """Test that environment variables override file values."""
        cfg = AppConfig()
        apply_env_overrides(cfg, {
            Constants.ENV_BINTRAY_USERNAME: " someone ",
            Constants.ENV_BINTRAY_API_KEY: "secret",
            Constants.ENV_ES_URL: "http://es:9200",
        })
        assert cfg.bintray.username == "someone"
        assert cfg.bintray.api_key == "secret"
        assert cfg.store.url == "http://es:9200"
        assert cfg.add_on_list.url == Constants.ADD_ON_LIST_URL


class TestCliOverrides:
    """CLI flags win over file and environment."""

    def test_serve_flags(self):
        """Test host, port and store flags."""
        args = parse_args(["serve", "--host", "0.0.0.0", "--port", "9000", "--store", "memory"])
        cfg = AppConfig()
        apply_cli_overrides(cfg, args)
        assert cfg.server.host == "0.0.0.0"
        assert cfg.server.port == 9000
        assert cfg.store.kind == "memory"

    def test_add_on_list_file_switches_to_local(self, tmp_path):
        """Test that an existing path selects the LOCAL strategy."""
        path = tmp_path / "list.json"
        path.write_text('{"toIndex": []}', encoding="utf-8")
        cfg = AppConfig()
        apply_cli_overrides(cfg, argparse.Namespace(ADD_ON_LIST=str(path)))
        assert cfg.add_on_list.strategy is FetchStrategy.LOCAL
        assert cfg.add_on_list.local_path == str(path)

    def test_add_on_list_url(self):
        """Test that a non-file value is treated as a URL."""
        cfg = AppConfig()
        apply_cli_overrides(cfg, argparse.Namespace(ADD_ON_LIST="https://example.test/list.json"))
        assert cfg.add_on_list.strategy is FetchStrategy.FETCH
        assert cfg.add_on_list.url == "https://example.test/list.json"

    def test_search_args(self):
        """Test the search subcommand's type and query."""
        args = parse_args(["search", "--type", "omod", "reporting"])
        assert args.COMMAND == "search"
        assert args.ADD_ON_TYPE == "omod"
        assert args.QUERY == "reporting"
        assert args.LOG_LEVEL is None

    def test_command_required(self):
        """Test that a subcommand is required."""
        with pytest.raises(SystemExit):
            parse_args([])
