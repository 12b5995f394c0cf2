"""Tests for the CLI entry point and object graph wiring."""
import json
import logging

import pytest

from addonindex import _configure_logging, build_components, main
from args import parse_args
from backend import Bintray, MavenRepository
from cli_config import AppConfig
from constants import Constants, ExitCodes
from index import MemoryDocumentStore


class TestBuildComponents:
    """Tests for build_components."""

    def test_wires_backends_and_store(self):
        """Test that both backends are registered and the store override is used."""
        cfg = AppConfig()
        cfg.bintray.username = "u"
        cfg.bintray.api_key = "k"
        store = MemoryDocumentStore()
        components = build_components(cfg, store=store)

        backends = components.fetch_details.backends
        assert backends.names() == ["bintray", "maven"]
        bintray = backends._handlers["bintray"]
        assert isinstance(bintray, Bintray)
        assert bintray.http.settings.has_credentials
        assert isinstance(backends._handlers["maven"], MavenRepository)
        assert components.index.store is store
        assert components.fetch_details.holder is components.fetch_add_on_list.holder

    def test_periodic_tasks_follow_schedule(self):
        """Test that task delays come from the scheduler config."""
        cfg = AppConfig()
        cfg.scheduler.fetch_details_to_index.initial_delay = 5
        tasks = build_components(cfg, store=MemoryDocumentStore()).periodic_tasks()
        assert [t.name for t in tasks] == ["fetch_add_on_list", "fetch_details_to_index"]
        assert tasks[1].initial_delay == 5


class TestMain:
    """Tests for main()."""

    def test_search_empty_memory_index(self, capsys):
        """Test search against a fresh in-memory index prints an empty list."""
        code = main(["search", "--store", "memory", "reporting"])
        assert code == ExitCodes.SUCCESS.value
        assert json.loads(capsys.readouterr().out) == []

    def test_search_invalid_type(self):
        """Test that an unknown type is a usage error."""
        assert main(["search", "--store", "memory", "--type", "jar"]) == ExitCodes.USAGE_ERROR.value

    def test_bad_config_file(self, tmp_path):
        """Test that an unreadable config exits with FILE_ERROR."""
        path = tmp_path / "bad.yml"
        path.write_text("store: [unclosed\n", encoding="utf-8")
        assert main(["search", "-c", str(path), "--store", "memory"]) == ExitCodes.FILE_ERROR.value


@pytest.fixture
def restore_root_level():
    root = logging.getLogger()
    level = root.level
    yield root
    root.setLevel(level)


class TestConfigureLogging:
    """Precedence between --loglevel and the environment."""

    def test_env_level_used_without_flag(self, monkeypatch, restore_root_level):
        """Test that ADDONINDEX_LOG_LEVEL applies when --loglevel is not given."""
        monkeypatch.setenv(Constants.ENV_LOG_LEVEL, "DEBUG")
        _configure_logging(parse_args(["fetch"]))
        assert restore_root_level.level == logging.DEBUG

    def test_flag_overrides_env(self, monkeypatch, restore_root_level):
        """Test that an explicit --loglevel wins over the environment."""
        monkeypatch.setenv(Constants.ENV_LOG_LEVEL, "DEBUG")
        _configure_logging(parse_args(["fetch", "--loglevel", "warning"]))
        assert restore_root_level.level == logging.WARNING
