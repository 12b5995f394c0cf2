"""Tests for fetching and publishing the list of add-ons to index."""
import json
from pathlib import Path
from unittest.mock import MagicMock, Mock

import pytest

from constants import FetchStrategy
from domain import AddOnType
from indexing import FetchAddOnList, ManifestError, ManifestHolder, parse_manifest

FIXTURE = Path(__file__).parent / "fixtures" / "add-ons-to-index.json"


def _http_returning(status_code, text):
    http = MagicMock()
    res = Mock()
    res.status_code = status_code
    res.text = text
    http.get.return_value = res
    return http


class TestParseManifest:
    """Tests for parse_manifest."""

    def test_parses_fixture(self):
        """Test that both backends' descriptors are read."""
        snapshot = parse_manifest(FIXTURE.read_text(encoding="utf-8"))
        assert len(snapshot) == 2
        reporting = snapshot.get("org.openmrs.module.reporting")
        assert reporting.type is AddOnType.OMOD
        assert reporting.bintray_package_details.package == "openmrs-module-reporting"
        assert reporting.tags == ("reporting", "core")
        sysadmin = snapshot.get("org.openmrs.owa.sysadmin")
        assert sysadmin.backend == "maven"
        assert sysadmin.maven_repo_details.artifact_id == "sysadmin"

    def test_invalid_json(self):
        """Test that non-JSON input raises ManifestError."""
        with pytest.raises(ManifestError):
            parse_manifest("not json")

    def test_schema_violation(self):
        """Test that an unknown type is rejected with its path."""
        bad = json.dumps({"toIndex": [{"uid": "x", "type": "JAR"}]})
        with pytest.raises(ManifestError, match="toIndex/0/type"):
            parse_manifest(bad)

    def test_unknown_backend_rejected(self):
        """Test that a backend nobody implements is rejected."""
        bad = json.dumps({"toIndex": [{"uid": "x", "type": "OMOD", "backend": "ftp"}]})
        with pytest.raises(ManifestError):
            parse_manifest(bad)


class TestManifestHolder:
    """Tests for ManifestHolder."""

    def test_replace_increments_version(self):
        """Test that each accepted snapshot gets the next version."""
        holder = ManifestHolder()
        assert holder.current.version == 0
        snapshot = parse_manifest(FIXTURE.read_text(encoding="utf-8"))
        assert holder.replace(snapshot).version == 1
        assert holder.replace(snapshot).version == 2
        assert len(holder.current) == 2


class TestFetchAddOnList:
    """Tests for FetchAddOnList."""

    def test_fetch_publishes_snapshot(self):
        """Test a successful fetch replaces the snapshot."""
        holder = ManifestHolder()
        http = _http_returning(200, FIXTURE.read_text(encoding="utf-8"))
        fetcher = FetchAddOnList(holder, http, url="https://example.test/add-ons.json")

        assert fetcher.fetch_add_on_list() is True
        assert holder.current.version == 1
        assert len(holder.current) == 2

    def test_http_error_keeps_previous(self):
        """Test that a failed fetch keeps the previous snapshot."""
        holder = ManifestHolder()
        holder.replace(parse_manifest(FIXTURE.read_text(encoding="utf-8")))
        fetcher = FetchAddOnList(holder, _http_returning(500, "oops"), url="https://example.test/add-ons.json")

        assert fetcher.fetch_add_on_list() is False
        assert holder.current.version == 1
        assert len(holder.current) == 2

    def test_empty_list_keeps_previous(self):
        """Test that a manifest with zero entries is not published."""
        holder = ManifestHolder()
        holder.replace(parse_manifest(FIXTURE.read_text(encoding="utf-8")))
        fetcher = FetchAddOnList(holder, _http_returning(200, '{"toIndex": []}'), url="https://example.test/a.json")

        assert fetcher.fetch_add_on_list() is False
        assert holder.current.version == 1

    def test_transport_error_keeps_previous(self):
        """Test that an exception from the client is contained."""
        holder = ManifestHolder()
        http = MagicMock()
        http.get.side_effect = RuntimeError("unreachable")
        fetcher = FetchAddOnList(holder, http, url="https://example.test/add-ons.json")

        assert fetcher.fetch_add_on_list() is False
        assert holder.current.version == 0

    def test_local_strategy(self):
        """Test reading the manifest from a local file."""
        holder = ManifestHolder()
        http = MagicMock()
        fetcher = FetchAddOnList(holder, http, strategy=FetchStrategy.LOCAL, local_path=str(FIXTURE))

        assert fetcher.fetch_add_on_list() is True
        http.get.assert_not_called()
        assert fetcher.source == str(FIXTURE)
