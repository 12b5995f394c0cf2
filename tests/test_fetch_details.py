"""Tests for the fetch -> reconcile -> index cycle."""
import io
import zipfile
from pathlib import Path
from unittest.mock import MagicMock, Mock

import pytest

from backend import BackendRegistry
from domain import AddOnInfoAndVersions, AddOnToIndex, AddOnVersion, AllAddOnsToIndex
from index import AddOnIndex, IndexUnavailable, MemoryDocumentStore
from indexing import FetchDetailsToIndex, IndexingStatus, ManifestHolder
from versioning import Version

FIXTURES = Path(__file__).parent / "fixtures"


def _to_index(uid, type_="OMOD"):
    return AddOnToIndex.from_json({
        "uid": uid,
        "type": type_,
        "bintrayPackageDetails": {"owner": "openmrs", "repo": "omod", "package": uid},
    })


def _omod_bytes(config_name="config.withRequiredModules.xml"):
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as archive:
        archive.writestr("config.xml", (FIXTURES / config_name).read_bytes())
        archive.writestr("lib/module.jar", b"")
    return buf.getvalue()


class _FakeBackend:
    """Backend returning one version per add-on, failing for chosen uids."""

    name = "bintray"

    def __init__(self, fail=(), counts=None):
        self.fail = set(fail)
        self.counts = counts
        self.calls = []

    def get_info_and_versions_for(self, to_index):
        self.calls.append(to_index.uid)
        if to_index.uid in self.fail:
            raise RuntimeError(f"cannot fetch {to_index.uid}")
        info = AddOnInfoAndVersions.from_descriptor(to_index)
        info.add_version(AddOnVersion(version=Version("1.0"), download_uri=f"https://dl.example.test/{to_index.uid}.omod"))
        return info

    def fetch_download_counts(self, to_index, info):
        if self.counts is not None:
            info.download_count_in_last_30_days = self.counts


def _ready_index():
    index = AddOnIndex(MemoryDocumentStore(), "add_ons")
    index.set_up()
    return index


def _holder(*uids, type_="OMOD"):
    holder = ManifestHolder()
    holder.replace(AllAddOnsToIndex(to_index=tuple(_to_index(u, type_) for u in uids)))
    return holder


def _http_serving(content):
    http = MagicMock()
    res = Mock()
    res.status_code = 200
    res.content = content
    http.get.return_value = res
    return http


class TestRunCycle:
    """Tests for FetchDetailsToIndex.run_cycle."""

    def test_failure_does_not_stop_cycle(self):
        """Test that one failing add-on is recorded and the rest are indexed."""
        backend = _FakeBackend(fail={"b"})
        index = _ready_index()
        status = IndexingStatus()
        job = FetchDetailsToIndex(_holder("a", "b", "c"), BackendRegistry([backend]), index,
                                  _http_serving(_omod_bytes()), status)

        assert job.run_cycle() == 2
        assert backend.calls == ["a", "b", "c"]
        assert index.get_by_uid("a") is not None
        assert index.get_by_uid("b") is None
        assert index.get_by_uid("c") is not None
        assert "cannot fetch b" in status.get("b").error
        assert status.get("a").error is None

    def test_module_details_read_from_omod(self):
        """Test that config.xml details are stored on the version and the record."""
        index = _ready_index()
        job = FetchDetailsToIndex(_holder("a"), BackendRegistry([_FakeBackend()]), index,
                                  _http_serving(_omod_bytes()))
        job.run_cycle()

        record = index.get_by_uid("a")
        assert record.module_id == "reportingcompatibility"
        assert record.module_package == "org.openmrs.module.reportingcompatibility"
        version = record.latest_version
        assert version.require_openmrs_version == "1.9.0"
        assert [m.module for m in version.require_modules] == [
            "org.openmrs.module.reporting",
            "org.openmrs.event",
        ]

    def test_known_module_details_are_reused(self):
        """Test that a second cycle does not download the .omod again."""
        index = _ready_index()
        http = _http_serving(_omod_bytes())
        job = FetchDetailsToIndex(_holder("a"), BackendRegistry([_FakeBackend()]), index, http)
        job.run_cycle()
        job.run_cycle()

        assert http.get.call_count == 1
        assert index.get_by_uid("a").module_id == "reportingcompatibility"

    def test_bad_omod_still_indexes(self):
        """Test that an unreadable .omod leaves module details empty but indexes the add-on."""
        index = _ready_index()
        job = FetchDetailsToIndex(_holder("a"), BackendRegistry([_FakeBackend()]), index,
                                  _http_serving(b"not a zip"))
        assert job.run_cycle() == 1
        assert index.get_by_uid("a").module_id is None

    def test_owa_skips_module_details(self):
        """Test that OWAs are never downloaded for config.xml."""
        http = _http_serving(_omod_bytes())
        job = FetchDetailsToIndex(_holder("a", type_="OWA"), BackendRegistry([_FakeBackend()]), _ready_index(), http)
        job.run_cycle()
        http.get.assert_not_called()

    def test_download_count_carried_over(self):
        """Test that the previous count survives when stats cannot be fetched."""
        index = _ready_index()
        backend = _FakeBackend(counts=17)
        job = FetchDetailsToIndex(_holder("a", type_="OWA"), BackendRegistry([backend]), index, MagicMock())
        job.run_cycle()
        assert index.get_by_uid("a").download_count_in_last_30_days == 17

        backend.counts = None
        job.run_cycle()
        assert index.get_by_uid("a").download_count_in_last_30_days == 17

    def test_backend_returning_none_is_recorded(self):
        """Test that a backend with no data marks the add-on as failed."""
        backend = MagicMock()
        backend.name = "bintray"
        backend.get_info_and_versions_for.return_value = None
        status = IndexingStatus()
        job = FetchDetailsToIndex(_holder("a"), BackendRegistry([backend]), _ready_index(), MagicMock(), status)

        assert job.run_cycle() == 0
        assert status.get("a").error == "bintray returned no data"

    def test_index_unavailable_aborts_cycle(self):
        """Test that a store outage propagates and stops the cycle."""
        index = MagicMock()
        index.get_by_uid.side_effect = IndexUnavailable("down")
        backend = _FakeBackend()
        status = IndexingStatus()
        job = FetchDetailsToIndex(_holder("a", "b"), BackendRegistry([backend]), index, MagicMock(), status)

        with pytest.raises(IndexUnavailable):
            job.run_cycle()
        assert backend.calls == ["a"]
        assert status.get("a").error == "index unavailable"
