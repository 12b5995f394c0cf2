"""Tests for descriptor and record models."""
from datetime import timezone

import pytest

from domain import (
    AddOnInfoAndVersions,
    AddOnStatus,
    AddOnToIndex,
    AddOnType,
    AddOnVersion,
    ModuleRequirement,
    parse_datetime,
)
from versioning import Version


class TestAddOnType:
    """Tests for AddOnType."""

    def test_parse(self):
        """Test case-insensitive parsing and blank handling."""
        assert AddOnType.parse("omod") is AddOnType.OMOD
        assert AddOnType.parse(" OWA ") is AddOnType.OWA
        assert AddOnType.parse("") is None
        assert AddOnType.parse(None) is None
        with pytest.raises(ValueError):
            AddOnType.parse("jar")

    def test_file_extensions(self):
        """Test the artifact extension for each type."""
        assert AddOnType.OMOD.file_extension == "omod"
        assert AddOnType.OWA.file_extension == "zip"


class TestAddOnToIndex:
    """Tests for manifest descriptors."""

    def test_defaults(self):
        """Test that backend defaults to bintray and status to ACTIVE."""
        to_index = AddOnToIndex.from_json({"uid": "x", "type": "omod"})
        assert to_index.backend == "bintray"
        assert to_index.status is AddOnStatus.ACTIVE
        assert to_index.tags == ()


class TestAddOnInfoAndVersions:
    """Tests for the indexed record."""

    def test_uid_required(self):
        """Test that a blank uid is rejected."""
        with pytest.raises(ValueError):
            AddOnInfoAndVersions(uid="")

    def test_uid_immutable(self):
        """Test that uid cannot change after construction."""
        info = AddOnInfoAndVersions(uid="a")
        with pytest.raises(AttributeError):
            info.uid = "b"

    def test_versions_newest_first_and_deduplicated(self):
        """Test ordering and that equal versions replace each other."""
        info = AddOnInfoAndVersions(uid="a")
        for raw in ["1.0", "1.10", "1.9", "1.0.0"]:
            info.add_version(AddOnVersion(version=Version(raw)))
        assert [str(v.version) for v in info.versions] == ["1.10", "1.9", "1.0.0"]
        assert str(info.latest_version.version) == "1.10"

    def test_module_identity_follows_latest_version(self):
        """Test that module id and package come from the newest version."""
        info = AddOnInfoAndVersions(uid="a")
        info.add_version(AddOnVersion(version=Version("1.0"), module_id="old", module_package="org.old"))
        info.add_version(AddOnVersion(version=Version("2.0"), module_id="new", module_package="org.new"))
        assert info.module_id == "new"
        assert info.module_package == "org.new"

    def test_document_round_trip_preserves_undeclared_modules(self):
        """Test that 'not declared' and 'declared empty' survive storage."""
        info = AddOnInfoAndVersions(uid="a", type=AddOnType.OMOD, name="A")
        info.add_version(AddOnVersion(version=Version("1.0"), require_modules=None))
        info.add_version(AddOnVersion(version=Version("2.0"), require_modules=[ModuleRequirement("org.x")],
                                      release_datetime=parse_datetime("2020-01-02T03:04:05Z")))
        restored = AddOnInfoAndVersions.from_document(info.to_document())
        assert restored.get_version(Version("1.0")).require_modules is None
        latest = restored.latest_version
        assert latest.require_modules == [ModuleRequirement("org.x", "?")]
        assert latest.release_datetime.tzinfo is not None
        assert restored.to_document()["latestVersion"] == "2.0"


class TestParseDatetime:
    """Tests for parse_datetime."""

    def test_utc_suffix(self):
        """Test that a trailing Z is read as UTC."""
        parsed = parse_datetime("2016-05-01T10:00:00Z")
        assert parsed.utcoffset() == timezone.utc.utcoffset(None)

    def test_naive_rejected(self):
        """Test that timestamps without an offset are rejected."""
        with pytest.raises(ValueError):
            parse_datetime("2016-05-01T10:00:00")
