"""Descriptors naming the add-ons to index, as listed in the manifest."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class AddOnType(Enum):
    """Kinds of add-on and the artifact extension each one is published as."""

    OMOD = "OMOD"
    OWA = "OWA"

    @property
    def file_extension(self) -> str:
        return _FILE_EXTENSIONS[self]

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["AddOnType"]:
        """Return the member named ``value`` (case-insensitive), or None for blank."""
        if value is None or not str(value).strip():
            return None
        try:
            return cls[str(value).strip().upper()]
        except KeyError as exc:
            raise ValueError(f"Unknown add-on type: {value}") from exc


_FILE_EXTENSIONS = {
    AddOnType.OMOD: "omod",
    AddOnType.OWA: "zip",
}


class AddOnStatus(Enum):
    """Lifecycle status; DEPRECATED and INACTIVE are demoted in search."""

    ACTIVE = "ACTIVE"
    DEPRECATED = "DEPRECATED"
    INACTIVE = "INACTIVE"


@dataclass(frozen=True)
class BintrayPackageDetails:
    """Location of a package in a Bintray-style package API."""

    owner: str
    repo: str
    package: str


@dataclass(frozen=True)
class MavenRepoDetails:
    """Location of an artifact in a Maven repository."""

    group_id: str
    artifact_id: str
    repo_url: Optional[str] = None


@dataclass(frozen=True)
class Maintainer:
    name: str
    url: Optional[str] = None


@dataclass(frozen=True)
class AddOnToIndex:
    """One manifest entry: identity, type and backend-specific location."""

    uid: str
    type: AddOnType
    backend: str
    name: Optional[str] = None
    description: Optional[str] = None
    status: AddOnStatus = AddOnStatus.ACTIVE
    tags: Tuple[str, ...] = ()
    maintainers: Tuple[Maintainer, ...] = ()
    hosted_url: Optional[str] = None
    bintray_package_details: Optional[BintrayPackageDetails] = None
    maven_repo_details: Optional[MavenRepoDetails] = None

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "AddOnToIndex":
        """Build a descriptor from its manifest JSON (camelCase keys)."""
        bintray = data.get("bintrayPackageDetails")
        maven = data.get("mavenRepoDetails")
        return cls(
            uid=data["uid"],
            type=AddOnType.parse(data["type"]),
            backend=str(data.get("backend", "bintray")).lower(),
            name=data.get("name"),
            description=data.get("description"),
            status=AddOnStatus(data.get("status") or AddOnStatus.ACTIVE.value),
            tags=tuple(data.get("tags") or ()),
            maintainers=tuple(
                Maintainer(name=m.get("name", ""), url=m.get("url"))
                for m in data.get("maintainers") or ()
            ),
            hosted_url=data.get("hostedUrl"),
            bintray_package_details=BintrayPackageDetails(
                owner=bintray["owner"], repo=bintray["repo"], package=bintray["package"]
            ) if bintray else None,
            maven_repo_details=MavenRepoDetails(
                group_id=maven["groupId"],
                artifact_id=maven["artifactId"],
                repo_url=maven.get("repoUrl"),
            ) if maven else None,
        )

    def to_json(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "uid": self.uid,
            "type": self.type.value,
            "backend": self.backend,
            "name": self.name,
            "description": self.description,
            "status": self.status.value,
            "tags": list(self.tags),
            "maintainers": [{"name": m.name, "url": m.url} for m in self.maintainers],
        }
        if self.hosted_url:
            out["hostedUrl"] = self.hosted_url
        if self.bintray_package_details:
            d = self.bintray_package_details
            out["bintrayPackageDetails"] = {"owner": d.owner, "repo": d.repo, "package": d.package}
        if self.maven_repo_details:
            m = self.maven_repo_details
            out["mavenRepoDetails"] = {
                "groupId": m.group_id,
                "artifactId": m.artifact_id,
                "repoUrl": m.repo_url,
            }
        return out


@dataclass(frozen=True)
class AllAddOnsToIndex:
    """Immutable, versioned snapshot of the manifest.

    A new snapshot replaces the old one wholesale; ``version`` increases by
    one on every accepted manifest.
    """

    to_index: Tuple[AddOnToIndex, ...] = field(default_factory=tuple)
    version: int = 0

    def __len__(self) -> int:
        return len(self.to_index)

    def __iter__(self):
        return iter(self.to_index)

    def get(self, uid: str) -> Optional[AddOnToIndex]:
        for item in self.to_index:
            if item.uid == uid:
                return item
        return None

    def to_json(self) -> Dict[str, Any]:
        return {"version": self.version, "toIndex": [a.to_json() for a in self.to_index]}
