"""Canonical add-on records and the read-only views derived from them."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from versioning import Version

from .descriptor import AddOnStatus, AddOnToIndex, AddOnType, Maintainer


def parse_datetime(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 instant into an aware datetime; naive input is rejected."""
    if not value:
        return None
    parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        raise ValueError(f"Timestamp without timezone: {value}")
    return parsed


def _format_datetime(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass
class ModuleRequirement:
    module: str
    version: str = "?"

    def to_json(self) -> Dict[str, str]:
        return {"module": self.module, "version": self.version}


@dataclass
class AddOnVersion:
    """One resolved release of an add-on."""

    version: Version
    release_datetime: Optional[datetime] = None
    download_uri: Optional[str] = None
    require_openmrs_version: Optional[str] = None
    # None means "not declared", which is different from an empty list.
    require_modules: Optional[List[ModuleRequirement]] = None
    supported_languages: Optional[List[str]] = None
    module_id: Optional[str] = None
    module_package: Optional[str] = None

    @property
    def has_module_details(self) -> bool:
        return self.module_id is not None or self.module_package is not None

    def copy_module_details_from(self, other: "AddOnVersion") -> None:
        self.require_openmrs_version = other.require_openmrs_version
        self.require_modules = list(other.require_modules) if other.require_modules is not None else None
        self.supported_languages = list(other.supported_languages) if other.supported_languages is not None else None
        self.module_id = other.module_id
        self.module_package = other.module_package

    def to_json(self) -> Dict[str, Any]:
        return {
            "version": str(self.version),
            "releaseDatetime": _format_datetime(self.release_datetime),
            "downloadUri": self.download_uri,
            "requireOpenmrsVersion": self.require_openmrs_version,
            "requireModules": [r.to_json() for r in self.require_modules]
            if self.require_modules is not None else None,
            "supportedLanguages": self.supported_languages,
            "moduleId": self.module_id,
            "modulePackage": self.module_package,
        }

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "AddOnVersion":
        modules = data.get("requireModules")
        return cls(
            version=Version(data["version"]),
            release_datetime=parse_datetime(data.get("releaseDatetime")),
            download_uri=data.get("downloadUri"),
            require_openmrs_version=data.get("requireOpenmrsVersion"),
            require_modules=[
                ModuleRequirement(module=m["module"], version=m.get("version") or "?") for m in modules
            ] if modules is not None else None,
            supported_languages=data.get("supportedLanguages"),
            module_id=data.get("moduleId"),
            module_package=data.get("modulePackage"),
        )


@dataclass
class AddOnInfoAndVersions:
    """The merged record stored in the index, keyed by ``uid``.

    Versions are held by ``Version`` so that adding the same version twice
    replaces the earlier entry; ``versions`` lists them newest first.
    """

    uid: str
    type: Optional[AddOnType] = None
    name: Optional[str] = None
    description: Optional[str] = None
    hosted_url: Optional[str] = None
    status: AddOnStatus = AddOnStatus.ACTIVE
    tags: List[str] = field(default_factory=list)
    maintainers: List[Maintainer] = field(default_factory=list)
    download_count_in_last_30_days: Optional[int] = None
    module_id: Optional[str] = None
    module_package: Optional[str] = None
    _versions: Dict[Version, AddOnVersion] = field(default_factory=dict, init=False, repr=False)

    def __post_init__(self):
        if not self.uid:
            raise ValueError("uid is required")

    def __setattr__(self, name, value):
        if name == "uid" and "uid" in self.__dict__ and value != self.__dict__["uid"]:
            raise AttributeError("uid cannot change once assigned")
        super().__setattr__(name, value)

    @classmethod
    def from_descriptor(cls, to_index: AddOnToIndex) -> "AddOnInfoAndVersions":
        return cls(
            uid=to_index.uid,
            type=to_index.type,
            name=to_index.name,
            description=to_index.description,
            hosted_url=to_index.hosted_url,
            status=to_index.status,
            tags=list(to_index.tags),
            maintainers=list(to_index.maintainers),
        )

    def add_version(self, version: AddOnVersion) -> None:
        self._versions[version.version] = version
        self._refresh_module_identity()

    def get_version(self, version: Version) -> Optional[AddOnVersion]:
        return self._versions.get(version)

    @property
    def versions(self) -> List[AddOnVersion]:
        return sorted(self._versions.values(), key=lambda v: v.version, reverse=True)

    @property
    def latest_version(self) -> Optional[AddOnVersion]:
        if not self._versions:
            return None
        return self._versions[max(self._versions)]

    def _refresh_module_identity(self) -> None:
        latest = self.latest_version
        if latest is not None and latest.has_module_details:
            self.module_id = latest.module_id
            self.module_package = latest.module_package

    def refresh(self) -> None:
        """Re-derive record-level fields after versions were edited in place."""
        self._refresh_module_identity()

    def to_document(self) -> Dict[str, Any]:
        """Serialize for the document store and the REST layer."""
        latest = self.latest_version
        return {
            "uid": self.uid,
            "type": self.type.value if self.type else None,
            "name": self.name,
            "description": self.description,
            "hostedUrl": self.hosted_url,
            "status": self.status.value,
            "tags": list(self.tags),
            "maintainers": [{"name": m.name, "url": m.url} for m in self.maintainers],
            "downloadCountInLast30Days": self.download_count_in_last_30_days,
            "moduleId": self.module_id,
            "modulePackage": self.module_package,
            "latestVersion": str(latest.version) if latest else None,
            "versions": [v.to_json() for v in self.versions],
        }

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "AddOnInfoAndVersions":
        info = cls(
            uid=doc["uid"],
            type=AddOnType.parse(doc.get("type")),
            name=doc.get("name"),
            description=doc.get("description"),
            hosted_url=doc.get("hostedUrl"),
            status=AddOnStatus(doc.get("status") or AddOnStatus.ACTIVE.value),
            tags=list(doc.get("tags") or []),
            maintainers=[Maintainer(name=m.get("name", ""), url=m.get("url")) for m in doc.get("maintainers") or []],
            download_count_in_last_30_days=doc.get("downloadCountInLast30Days"),
            module_id=doc.get("moduleId"),
            module_package=doc.get("modulePackage"),
        )
        for raw in doc.get("versions") or []:
            info.add_version(AddOnVersion.from_json(raw))
        return info


@dataclass(frozen=True)
class AddOnInfoSummary:
    """Subset of a record returned by search and listing endpoints."""

    uid: str
    type: Optional[str]
    name: Optional[str]
    description: Optional[str]
    hosted_url: Optional[str]
    latest_version: Optional[str]
    status: str
    tags: List[str]

    @classmethod
    def from_info(cls, info: AddOnInfoAndVersions) -> "AddOnInfoSummary":
        latest = info.latest_version
        return cls(
            uid=info.uid,
            type=info.type.value if info.type else None,
            name=info.name,
            description=info.description,
            hosted_url=info.hosted_url,
            latest_version=str(latest.version) if latest else None,
            status=info.status.value,
            tags=list(info.tags),
        )

    def to_json(self) -> Dict[str, Any]:
        return {
            "uid": self.uid,
            "type": self.type,
            "name": self.name,
            "description": self.description,
            "hostedUrl": self.hosted_url,
            "latestVersion": self.latest_version,
            "status": self.status,
            "tags": self.tags,
        }


@dataclass(frozen=True)
class AddOnInfoSummaryAndStats:
    summary: AddOnInfoSummary
    download_count: Optional[int]

    @classmethod
    def from_info(cls, info: AddOnInfoAndVersions) -> "AddOnInfoSummaryAndStats":
        return cls(summary=AddOnInfoSummary.from_info(info), download_count=info.download_count_in_last_30_days)

    def to_json(self) -> Dict[str, Any]:
        return {"summary": self.summary.to_json(), "downloadCount": self.download_count}
