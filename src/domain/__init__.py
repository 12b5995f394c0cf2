"""Add-on descriptors and canonical records."""

from .descriptor import (
    AddOnStatus,
    AddOnToIndex,
    AddOnType,
    AllAddOnsToIndex,
    BintrayPackageDetails,
    Maintainer,
    MavenRepoDetails,
)
from .models import (
    AddOnInfoAndVersions,
    AddOnInfoSummary,
    AddOnInfoSummaryAndStats,
    AddOnVersion,
    ModuleRequirement,
    parse_datetime,
)

__all__ = [
    "AddOnInfoAndVersions",
    "AddOnInfoSummary",
    "AddOnInfoSummaryAndStats",
    "AddOnStatus",
    "AddOnToIndex",
    "AddOnType",
    "AddOnVersion",
    "AllAddOnsToIndex",
    "BintrayPackageDetails",
    "Maintainer",
    "MavenRepoDetails",
    "ModuleRequirement",
    "parse_datetime",
]
