"""Version parsing and ordering."""

from .version import InvalidVersionFormat, Version
from .version_list import VersionList

__all__ = ["InvalidVersionFormat", "Version", "VersionList"]
