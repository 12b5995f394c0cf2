"""Deduplicated, ascending collection of versions."""

from __future__ import annotations

from typing import Iterable, Iterator, List, Optional

from .version import Version


class VersionList:
    """Set of ``Version`` built from raw strings; iterates in ascending order.

    Strings that normalize to the same version collapse to the first one seen.
    """

    def __init__(self, versions: Iterable[str]):
        unique = {}
        for candidate in versions:
            parsed = Version(candidate)
            unique.setdefault(parsed, parsed)
        self._versions: List[Version] = sorted(unique)

    def __iter__(self) -> Iterator[Version]:
        return iter(self._versions)

    def __len__(self) -> int:
        return len(self._versions)

    def __contains__(self, item: object) -> bool:
        if isinstance(item, str):
            item = Version(item)
        return item in set(self._versions)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, VersionList):
            return NotImplemented
        return self._versions == other._versions

    def __repr__(self) -> str:
        return f"VersionList({[str(v) for v in self._versions]!r})"

    @property
    def versions(self) -> List[Version]:
        return list(self._versions)

    @property
    def latest(self) -> Optional[Version]:
        return self._versions[-1] if self._versions else None
