"""Hosting backends and lookup by the manifest's ``backend`` name."""

from __future__ import annotations

from typing import Dict, Iterable

from domain import AddOnToIndex

from .base import BackendHandler, SupportsDownloadCounts
from .bintray import Bintray, BintrayUrls
from .maven import MavenRepository


class UnknownBackend(KeyError):
    """Raised when a descriptor names a backend nobody registered."""


class BackendRegistry:
    """Maps backend names to configured handler instances."""

    def __init__(self, handlers: Iterable[BackendHandler] = ()):
        self._handlers: Dict[str, BackendHandler] = {}
        for handler in handlers:
            self.register(handler)

    def register(self, handler: BackendHandler) -> None:
        self._handlers[handler.name] = handler

    def handler_for(self, to_index: AddOnToIndex) -> BackendHandler:
        try:
            return self._handlers[to_index.backend]
        except KeyError:
            raise UnknownBackend(f"No backend '{to_index.backend}' for {to_index.uid}") from None

    def names(self):
        return sorted(self._handlers)


__all__ = [
    "BackendHandler",
    "BackendRegistry",
    "Bintray",
    "BintrayUrls",
    "MavenRepository",
    "SupportsDownloadCounts",
    "UnknownBackend",
]
