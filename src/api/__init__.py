"""HTTP API."""

from .server import IndexServer, run_server_sync

__all__ = ["IndexServer", "run_server_sync"]
