"""REST layer over the add-on index using aiohttp."""

from __future__ import annotations

import asyncio
import functools
import logging
import signal
from typing import Any, Callable, Iterable, List, Optional

from aiohttp import web

from analysis import AnalysisService
from cli_config import ServerConfig
from constants import Constants
from domain import AddOnType
from index import AddOnIndex, IndexUnavailable
from indexing import IndexingStatus, ManifestHolder, PeriodicTask

logger = logging.getLogger(__name__)


def _truthy(value: Optional[str]) -> bool:
    return (value or "").lower() in ("1", "true", "yes")


@web.middleware
async def index_errors_middleware(request: web.Request, handler: Callable) -> web.StreamResponse:
    """Turn store outages into 503 responses."""
    try:
        return await handler(request)
    except IndexUnavailable as exc:
        logger.error("Index unavailable serving %s: %s", request.path, exc)
        return web.json_response({"error": "Index unavailable", "message": str(exc)}, status=503)


class IndexServer:
    """HTTP API for search, lookups, top downloads and indexing status.

    Also owns the periodic indexing tasks: they start with the app and are
    cancelled on shutdown.
    """

    def __init__(
        self,
        config: ServerConfig,
        index: AddOnIndex,
        analysis: AnalysisService,
        holder: ManifestHolder,
        status: IndexingStatus,
        tasks: Iterable[PeriodicTask] = (),
    ):
        self._config = config
        self._index = index
        self._analysis = analysis
        self._holder = holder
        self._status = status
        self._tasks: List[PeriodicTask] = list(tasks)
        self._app: Optional[web.Application] = None
        self._runner: Optional[web.AppRunner] = None

    def create_app(self) -> web.Application:
        app = web.Application(middlewares=[index_errors_middleware])
        prefix = Constants.API_PREFIX
        app.router.add_get(f"{prefix}/health", self._health_check)
        app.router.add_get(f"{prefix}/addon", self._handle_addons)
        app.router.add_get(f"{prefix}/addon/{{uid}}", self._handle_addon)
        app.router.add_get(f"{prefix}/topdownloaded", self._handle_top_downloaded)
        app.router.add_get(f"{prefix}/indexingstatus", self._handle_indexing_status)
        app.on_startup.append(self._on_startup)
        app.on_cleanup.append(self._on_cleanup)
        return app

    async def _blocking(self, fn: Callable[..., Any], *args: Any) -> Any:
        """Run a blocking index call off the event loop."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, functools.partial(fn, *args))

    async def _on_startup(self, app: web.Application) -> None:
        for task in self._tasks:
            task.start()
        logger.info("Add-on index API starting on %s:%s", self._config.host, self._config.port)

    async def _on_cleanup(self, app: web.Application) -> None:
        for task in self._tasks:
            await task.stop()
        logger.info("Add-on index API stopped")

    async def _health_check(self, request: web.Request) -> web.Response:
        return web.json_response({
            "status": "ok",
            "index": self._index.state.value,
            "toIndexVersion": self._holder.current.version,
        })

    async def _handle_addons(self, request: web.Request) -> web.Response:
        """``/addon`` with ``q`` and ``type`` (search), ``tag``, or ``type`` plus ``all``."""
        params = request.query
        try:
            add_on_type = AddOnType.parse(params.get("type"))
        except ValueError as exc:
            return web.json_response({"error": str(exc)}, status=400)

        tag = params.get("tag")
        if tag:
            summaries = await self._blocking(self._index.get_by_tag, tag)
            return web.json_response([s.to_json() for s in summaries])

        if add_on_type is not None and _truthy(params.get("all")):
            records = await self._blocking(self._index.get_all_by_type, add_on_type)
            return web.json_response([r.to_document() for r in records])

        query = params.get("q") or None
        logger.debug("Search type=%s q=%s", add_on_type, query)
        summaries = await self._blocking(self._index.search, add_on_type, query)
        return web.json_response([s.to_json() for s in summaries])

    async def _handle_addon(self, request: web.Request) -> web.Response:
        uid = request.match_info["uid"]
        info = await self._blocking(self._index.get_by_uid, uid)
        if info is None:
            return web.json_response({"error": "Add-on not found", "uid": uid}, status=404)
        return web.json_response(info.to_document())

    async def _handle_top_downloaded(self, request: web.Request) -> web.Response:
        top = await self._blocking(self._analysis.get_top_downloaded)
        return web.json_response([t.to_json() for t in top])

    async def _handle_indexing_status(self, request: web.Request) -> web.Response:
        return web.json_response({
            "toIndex": self._holder.current.to_json(),
            "statuses": self._status.to_json(),
        })

    async def start(self) -> None:
        self._app = self.create_app()
        self._runner = web.AppRunner(self._app)
        await self._runner.setup()
        site = web.TCPSite(self._runner, self._config.host, self._config.port)
        await site.start()
        logger.info("Add-on index API listening on http://%s:%s", self._config.host, self._config.port)

    async def stop(self) -> None:
        if self._runner:
            await self._runner.cleanup()
            self._runner = None
            self._app = None


def run_server_sync(server: IndexServer) -> None:
    """Run the server until SIGTERM or SIGINT."""
    loop = asyncio.new_event_loop()

    async def run():
        await server.start()
        stop_event = asyncio.Event()
        running_loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            running_loop.add_signal_handler(sig, stop_event.set)
        await stop_event.wait()
        logger.info("Shutdown signal received, stopping...")
        await server.stop()

    try:
        loop.run_until_complete(run())
    except KeyboardInterrupt:
        # Fallback for platforms where signal handlers don't work (Windows)
        loop.run_until_complete(server.stop())
    finally:
        loop.close()
        logger.info("Server shutdown complete")
