"""Add-on catalog indexer.

Wires configuration, backends, the index and the periodic jobs together and
dispatches the ``serve``, ``fetch`` and ``search`` commands.
"""
from __future__ import annotations

import json
import logging
import os
import sys
from dataclasses import dataclass
from typing import Optional

from analysis import AnalysisService
from api import IndexServer, run_server_sync
from args import parse_args
from backend import BackendRegistry, Bintray, BintrayUrls, MavenRepository
from cli_config import AppConfig, apply_cli_overrides, load_config
from common.http_client import HttpClient, HttpSettings
from common.logging_utils import configure_logging, extra_context, is_debug_enabled
from constants import Constants, ExitCodes
from domain import AddOnType
from index import AddOnIndex, ElasticsearchStore, IndexSetupError, IndexUnavailable, MemoryDocumentStore
from indexing import FetchAddOnList, FetchDetailsToIndex, IndexingStatus, ManifestHolder, PeriodicTask

logger = logging.getLogger(__name__)


@dataclass
class Components:
    """Everything a command needs, built once from an ``AppConfig``."""

    config: AppConfig
    index: AddOnIndex
    holder: ManifestHolder
    status: IndexingStatus
    fetch_add_on_list: FetchAddOnList
    fetch_details: FetchDetailsToIndex
    analysis: AnalysisService

    def periodic_tasks(self):
        schedule = self.config.scheduler
        return [
            PeriodicTask(
                "fetch_add_on_list",
                self.fetch_add_on_list.fetch_add_on_list,
                schedule.fetch_add_on_list.initial_delay,
                schedule.fetch_add_on_list.period,
            ),
            PeriodicTask(
                "fetch_details_to_index",
                self.fetch_details.run_cycle,
                schedule.fetch_details_to_index.initial_delay,
                schedule.fetch_details_to_index.period,
            ),
        ]


def build_store(cfg: AppConfig):
    if cfg.store.kind == "memory":
        logger.info("Using in-memory document store")
        return MemoryDocumentStore()
    logger.info("Using Elasticsearch at %s", cfg.store.url)
    return ElasticsearchStore(
        cfg.store.url,
        username=cfg.store.username,
        password=cfg.store.password,
        timeout=cfg.http.timeout,
    )


def build_components(cfg: AppConfig, store=None) -> Components:
    """Assemble the object graph; ``store`` overrides the configured one."""
    http = HttpClient(HttpSettings(timeout=cfg.http.timeout, retries=cfg.http.retries))
    bintray_http = HttpClient(
        HttpSettings(
            username=cfg.bintray.username,
            password=cfg.bintray.api_key,
            timeout=cfg.http.timeout,
            retries=cfg.http.retries,
        )
    )
    backends = BackendRegistry([
        Bintray(
            bintray_http,
            BintrayUrls(
                api=cfg.bintray.api_url,
                download=cfg.bintray.download_url,
                hosted=cfg.bintray.hosted_url,
                stats=cfg.bintray.stats_url,
            ),
        ),
        MavenRepository(http, cfg.maven.repo_url),
    ])
    logger.info("Registered backends: %s", ", ".join(backends.names()))

    index = AddOnIndex(store if store is not None else build_store(cfg), cfg.store.index)
    holder = ManifestHolder()
    status = IndexingStatus()
    return Components(
        config=cfg,
        index=index,
        holder=holder,
        status=status,
        fetch_add_on_list=FetchAddOnList(
            holder,
            http,
            url=cfg.add_on_list.url,
            strategy=cfg.add_on_list.strategy,
            local_path=cfg.add_on_list.local_path,
        ),
        fetch_details=FetchDetailsToIndex(holder, backends, index, http, status),
        analysis=AnalysisService(index),
    )


def _configure_logging(args) -> None:
    # CLI --loglevel wins over ADDONINDEX_LOG_LEVEL
    if getattr(args, "LOG_LEVEL", None):
        os.environ[Constants.ENV_LOG_LEVEL] = str(args.LOG_LEVEL).upper()
    configure_logging()
    if getattr(args, "LOG_FILE", None):
        handler = logging.FileHandler(args.LOG_FILE, encoding="utf-8")
        handler.setFormatter(logging.Formatter(Constants.LOG_FORMAT))
        logging.getLogger().addHandler(handler)


def run_fetch(components: Components) -> ExitCodes:
    """One manifest fetch plus one details cycle."""
    if not components.fetch_add_on_list.fetch_add_on_list():
        logger.error("No add-on list available from %s", components.fetch_add_on_list.source)
        return ExitCodes.CONNECTION_ERROR
    try:
        components.fetch_details.run_cycle()
    except IndexUnavailable as exc:
        logger.error("Index became unavailable during indexing: %s", exc)
        return ExitCodes.INDEX_ERROR
    print(json.dumps(components.status.to_json(), indent=2))
    return ExitCodes.SUCCESS


def run_search(components: Components, add_on_type: Optional[str], query: Optional[str]) -> ExitCodes:
    try:
        parsed_type = AddOnType.parse(add_on_type)
    except ValueError as exc:
        logger.error("%s", exc)
        return ExitCodes.USAGE_ERROR
    try:
        results = components.index.search(parsed_type, query)
    except IndexUnavailable as exc:
        logger.error("Search failed: %s", exc)
        return ExitCodes.INDEX_ERROR
    print(json.dumps([summary.to_json() for summary in results], indent=2))
    return ExitCodes.SUCCESS


def main(argv=None) -> int:
    """Main function of the program."""
    args = parse_args(argv)
    _configure_logging(args)

    if is_debug_enabled(logger):
        logger.debug(
            "CLI start",
            extra=extra_context(event="function_entry", component="cli", action="main", target=args.COMMAND),
        )

    try:
        cfg = load_config(getattr(args, "CONFIG", None))
    except (OSError, ValueError) as exc:
        logger.error("Could not load configuration: %s", exc)
        return ExitCodes.FILE_ERROR.value
    apply_cli_overrides(cfg, args)

    components = build_components(cfg)
    try:
        components.index.set_up()
    except IndexSetupError as exc:
        logger.error("Could not set up index %s: %s", cfg.store.index, exc)
        return ExitCodes.INDEX_ERROR.value

    if args.COMMAND == "fetch":
        return run_fetch(components).value
    if args.COMMAND == "search":
        return run_search(components, args.ADD_ON_TYPE, args.QUERY).value

    server = IndexServer(
        cfg.server,
        components.index,
        components.analysis,
        components.holder,
        components.status,
        tasks=components.periodic_tasks(),
    )
    run_server_sync(server)
    return ExitCodes.SUCCESS.value


if __name__ == "__main__":
    sys.exit(main())
