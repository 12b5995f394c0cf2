"""Runtime configuration: YAML file, then environment, then CLI overrides.

Each layer only overrides the keys it sets. The resulting ``AppConfig`` is
passed explicitly to the components that need it; nothing reads it from a
global.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import yaml

from constants import Constants, FetchStrategy

logger = logging.getLogger(__name__)


@dataclass
class AddOnListConfig:
    url: str = Constants.ADD_ON_LIST_URL
    strategy: FetchStrategy = FetchStrategy.FETCH
    local_path: Optional[str] = None


@dataclass
class ScheduleConfig:
    initial_delay: float
    period: float


@dataclass
class SchedulerConfig:
    fetch_add_on_list: ScheduleConfig = field(
        default_factory=lambda: ScheduleConfig(
            Constants.FETCH_ADD_ON_LIST_INITIAL_DELAY, Constants.FETCH_ADD_ON_LIST_PERIOD
        )
    )
    fetch_details_to_index: ScheduleConfig = field(
        default_factory=lambda: ScheduleConfig(Constants.FETCH_DETAILS_INITIAL_DELAY, Constants.FETCH_DETAILS_PERIOD)
    )


@dataclass
class StoreConfig:
    kind: str = "elasticsearch"
    url: str = Constants.ES_URL
    index: str = Constants.ES_INDEX
    username: Optional[str] = None
    password: Optional[str] = None


@dataclass
class BintrayConfig:
    username: Optional[str] = None
    api_key: Optional[str] = None
    api_url: str = Constants.BINTRAY_API_URL
    download_url: str = Constants.BINTRAY_DOWNLOAD_URL
    hosted_url: str = Constants.BINTRAY_HOSTED_URL
    stats_url: str = Constants.BINTRAY_STATS_URL


@dataclass
class MavenConfig:
    repo_url: str = Constants.MAVEN_REPO_URL


@dataclass
class ServerConfig:
    host: str = Constants.SERVER_HOST
    port: int = Constants.SERVER_PORT


@dataclass
class HttpConfig:
    timeout: int = Constants.REQUEST_TIMEOUT
    retries: int = Constants.HTTP_RETRY_MAX


@dataclass
class AppConfig:
    add_on_list: AddOnListConfig = field(default_factory=AddOnListConfig)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    bintray: BintrayConfig = field(default_factory=BintrayConfig)
    maven: MavenConfig = field(default_factory=MavenConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    http: HttpConfig = field(default_factory=HttpConfig)


def _section(data: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = data.get(key) or {}
    if not isinstance(value, dict):
        raise ValueError(f"Config section '{key}' must be a mapping")
    return value


def _schedule(data: Dict[str, Any], default: ScheduleConfig) -> ScheduleConfig:
    return ScheduleConfig(
        initial_delay=float(data.get("initial_delay", default.initial_delay)),
        period=float(data.get("period", default.period)),
    )


def config_from_dict(data: Dict[str, Any]) -> AppConfig:
    """Build an ``AppConfig`` from parsed YAML; unknown keys are ignored."""
    cfg = AppConfig()

    add_on_list = _section(data, "add_on_list")
    cfg.add_on_list.url = add_on_list.get("url", cfg.add_on_list.url)
    cfg.add_on_list.strategy = FetchStrategy(str(add_on_list.get("strategy", cfg.add_on_list.strategy.value)).upper())
    cfg.add_on_list.local_path = add_on_list.get("local_path", cfg.add_on_list.local_path)

    scheduler = _section(data, "scheduler")
    cfg.scheduler.fetch_add_on_list = _schedule(
        _section(scheduler, "fetch_add_on_list"), cfg.scheduler.fetch_add_on_list
    )
    cfg.scheduler.fetch_details_to_index = _schedule(
        _section(scheduler, "fetch_details_to_index"), cfg.scheduler.fetch_details_to_index
    )

    store = _section(data, "store")
    for key in ("kind", "url", "index", "username", "password"):
        if key in store:
            setattr(cfg.store, key, store[key])

    bintray = _section(data, "bintray")
    for key in ("username", "api_key", "api_url", "download_url", "hosted_url", "stats_url"):
        if key in bintray:
            setattr(cfg.bintray, key, bintray[key])

    maven = _section(data, "maven")
    cfg.maven.repo_url = maven.get("repo_url", cfg.maven.repo_url)

    server = _section(data, "server")
    cfg.server.host = server.get("host", cfg.server.host)
    cfg.server.port = int(server.get("port", cfg.server.port))

    http = _section(data, "http")
    cfg.http.timeout = int(http.get("timeout", cfg.http.timeout))
    cfg.http.retries = int(http.get("retries", cfg.http.retries))
    return cfg


def load_config(path: Optional[str] = None) -> AppConfig:
    """Load YAML config from ``path``; a missing file falls back to defaults."""
    data: Dict[str, Any] = {}
    if path:
        if not os.path.isfile(path):
            logger.warning("Config file not found: %s; using defaults", path)
        else:
            with open(path, "r", encoding="utf-8") as fh:
                try:
                    loaded = yaml.safe_load(fh)
                except yaml.YAMLError as exc:
                    raise ValueError(f"Config file {path} is not valid YAML: {exc}") from exc
            if loaded is not None and not isinstance(loaded, dict):
                raise ValueError(f"Config file {path} must contain a mapping")
            data = loaded or {}
            logger.info("Loaded config from: %s", path)
    cfg = config_from_dict(data)
    apply_env_overrides(cfg)
    return cfg


def apply_env_overrides(cfg: AppConfig, environ: Optional[Dict[str, str]] = None) -> None:
    env = os.environ if environ is None else environ
    if env.get(Constants.ENV_BINTRAY_USERNAME):
        cfg.bintray.username = env[Constants.ENV_BINTRAY_USERNAME].strip()
    if env.get(Constants.ENV_BINTRAY_API_KEY):
        cfg.bintray.api_key = env[Constants.ENV_BINTRAY_API_KEY].strip()
    if env.get(Constants.ENV_ES_URL):
        cfg.store.url = env[Constants.ENV_ES_URL].strip()
    if env.get(Constants.ENV_ADD_ON_LIST_URL):
        cfg.add_on_list.url = env[Constants.ENV_ADD_ON_LIST_URL].strip()


def apply_cli_overrides(cfg: AppConfig, args) -> None:
    """Apply CLI overrides, which take precedence over file and environment."""
    if getattr(args, "HOST", None):
        cfg.server.host = args.HOST
    if getattr(args, "PORT", None) is not None:
        cfg.server.port = int(args.PORT)
    if getattr(args, "STORE", None):
        cfg.store.kind = args.STORE
    if getattr(args, "ES_URL", None):
        cfg.store.url = args.ES_URL
    if getattr(args, "ADD_ON_LIST", None):
        source = args.ADD_ON_LIST
        if os.path.isfile(source):
            cfg.add_on_list.strategy = FetchStrategy.LOCAL
            cfg.add_on_list.local_path = source
        else:
            cfg.add_on_list.strategy = FetchStrategy.FETCH
            cfg.add_on_list.url = source
