"""Shared HTTP client used by backend fetchers and the manifest fetch.

Encapsulates timeout, retry and DEBUG trace handling so backend modules avoid
duplicating try/except blocks. Credentials and tunables are passed in
explicitly through ``HttpSettings``; nothing is read from module globals.
"""
from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

import requests

from constants import Constants
from common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer

logger = logging.getLogger(__name__)


class BackendRequestError(RuntimeError):
    """Raised when a request could not be completed after all retries."""


@dataclass
class HttpSettings:
    """Per-client HTTP configuration."""

    username: Optional[str] = None
    password: Optional[str] = None
    timeout: int = Constants.REQUEST_TIMEOUT
    retries: int = Constants.HTTP_RETRY_MAX
    retry_delay: float = Constants.HTTP_RETRY_BASE_DELAY_SEC
    user_agent: str = Constants.USER_AGENT

    @property
    def has_credentials(self) -> bool:
        return bool(self.username) and bool(self.password)


class HttpClient:
    """Thin wrapper over ``requests.Session`` with retries and tracing."""

    def __init__(self, settings: Optional[HttpSettings] = None, session: Optional[requests.Session] = None):
        self.settings = settings or HttpSettings()
        self._session = session or requests.Session()
        self._session.headers["User-Agent"] = self.settings.user_agent

    def _auth(self, authenticated: bool) -> Optional[Tuple[str, str]]:
        if authenticated and self.settings.has_credentials:
            return (self.settings.username, self.settings.password)  # type: ignore[return-value]
        return None

    def request(
        self,
        method: str,
        url: str,
        *,
        context: str,
        authenticated: bool = False,
        **kwargs: Any,
    ) -> requests.Response:
        """Issue a request, retrying on timeouts and connection errors.

        Non-2xx responses are returned to the caller unchanged; only transport
        failures are retried.

        Raises:
            BackendRequestError: when every attempt failed at the transport level.
        """
        safe_target = safe_url(url)
        last_exception: Optional[str] = None
        for attempt in range(max(1, self.settings.retries)):
            with Timer() as t:
                if is_debug_enabled(logger):
                    logger.debug(
                        "HTTP request",
                        extra=extra_context(
                            event="http_request",
                            component="http_client",
                            action=method,
                            target=safe_target,
                            context=context,
                            attempt=attempt + 1,
                        ),
                    )
                try:
                    res = self._session.request(
                        method,
                        url,
                        timeout=self.settings.timeout,
                        auth=self._auth(authenticated),
                        **kwargs,
                    )
                except requests.Timeout:
                    last_exception = "timeout"
                    logger.debug(
                        "HTTP timeout",
                        extra=extra_context(
                            event="http_exception",
                            component="http_client",
                            action=method,
                            outcome="timeout",
                            attempt=attempt + 1,
                            target=safe_target,
                        ),
                    )
                except requests.RequestException as exc:  # includes ConnectionError
                    last_exception = str(exc)
                    logger.debug(
                        "HTTP request exception",
                        extra=extra_context(
                            event="http_exception",
                            component="http_client",
                            action=method,
                            outcome="request_exception",
                            attempt=attempt + 1,
                            target=safe_target,
                        ),
                    )
                else:
                    if is_debug_enabled(logger):
                        logger.debug(
                            "HTTP response",
                            extra=extra_context(
                                event="http_response",
                                component="http_client",
                                action=method,
                                status_code=res.status_code,
                                duration_ms=t.duration_ms(),
                                target=safe_target,
                                context=context,
                            ),
                        )
                    return res
            if attempt + 1 < self.settings.retries and self.settings.retry_delay:
                time.sleep(self.settings.retry_delay * (2 ** attempt))

        logger.error("%s request to %s failed: %s", context, safe_target, last_exception)
        raise BackendRequestError(
            f"{context} request failed after {self.settings.retries} attempts: {last_exception}"
        )

    def get(self, url: str, *, context: str, authenticated: bool = False, **kwargs: Any) -> requests.Response:
        """GET ``url``; see ``request``."""
        return self.request("GET", url, context=context, authenticated=authenticated, **kwargs)

    def head(self, url: str, *, context: str, authenticated: bool = False, **kwargs: Any) -> requests.Response:
        """HEAD ``url`` following redirects; see ``request``."""
        kwargs.setdefault("allow_redirects", True)
        return self.request("HEAD", url, context=context, authenticated=authenticated, **kwargs)

    def get_json(
        self,
        url: str,
        *,
        context: str,
        authenticated: bool = False,
        headers: Optional[Dict[str, str]] = None,
    ) -> Tuple[int, Optional[Any]]:
        """GET ``url`` and decode a JSON body.

        Returns:
            Tuple of (status_code, parsed_json_or_none). The body is only parsed
            for 2xx responses; undecodable JSON yields None.
        """
        res = self.get(
            url,
            context=context,
            authenticated=authenticated,
            headers=headers or {"Accept": "application/json"},
        )
        if not 200 <= res.status_code < 300:
            return res.status_code, None
        try:
            return res.status_code, json.loads(res.text)
        except json.JSONDecodeError:
            logger.debug(
                "JSON decode error",
                extra=extra_context(
                    event="parse",
                    component="http_client",
                    action="get_json",
                    outcome="json_decode_error",
                    status_code=res.status_code,
                    target=safe_url(url),
                ),
            )
            return res.status_code, None
