"""Proxy health endpoint client for proxypull.

Fetches the proxy's ``/healthz`` document to show which proxy version the
generated commands target. Failures never propagate to the caller of
``fetch_version``; they turn into the ``v?`` sentinel instead.
"""

from __future__ import annotations

import concurrent.futures
import logging
from collections.abc import Callable

import requests

from .models import DEFAULT_HEALTH_TIMEOUT_SECONDS, HEALTH_ENDPOINT, VERSION_SENTINEL, HealthInfo


class HealthCheckError(Exception):
    """Raised when the health endpoint cannot be read."""


def format_version(version: object) -> str:
    """Render a version for display, adding a ``v`` prefix when missing."""
    text = str(version)
    return text if text.startswith("v") else f"v{text}"


def _parse_health_payload(payload: object) -> HealthInfo:
    """Convert the decoded JSON body into a ``HealthInfo``."""
    if not isinstance(payload, dict):
        raise HealthCheckError(f"Health response is not a JSON object: {payload!r}")

    registry = payload.get("registry")
    registry = registry if isinstance(registry, dict) else {}

    return HealthInfo(
        status=payload.get("status"),
        version=payload.get("version"),
        registry_url=registry.get("url"),
        registry_healthy=registry.get("healthy"),
        timestamp=payload.get("timestamp"),
    )


class HealthClient:
    """Reads the health endpoint of a registry proxy.

    Args:
        base_url: Proxy base URL, e.g. ``https://proxy.example.com``.
        timeout: Request timeout in seconds.
        session: Optional ``requests.Session`` to reuse connections.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_HEALTH_TIMEOUT_SECONDS,
        session: requests.Session | None = None,
    ) -> None:
        self.logger = logging.getLogger(__name__)
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()
        self._executor: concurrent.futures.ThreadPoolExecutor | None = None

    @property
    def url(self) -> str:
        return f"{self.base_url}{HEALTH_ENDPOINT}"

    def fetch(self) -> HealthInfo:
        """Fetch and decode the health document.

        Returns:
            Parsed ``HealthInfo``.

        Raises:
            HealthCheckError: On transport errors, non-2xx status or a non-JSON body.
        """
        try:
            response = self._session.get(self.url, timeout=self.timeout, headers={"Cache-Control": "no-store"})
            response.raise_for_status()
            payload = response.json()
        except requests.exceptions.RequestException as e:
            raise HealthCheckError(f"Health check against {self.url} failed: {e}") from e
        except ValueError as e:
            raise HealthCheckError(f"Health response from {self.url} is not valid JSON") from e

        return _parse_health_payload(payload)

    def fetch_version(self) -> str:
        """Return the display version of the proxy, or ``v?`` on any failure."""
        try:
            info = self.fetch()
        except HealthCheckError as e:
            self.logger.warning(f"Unable to fetch proxy version: {e}")
            return VERSION_SENTINEL

        if not info.version:
            self.logger.warning(f"No version in health response from {self.url}")
            return VERSION_SENTINEL

        return format_version(info.version)

    def fetch_version_in_background(
        self,
        callback: Callable[[str], None] | None = None,
    ) -> concurrent.futures.Future[str]:
        """Fetch the version on a worker thread without blocking the caller.

        Args:
            callback: Invoked with the display version once it is known.

        Returns:
            A future resolving to the display version.
        """
        if self._executor is None:
            self._executor = concurrent.futures.ThreadPoolExecutor(max_workers=1, thread_name_prefix="proxypull-health")

        future = self._executor.submit(self.fetch_version)
        if callback is not None:
            future.add_done_callback(lambda done: callback(done.result()))
        return future

    def close(self) -> None:
        """Shut down the background executor and the HTTP session."""
        if self._executor is not None:
            self._executor.shutdown(wait=False)
            self._executor = None
        self._session.close()
