"""Shared pytest fixtures for the proxypull test suite."""

from __future__ import annotations

import concurrent.futures
from collections.abc import Callable
from unittest.mock import MagicMock

import pytest

from proxypull.app import Application
from proxypull.clipboard import Clipboard
from proxypull.config import Settings
from proxypull.health import HealthClient
from proxypull.models import ImageReference
from proxypull.notifications import Notifier


class FakeTimer:
    """Stand-in for ``threading.Timer`` that only fires when told to."""

    def __init__(self, delay: float, callback: Callable[[], None]) -> None:
        self.delay = delay
        self.callback = callback
        self.started = False
        self.cancelled = False
        self.daemon = False

    def start(self) -> None:
        self.started = True

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        if not self.cancelled:
            self.callback()


@pytest.fixture()
def timers() -> list[FakeTimer]:
    """Return the list that collects every ``FakeTimer`` created by ``timer_factory``."""
    return []


@pytest.fixture()
def timer_factory(timers: list[FakeTimer]) -> Callable[[float, Callable[[], None]], FakeTimer]:
    """Return a ``threading.Timer`` replacement that records created timers.

    Returns:
        Factory with the ``threading.Timer(delay, callback)`` signature.
    """

    def factory(delay: float, callback: Callable[[], None]) -> FakeTimer:
        timer = FakeTimer(delay, callback)
        timers.append(timer)
        return timer

    return factory


@pytest.fixture()
def settings() -> Settings:
    """Return settings for a proxy at ``proxy.example.com`` over HTTPS.

    Returns:
        A ``Settings`` instance with the default namespace policy disabled.
    """
    return Settings(proxy_host="proxy.example.com", scheme="https")


@pytest.fixture()
def mock_clipboard() -> MagicMock:
    """Return a clipboard double whose ``copy`` succeeds."""
    clipboard = MagicMock(spec=Clipboard)
    clipboard.copy.return_value = True
    return clipboard


@pytest.fixture()
def mock_health_client() -> MagicMock:
    """Return a health client double reporting version ``v1.4.2``.

    Background fetches complete immediately with the result of ``fetch_version``.
    """
    client = MagicMock(spec=HealthClient)
    client.fetch_version.return_value = "v1.4.2"

    def fetch_in_background(callback: Callable[[str], None] | None = None) -> concurrent.futures.Future[str]:
        future: concurrent.futures.Future[str] = concurrent.futures.Future()
        future.set_result(client.fetch_version())
        if callback is not None:
            callback(future.result())
        return future

    client.fetch_version_in_background.side_effect = fetch_in_background
    return client



@pytest.fixture()
def app(
    settings: Settings,
    mock_clipboard: MagicMock,
    mock_health_client: MagicMock,
    timer_factory: Callable[[float, Callable[[], None]], FakeTimer],
) -> Application:
    """Return an ``Application`` wired to test doubles.

    Returns:
        An ``Application`` with a real ``Notifier`` and fake clipboard, health
        client and timers.
    """
    return Application(
        settings=settings,
        notifier=Notifier(),
        clipboard=mock_clipboard,
        health_client=mock_health_client,
        timer_factory=timer_factory,
    )


@pytest.fixture()
def sample_reference() -> ImageReference:
    """Return a reference with an explicit registry, nested path and tag."""
    return ImageReference(repository="team/app", tag="v2.1", registry="myregistry.io:5000")
