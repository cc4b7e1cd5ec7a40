"""Application state and action dispatch for proxypull front ends.

Owns the notifier, clipboard, health client and input debouncer, and maps
named actions to handlers so a front end only has to forward user events.
"""

from __future__ import annotations

import concurrent.futures
import logging
from collections.abc import Callable
from enum import Enum
from typing import Any

from .clipboard import Clipboard
from .config import Settings
from .debounce import Debouncer
from .health import HealthClient
from .image_parser import EmptyImageReferenceError, ImageReferenceError, parse_image_reference
from .models import VERSION_SENTINEL, NotificationLevel, OutputBundle, ResultStatus
from .notifications import Notifier
from .synthesizer import ConfigurationError, synthesize

MSG_EMPTY_INPUT = "Please enter an image name"
MSG_COPIED = "Copied to clipboard"
MSG_COPY_FAILED = "Copy failed, please copy manually"


class Action(str, Enum):
    """Named user actions understood by :meth:`Application.dispatch`."""

    GENERATE = "generate"
    COPY = "copy"
    CLEAR = "clear"
    VERSION = "version"


class Application:
    """Top-level owner of proxypull session state.

    Args:
        settings: Resolved proxy configuration.
        notifier: Notification queue; a fresh one is created when omitted.
        clipboard: Clipboard writer; defaults to the system clipboard.
        health_client: Health endpoint client; built from ``settings`` when
            omitted and a proxy host is configured.
        timer_factory: Timer used by the input debouncer (for tests).
    """

    def __init__(
        self,
        settings: Settings,
        notifier: Notifier | None = None,
        clipboard: Clipboard | None = None,
        health_client: HealthClient | None = None,
        timer_factory: Callable[..., Any] | None = None,
    ) -> None:
        self.logger = logging.getLogger(__name__)
        self.settings = settings
        self.notifier = notifier or Notifier()
        self.clipboard = clipboard or Clipboard()
        self._health_client = health_client

        self.last_bundle: OutputBundle | None = None
        self.last_status: ResultStatus | None = None
        self.error: str | None = None
        self.has_input = False
        self.version_badge: str | None = None
        self._version_future: concurrent.futures.Future[str] | None = None

        debouncer_kwargs = {"timer_factory": timer_factory} if timer_factory else {}
        self.input_changed = Debouncer(self._on_input_changed, settings.debounce_seconds, **debouncer_kwargs)

        self._actions: dict[Action, Callable[..., Any]] = {
            Action.GENERATE: self.generate,
            Action.COPY: self.copy,
            Action.CLEAR: self.clear,
            Action.VERSION: self.refresh_version,
        }

    @property
    def health_client(self) -> HealthClient | None:
        if self._health_client is None and self.settings.base_url:
            self._health_client = HealthClient(base_url=self.settings.base_url, timeout=self.settings.health_timeout)
        return self._health_client

    def dispatch(self, action: Action | str, payload: Any = None) -> Any:
        """Invoke the handler registered for ``action``.

        Raises:
            KeyError: If ``action`` is not a known action name.
        """
        try:
            handler = self._actions[Action(action)]
        except ValueError as e:
            raise KeyError(f"Unknown action: {action}") from e

        if payload is None:
            return handler()
        return handler(payload)

    def _fail(self, message: str, status: ResultStatus) -> None:
        self.error = message
        self.last_status = status
        self.last_bundle = None
        self.notifier.enqueue(message, NotificationLevel.ERROR)

    def generate(self, text: str = "") -> OutputBundle | None:
        """Parse ``text`` and render it against the configured proxy.

        Returns:
            The bundle, or ``None`` when the reference or configuration is invalid.
        """
        self.error = None
        try:
            reference = parse_image_reference(text, apply_default_namespace=self.settings.apply_default_namespace)
            bundle = synthesize(
                reference=reference,
                proxy_host=self.settings.proxy_host or "",
                scheme=self.settings.scheme,
                include_registry=self.settings.include_registry,
            )
        except EmptyImageReferenceError:
            self._fail(MSG_EMPTY_INPUT, ResultStatus.INVALID_REFERENCE)
            return None
        except ImageReferenceError as e:
            self.logger.error(f"Invalid image reference: {e}")
            self._fail(str(e), ResultStatus.INVALID_REFERENCE)
            return None
        except ConfigurationError as e:
            self.logger.error(f"Configuration error: {e}")
            self._fail(str(e), ResultStatus.CONFIGURATION_ERROR)
            return None

        self.last_bundle = bundle
        self.last_status = ResultStatus.OK
        return bundle

    def copy(self, field: str = "pull") -> bool:
        """Copy one field of the last bundle to the clipboard.

        Args:
            field: One of ``pull``, ``probe``, ``manifest``, ``verify``.

        Returns:
            ``True`` if the text was copied.

        Raises:
            KeyError: If ``field`` is not a copyable field name.
        """
        if self.last_bundle is None:
            return False

        text = self.last_bundle.field_text(field)
        if not text:
            return False

        if self.clipboard.copy(text):
            self.notifier.enqueue(MSG_COPIED)
            return True

        self.notifier.enqueue(MSG_COPY_FAILED, NotificationLevel.ERROR)
        return False

    def clear(self) -> None:
        """Reset the session to its initial, empty state."""
        self.input_changed.cancel()
        self.last_bundle = None
        self.last_status = None
        self.error = None
        self.has_input = False

    def refresh_version(self) -> str:
        """Fetch the proxy version badge; ``v?`` when it cannot be determined.

        A background fetch still in flight is awaited instead of sending a
        second request.
        """
        future, self._version_future = self._version_future, None
        if future is not None:
            self.version_badge = future.result()
            return self.version_badge

        client = self.health_client
        self.version_badge = client.fetch_version() if client else VERSION_SENTINEL
        return self.version_badge

    def refresh_version_in_background(self) -> concurrent.futures.Future[str] | None:
        """Start fetching the version badge without blocking.

        Returns:
            The pending future, or ``None`` when no proxy host is configured
            (the badge is set to ``v?`` immediately).
        """
        client = self.health_client
        if client is None:
            self.version_badge = VERSION_SENTINEL
            return None

        self._version_future = client.fetch_version_in_background(self._store_version_badge)
        return self._version_future

    def _store_version_badge(self, version_badge: str) -> None:
        self.version_badge = version_badge

    def _on_input_changed(self, text: str) -> None:
        self.error = None
        self.has_input = bool(text.strip())

    def close(self) -> None:
        self.input_changed.cancel()
        if self._health_client is not None:
            self._health_client.close()
