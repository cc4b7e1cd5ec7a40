"""Proxy target resolution for proxypull.

Resolves the proxy host and URL scheme from explicit values or environment
variables. The parser and synthesizer never look these up themselves.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from .models import DEFAULT_DEBOUNCE_SECONDS, DEFAULT_HEALTH_TIMEOUT_SECONDS, DEFAULT_SCHEME, SUPPORTED_SCHEMES

PROXY_HOST_ENV: str = "PROXYPULL_PROXY_HOST"
SCHEME_ENV: str = "PROXYPULL_SCHEME"
DEFAULT_NAMESPACE_ENV: str = "PROXYPULL_DEFAULT_NAMESPACE"

LOG_LEVELS: tuple[str, ...] = ("debug", "info", "warning", "error")

_TRUTHY: frozenset[str] = frozenset({"1", "true", "yes", "on"})


@dataclass(frozen=True)
class Settings:
    """Resolved configuration for one proxypull session."""

    proxy_host: str | None
    scheme: str = DEFAULT_SCHEME
    apply_default_namespace: bool = False
    include_registry: bool = False
    health_timeout: float = DEFAULT_HEALTH_TIMEOUT_SECONDS
    debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS

    @property
    def base_url(self) -> str | None:
        """``scheme://host`` of the proxy, or ``None`` when no host is set."""
        if not self.proxy_host:
            return None
        return f"{self.scheme}://{self.proxy_host}"


def split_proxy_host(raw: str | None) -> tuple[str | None, str | None]:
    """Normalise a configured proxy host.

    Strips whitespace, a leading ``http://`` or ``https://`` and any trailing
    path separators.

    Args:
        raw: Host as configured, e.g. ``https://proxy.example.com/``.

    Returns:
        Tuple of ``(host, scheme)``; ``scheme`` is ``None`` unless the value
        carried one, ``host`` is ``None`` when nothing usable remains.
    """
    if not raw or not raw.strip():
        return None, None

    host = raw.strip()
    scheme: str | None = None
    for candidate in SUPPORTED_SCHEMES:
        prefix = f"{candidate}://"
        if host.lower().startswith(prefix):
            scheme = candidate
            host = host[len(prefix):]
            break

    host = host.strip("/")
    return (host or None), scheme


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in _TRUTHY


def get_proxy_host() -> str | None:
    """Read the proxy host from the environment."""
    return os.environ.get(PROXY_HOST_ENV) or None


def _get_scheme() -> str:
    """Read the scheme from the environment, falling back to ``https``.

    Unsupported values are passed through so the synthesizer reports them as
    a configuration error instead of silently switching scheme.
    """
    return os.environ.get(SCHEME_ENV, "").strip().lower() or DEFAULT_SCHEME


def _get_default_namespace() -> bool:
    return _env_flag(DEFAULT_NAMESPACE_ENV)


def resolve_settings(
    proxy_host: str | None = None,
    scheme: str | None = None,
    apply_default_namespace: bool | None = None,
    include_registry: bool = False,
    health_timeout: float = DEFAULT_HEALTH_TIMEOUT_SECONDS,
) -> Settings:
    """Combine explicit values with environment fallbacks.

    Resolution order for each value: explicit argument, environment variable,
    built-in default. A scheme embedded in the host value is used when no
    explicit scheme is given.

    Args:
        proxy_host: Explicit proxy host, possibly with a scheme prefix.
        scheme: Explicit scheme.
        apply_default_namespace: Explicit namespace policy.
        include_registry: Keep non-Docker-Hub registries in proxy paths.
        health_timeout: Health request timeout in seconds.

    Returns:
        The resolved ``Settings``. ``proxy_host`` may be ``None``; the
        synthesizer reports that as a configuration error.
    """
    host, host_scheme = split_proxy_host(proxy_host if proxy_host is not None else get_proxy_host())

    return Settings(
        proxy_host=host,
        scheme=scheme or host_scheme or _get_scheme(),
        apply_default_namespace=(
            apply_default_namespace if apply_default_namespace is not None else _get_default_namespace()
        ),
        include_registry=include_registry,
        health_timeout=health_timeout,
    )
