"""Pull command and registry URL synthesis for proxypull.

Renders a parsed ``ImageReference`` against a proxy host into the pull
command, the v2 probe URL, the manifest URL and example ``curl`` commands.
"""

from __future__ import annotations

from .encoding import encode_repository_path, encode_segment
from .models import DEFAULT_SCHEME, MANIFEST_V2_MEDIA_TYPE, SUPPORTED_SCHEMES, ImageReference, OutputBundle


class ConfigurationError(Exception):
    """Raised when required external configuration is missing or invalid."""


def _validate_target(proxy_host: str, scheme: str) -> str:
    """Check the proxy host and scheme, returning the stripped host."""
    if not proxy_host or not proxy_host.strip():
        raise ConfigurationError("Proxy host is not configured")
    if scheme not in SUPPORTED_SCHEMES:
        raise ConfigurationError(f"Unsupported URL scheme '{scheme}' (expected one of {', '.join(SUPPORTED_SCHEMES)})")
    return proxy_host.strip()


def build_pull_command(reference: ImageReference, proxy_host: str, include_registry: bool = False) -> str:
    """Build the ``docker pull`` command for the proxy.

    The digest is never part of the command; pinned references still pull by tag.
    """
    return f"docker pull {proxy_host}/{reference.proxy_path(include_registry)}:{reference.tag}"


def build_v2_probe_url(proxy_host: str, scheme: str) -> str:
    """Build the registry API v2 base endpoint URL."""
    return f"{scheme}://{proxy_host}/v2/"


def build_manifest_url(reference: ImageReference, proxy_host: str, scheme: str, include_registry: bool = False) -> str:
    """Build the manifest URL, preferring the digest over the tag as reference.

    Repository separators stay literal, so a repository with its own
    ``manifests`` segment (``org/manifests/app``) yields a URL containing
    ``/manifests/`` twice. Registries route on the last occurrence.
    """
    repository = encode_repository_path(reference.proxy_path(include_registry))
    return f"{scheme}://{proxy_host}/v2/{repository}/manifests/{encode_segment(reference.reference)}"


def build_verification_examples(manifest_url: str, v2_probe_url: str) -> tuple[str, ...]:
    """Build the example ``curl`` commands for checking the proxy by hand."""
    return (
        f'curl -v -H "Accept: {MANIFEST_V2_MEDIA_TYPE}" {manifest_url}',
        f"curl -v {v2_probe_url}",
    )


def synthesize(
    reference: ImageReference,
    proxy_host: str,
    scheme: str = DEFAULT_SCHEME,
    include_registry: bool = False,
) -> OutputBundle:
    """Produce every output string for a parsed reference.

    Args:
        reference: Parsed image reference.
        proxy_host: Proxy ``host`` or ``host:port`` the client pulls through.
        scheme: URL scheme of the proxy, ``http`` or ``https``.
        include_registry: Keep a non-Docker-Hub registry host as the first path
            segment so the proxy forwards to it.

    Returns:
        A fully populated ``OutputBundle``.

    Raises:
        ConfigurationError: If ``proxy_host`` is empty or ``scheme`` is unsupported.
    """
    host = _validate_target(proxy_host=proxy_host, scheme=scheme)

    v2_probe_url = build_v2_probe_url(proxy_host=host, scheme=scheme)
    manifest_url = build_manifest_url(
        reference=reference,
        proxy_host=host,
        scheme=scheme,
        include_registry=include_registry,
    )

    return OutputBundle(
        reference=reference,
        pull_command=build_pull_command(reference=reference, proxy_host=host, include_registry=include_registry),
        v2_probe_url=v2_probe_url,
        manifest_url=manifest_url,
        verification_examples=build_verification_examples(manifest_url=manifest_url, v2_probe_url=v2_probe_url),
    )
