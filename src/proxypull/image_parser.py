"""Container image reference parser for proxypull.

Splits a ``docker pull`` style reference into registry host, repository path,
tag and digest. Handles registry ports, pinned digests and the optional
implicit ``library/`` namespace of Docker Hub.
"""

from __future__ import annotations

from .models import DEFAULT_NAMESPACE, DEFAULT_TAG, DOCKER_HUB_HOSTS, ImageReference


class ImageReferenceError(ValueError):
    """Base exception for references that cannot be parsed."""


class EmptyImageReferenceError(ImageReferenceError):
    """Raised when the input is empty or whitespace only."""


class InvalidImageNameError(ImageReferenceError):
    """Raised when the reference is structurally malformed."""


def _has_registry_host(first_segment: str) -> bool:
    """Determine whether the first path segment is a registry host."""
    return "." in first_segment or ":" in first_segment


def _split_digest(working: str) -> tuple[str, str | None]:
    """Split off everything after the first ``@`` as the digest."""
    if "@" not in working:
        return working, None

    name, digest = working.split("@", 1)
    if not digest:
        raise InvalidImageNameError(f"Image reference '{working}' has an empty digest")
    return name, digest


def _split_tag(working: str) -> tuple[str, str]:
    """Split off the tag; only a ``:`` after the last ``/`` separates one."""
    last_slash = working.rfind("/")
    last_colon = working.rfind(":")

    if last_colon <= last_slash:
        return working, DEFAULT_TAG

    tag = working[last_colon + 1:]
    if not tag:
        raise InvalidImageNameError(f"Image reference '{working}' has an empty tag")
    return working[:last_colon], tag


def _apply_namespace(registry: str | None, path_segments: list[str]) -> list[str]:
    """Prefix the default namespace onto single-segment Docker Hub paths."""
    is_docker_hub = registry is None or registry in DOCKER_HUB_HOSTS
    if is_docker_hub and len(path_segments) == 1:
        return [DEFAULT_NAMESPACE, path_segments[0]]
    return path_segments


def parse_image_reference(image: str, apply_default_namespace: bool = False) -> ImageReference:
    """Parse a container image reference into structured components.

    Args:
        image: Raw reference as typed for ``docker pull``.
        apply_default_namespace: Prefix ``library/`` onto single-segment
            Docker Hub names (``nginx`` becomes ``library/nginx``).

    Returns:
        The parsed ``ImageReference``.

    Raises:
        EmptyImageReferenceError: If ``image`` is empty or whitespace only.
        InvalidImageNameError: If a name, tag, digest or path segment is empty,
            or the text cannot be encoded as UTF-8.
    """
    if not image or not image.strip():
        raise EmptyImageReferenceError("Image reference must not be empty")

    working = image.strip()
    try:
        working.encode("utf-8")
    except UnicodeEncodeError as e:
        raise InvalidImageNameError(f"Image reference {working!r} is not valid UTF-8 text") from e

    # Step 1: Everything after the first @ is the digest
    working, digest = _split_digest(working)

    # Step 2: Tag from the last segment; a port colon precedes the last slash
    name, tag = _split_tag(working)
    if not name:
        raise InvalidImageNameError(f"Image reference '{image.strip()}' has no repository name")

    # Step 3: Registry host from the first segment
    segments = name.split("/")
    registry: str | None = None
    path_segments: list[str]

    if len(segments) > 1 and _has_registry_host(segments[0]):
        registry = segments[0]
        path_segments = segments[1:]
    else:
        path_segments = segments

    if not all(path_segments):
        raise InvalidImageNameError(f"Image reference '{image.strip()}' has an empty path segment")

    # Step 4: Optional implicit namespace
    if apply_default_namespace:
        path_segments = _apply_namespace(registry=registry, path_segments=path_segments)

    return ImageReference(
        repository="/".join(path_segments),
        tag=tag,
        registry=registry,
        digest=digest,
    )
