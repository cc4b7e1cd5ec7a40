"""Data models for proxypull image references and generated output."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum

# ---------------------------------------------------------------------------
# Constants shared by the parser, synthesizer and front end
# ---------------------------------------------------------------------------
DEFAULT_TAG: str = "latest"

DEFAULT_NAMESPACE: str = "library"  # Implicit Docker Hub namespace for single-segment names.

DEFAULT_SCHEME: str = "https"

SUPPORTED_SCHEMES: tuple[str, ...] = ("http", "https")

MANIFEST_V2_MEDIA_TYPE: str = "application/vnd.docker.distribution.manifest.v2+json"

HEALTH_ENDPOINT: str = "/healthz"

DEFAULT_HEALTH_TIMEOUT_SECONDS: float = 5.0

DEFAULT_DEBOUNCE_SECONDS: float = 0.3  # Quiet period before live input is re-validated.

VERSION_SENTINEL: str = "v?"  # Shown when the proxy version cannot be fetched.

DOCKER_HUB_HOSTS: frozenset[str] = frozenset({
    "docker.io",
    "index.docker.io",
    "registry-1.docker.io",
})


class ResultStatus(str, Enum):
    """Outcome of a single generate request."""

    OK = "OK"
    INVALID_REFERENCE = "INVALID_REFERENCE"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"

    @property
    def exit_code(self) -> int:
        """Return the process exit code for this status.

        Returns:
            0 for OK, 1 for an invalid reference, 2 for a configuration error.
        """
        _EXIT_CODES: dict[ResultStatus, int] = {
            ResultStatus.OK: 0,
            ResultStatus.INVALID_REFERENCE: 1,
            ResultStatus.CONFIGURATION_ERROR: 2,
        }
        return _EXIT_CODES[self]


class NotificationLevel(str, Enum):
    """Severity of a user-facing notification."""

    INFO = "info"
    ERROR = "error"


@dataclass(frozen=True)
class ImageReference:
    """Parsed container image reference.

    Attributes:
        repository: Repository path, e.g. ``team/app`` or ``library/nginx``.
        tag: Image tag; ``latest`` when the input carried none.
        registry: Explicit registry host (``host`` or ``host:port``), or ``None``
            for the implicit default registry.
        digest: Text after the first ``@`` of the input, kept verbatim.
    """

    repository: str
    tag: str = DEFAULT_TAG
    registry: str | None = None
    digest: str | None = None

    @property
    def is_docker_hub(self) -> bool:
        """Whether the reference resolves against Docker Hub."""
        return self.registry is None or self.registry in DOCKER_HUB_HOSTS

    @property
    def reference(self) -> str:
        """Manifest reference: the digest when pinned, otherwise the tag."""
        return self.digest or self.tag

    def proxy_path(self, include_registry: bool = False) -> str:
        """Return the repository path as addressed through the proxy.

        The proxy forwards paths whose first segment looks like a host to that
        registry, so non-Docker-Hub registries can be kept in the path.

        Args:
            include_registry: Prefix the registry host when it is not Docker Hub.

        Returns:
            ``registry/repository`` or just ``repository``.
        """
        if include_registry and not self.is_docker_hub:
            return f"{self.registry}/{self.repository}"
        return self.repository

    def to_dict(self) -> dict[str, str | None]:
        """Serialise the reference to a plain dict."""
        return asdict(self)


@dataclass(frozen=True)
class OutputBundle:
    """Everything generated for one image reference.

    Attributes:
        reference: The parsed reference the bundle was built from.
        pull_command: ``docker pull`` command targeting the proxy.
        v2_probe_url: Registry API v2 base endpoint on the proxy.
        manifest_url: Manifest fetch URL with percent-encoded path segments.
        verification_examples: Example ``curl`` commands for manual checks.
    """

    reference: ImageReference
    pull_command: str
    v2_probe_url: str
    manifest_url: str
    verification_examples: tuple[str, ...] = field(default_factory=tuple)

    @property
    def verification_text(self) -> str:
        """Verification commands separated by a blank line."""
        return "\n\n".join(self.verification_examples)

    def field_text(self, name: str) -> str:
        """Return the text of a copyable field by its short name.

        Raises:
            KeyError: If ``name`` is not one of ``pull``, ``probe``, ``manifest``, ``verify``.
        """
        fields = {
            "pull": self.pull_command,
            "probe": self.v2_probe_url,
            "manifest": self.manifest_url,
            "verify": self.verification_text,
        }
        return fields[name]

    def to_dict(self) -> dict[str, object]:
        """Serialise the bundle to a plain dict suitable for JSON output."""
        data = asdict(self)
        data["verification_examples"] = list(self.verification_examples)
        return data


COPYABLE_FIELDS: tuple[str, ...] = ("pull", "probe", "manifest", "verify")


@dataclass
class Notification:
    """A queued user-facing message."""

    message: str
    level: NotificationLevel = NotificationLevel.INFO


@dataclass
class HealthInfo:
    """Payload returned by the proxy health endpoint.

    Every field is optional; older proxies only report ``version``.
    """

    status: str | None = None
    version: str | None = None
    registry_url: str | None = None
    registry_healthy: bool | None = None
    timestamp: int | None = None
