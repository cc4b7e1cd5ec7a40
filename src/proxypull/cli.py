"""proxypull — rewrite ``docker pull`` references for a registry proxy.

Given an image reference, prints:

1. The ``docker pull`` command pointed at the proxy
2. The registry API v2 probe URL
3. The manifest URL for the image and tag (or digest)
4. Example ``curl`` commands to verify the proxy by hand
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from collections.abc import Iterable
from typing import TextIO

from .app import Action, Application
from .config import LOG_LEVELS, get_proxy_host, resolve_settings
from .models import COPYABLE_FIELDS, DEFAULT_HEALTH_TIMEOUT_SECONDS, NotificationLevel, OutputBundle, ResultStatus
from .notifications import Notifier

logger = logging.getLogger(__name__)

# Interactive commands and the actions they dispatch to
_INTERACTIVE_COMMANDS: dict[str, Action] = {
    "copy": Action.COPY,
    "clear": Action.CLEAR,
    "version": Action.VERSION,
}

_QUIT_COMMANDS: frozenset[str] = frozenset({"quit", "q", "exit"})


def _setup_logging(level: str = "info") -> None:
    """Configure logging for CLI usage. Only called from main()."""
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s : %(name)-13s : %(levelname)s :: %(message)s",
    )


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def render_text(bundle: OutputBundle, version_badge: str | None = None) -> str:
    """Render a bundle as human-readable text.

    Args:
        bundle: Generated output bundle.
        version_badge: Proxy version to show in a header line, if fetched.

    Returns:
        Multi-line text with one titled block per output.
    """
    blocks: list[str] = []
    if version_badge:
        blocks.append(f"Proxy version: {version_badge}")

    blocks.extend([
        f"Pull command:\n  {bundle.pull_command}",
        f"V2 probe URL:\n  {bundle.v2_probe_url}",
        f"Manifest URL:\n  {bundle.manifest_url}",
        "Verification:\n" + "\n\n".join(f"  {example}" for example in bundle.verification_examples),
    ])
    return "\n\n".join(blocks)


def render_json(bundle: OutputBundle, version_badge: str | None = None) -> str:
    """Render a bundle as an indented JSON document."""
    data = bundle.to_dict()
    if version_badge:
        data["proxy_version"] = version_badge
    return json.dumps(data, indent=2)


def render(bundle: OutputBundle, output_format: str, version_badge: str | None = None) -> str:
    if output_format == "json":
        return render_json(bundle=bundle, version_badge=version_badge)
    return render_text(bundle=bundle, version_badge=version_badge)


def _emit_notifications(notifier: Notifier, stream: TextIO) -> None:
    """Drain queued notifications to ``stream``."""
    for notification in notifier.drain():
        prefix = "Error: " if notification.level == NotificationLevel.ERROR else ""
        print(f"{prefix}{notification.message}", file=stream)


# ---------------------------------------------------------------------------
# CLI argument parsing
# ---------------------------------------------------------------------------


def parse_args(args: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments.

    Args:
        args: Optional list of argument strings (defaults to ``sys.argv``).

    Returns:
        Parsed ``argparse.Namespace``.
    """
    parser = argparse.ArgumentParser(
        description="proxypull — Generate docker pull commands and registry URLs for a registry proxy",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument(
        "image",
        nargs="?",
        help="Image reference as used with 'docker pull' (e.g. 'nginx:1.25' or 'ghcr.io/org/app@sha256:...')",
    )
    parser.add_argument(
        "--proxy-host",
        default=get_proxy_host(),
        help="Registry proxy host[:port], optionally with an http:// or https:// prefix (env: PROXYPULL_PROXY_HOST)",
    )
    parser.add_argument(
        "--scheme",
        choices=["http", "https"],
        help="URL scheme of the proxy (default: from --proxy-host, PROXYPULL_SCHEME, or https)",
    )
    parser.add_argument(
        "--default-namespace",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Prefix 'library/' onto single-segment Docker Hub names (env: PROXYPULL_DEFAULT_NAMESPACE)",
    )
    parser.add_argument(
        "--include-registry",
        action=argparse.BooleanOptionalAction,
        default=False,
        help="Keep a non-Docker-Hub registry host in the proxied path so the proxy forwards to it",
    )
    parser.add_argument("--format", choices=["text", "json"], default="text", help="Output format")
    parser.add_argument(
        "--copy",
        choices=COPYABLE_FIELDS,
        help="Also copy one output to the system clipboard",
    )
    parser.add_argument(
        "--show-version",
        action="store_true",
        help="Fetch the proxy version from its health endpoint",
    )
    parser.add_argument(
        "--health-timeout",
        type=float,
        default=DEFAULT_HEALTH_TIMEOUT_SECONDS,
        help="Timeout in seconds for the health endpoint request",
    )
    parser.add_argument(
        "--interactive",
        action="store_true",
        help="Read image references line by line from stdin (commands: :copy FIELD, :clear, :version, :quit)",
    )
    parser.add_argument("--log-level", choices=LOG_LEVELS, default="info", help="Logging level")

    parsed = parser.parse_args(args)
    if parsed.image is None and not parsed.interactive:
        parser.error("an image reference is required unless --interactive is given")
    return parsed


# ---------------------------------------------------------------------------
# Main execution
# ---------------------------------------------------------------------------


def _run_command(app: Application, line: str, out: TextIO, err: TextIO) -> bool:
    """Handle one interactive ``:command`` line. Returns ``False`` to stop."""
    command, _, argument = line[1:].strip().partition(" ")
    command = command.lower()

    if command in _QUIT_COMMANDS:
        return False

    action = _INTERACTIVE_COMMANDS.get(command)
    if action is None:
        print(f"Error: unknown command ':{command}' (expected one of: copy, clear, version, quit)", file=err)
        return True

    if action == Action.COPY:
        field = argument.strip() or "pull"
        if field not in COPYABLE_FIELDS:
            print(f"Error: cannot copy '{field}' (expected one of: {', '.join(COPYABLE_FIELDS)})", file=err)
            return True
        if app.last_bundle is None:
            print("Error: nothing to copy yet", file=err)
            return True
        app.dispatch(action, field)
    elif action == Action.VERSION:
        print(f"Proxy version: {app.dispatch(action)}", file=out)
    else:
        app.dispatch(action)

    return True


def run_interactive(
    app: Application,
    lines: Iterable[str],
    output_format: str = "text",
    out: TextIO | None = None,
    err: TextIO | None = None,
) -> int:
    """Process image references and commands until input ends or ``:quit``.

    The proxy version is fetched in the background as the session starts, so
    ``:version`` only waits for whatever is left of that request.

    Args:
        app: Application instance that owns the session state.
        lines: Input lines, typically ``sys.stdin``.
        output_format: ``text`` or ``json``.
        out: Stream for generated output.
        err: Stream for errors and notifications.

    Returns:
        Process exit code (always 0; per-line errors are reported inline).
    """
    out = out or sys.stdout
    err = err or sys.stderr

    app.refresh_version_in_background()

    for raw_line in lines:
        line = raw_line.strip()
        if line.startswith(":"):
            keep_going = _run_command(app=app, line=line, out=out, err=err)
        else:
            keep_going = True
            if bundle := app.dispatch(Action.GENERATE, line):
                print(render(bundle=bundle, output_format=output_format), file=out)
        _emit_notifications(app.notifier, err)
        if not keep_going:
            break
    return 0


def run(args: argparse.Namespace, out: TextIO | None = None, err: TextIO | None = None) -> int:
    """Main execution flow.

    Args:
        args: Parsed CLI arguments.
        out: Stream for generated output.
        err: Stream for errors and notifications.

    Returns:
        Process exit code (0 = OK, 1 = invalid reference, 2 = configuration error).
    """
    out = out or sys.stdout
    err = err or sys.stderr

    settings = resolve_settings(
        proxy_host=args.proxy_host,
        scheme=args.scheme,
        apply_default_namespace=args.default_namespace,
        include_registry=args.include_registry,
        health_timeout=args.health_timeout,
    )
    logger.debug(f"Resolved settings: {settings}")

    app = Application(settings=settings)
    try:
        if args.interactive:
            return run_interactive(app=app, lines=sys.stdin, output_format=args.format, out=out, err=err)

        bundle = app.dispatch(Action.GENERATE, args.image)
        if bundle is None:
            _emit_notifications(app.notifier, err)
            status = app.last_status or ResultStatus.INVALID_REFERENCE
            return status.exit_code

        version_badge = app.dispatch(Action.VERSION) if args.show_version else None
        print(render(bundle=bundle, output_format=args.format, version_badge=version_badge), file=out)

        if args.copy:
            app.dispatch(Action.COPY, args.copy)
        _emit_notifications(app.notifier, err)
        return ResultStatus.OK.exit_code
    finally:
        app.close()


def main() -> None:
    """CLI entry point for proxypull."""
    parsed_args = parse_args()
    _setup_logging(parsed_args.log_level)
    try:
        sys.exit(run(args=parsed_args))
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
