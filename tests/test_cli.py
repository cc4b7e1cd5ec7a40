"""Unit tests for CLI argument parsing, rendering and execution in proxypull.cli."""

from __future__ import annotations

import io
import json
import logging
from typing import Any
from unittest.mock import MagicMock, patch

import pytest

from proxypull.app import Application
from proxypull.cli import (
    _setup_logging,
    main,
    parse_args,
    render_json,
    render_text,
    run,
    run_interactive,
)
from proxypull.config import PROXY_HOST_ENV, Settings
from proxypull.image_parser import parse_image_reference
from proxypull.synthesizer import synthesize


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the caller's proxypull environment out of CLI tests."""
    for name in (PROXY_HOST_ENV, "PROXYPULL_SCHEME", "PROXYPULL_DEFAULT_NAMESPACE"):
        monkeypatch.delenv(name, raising=False)


# ---------------------------------------------------------------------------
# Argument parsing tests
# ---------------------------------------------------------------------------


class TestParseArgs:
    """Tests for CLI argument parsing via ``parse_args``."""

    def test_parse_args_defaults(self) -> None:
        """Verify default values for every optional flag."""
        args = parse_args(["nginx"])

        assert args.image == "nginx"
        assert args.proxy_host is None
        assert args.scheme is None
        assert args.default_namespace is None
        assert args.include_registry is False
        assert args.format == "text"
        assert args.copy is None
        assert args.show_version is False
        assert args.health_timeout == 5.0
        assert args.interactive is False
        assert args.log_level == "info"

    def test_parse_args_explicit_values(self) -> None:
        """Verify explicit flags are parsed."""
        args = parse_args(
            [
                "ghcr.io/org/app:1.0",
                "--proxy-host",
                "proxy.example.com",
                "--scheme",
                "http",
                "--default-namespace",
                "--include-registry",
                "--format",
                "json",
                "--copy",
                "manifest",
                "--show-version",
                "--health-timeout",
                "1.5",
                "--log-level",
                "debug",
            ]
        )

        assert args.proxy_host == "proxy.example.com"
        assert args.scheme == "http"
        assert args.default_namespace is True
        assert args.include_registry is True
        assert args.format == "json"
        assert args.copy == "manifest"
        assert args.show_version is True
        assert args.health_timeout == 1.5
        assert args.log_level == "debug"

    def test_parse_args_no_default_namespace(self) -> None:
        """Verify ``--no-default-namespace`` sets the flag to False."""
        assert parse_args(["nginx", "--no-default-namespace"]).default_namespace is False

    def test_parse_args_proxy_host_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Verify the proxy host default is read from the environment."""
        monkeypatch.setenv(PROXY_HOST_ENV, "env.example.com")

        assert parse_args(["nginx"]).proxy_host == "env.example.com"

    def test_parse_args_image_required(self) -> None:
        """Verify a missing image raises SystemExit unless interactive."""
        with pytest.raises(SystemExit):
            parse_args([])

        assert parse_args(["--interactive"]).image is None

    @pytest.mark.parametrize(
        "argv",
        [
            pytest.param(["nginx", "--scheme", "ftp"], id="bad-scheme"),
            pytest.param(["nginx", "--copy", "digest"], id="bad-copy-field"),
            pytest.param(["nginx", "--log-level", "trace"], id="bad-log-level"),
        ],
    )
    def test_parse_args_rejects_invalid_choices(self, argv: list[str]) -> None:
        """Verify invalid choices raise SystemExit.

        Args:
            argv: Command line to parse.
        """
        with pytest.raises(SystemExit):
            parse_args(argv)


# ---------------------------------------------------------------------------
# Logging setup tests
# ---------------------------------------------------------------------------


class TestSetupLogging:
    """Tests for ``_setup_logging`` configuration."""

    @pytest.mark.parametrize(("name", "level"), [("info", logging.INFO), ("debug", logging.DEBUG)])
    def test_setup_logging(self, name: str, level: int) -> None:
        """Verify _setup_logging configures the root logger with basicConfig.

        Args:
            name: CLI log level name.
            level: Expected ``logging`` level constant.
        """
        with patch("logging.basicConfig") as mock_basic_config:
            _setup_logging(name)

        mock_basic_config.assert_called_once()
        assert mock_basic_config.call_args[1]["level"] == level


# ---------------------------------------------------------------------------
# Rendering tests
# ---------------------------------------------------------------------------


class TestRendering:
    """Tests for text and JSON rendering."""

    @pytest.fixture()
    def bundle(self) -> Any:
        """Return a bundle for ``alpine@sha256:abcd1234`` on ``proxy.example.com``."""
        return synthesize(reference=parse_image_reference("alpine@sha256:abcd1234"), proxy_host="proxy.example.com")

    def test_render_text(self, bundle: Any) -> None:
        """Verify every output appears under its heading."""
        text = render_text(bundle)

        assert "Pull command:\n  docker pull proxy.example.com/alpine:latest" in text
        assert "V2 probe URL:\n  https://proxy.example.com/v2/" in text
        assert "Manifest URL:\n  https://proxy.example.com/v2/alpine/manifests/sha256%3Aabcd1234" in text
        assert "Verification:\n  curl -v -H" in text
        assert "Proxy version" not in text

    def test_render_text_with_version(self, bundle: Any) -> None:
        """Verify the version header is shown first when given."""
        assert render_text(bundle, version_badge="v1.0").startswith("Proxy version: v1.0")

    def test_render_json(self, bundle: Any) -> None:
        """Verify JSON output carries the reference and every URL."""
        data = json.loads(render_json(bundle, version_badge="v?"))

        assert data["reference"] == {
            "repository": "alpine",
            "tag": "latest",
            "registry": None,
            "digest": "sha256:abcd1234",
        }
        assert data["pull_command"] == "docker pull proxy.example.com/alpine:latest"
        assert len(data["verification_examples"]) == 2
        assert data["proxy_version"] == "v?"


# ---------------------------------------------------------------------------
# Execution tests
# ---------------------------------------------------------------------------


class TestRun:
    """Tests for ``run`` exit codes and output streams."""

    def test_run_success(self) -> None:
        """Verify a valid reference prints the bundle and exits 0."""
        out, err = io.StringIO(), io.StringIO()
        args = parse_args(["myregistry.io:5000/team/app:v2.1", "--proxy-host", "https://proxy.example.com/"])

        exit_code = run(args=args, out=out, err=err)

        assert exit_code == 0
        assert "docker pull proxy.example.com/team/app:v2.1" in out.getvalue()
        assert "https://proxy.example.com/v2/team/app/manifests/v2.1" in out.getvalue()
        assert err.getvalue() == ""

    def test_run_invalid_reference(self) -> None:
        """Verify malformed references exit 1 with an error on stderr."""
        out, err = io.StringIO(), io.StringIO()
        args = parse_args(["/nginx", "--proxy-host", "proxy.example.com"])

        exit_code = run(args=args, out=out, err=err)

        assert exit_code == 1
        assert out.getvalue() == ""
        assert err.getvalue().startswith("Error: ")

    def test_run_missing_proxy_host(self) -> None:
        """Verify a missing proxy host exits 2."""
        out, err = io.StringIO(), io.StringIO()

        exit_code = run(args=parse_args(["nginx"]), out=out, err=err)

        assert exit_code == 2
        assert "Proxy host is not configured" in err.getvalue()

    def test_run_json_with_namespace(self) -> None:
        """Verify JSON output honours the namespace flag."""
        out = io.StringIO()
        args = parse_args(["nginx", "--proxy-host", "p.example.com", "--default-namespace", "--format", "json"])

        assert run(args=args, out=out, err=io.StringIO()) == 0
        data = json.loads(out.getvalue())
        assert data["reference"]["repository"] == "library/nginx"
        assert data["manifest_url"] == "https://p.example.com/v2/library/nginx/manifests/latest"

    @patch("proxypull.app.HealthClient")
    def test_run_show_version(self, mock_client_cls: MagicMock) -> None:
        """Verify ``--show-version`` prints the version header."""
        mock_client_cls.return_value.fetch_version.return_value = "v3.1.0"
        out = io.StringIO()
        args = parse_args(["nginx", "--proxy-host", "p.example.com", "--show-version"])

        assert run(args=args, out=out, err=io.StringIO()) == 0
        assert out.getvalue().startswith("Proxy version: v3.1.0")
        mock_client_cls.return_value.close.assert_called_once()

    @patch("proxypull.app.Clipboard")
    def test_run_copy(self, mock_clipboard_cls: MagicMock) -> None:
        """Verify ``--copy`` copies the chosen field and reports success."""
        mock_clipboard_cls.return_value.copy.return_value = True
        err = io.StringIO()
        args = parse_args(["nginx", "--proxy-host", "p.example.com", "--copy", "probe"])

        assert run(args=args, out=io.StringIO(), err=err) == 0
        mock_clipboard_cls.return_value.copy.assert_called_once_with("https://p.example.com/v2/")
        assert "Copied to clipboard" in err.getvalue()

    def test_run_interactive_reads_stdin(self, mock_health_client: MagicMock) -> None:
        """Verify ``--interactive`` processes stdin lines."""
        out = io.StringIO()
        args = parse_args(["--interactive", "--proxy-host", "p.example.com"])

        with (
            patch("proxypull.app.HealthClient", return_value=mock_health_client),
            patch("sys.stdin", io.StringIO("nginx\n:quit\nalpine\n")),
        ):
            assert run(args=args, out=out, err=io.StringIO()) == 0

        assert "docker pull p.example.com/nginx:latest" in out.getvalue()
        assert "alpine" not in out.getvalue()
        mock_health_client.fetch_version_in_background.assert_called_once()
        mock_health_client.close.assert_called_once()

    def test_run_invalid_env_scheme(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Verify an unsupported scheme from the environment exits 2."""
        monkeypatch.setenv("PROXYPULL_SCHEME", "ftp")
        err = io.StringIO()
        args = parse_args(["nginx", "--proxy-host", "p.example.com"])

        assert run(args=args, out=io.StringIO(), err=err) == 2
        assert "Unsupported URL scheme 'ftp'" in err.getvalue()



class TestRunInteractive:
    """Tests for ``run_interactive`` command handling."""

    @pytest.fixture()
    def interactive_app(self, mock_clipboard: MagicMock, mock_health_client: MagicMock, timer_factory: Any) -> Application:
        """Return an application for interactive sessions."""
        return Application(
            settings=Settings(proxy_host="p.example.com"),
            clipboard=mock_clipboard,
            health_client=mock_health_client,
            timer_factory=timer_factory,
        )

    def test_commands(self, interactive_app: Application, mock_clipboard: MagicMock) -> None:
        """Verify references, copy, version and clear are dispatched in order."""
        out, err = io.StringIO(), io.StringIO()
        lines = ["team/app:v1\n", ":copy manifest\n", ":version\n", ":clear\n", "\n"]

        assert run_interactive(app=interactive_app, lines=lines, out=out, err=err) == 0

        mock_clipboard.copy.assert_called_once_with("https://p.example.com/v2/team/app/manifests/v1")
        assert "Proxy version: v1.4.2" in out.getvalue()
        assert "Copied to clipboard" in err.getvalue()
        assert "Error: Please enter an image name" in err.getvalue()
        assert interactive_app.last_bundle is None

    def test_version_uses_background_fetch(self, interactive_app: Application, mock_health_client: MagicMock) -> None:
        """Verify ``:version`` reuses the fetch started with the session."""
        out = io.StringIO()

        run_interactive(app=interactive_app, lines=[":version"], out=out, err=io.StringIO())

        mock_health_client.fetch_version_in_background.assert_called_once()
        mock_health_client.fetch_version.assert_called_once()
        assert out.getvalue() == "Proxy version: v1.4.2\n"

    def test_copy_before_generate(self, interactive_app: Application) -> None:
        """Verify copying with no bundle reports an error."""
        err = io.StringIO()

        run_interactive(app=interactive_app, lines=[":copy"], out=io.StringIO(), err=err)

        assert "nothing to copy yet" in err.getvalue()

    @pytest.mark.parametrize(
        ("line", "message"),
        [
            pytest.param(":paste", "unknown command ':paste'", id="unknown-command"),
            pytest.param(":copy digest", "cannot copy 'digest'", id="unknown-field"),
        ],
    )
    def test_bad_commands(self, interactive_app: Application, line: str, message: str) -> None:
        """Verify bad commands are reported without stopping the session.

        Args:
            interactive_app: Application under test.
            line: Interactive input line.
            message: Expected error fragment.
        """
        out, err = io.StringIO(), io.StringIO()

        run_interactive(app=interactive_app, lines=["nginx", line, "alpine"], out=out, err=err)

        assert message in err.getvalue()
        assert "docker pull p.example.com/alpine:latest" in out.getvalue()


class TestMain:
    """Tests for the ``main`` entry point."""

    def test_main_exits_with_run_status(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Verify ``main`` exits with the code returned by ``run``."""
        monkeypatch.setattr("sys.argv", ["proxypull", "nginx:"])

        with patch("proxypull.cli._setup_logging"), pytest.raises(SystemExit) as exc_info:
            main()

        assert exc_info.value.code == 1

    def test_main_reports_unexpected_errors(self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
        """Verify unexpected exceptions exit 1 with a message on stderr."""
        monkeypatch.setattr("sys.argv", ["proxypull", "nginx"])

        with (
            patch("proxypull.cli._setup_logging"),
            patch("proxypull.cli.run", side_effect=RuntimeError("boom")),
            pytest.raises(SystemExit) as exc_info,
        ):
            main()

        assert exc_info.value.code == 1
        assert "Error: boom" in capsys.readouterr().err
