"""System clipboard access through platform copy utilities."""

from __future__ import annotations

import logging
import shutil
import subprocess

# Candidate copy utilities, tried in order
_COPY_COMMANDS: tuple[tuple[str, ...], ...] = (
    ("pbcopy",),
    ("wl-copy",),
    ("xclip", "-selection", "clipboard"),
    ("xsel", "--clipboard", "--input"),
    ("clip",),
)

_COPY_TIMEOUT_SECONDS: float = 5.0


class Clipboard:
    """Copies text by piping it into the first copy utility found on PATH.

    Args:
        commands: Candidate command lines; defaults to the common utilities for
            macOS, Wayland, X11 and Windows.
    """

    def __init__(self, commands: tuple[tuple[str, ...], ...] | None = None) -> None:
        self.logger = logging.getLogger(__name__)
        self._commands = commands if commands is not None else _COPY_COMMANDS
        self._resolved: list[str] | None = None

    def _resolve_command(self) -> list[str] | None:
        """Locate the first available copy utility, caching the result."""
        if self._resolved is not None:
            return self._resolved

        for command in self._commands:
            if executable := shutil.which(command[0]):
                self._resolved = [executable, *command[1:]]
                self.logger.info(f"Using {command[0]} for clipboard access")
                return self._resolved

        self.logger.warning(f"No clipboard utility found on PATH (tried: {', '.join(c[0] for c in self._commands)})")
        return None

    def copy(self, text: str) -> bool:
        """Copy ``text`` to the clipboard.

        Returns:
            ``True`` on success, ``False`` when no utility is available or it failed.
        """
        command = self._resolve_command()
        if command is None:
            return False

        try:
            subprocess.run(command, input=text, text=True, check=True, timeout=_COPY_TIMEOUT_SECONDS)  # noqa: S603
        except (OSError, subprocess.SubprocessError) as e:
            self.logger.warning(f"Clipboard copy via {command[0]} failed: {e}")
            return False

        return True
