"""Percent-encoding helpers for registry API URL paths."""

from __future__ import annotations

from urllib.parse import quote


def encode_segment(segment: str) -> str:
    """Percent-encode a single path segment, including any ``/`` it contains."""
    return quote(segment, safe="")


def encode_repository_path(repository: str) -> str:
    """Percent-encode each ``/``-separated segment of a repository path.

    The separators themselves stay literal, so ``team/my app`` becomes
    ``team/my%20app`` rather than ``team%2Fmy%20app``.
    """
    return "/".join(encode_segment(segment) for segment in repository.split("/"))
