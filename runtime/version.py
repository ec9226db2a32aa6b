"""Version metadata for ChannelChat.

Import-safe; read by the CLI for --version.
"""

from __future__ import annotations

PROJECT_NAME = "ChannelChat"
VERSION = "v0.1.0"
BUILD = "2026.10"

__all__ = [
    "PROJECT_NAME",
    "VERSION",
    "BUILD",
    "as_string",
]


def as_string() -> str:
    """Return a concise version string."""

    return f"{PROJECT_NAME} {VERSION} (Build {BUILD})"
