"""Exception types raised by Harbinger collaborators."""

from __future__ import annotations


class HarbingerError(Exception):
    """Base class for Harbinger errors."""


class ConfigError(HarbingerError):
    """Raised when harbinger.toml is malformed or holds invalid values."""


class PublishError(HarbingerError):
    """Raised when a step of publishing a change request fails."""

    def __init__(self, command: list[str], detail: str = ""):
        self.command = command
        self.detail = detail.strip()
        message = f"`{' '.join(command)}` failed"
        if self.detail:
            message += f": {self.detail}"
        super().__init__(message)
