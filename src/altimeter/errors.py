"""Error types raised by the discovery engine.

Environmental conditions (process absent, tool missing, probe rejected) are
never raised from a scan; these types cover contract misuse and the explicit
"discovery is required" entry points.
"""

from __future__ import annotations

from typing import Sequence


class AltimeterError(RuntimeError):
    """Base class for altimeter failures."""


class EnvironmentNotFoundError(AltimeterError):
    """Raised when a caller demands a connection and no language server verified."""

    def __init__(self, message: str, *, requirements: Sequence[str] = ()) -> None:
        self.requirements = tuple(requirements)
        detail = message
        if self.requirements:
            detail += f" (requirements: {', '.join(self.requirements)})"
        super().__init__(detail)
        self.message = message


class InvalidProbeRequestError(ValueError):
    """Raised when a probe or scan is requested with malformed arguments."""

    @classmethod
    def bad_port(cls, port) -> "InvalidProbeRequestError":
        return cls(f"Port must be an integer in [1, 65535], got {port!r}")

    @classmethod
    def bad_token(cls, token) -> "InvalidProbeRequestError":
        return cls(f"CSRF token must be a non-blank string, got {type(token).__name__}")

    @classmethod
    def bad_attempts(cls, attempts) -> "InvalidProbeRequestError":
        return cls(f"max_attempts must be a positive integer, got {attempts!r}")


__all__ = [
    "AltimeterError",
    "EnvironmentNotFoundError",
    "InvalidProbeRequestError",
]
