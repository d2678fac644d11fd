"""
Discovery configuration.

Bounds for the process scan (attempts, command timeouts, retry delay) and
the identity of the application whose language server is being located.
Values come from ``ALTIMETER_*`` environment variables, falling back to the
defaults in :mod:`altimeter.constants.process`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..constants.process import (
    APP_IDENTITY,
    DEFAULT_MAX_ATTEMPTS,
    DIAGNOSTIC_COMMAND_TIMEOUT_SECONDS,
    PROCESS_COMMAND_TIMEOUT_SECONDS,
    PROCESS_SCAN_RETRY_SECONDS,
)
from .errors import ConfigurationError
from .runtime import env_int, env_seconds, env_str


@dataclass(frozen=True)
class DiscoveryConfig:
    """
    Settings for a :class:`~altimeter.process_hunter.ProcessHunter`.

    Attributes:
        max_attempts: Process-name scan attempts before falling back
        process_timeout_seconds: Upper bound for each process/port listing command
        retry_delay_seconds: Fixed pause after a failed listing command
        diagnostic_timeout_seconds: Upper bound for the diagnostic dump command
        process_name_override: Executable name to search instead of the platform default
        app_identity: Value expected after ``--app_data_dir`` on the command line
    """

    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    process_timeout_seconds: float = PROCESS_COMMAND_TIMEOUT_SECONDS
    retry_delay_seconds: float = PROCESS_SCAN_RETRY_SECONDS
    diagnostic_timeout_seconds: float = DIAGNOSTIC_COMMAND_TIMEOUT_SECONDS
    process_name_override: Optional[str] = None
    app_identity: str = APP_IDENTITY

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ConfigurationError.invalid_value("max_attempts", self.max_attempts, "Must be at least 1")
        if self.process_timeout_seconds <= 0:
            raise ConfigurationError.invalid_value("process_timeout_seconds", self.process_timeout_seconds, "Must be positive")
        if self.diagnostic_timeout_seconds <= 0:
            raise ConfigurationError.invalid_value("diagnostic_timeout_seconds", self.diagnostic_timeout_seconds, "Must be positive")
        if not self.app_identity:
            raise ConfigurationError.invalid_value("app_identity", self.app_identity, "Must not be blank")

    @classmethod
    def from_env(cls) -> "DiscoveryConfig":
        """Build a config from ``ALTIMETER_*`` environment variables."""
        return cls(
            max_attempts=int(env_int("ALTIMETER_MAX_ATTEMPTS", or_value=DEFAULT_MAX_ATTEMPTS)),
            process_timeout_seconds=float(env_seconds("ALTIMETER_PROCESS_TIMEOUT_SECONDS", or_value=PROCESS_COMMAND_TIMEOUT_SECONDS)),
            retry_delay_seconds=float(env_seconds("ALTIMETER_RETRY_DELAY_SECONDS", or_value=PROCESS_SCAN_RETRY_SECONDS)),
            diagnostic_timeout_seconds=float(
                env_seconds("ALTIMETER_DIAGNOSTIC_TIMEOUT_SECONDS", or_value=DIAGNOSTIC_COMMAND_TIMEOUT_SECONDS)
            ),
            process_name_override=env_str("ALTIMETER_PROCESS_NAME"),
            app_identity=str(env_str("ALTIMETER_APP_IDENTITY", or_value=APP_IDENTITY)),
        )


__all__ = ["DiscoveryConfig"]
