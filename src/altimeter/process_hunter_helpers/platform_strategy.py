"""Contract for the OS-specific discovery knowledge used by the process hunter."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Optional

from .models import ErrorMessages, ParseResult, ProcessCandidate

if TYPE_CHECKING:
    from .command_runner import CommandRunner

_SAFE_PROCESS_NAME_RE = re.compile(r"^[\w.\-]+$")


class PlatformStrategy(ABC):
    """
    Command templates and parsers for one OS family.

    Implementations only build command strings and parse their output; the
    process hunter executes everything. Parse methods never raise: malformed
    output becomes a ``FAILED`` :class:`ParseResult`.
    """

    family: str = "unknown"

    @abstractmethod
    def process_list_command(self, target_name: str) -> str:
        """Return a shell command listing processes named *target_name*."""

    @abstractmethod
    def parse_process_candidates(self, raw_output: Optional[str]) -> ParseResult[ProcessCandidate]:
        """Turn process listing output into candidates, in the order they should be tried."""

    @abstractmethod
    def port_list_command(self, pid: int) -> str:
        """Return a shell command listing TCP ports *pid* listens on."""

    @abstractmethod
    def parse_listening_ports(self, raw_output: Optional[str]) -> ParseResult[int]:
        """Return unique listening ports in ascending order."""

    @abstractmethod
    def diagnostic_command(self) -> str:
        """Return a read-only command whose output helps a human debug a failed scan."""

    @abstractmethod
    def error_messages(self) -> ErrorMessages:
        """Return static user-facing guidance."""

    def keyword_list_command(self) -> Optional[str]:
        """Broader keyword-matched listing for the fallback phase; None when unsupported."""
        return None

    async def ensure_port_command_available(self, runner: "CommandRunner") -> None:
        """Run any one-time tool detection the port command depends on."""
        return None

    @property
    def port_tools_missing(self) -> bool:
        """True once detection has confirmed that no port listing tool exists."""
        return False


def require_safe_process_name(target_name: str) -> str:
    """Reject names that would need shell quoting; they are always executable basenames."""
    if not isinstance(target_name, str) or not _SAFE_PROCESS_NAME_RE.match(target_name):
        raise ValueError(f"Unsupported process name for shell lookup: {target_name!r}")
    return target_name


def require_pid(pid: int) -> int:
    if isinstance(pid, bool) or not isinstance(pid, int) or pid <= 0:
        raise ValueError(f"pid must be a positive integer, got {pid!r}")
    return pid


__all__ = ["PlatformStrategy", "require_pid", "require_safe_process_name"]
