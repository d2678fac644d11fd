"""Data structures shared by the discovery strategies and the process hunter."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Dict, Generic, Iterator, List, Optional, Tuple, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class ProcessCandidate:
    """One OS process believed to be the language server."""

    pid: int
    csrf_token: str
    extension_port: int = 0
    ppid: Optional[int] = None


@dataclass(frozen=True)
class ConnectionResult:
    """A port that answered an authenticated probe."""

    extension_port: int
    connect_port: int
    csrf_token: str

    def to_dict(self) -> Dict[str, Any]:
        """Return the payload handed to the RPC client."""
        return {
            "extensionPort": self.extension_port,
            "connectPort": self.connect_port,
            "csrfToken": self.csrf_token,
        }


class ScanMethod(enum.Enum):
    PROCESS_NAME = "process_name"
    KEYWORD = "keyword"
    UNKNOWN = "unknown"


@dataclass
class ScanDiagnostics:
    """Record of how the most recent scan went; read only for logging."""

    scan_method: ScanMethod = ScanMethod.UNKNOWN
    target_process: str = ""
    attempts: int = 0
    found_candidates: int = 0
    ports: List[int] = field(default_factory=list)
    verified_port: Optional[int] = None
    verification_success: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "scan_method": self.scan_method.value,
            "target_process": self.target_process,
            "attempts": self.attempts,
            "found_candidates": self.found_candidates,
            "ports": list(self.ports),
            "verified_port": self.verified_port,
            "verification_success": self.verification_success,
        }


class ParseStatus(enum.Enum):
    SUCCESS = "success"
    EMPTY = "empty"
    FAILED = "failed"


@dataclass(frozen=True)
class ParseResult(Generic[T]):
    """
    Outcome of parsing one command's output.

    Iterates like the parsed sequence, so callers that only care about the
    items can ignore ``status``. ``EMPTY`` and ``FAILED`` both carry no items
    but stay distinguishable.
    """

    status: ParseStatus
    items: Tuple[T, ...] = ()
    error: Optional[str] = None

    @classmethod
    def of(cls, items) -> "ParseResult[T]":
        collected = tuple(items)
        if not collected:
            return cls(ParseStatus.EMPTY)
        return cls(ParseStatus.SUCCESS, collected)

    @classmethod
    def empty(cls) -> "ParseResult[T]":
        return cls(ParseStatus.EMPTY)

    @classmethod
    def failed(cls, error: str) -> "ParseResult[T]":
        return cls(ParseStatus.FAILED, (), error)

    @property
    def ok(self) -> bool:
        return self.status is ParseStatus.SUCCESS

    def __iter__(self) -> Iterator[T]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def __getitem__(self, index: int) -> T:
        return self.items[index]


class ProbeOutcome(enum.Enum):
    """Result of one authenticated probe; only ``VERIFIED`` is truthy."""

    VERIFIED = "verified"
    REJECTED = "rejected"
    UNREACHABLE = "unreachable"
    TIMEOUT = "timeout"

    def __bool__(self) -> bool:
        return self is ProbeOutcome.VERIFIED


@dataclass(frozen=True)
class ErrorMessages:
    """Static user-facing guidance for a platform."""

    process_not_found: str
    command_not_available: str
    requirements: Tuple[str, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "processNotFound": self.process_not_found,
            "commandNotAvailable": self.command_not_available,
            "requirements": list(self.requirements),
        }


__all__ = [
    "ConnectionResult",
    "ErrorMessages",
    "ParseResult",
    "ParseStatus",
    "ProbeOutcome",
    "ProcessCandidate",
    "ScanDiagnostics",
    "ScanMethod",
]
