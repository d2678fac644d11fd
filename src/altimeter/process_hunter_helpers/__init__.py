"""Helpers backing :class:`altimeter.process_hunter.ProcessHunter`."""

from .command_runner import CommandResult, CommandRunner
from .connection_prober import ConnectionProber
from .models import (
    ConnectionResult,
    ErrorMessages,
    ParseResult,
    ParseStatus,
    ProbeOutcome,
    ProcessCandidate,
    ScanDiagnostics,
    ScanMethod,
)
from .platform_strategy import PlatformStrategy
from .port_tool_detector import PortToolDetector
from .strategy_factory import StrategySelection, select_strategy
from .unix_strategy import UnixStrategy
from .windows_strategy import WindowsStrategy

__all__ = [
    "CommandResult",
    "CommandRunner",
    "ConnectionProber",
    "ConnectionResult",
    "ErrorMessages",
    "ParseResult",
    "ParseStatus",
    "PlatformStrategy",
    "PortToolDetector",
    "ProbeOutcome",
    "ProcessCandidate",
    "ScanDiagnostics",
    "ScanMethod",
    "StrategySelection",
    "UnixStrategy",
    "WindowsStrategy",
    "select_strategy",
]
