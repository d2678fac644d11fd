"""
Altimeter - discovery of a locally running language server.

Finds the sibling application's embedded language server process, extracts
the connection parameters from its command line, and verifies the loopback
HTTPS RPC port with an authenticated probe.

CLI entry: altimeter (see pyproject.toml)
"""

from .process_hunter import ProcessHunter, discover_connection, discover_connection_sync
from .process_hunter_helpers.models import (
    ConnectionResult,
    ProcessCandidate,
    ScanDiagnostics,
    ScanMethod,
)

__all__ = [
    "ConnectionResult",
    "ProcessCandidate",
    "ProcessHunter",
    "ScanDiagnostics",
    "ScanMethod",
    "discover_connection",
    "discover_connection_sync",
]

__version__ = "0.3.0"
