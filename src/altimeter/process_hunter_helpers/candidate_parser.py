"""Command-line marker matching shared by the platform strategies."""

from __future__ import annotations

import logging
import re
from typing import Optional

from ..constants.network import MAX_PORT, MIN_PORT
from ..constants.process import APP_DATA_DIR_FLAG, APP_IDENTITY, CSRF_TOKEN_FLAG, EXTENSION_PORT_FLAG
from .models import ProcessCandidate

logger = logging.getLogger(__name__)

UNIX_TOKEN_PATTERN = r"[A-Za-z0-9-]+"
WINDOWS_TOKEN_PATTERN = r"[a-f0-9-]+"

_PORT_RE = re.compile(rf"{re.escape(EXTENSION_PORT_FLAG)}[=\s]+(\d+)")


class CandidateMatcher:
    """
    Decides whether a raw command line belongs to the language server and
    pulls the connection parameters out of it.

    A command line qualifies only when it carries both a ``--csrf_token``
    value and ``--app_data_dir <identity>``. The advertised
    ``--extension_server_port`` is optional and defaults to 0.
    """

    def __init__(
        self,
        app_identity: str = APP_IDENTITY,
        *,
        token_pattern: str = UNIX_TOKEN_PATTERN,
        token_ignore_case: bool = False,
    ) -> None:
        self.app_identity = app_identity
        self._identity_re = re.compile(
            rf"{re.escape(APP_DATA_DIR_FLAG)}[=\s]+{re.escape(app_identity)}\b",
            re.IGNORECASE,
        )
        token_flags = re.IGNORECASE if token_ignore_case else 0
        self._token_re = re.compile(rf"{re.escape(CSRF_TOKEN_FLAG)}[=\s]+({token_pattern})", token_flags)

    def is_target(self, command_line: str) -> bool:
        if CSRF_TOKEN_FLAG not in command_line:
            return False
        return bool(self._identity_re.search(command_line))

    def extract(self, pid: int, command_line: str, ppid: Optional[int] = None) -> Optional[ProcessCandidate]:
        """Return a candidate for *command_line* or None when a marker is missing."""
        if not command_line or not self.is_target(command_line):
            return None

        token_match = self._token_re.search(command_line)
        if token_match is None:
            return None

        return ProcessCandidate(
            pid=pid,
            ppid=ppid,
            extension_port=_extension_port(command_line),
            csrf_token=token_match.group(1),
        )


def _extension_port(command_line: str) -> int:
    match = _PORT_RE.search(command_line)
    if match is None:
        return 0
    port = int(match.group(1))
    if not MIN_PORT <= port <= MAX_PORT:
        logger.debug("Ignoring out-of-range extension port %s", port)
        return 0
    return port


__all__ = ["CandidateMatcher", "UNIX_TOKEN_PATTERN", "WINDOWS_TOKEN_PATTERN"]
