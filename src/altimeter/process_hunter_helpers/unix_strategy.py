"""macOS and Linux discovery via ps plus lsof/ss/netstat."""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING, Dict, List, Optional

from ..constants.process import DIAGNOSTIC_KEYWORDS
from .candidate_parser import UNIX_TOKEN_PATTERN, CandidateMatcher
from .models import ErrorMessages, ParseResult, ProcessCandidate
from .platform_strategy import PlatformStrategy, require_pid, require_safe_process_name
from .port_parser import ports_from_unix_listing
from .port_tool_detector import PortToolDetector, get_shared_port_tool_detector

if TYPE_CHECKING:
    from .command_runner import CommandRunner

logger = logging.getLogger(__name__)

_DARWIN = "darwin"
_LINUX = "linux"
_LINUX_TOOL_ORDER = ("ss", "lsof", "netstat")


def _is_decimal(text: str) -> bool:
    # str.isdigit also accepts superscripts and other non-ASCII digits int() rejects
    return text.isascii() and text.isdigit()


def _lsof_command(pid: int) -> str:
    return rf'lsof -nP -a -iTCP -sTCP:LISTEN -p {pid} 2>/dev/null | grep -E "^\S+\s+{pid}\s"'


def _linux_port_commands(pid: int) -> Dict[str, str]:
    return {
        "ss": f'ss -tlnp 2>/dev/null | grep "pid={pid},"',
        "lsof": _lsof_command(pid),
        "netstat": f'netstat -tlnp 2>/dev/null | grep " {pid}/"',
    }


class UnixStrategy(PlatformStrategy):
    """
    Shared strategy for the Unix family.

    ``ps`` exposes parent pids here, so candidates spawned by the current
    process are tried first. macOS always has ``lsof``; Linux hosts may carry
    any subset of ``ss``/``lsof``/``netstat``, so the Linux port command chains
    all three and puts the detected one first.
    """

    def __init__(
        self,
        platform_name: str = _LINUX,
        *,
        app_identity: Optional[str] = None,
        detector: Optional[PortToolDetector] = None,
        current_pid: Optional[int] = None,
    ) -> None:
        if platform_name not in (_DARWIN, _LINUX):
            raise ValueError(f"Unsupported Unix platform: {platform_name!r}")
        self.platform_name = platform_name
        self.family = platform_name
        kwargs = {"app_identity": app_identity} if app_identity else {}
        self._matcher = CandidateMatcher(token_pattern=UNIX_TOKEN_PATTERN, **kwargs)
        self._detector = detector if detector is not None else get_shared_port_tool_detector()
        self._current_pid = current_pid

    @property
    def current_pid(self) -> int:
        return self._current_pid if self._current_pid is not None else os.getpid()

    def process_list_command(self, target_name: str) -> str:
        name = require_safe_process_name(target_name)
        return f'ps -ww -eo pid,ppid,args | grep "{name}" | grep -v grep'

    def parse_process_candidates(self, raw_output: Optional[str]) -> ParseResult[ProcessCandidate]:
        if not raw_output or not raw_output.strip():
            return ParseResult.empty()

        candidates: List[ProcessCandidate] = []
        try:
            for line in raw_output.splitlines():
                candidate = self._candidate_from_line(line)
                if candidate is not None:
                    candidates.append(candidate)
        except (AttributeError, TypeError) as exc:
            logger.error("Failed to parse process listing: %s", exc)
            return ParseResult.failed(str(exc))

        return ParseResult.of(self._prioritize(candidates))

    def _candidate_from_line(self, line: str) -> Optional[ProcessCandidate]:
        parts = line.strip().split(None, 2)
        if len(parts) < 3:
            return None
        pid_text, ppid_text, command_line = parts
        if not _is_decimal(pid_text):
            return None
        ppid = int(ppid_text) if _is_decimal(ppid_text) else None
        return self._matcher.extract(int(pid_text), command_line, ppid)

    def _prioritize(self, candidates: List[ProcessCandidate]) -> List[ProcessCandidate]:
        current_pid = self.current_pid
        # Stable: children of this process first, everything else keeps ps order
        return sorted(candidates, key=lambda candidate: candidate.ppid != current_pid)

    def port_list_command(self, pid: int) -> str:
        pid = require_pid(pid)
        if self.platform_name == _DARWIN:
            return _lsof_command(pid)

        commands = _linux_port_commands(pid)
        order = list(_LINUX_TOOL_ORDER)
        preferred = self._detector.tool
        if preferred in commands:
            order.remove(preferred)
            order.insert(0, preferred)
        return " || ".join(commands[tool] for tool in order)

    async def ensure_port_command_available(self, runner: "CommandRunner") -> None:
        await self._detector.detect(runner)

    @property
    def port_tools_missing(self) -> bool:
        return self._detector.resolved and self._detector.tool is None

    def parse_listening_ports(self, raw_output: Optional[str]) -> ParseResult[int]:
        if not raw_output or not raw_output.strip():
            return ParseResult.empty()
        return ParseResult.of(ports_from_unix_listing(raw_output))

    def diagnostic_command(self) -> str:
        return f"ps aux | grep -E '{DIAGNOSTIC_KEYWORDS}' | grep -v grep"

    def error_messages(self) -> ErrorMessages:
        return ErrorMessages(
            process_not_found="Process not found",
            command_not_available="Command check failed",
            requirements=("lsof or netstat or ss",),
        )


__all__ = ["UnixStrategy"]
