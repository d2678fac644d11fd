"""One-time detection of the port listing tool available on a Unix host."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Optional, Sequence

from ..constants.process import PORT_TOOL_PROBE_TIMEOUT_SECONDS, PORT_TOOLS

if TYPE_CHECKING:
    from .command_runner import CommandRunner

logger = logging.getLogger(__name__)


class PortToolDetector:
    """
    Finds the first of ``lsof``, ``ss``, ``netstat`` present on the host.

    The probe runs at most once per detector; concurrent callers wait on the
    same lock and then read the memoised answer. A probe interrupted by an
    unexpected error leaves the detector unresolved so the next scan retries.
    """

    def __init__(
        self,
        tools: Sequence[str] = PORT_TOOLS,
        *,
        timeout_seconds: float = PORT_TOOL_PROBE_TIMEOUT_SECONDS,
    ) -> None:
        self.tools = tuple(tools)
        self.timeout_seconds = timeout_seconds
        self._lock: Optional[asyncio.Lock] = None
        self._resolved = False
        self._tool: Optional[str] = None

    @property
    def resolved(self) -> bool:
        return self._resolved

    @property
    def tool(self) -> Optional[str]:
        return self._tool

    async def detect(self, runner: "CommandRunner") -> Optional[str]:
        """Return the preferred available tool, probing the host on first use."""
        if self._resolved:
            return self._tool

        if self._lock is None:
            self._lock = asyncio.Lock()

        async with self._lock:
            if not self._resolved:
                self._tool = await self._probe(runner)
                self._resolved = True
        return self._tool

    async def _probe(self, runner: "CommandRunner") -> Optional[str]:
        for tool in self.tools:
            result = await runner.run(f"command -v {tool}", timeout=self.timeout_seconds)
            if result.succeeded and result.has_output:
                logger.debug("Port listing tool detected: %s (%s)", tool, result.stdout.strip())
                return tool
        logger.warning("No port listing tool found on host (tried %s)", ", ".join(self.tools))
        return None

    def reset(self) -> None:
        """Forget the memoised answer."""
        self._resolved = False
        self._tool = None


_shared_detector: Optional[PortToolDetector] = None


def get_shared_port_tool_detector() -> PortToolDetector:
    """Process-wide detector shared by every Unix strategy."""
    global _shared_detector
    if _shared_detector is None:
        _shared_detector = PortToolDetector()
    return _shared_detector


__all__ = ["PortToolDetector", "get_shared_port_tool_detector"]
