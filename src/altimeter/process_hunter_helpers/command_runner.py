"""Shell command execution with a hard timeout and no exceptions for failure."""

from __future__ import annotations

import asyncio
import logging
import os
import signal
import sys
from dataclasses import dataclass
from typing import List, Mapping, Optional

import psutil

logger = logging.getLogger(__name__)

_KILL_GRACE_SECONDS = 1.0
_POSIX = sys.platform != "win32"


@dataclass(frozen=True)
class CommandResult:
    """
    Captured outcome of one shell command.

    ``returncode`` is None when the process never finished (spawn failure or
    timeout). Callers treat every non-success the same as empty output.
    """

    command: str
    stdout: str = ""
    stderr: str = ""
    returncode: Optional[int] = None
    timed_out: bool = False
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.returncode == 0 and not self.timed_out and self.error is None

    @property
    def execution_failed(self) -> bool:
        """True when the command could not run to completion at all."""
        return self.timed_out or self.error is not None

    @property
    def has_output(self) -> bool:
        return bool(self.stdout.strip())

    def describe_failure(self) -> str:
        if self.timed_out:
            return "timed out"
        if self.error is not None:
            return self.error
        if self.returncode not in (0, None):
            stderr = self.stderr.strip()
            return f"exit code {self.returncode}" + (f": {stderr[:200]}" if stderr else "")
        return "no output"


def _decode(data: Optional[bytes]) -> str:
    if not data:
        return ""
    return data.decode("utf-8", errors="replace")


class CommandRunner:
    """Runs shell commands through the platform shell on the event loop."""

    def __init__(self, env: Optional[Mapping[str, str]] = None) -> None:
        self._env = dict(env) if env is not None else None

    async def run(self, command: str, *, timeout: float) -> CommandResult:
        logger.debug("Running command (timeout %.1fs): %s", timeout, command)
        try:
            process = await asyncio.create_subprocess_shell(
                command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=self._env,
                # Own process group so a timeout can kill the whole pipeline, not just the shell
                start_new_session=_POSIX,
            )
        except (OSError, ValueError) as exc:
            logger.warning("Failed to start command %r: %s", command, exc)
            return CommandResult(command=command, error=str(exc))

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning("Command timed out after %.1fs: %s", timeout, command)
            await _terminate(process)
            return CommandResult(command=command, timed_out=True)

        result = CommandResult(
            command=command,
            stdout=_decode(stdout),
            stderr=_decode(stderr),
            returncode=process.returncode,
        )
        if not result.succeeded:
            logger.debug("Command finished with %s: %s", result.describe_failure(), command)
        return result


def _descendants(pid: int) -> List[psutil.Process]:
    try:
        return psutil.Process(pid).children(recursive=True)
    except psutil.Error as exc:
        logger.debug("Could not list children of command process %s: %s", pid, exc)
        return []


def _kill_process_group(pid: int) -> None:
    try:
        os.killpg(pid, signal.SIGKILL)
    except ProcessLookupError:
        return
    except PermissionError as exc:
        logger.debug("Could not kill process group %s: %s", pid, exc)


def _kill_descendants(children: List[psutil.Process]) -> None:
    for child in children:
        try:
            child.kill()
        except psutil.NoSuchProcess:
            continue
        except psutil.Error as exc:
            logger.debug("Could not kill command child %s: %s", child.pid, exc)


async def _terminate(process: asyncio.subprocess.Process) -> None:
    """Kill the shell and every process it spawned, then reap the shell."""
    # Snapshot before the kill; once the shell dies its children are reparented
    children = _descendants(process.pid)
    if _POSIX:
        _kill_process_group(process.pid)
    try:
        process.kill()
    except ProcessLookupError:
        pass
    _kill_descendants(children)

    try:
        await asyncio.wait_for(process.wait(), timeout=_KILL_GRACE_SECONDS)
    except asyncio.TimeoutError:
        logger.warning("Command process %s did not exit after kill", process.pid)


__all__ = ["CommandResult", "CommandRunner"]
