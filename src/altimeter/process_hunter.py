"""
Language server discovery.

This module locates the sibling application's embedded language server and
returns a verified loopback connection to it. The server listens on an
ephemeral HTTPS port and only accepts requests carrying the CSRF token from
its own command line, so discovery works entirely from process metadata:

1. List processes named after the platform's language server binary and keep
   the ones whose command line carries the token and identity markers.
2. For each candidate, list the TCP ports it listens on.
3. Probe each port with an authenticated request; the first HTTP 200 wins.

On Windows a broader keyword listing runs when the name-based scan finds
nothing. When every phase fails a diagnostic process dump is logged and the
scan returns None.

Usage:
    from altimeter.process_hunter import ProcessHunter

    hunter = ProcessHunter()
    connection = await hunter.scan_environment()
    if connection is None:
        ...  # language server not running
"""

from __future__ import annotations

import asyncio
import logging
import platform
from typing import Iterable, Optional, Tuple

from .config import DiscoveryConfig
from .errors import EnvironmentNotFoundError, InvalidProbeRequestError
from .process_hunter_helpers.command_runner import CommandRunner
from .process_hunter_helpers.connection_prober import ConnectionProber
from .process_hunter_helpers.models import (
    ConnectionResult,
    ParseStatus,
    ProcessCandidate,
    ScanDiagnostics,
    ScanMethod,
)
from .process_hunter_helpers.native_ports import list_listening_ports
from .process_hunter_helpers.platform_strategy import PlatformStrategy
from .process_hunter_helpers.strategy_factory import select_strategy

logger = logging.getLogger(__name__)

# Failures inside one attempt that must not abort the whole scan
_ATTEMPT_ERRORS = (OSError, RuntimeError, ValueError, TypeError, LookupError)


class ProcessHunter:
    """Finds and verifies the language server's RPC port."""

    def __init__(
        self,
        *,
        config: Optional[DiscoveryConfig] = None,
        strategy: Optional[PlatformStrategy] = None,
        target_process: Optional[str] = None,
        runner: Optional[CommandRunner] = None,
        prober: Optional[ConnectionProber] = None,
        system: Optional[str] = None,
        machine: Optional[str] = None,
    ) -> None:
        self.config = config if config is not None else DiscoveryConfig()
        system = system if system is not None else platform.system()
        machine = machine if machine is not None else platform.machine()
        logger.debug("Initializing ProcessHunter. Platform: %s, Arch: %s", system, machine)

        selection = select_strategy(system, machine, app_identity=self.config.app_identity)
        self.strategy: PlatformStrategy = strategy if strategy is not None else selection.strategy
        self.target_process = self.config.process_name_override or target_process or selection.process_name
        self._runner = runner if runner is not None else CommandRunner()
        self._prober = prober if prober is not None else ConnectionProber()
        self._diagnostics = ScanDiagnostics()

    @property
    def last_diagnostics(self) -> ScanDiagnostics:
        return self._diagnostics

    async def scan_environment(self, max_attempts: Optional[int] = None) -> Optional[ConnectionResult]:
        """
        Run every discovery phase until a port verifies.

        Args:
            max_attempts: Process-name scan attempts; defaults to the config value

        Returns:
            The verified connection, or None when the language server could not
            be found. Environmental failures never raise.

        Raises:
            InvalidProbeRequestError: If max_attempts is not a positive integer
        """
        attempts = self.config.max_attempts if max_attempts is None else max_attempts
        if isinstance(attempts, bool) or not isinstance(attempts, int) or attempts < 1:
            raise InvalidProbeRequestError.bad_attempts(attempts)

        logger.info("Scanning environment, max attempts: %s", attempts)

        result = await self._scan_by_process_name(attempts)
        if result is not None:
            return result

        if self.strategy.keyword_list_command() is not None:
            result = await self._scan_by_keyword()
            if result is not None:
                return result

        logger.warning("Language server not found: %s", self._diagnostics.to_dict())
        await self.run_diagnostics()
        return None

    async def _scan_by_process_name(self, max_attempts: int) -> Optional[ConnectionResult]:
        self._diagnostics = ScanDiagnostics(
            scan_method=ScanMethod.PROCESS_NAME,
            target_process=self.target_process,
        )
        command = self.strategy.process_list_command(self.target_process)

        for attempt in range(1, max_attempts + 1):
            self._diagnostics.attempts = attempt
            try:
                result = await self._runner.run(command, timeout=self.config.process_timeout_seconds)
                if result.execution_failed:
                    logger.error("Attempt %s failed: %s", attempt, result.describe_failure())
                    await self._retry_pause(attempt, max_attempts)
                    continue
                if not result.has_output:
                    logger.debug("Attempt %s: no %s process listed", attempt, self.target_process)
                    continue

                connection = await self._try_candidates(result.stdout)
                if connection is not None:
                    return connection
            except InvalidProbeRequestError:
                raise
            except _ATTEMPT_ERRORS as exc:
                logger.exception("Attempt %s failed: %s", attempt, exc)
                await self._retry_pause(attempt, max_attempts)
        return None

    async def _scan_by_keyword(self) -> Optional[ConnectionResult]:
        command = self.strategy.keyword_list_command()
        if command is None:
            return None

        self._diagnostics = ScanDiagnostics(
            scan_method=ScanMethod.KEYWORD,
            target_process=self.target_process,
            attempts=1,
        )
        logger.info("Process name scan failed; trying keyword search")
        try:
            result = await self._runner.run(command, timeout=self.config.process_timeout_seconds)
            if not result.has_output:
                logger.debug("Keyword search returned nothing (%s)", result.describe_failure())
                return None
            return await self._try_candidates(result.stdout)
        except InvalidProbeRequestError:
            raise
        except _ATTEMPT_ERRORS as exc:
            logger.exception("Keyword search failed: %s", exc)
            return None

    async def _try_candidates(self, stdout: str) -> Optional[ConnectionResult]:
        candidates = self.strategy.parse_process_candidates(stdout)
        if candidates.status is ParseStatus.FAILED:
            logger.warning("Could not parse process listing: %s", candidates.error)
            return None

        self._diagnostics.found_candidates = len(candidates)
        logger.debug("Found %d candidate process(es)", len(candidates))
        for candidate in candidates:
            connection = await self.verify_candidate(candidate)
            if connection is not None:
                return connection
        return None

    async def verify_candidate(self, candidate: ProcessCandidate) -> Optional[ConnectionResult]:
        """Probe every listening port of *candidate* in ascending order."""
        ports = await self._identify_ports(candidate.pid)
        self._diagnostics.ports = list(ports)
        if not ports:
            logger.debug("Process %s has no listening ports yet", candidate.pid)
            return None

        port = await self._verify_connection(ports, candidate.csrf_token)
        if port is None:
            return None

        logger.info("Verified connection on port %s", port)
        self._diagnostics.verified_port = port
        self._diagnostics.verification_success = True
        return ConnectionResult(
            extension_port=candidate.extension_port,
            connect_port=port,
            csrf_token=candidate.csrf_token,
        )

    async def _identify_ports(self, pid: int) -> Tuple[int, ...]:
        try:
            await self.strategy.ensure_port_command_available(self._runner)
            command = self.strategy.port_list_command(pid)
            result = await self._runner.run(command, timeout=self.config.process_timeout_seconds)
        except _ATTEMPT_ERRORS as exc:
            logger.error("Port identification failed for %s: %s", pid, exc)
            return ()

        parsed = self.strategy.parse_listening_ports(result.stdout)
        if parsed.status is ParseStatus.FAILED:
            logger.warning("Could not parse port listing for %s: %s", pid, parsed.error)
        ports = tuple(parsed)

        if not ports and self.strategy.port_tools_missing:
            logger.debug("No port tool available; reading sockets of %s via psutil", pid)
            loop = asyncio.get_running_loop()
            ports = await loop.run_in_executor(None, list_listening_ports, pid)
        return ports

    async def _verify_connection(self, ports: Iterable[int], token: str) -> Optional[int]:
        for port in ports:
            if await self._prober.probe(port, token):
                return port
        return None

    async def _retry_pause(self, attempt: int, max_attempts: int) -> None:
        if attempt < max_attempts:
            await asyncio.sleep(self.config.retry_delay_seconds)

    async def run_diagnostics(self) -> str:
        """Log and return the platform's diagnostic process dump; never raises."""
        try:
            command = self.strategy.diagnostic_command()
            result = await self._runner.run(command, timeout=self.config.diagnostic_timeout_seconds)
        except _ATTEMPT_ERRORS as exc:
            logger.error("Diagnostics failed: %s", exc)
            return ""

        if result.has_output:
            logger.info("Diagnostics:\n%s", result.stdout)
            return result.stdout
        logger.error("Diagnostics failed: %s", result.describe_failure())
        return ""


async def discover_connection(
    max_attempts: Optional[int] = None,
    *,
    required: bool = False,
    hunter: Optional[ProcessHunter] = None,
) -> Optional[ConnectionResult]:
    """
    Scan with a hunter configured from the environment.

    Args:
        max_attempts: Overrides ``ALTIMETER_MAX_ATTEMPTS``
        required: Raise instead of returning None when nothing verifies
        hunter: Pre-built hunter to use

    Raises:
        EnvironmentNotFoundError: If required and no language server verified
    """
    if hunter is None:
        hunter = ProcessHunter(config=DiscoveryConfig.from_env())

    connection = await hunter.scan_environment(max_attempts)
    if connection is None and required:
        messages = hunter.strategy.error_messages()
        raise EnvironmentNotFoundError(messages.process_not_found, requirements=messages.requirements)
    return connection


def discover_connection_sync(
    max_attempts: Optional[int] = None,
    *,
    required: bool = False,
    hunter: Optional[ProcessHunter] = None,
) -> Optional[ConnectionResult]:
    """Blocking wrapper around :func:`discover_connection` for synchronous callers.

    Raises:
        RuntimeError: If called while an event loop is already running.
    """
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        loop = None

    if loop is not None and loop.is_running():
        raise RuntimeError("discover_connection_sync cannot run inside an active event loop. Use discover_connection instead.")

    return asyncio.run(discover_connection(max_attempts, required=required, hunter=hunter))


__all__ = ["ProcessHunter", "discover_connection", "discover_connection_sync"]
