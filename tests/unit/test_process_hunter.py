"""Tests for ProcessHunter and the discover_connection entry points."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import orjson
import pytest

from altimeter.config import DiscoveryConfig
from altimeter.errors import EnvironmentNotFoundError, InvalidProbeRequestError
from altimeter.process_hunter import ProcessHunter, discover_connection, discover_connection_sync
from altimeter.process_hunter_helpers.command_runner import CommandResult
from altimeter.process_hunter_helpers.models import ConnectionResult, ScanMethod
from altimeter.process_hunter_helpers.port_tool_detector import PortToolDetector
from altimeter.process_hunter_helpers.unix_strategy import UnixStrategy
from altimeter.process_hunter_helpers.windows_strategy import WindowsStrategy
from tests.helpers.discovery_fakes import ps_line

CURRENT_PID = 1000
LINUX_TARGET = "language_server_linux_x64"
WINDOWS_TARGET = "language_server_windows_x64.exe"


def ss_listing(pid: int, *ports: int) -> str:
    return "".join(
        f'LISTEN 0      4096   127.0.0.1:{port}   0.0.0.0:*   users:(("language_serve",pid={pid},fd=9))\n' for port in ports
    )


def timed_out(command: str) -> CommandResult:
    return CommandResult(command=command, timed_out=True)


@pytest.fixture
def linux_hunter(fake_runner, fake_prober, resolved_detector):
    def _build(**config_overrides) -> ProcessHunter:
        config_overrides.setdefault("retry_delay_seconds", 0)
        return ProcessHunter(
            config=DiscoveryConfig(**config_overrides),
            strategy=UnixStrategy("linux", detector=resolved_detector, current_pid=CURRENT_PID),
            target_process=LINUX_TARGET,
            runner=fake_runner,
            prober=fake_prober,
            system="Linux",
            machine="x86_64",
        )

    return _build


class TestScanEnvironment:
    """End-to-end scans against fake commands and probes."""

    @pytest.mark.asyncio
    async def test_single_candidate_verifies(self, linux_hunter, fake_runner, fake_prober) -> None:
        fake_runner.route("ps -ww", ps_line(12345, 1, token="abc-123", port=5678))
        fake_runner.route("pid=12345,", ss_listing(12345, 8888))
        fake_prober.accepted.add((8888, "abc-123"))
        hunter = linux_hunter()

        result = await hunter.scan_environment()

        assert result == ConnectionResult(extension_port=5678, connect_port=8888, csrf_token="abc-123")
        assert fake_runner.commands_matching("ps aux") == []
        diagnostics = hunter.last_diagnostics
        assert diagnostics.scan_method is ScanMethod.PROCESS_NAME
        assert diagnostics.attempts == 1
        assert diagnostics.found_candidates == 1
        assert diagnostics.ports == [8888]
        assert diagnostics.verified_port == 8888
        assert diagnostics.verification_success is True

    @pytest.mark.asyncio
    async def test_missing_extension_port_defaults_to_zero(self, linux_hunter, fake_runner, fake_prober) -> None:
        fake_runner.route("ps -ww", ps_line(12345, 1, token="abc", port=None))
        fake_runner.route("pid=12345,", ss_listing(12345, 8888))
        fake_prober.accepted.add((8888, "abc"))

        result = await linux_hunter().scan_environment()

        assert result is not None
        assert result.extension_port == 0

    @pytest.mark.asyncio
    async def test_not_found_runs_diagnostics_once(self, linux_hunter, fake_runner, fake_prober) -> None:
        fake_runner.route("ps aux", "user 1 0.0 language_server\n")

        result = await linux_hunter().scan_environment()

        assert result is None
        assert len(fake_runner.commands_matching("ps -ww")) == 3
        assert len(fake_runner.commands_matching("ps aux")) == 1
        assert fake_prober.calls == []

    @pytest.mark.asyncio
    async def test_second_candidate_wins_when_first_rejected(self, linux_hunter, fake_runner, fake_prober) -> None:
        listing = "\n".join([ps_line(11, 1, token="first-token"), ps_line(22, 1, token="second-token")])
        fake_runner.route("ps -ww", listing)
        fake_runner.route("pid=11,", ss_listing(11, 1111))
        fake_runner.route("pid=22,", ss_listing(22, 2222))
        fake_prober.accepted.add((2222, "second-token"))

        result = await linux_hunter().scan_environment()

        assert result is not None
        assert result.csrf_token == "second-token"
        assert result.connect_port == 2222
        assert fake_prober.calls == [(1111, "first-token"), (2222, "second-token")]

    @pytest.mark.asyncio
    async def test_child_of_current_process_is_tried_first(self, linux_hunter, fake_runner, fake_prober) -> None:
        listing = "\n".join([ps_line(11, 1, token="other"), ps_line(22, CURRENT_PID, token="child")])
        fake_runner.route("ps -ww", listing)
        fake_runner.route("pid=11,", ss_listing(11, 1111))
        fake_runner.route("pid=22,", ss_listing(22, 2222))
        fake_prober.accepted.update({(1111, "other"), (2222, "child")})

        result = await linux_hunter().scan_environment()

        assert result is not None
        assert result.csrf_token == "child"
        assert fake_prober.calls == [(2222, "child")]

    @pytest.mark.asyncio
    async def test_ports_probed_in_ascending_order(self, linux_hunter, fake_runner, fake_prober) -> None:
        fake_runner.route("ps -ww", ps_line(5, 1, token="tok"))
        fake_runner.route("pid=5,", ss_listing(5, 43000, 42000, 43000))
        fake_prober.accepted.add((43000, "tok"))

        result = await linux_hunter().scan_environment()

        assert result is not None
        assert result.connect_port == 43000
        assert fake_prober.calls == [(42000, "tok"), (43000, "tok")]

    @pytest.mark.asyncio
    async def test_candidate_without_ports_is_skipped(self, linux_hunter, fake_runner, fake_prober) -> None:
        listing = "\n".join([ps_line(11, 1, token="a"), ps_line(22, 1, token="b")])
        fake_runner.route("ps -ww", listing)
        fake_runner.route("pid=22,", ss_listing(22, 2222))
        fake_prober.accepted.add((2222, "b"))

        result = await linux_hunter().scan_environment()

        assert result is not None
        assert result.csrf_token == "b"

    @pytest.mark.asyncio
    async def test_listing_that_appears_on_later_attempt(self, linux_hunter, fake_runner, fake_prober) -> None:
        fake_runner.route("ps -ww", None, None, ps_line(7, 1, token="late"))
        fake_runner.route("pid=7,", ss_listing(7, 7000))
        fake_prober.accepted.add((7000, "late"))
        hunter = linux_hunter()

        result = await hunter.scan_environment()

        assert result is not None
        assert hunter.last_diagnostics.attempts == 3

    @pytest.mark.asyncio
    async def test_execution_failure_pauses_between_attempts(self, linux_hunter, fake_runner) -> None:
        fake_runner.route("ps -ww", timed_out)
        sleep = AsyncMock()

        with patch("altimeter.process_hunter.asyncio.sleep", sleep):
            result = await linux_hunter(max_attempts=2, retry_delay_seconds=0.25).scan_environment()

        assert result is None
        assert len(fake_runner.commands_matching("ps -ww")) == 2
        sleep.assert_awaited_once_with(0.25)

    @pytest.mark.asyncio
    async def test_unexpected_attempt_error_is_contained(self, linux_hunter, fake_runner, fake_prober) -> None:
        def explode(command: str) -> CommandResult:
            raise OSError("fork failed")

        fake_runner.route("ps -ww", explode, ps_line(7, 1, token="tok"))
        fake_runner.route("pid=7,", ss_listing(7, 7000))
        fake_prober.accepted.add((7000, "tok"))

        result = await linux_hunter().scan_environment()

        assert result is not None
        assert result.connect_port == 7000

    @pytest.mark.asyncio
    async def test_explicit_attempts_override_config(self, linux_hunter, fake_runner) -> None:
        await linux_hunter(max_attempts=5).scan_environment(max_attempts=1)

        assert len(fake_runner.commands_matching("ps -ww")) == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("attempts", [0, -1, True, 1.5, "3"])
    async def test_invalid_attempts_rejected(self, linux_hunter, fake_runner, attempts) -> None:
        with pytest.raises(InvalidProbeRequestError):
            await linux_hunter().scan_environment(attempts)
        assert fake_runner.calls == []

    @pytest.mark.asyncio
    async def test_command_timeouts_come_from_config(self, linux_hunter, fake_runner) -> None:
        await linux_hunter(max_attempts=1, process_timeout_seconds=4.0, diagnostic_timeout_seconds=2.0).scan_environment()

        assert fake_runner.calls[0][1] == 4.0
        assert fake_runner.calls[-1] == (fake_runner.commands_matching("ps aux")[0], 2.0)

    @pytest.mark.asyncio
    async def test_psutil_fallback_when_no_port_tool(self, fake_runner, fake_prober) -> None:
        detector = PortToolDetector()
        detector._resolved = True
        hunter = ProcessHunter(
            config=DiscoveryConfig(retry_delay_seconds=0),
            strategy=UnixStrategy("linux", detector=detector, current_pid=CURRENT_PID),
            target_process=LINUX_TARGET,
            runner=fake_runner,
            prober=fake_prober,
        )
        fake_runner.route("ps -ww", ps_line(12345, 1, token="tok"))
        fake_prober.accepted.add((9999, "tok"))
        native = MagicMock(return_value=(9999,))

        with patch("altimeter.process_hunter.list_listening_ports", native):
            result = await hunter.scan_environment()

        assert result is not None
        assert result.connect_port == 9999
        native.assert_called_once_with(12345)


class TestWindowsKeywordFallback:
    """The broader keyword listing only exists on Windows."""

    @staticmethod
    def _hunter(fake_runner, fake_prober) -> ProcessHunter:
        return ProcessHunter(
            config=DiscoveryConfig(retry_delay_seconds=0),
            strategy=WindowsStrategy(),
            target_process=WINDOWS_TARGET,
            runner=fake_runner,
            prober=fake_prober,
            system="Windows",
            machine="AMD64",
        )

    @pytest.mark.asyncio
    async def test_keyword_phase_finds_server(self, fake_runner, fake_prober) -> None:
        record = {
            "ProcessId": 4321,
            "Name": "language_server_windows_x64.exe",
            "CommandLine": "ls.exe --csrf_token deadbeef-01 --app_data_dir antigravity",
        }
        fake_runner.route("-match 'csrf_token'", orjson.dumps(record).decode())
        fake_runner.route("Get-NetTCPConnection", "57001\r\n")
        fake_prober.accepted.add((57001, "deadbeef-01"))
        hunter = self._hunter(fake_runner, fake_prober)

        result = await hunter.scan_environment(max_attempts=2)

        assert result == ConnectionResult(extension_port=0, connect_port=57001, csrf_token="deadbeef-01")
        assert len(fake_runner.commands_matching("name=''")) == 2
        assert hunter.last_diagnostics.scan_method is ScanMethod.KEYWORD

    @pytest.mark.asyncio
    async def test_keyword_phase_empty_then_diagnostics(self, fake_runner, fake_prober) -> None:
        result = await self._hunter(fake_runner, fake_prober).scan_environment(max_attempts=1)

        assert result is None
        assert len(fake_runner.commands_matching("-match 'csrf_token'")) == 1
        assert len(fake_runner.commands_matching("Get-Process")) == 1

    @pytest.mark.asyncio
    async def test_unparseable_listing_is_treated_as_not_found(self, fake_runner, fake_prober) -> None:
        fake_runner.route("name=''", "{broken")

        result = await self._hunter(fake_runner, fake_prober).scan_environment(max_attempts=1)

        assert result is None
        assert fake_prober.calls == []


class TestConstruction:
    """Tests for strategy and target selection in the constructor."""

    def test_platform_defaults(self) -> None:
        hunter = ProcessHunter(system="Darwin", machine="arm64")

        assert isinstance(hunter.strategy, UnixStrategy)
        assert hunter.strategy.family == "darwin"
        assert hunter.target_process == "language_server_macos_arm"

    def test_process_name_override_wins(self) -> None:
        hunter = ProcessHunter(
            config=DiscoveryConfig(process_name_override="custom_server"),
            target_process=LINUX_TARGET,
            system="Linux",
            machine="x86_64",
        )

        assert hunter.target_process == "custom_server"


class TestRunDiagnostics:
    """Tests for ProcessHunter.run_diagnostics."""

    @pytest.mark.asyncio
    async def test_returns_output(self, linux_hunter, fake_runner) -> None:
        fake_runner.route("ps aux", "dev 42 language_server_linux_x64\n")

        assert await linux_hunter().run_diagnostics() == "dev 42 language_server_linux_x64\n"

    @pytest.mark.asyncio
    async def test_failure_returns_empty_string(self, linux_hunter, fake_runner) -> None:
        fake_runner.route("ps aux", timed_out)

        assert await linux_hunter().run_diagnostics() == ""


class TestDiscoverConnection:
    """Tests for the module-level entry points."""

    @pytest.mark.asyncio
    async def test_returns_none_when_not_required(self, linux_hunter) -> None:
        assert await discover_connection(1, hunter=linux_hunter()) is None

    @pytest.mark.asyncio
    async def test_required_raises_with_guidance(self, linux_hunter) -> None:
        with pytest.raises(EnvironmentNotFoundError) as exc_info:
            await discover_connection(1, required=True, hunter=linux_hunter())

        assert exc_info.value.message == "Process not found"
        assert exc_info.value.requirements == ("lsof or netstat or ss",)

    def test_sync_wrapper_returns_connection(self, linux_hunter, fake_runner, fake_prober) -> None:
        fake_runner.route("ps -ww", ps_line(3, 1, token="sync"))
        fake_runner.route("pid=3,", ss_listing(3, 3333))
        fake_prober.accepted.add((3333, "sync"))

        result = discover_connection_sync(hunter=linux_hunter())

        assert result is not None
        assert result.connect_port == 3333

    @pytest.mark.asyncio
    async def test_sync_wrapper_refuses_running_loop(self, linux_hunter) -> None:
        with pytest.raises(RuntimeError, match="active event loop"):
            discover_connection_sync(hunter=linux_hunter())
