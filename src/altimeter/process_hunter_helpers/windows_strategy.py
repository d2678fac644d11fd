"""Windows discovery via PowerShell CIM and NetTCPIP cmdlets."""

from __future__ import annotations

import logging
from typing import Any, List, Optional

import orjson

from ..constants.process import DIAGNOSTIC_KEYWORDS
from .candidate_parser import WINDOWS_TOKEN_PATTERN, CandidateMatcher
from .models import ErrorMessages, ParseResult, ProcessCandidate
from .platform_strategy import PlatformStrategy, require_pid, require_safe_process_name
from .port_parser import ports_from_number_list

logger = logging.getLogger(__name__)

# Without these, non-ASCII command lines come back mangled in the console code page
_UTF8_PREFIX = "chcp 65001 >nul && "
_UTF8_HEADER = "[Console]::OutputEncoding = [System.Text.Encoding]::UTF8; "


class WindowsStrategy(PlatformStrategy):
    family = "windows"

    def __init__(self, app_identity: Optional[str] = None) -> None:
        kwargs = {"app_identity": app_identity} if app_identity else {}
        self._matcher = CandidateMatcher(token_pattern=WINDOWS_TOKEN_PATTERN, token_ignore_case=True, **kwargs)

    def process_list_command(self, target_name: str) -> str:
        name = require_safe_process_name(target_name)
        return (
            f'{_UTF8_PREFIX}powershell -NoProfile -Command "{_UTF8_HEADER}'
            f"Get-CimInstance Win32_Process -Filter 'name=''{name}''' "
            f'| Select-Object ProcessId,ParentProcessId,CommandLine | ConvertTo-Json"'
        )

    def keyword_list_command(self) -> Optional[str]:
        return (
            f'{_UTF8_PREFIX}powershell -NoProfile -Command "{_UTF8_HEADER}'
            "Get-CimInstance Win32_Process | Where-Object { $_.CommandLine -match 'csrf_token' } "
            '| Select-Object ProcessId,ParentProcessId,Name,CommandLine | ConvertTo-Json"'
        )

    def parse_process_candidates(self, raw_output: Optional[str]) -> ParseResult[ProcessCandidate]:
        logger.debug("Parsing PowerShell process JSON")
        if not raw_output or not raw_output.strip():
            return ParseResult.empty()

        try:
            records = _load_records(raw_output)
        except orjson.JSONDecodeError as exc:
            logger.debug("Process listing is not valid JSON: %s", exc)
            return ParseResult.failed(f"invalid JSON: {exc}")

        candidates: List[ProcessCandidate] = []
        for record in records:
            candidate = self._candidate_from_record(record)
            if candidate is not None:
                candidates.append(candidate)
        return ParseResult.of(candidates)

    def _candidate_from_record(self, record: Any) -> Optional[ProcessCandidate]:
        if not isinstance(record, dict):
            return None
        command_line = record.get("CommandLine")
        if not isinstance(command_line, str) or not command_line:
            return None
        pid = _coerce_pid(record.get("ProcessId"))
        if pid is None:
            return None
        return self._matcher.extract(pid, command_line, _coerce_pid(record.get("ParentProcessId")))

    def port_list_command(self, pid: int) -> str:
        pid = require_pid(pid)
        return (
            f'{_UTF8_PREFIX}powershell -NoProfile -NonInteractive -Command "{_UTF8_HEADER}'
            f"$ports = Get-NetTCPConnection -State Listen -OwningProcess {pid} -ErrorAction SilentlyContinue "
            '| Select-Object -ExpandProperty LocalPort; if ($ports) { $ports | Sort-Object -Unique }"'
        )

    def parse_listening_ports(self, raw_output: Optional[str]) -> ParseResult[int]:
        if not raw_output or not raw_output.strip():
            return ParseResult.empty()
        return ParseResult.of(ports_from_number_list(raw_output))

    def diagnostic_command(self) -> str:
        return (
            "powershell -NoProfile -Command \"Get-Process | Where-Object { $_.ProcessName -match "
            f"'{DIAGNOSTIC_KEYWORDS}' }} | Select-Object Id,ProcessName,Path | Format-Table -AutoSize\""
        )

    def error_messages(self) -> ErrorMessages:
        return ErrorMessages(
            process_not_found="language_server process not found",
            command_not_available="PowerShell command failed",
            requirements=("Antigravity running", "language_server_windows_x64 running"),
        )


def _load_records(raw_output: str) -> list:
    """Parse ConvertTo-Json output, skipping any console preamble before the payload."""
    starts = [index for index in (raw_output.find("["), raw_output.find("{")) if index >= 0]
    payload = raw_output[min(starts) :] if starts else raw_output
    data = orjson.loads(payload.strip())
    if isinstance(data, list):
        return data
    # ConvertTo-Json emits a bare object for a single match
    return [data]


def _coerce_pid(value: Any) -> Optional[int]:
    if isinstance(value, bool) or value is None:
        return None
    try:
        pid = int(value)
    except (TypeError, ValueError):
        return None
    return pid if pid > 0 else None


__all__ = ["WindowsStrategy"]
