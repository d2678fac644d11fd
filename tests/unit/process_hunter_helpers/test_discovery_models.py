"""Tests for discovery data structures."""

from __future__ import annotations

import dataclasses

import pytest

from altimeter.process_hunter_helpers.models import (
    ConnectionResult,
    ErrorMessages,
    ParseResult,
    ParseStatus,
    ProbeOutcome,
    ProcessCandidate,
    ScanDiagnostics,
    ScanMethod,
)


class TestParseResult:
    """Tests for ParseResult."""

    def test_of_items_is_success(self) -> None:
        result = ParseResult.of([3, 1])

        assert result.status is ParseStatus.SUCCESS
        assert result.ok
        assert list(result) == [3, 1]
        assert len(result) == 2
        assert result[1] == 1

    def test_of_nothing_is_empty(self) -> None:
        result = ParseResult.of([])

        assert result.status is ParseStatus.EMPTY
        assert not result.ok

    def test_failed_keeps_error(self) -> None:
        result = ParseResult.failed("invalid JSON")

        assert result.status is ParseStatus.FAILED
        assert result.error == "invalid JSON"
        assert list(result) == []
        assert ParseResult.empty() != result


def test_probe_outcome_truthiness() -> None:
    assert ProbeOutcome.VERIFIED
    assert not ProbeOutcome.REJECTED
    assert not ProbeOutcome.UNREACHABLE
    assert not ProbeOutcome.TIMEOUT


def test_connection_result_payload() -> None:
    result = ConnectionResult(extension_port=0, connect_port=42100, csrf_token="tok")

    assert result.to_dict() == {"extensionPort": 0, "connectPort": 42100, "csrfToken": "tok"}


def test_candidate_is_immutable() -> None:
    candidate = ProcessCandidate(pid=1, csrf_token="t")

    assert candidate.extension_port == 0
    assert candidate.ppid is None
    with pytest.raises(dataclasses.FrozenInstanceError):
        candidate.pid = 2  # type: ignore[misc]


def test_scan_diagnostics_defaults_and_dict() -> None:
    diagnostics = ScanDiagnostics()

    assert diagnostics.to_dict() == {
        "scan_method": "unknown",
        "target_process": "",
        "attempts": 0,
        "found_candidates": 0,
        "ports": [],
        "verified_port": None,
        "verification_success": False,
    }
    diagnostics.scan_method = ScanMethod.KEYWORD
    assert diagnostics.to_dict()["scan_method"] == "keyword"


def test_error_messages_dict() -> None:
    messages = ErrorMessages("missing", "no tool", ("lsof",))

    assert messages.to_dict() == {
        "processNotFound": "missing",
        "commandNotAvailable": "no tool",
        "requirements": ["lsof"],
    }
