"""
Parsers for listening-socket listings.

Understands the three Unix tools the port command may fall through to and
the bare port list PowerShell prints:

- ``ss -tlnp``:   ``LISTEN 0 4096 127.0.0.1:42100 0.0.0.0:* users:(("language_serv",pid=9,fd=7))``
- ``lsof -iTCP``: ``language_ 9 user 7u IPv4 0x0 0t0 TCP 127.0.0.1:42100 (LISTEN)``
- ``netstat -tlnp``: ``tcp 0 0 127.0.0.1:42100 0.0.0.0:* LISTEN 9/language_serv``
- PowerShell: one port per line
"""

from __future__ import annotations

import re
from typing import Iterable, Set, Tuple

from ..constants.network import MAX_PORT, MIN_PORT

_SS_RE = re.compile(r"^\s*LISTEN\s+\d+\s+\d+\s+(\S+)", re.MULTILINE)
_LSOF_RE = re.compile(r"\bTCP\s+\S*:(\d+)\s+\(LISTEN\)", re.IGNORECASE)
_NETSTAT_RE = re.compile(r"^\s*tcp6?\s+\d+\s+\d+\s+(\S+)\s+\S+\s+LISTEN\b", re.MULTILINE | re.IGNORECASE)
_BARE_NUMBER_RE = re.compile(r"\b\d{1,5}\b")


def normalize_ports(values: Iterable[int]) -> Tuple[int, ...]:
    """Drop out-of-range values, deduplicate, and sort ascending."""
    return tuple(sorted({value for value in values if MIN_PORT <= value <= MAX_PORT}))


def _port_from_address(address: str) -> int | None:
    _, sep, port_text = address.rpartition(":")
    if not sep or not port_text.isdigit():
        return None
    return int(port_text)


def ports_from_unix_listing(stdout: str) -> Tuple[int, ...]:
    """Collect LISTEN ports from any mix of ss, lsof and netstat lines."""
    found: Set[int] = set()

    for pattern in (_SS_RE, _NETSTAT_RE):
        for match in pattern.finditer(stdout):
            port = _port_from_address(match.group(1))
            if port is not None:
                found.add(port)

    for match in _LSOF_RE.finditer(stdout):
        found.add(int(match.group(1)))

    return normalize_ports(found)


def ports_from_number_list(stdout: str) -> Tuple[int, ...]:
    """Collect every 1-5 digit number, as printed by ``Select-Object -ExpandProperty LocalPort``."""
    return normalize_ports(int(value) for value in _BARE_NUMBER_RE.findall(stdout))


__all__ = ["normalize_ports", "ports_from_number_list", "ports_from_unix_listing"]
