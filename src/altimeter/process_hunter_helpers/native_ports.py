"""psutil fallback for listing a process's listening TCP ports."""

from __future__ import annotations

import logging
from typing import Tuple

import psutil

from .port_parser import normalize_ports

logger = logging.getLogger(__name__)


def list_listening_ports(pid: int) -> Tuple[int, ...]:
    """Return LISTEN ports owned by *pid*, or an empty tuple when they cannot be read."""
    try:
        connections = psutil.Process(pid).net_connections(kind="tcp")
    except (psutil.NoSuchProcess, psutil.ZombieProcess):
        logger.debug("Process %s vanished before port inspection", pid)
        return ()
    except psutil.AccessDenied:
        logger.debug("Access denied reading sockets of process %s", pid)
        return ()
    except (psutil.Error, OSError) as exc:
        logger.debug("psutil port inspection failed for %s: %s", pid, exc)
        return ()

    return normalize_ports(
        conn.laddr.port for conn in connections if conn.status == psutil.CONN_LISTEN and conn.laddr
    )


__all__ = ["list_listening_ports"]
