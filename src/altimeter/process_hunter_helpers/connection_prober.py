"""Authenticated HTTPS probe confirming a port is the language server RPC endpoint."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

import aiohttp
import orjson

from ..constants.network import (
    CONNECT_PROTOCOL_VERSION,
    CONNECT_PROTOCOL_VERSION_HEADER,
    CSRF_TOKEN_HEADER,
    HTTP_OK,
    LOOPBACK_HOST,
    MAX_PORT,
    MIN_PORT,
    PROBE_BODY,
    PROBE_TIMEOUT_SECONDS,
    UNLEASH_DATA_PATH,
)
from ..errors import InvalidProbeRequestError
from .models import ProbeOutcome

logger = logging.getLogger(__name__)

_PROBE_PAYLOAD = orjson.dumps(PROBE_BODY)

SessionFactory = Callable[[], aiohttp.ClientSession]


def _default_session_factory(timeout_seconds: float) -> SessionFactory:
    def _factory() -> aiohttp.ClientSession:
        # The language server presents a self-signed certificate on loopback
        connector = aiohttp.TCPConnector(ssl=False, force_close=True)
        return aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=timeout_seconds),
            connector=connector,
        )

    return _factory


def validate_probe_arguments(port: int, token: str) -> None:
    if isinstance(port, bool) or not isinstance(port, int) or not MIN_PORT <= port <= MAX_PORT:
        raise InvalidProbeRequestError.bad_port(port)
    if not isinstance(token, str) or not token.strip():
        raise InvalidProbeRequestError.bad_token(token)


class ConnectionProber:
    """
    Sends one ``GetUnleashData`` POST per port.

    HTTP 200 means the port is the RPC endpoint and accepted the token. Every
    other status, transport error or timeout resolves to a falsy outcome.
    """

    def __init__(
        self,
        *,
        host: str = LOOPBACK_HOST,
        timeout_seconds: float = PROBE_TIMEOUT_SECONDS,
        session_factory: Optional[SessionFactory] = None,
    ) -> None:
        self.host = host
        self.timeout_seconds = timeout_seconds
        self._session_factory = session_factory or _default_session_factory(timeout_seconds)

    def url_for(self, port: int) -> str:
        return f"https://{self.host}:{port}{UNLEASH_DATA_PATH}"

    async def probe(self, port: int, token: str) -> ProbeOutcome:
        validate_probe_arguments(port, token)
        headers = {
            "Content-Type": "application/json",
            CSRF_TOKEN_HEADER: token,
            CONNECT_PROTOCOL_VERSION_HEADER: CONNECT_PROTOCOL_VERSION,
        }
        url = self.url_for(port)

        try:
            async with self._session_factory() as session:
                async with session.post(url, data=_PROBE_PAYLOAD, headers=headers) as response:
                    if response.status == HTTP_OK:
                        logger.debug("Probe accepted on port %s", port)
                        return ProbeOutcome.VERIFIED
                    logger.debug("Probe rejected on port %s: HTTP %s", port, response.status)
                    return ProbeOutcome.REJECTED
        except asyncio.TimeoutError:
            logger.debug("Probe timed out on port %s", port)
            return ProbeOutcome.TIMEOUT
        except aiohttp.ClientError as exc:
            logger.debug("Probe failed on port %s: %s", port, exc)
            return ProbeOutcome.UNREACHABLE
        except OSError as exc:
            logger.debug("Probe socket error on port %s: %s", port, exc)
            return ProbeOutcome.UNREACHABLE


__all__ = ["ConnectionProber", "validate_probe_arguments"]
