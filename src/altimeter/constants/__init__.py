"""Constants package for shared constant values."""

from .network import (
    CONNECT_PROTOCOL_VERSION,
    CSRF_TOKEN_HEADER,
    HTTP_OK,
    LOOPBACK_HOST,
    MAX_PORT,
    MIN_PORT,
    UNLEASH_DATA_PATH,
)
from .process import (
    APP_IDENTITY,
    CSRF_TOKEN_FLAG,
    DEFAULT_MAX_ATTEMPTS,
    EXTENSION_PORT_FLAG,
    PROCESS_NAMES,
)

__all__ = [
    "APP_IDENTITY",
    "CONNECT_PROTOCOL_VERSION",
    "CSRF_TOKEN_FLAG",
    "CSRF_TOKEN_HEADER",
    "DEFAULT_MAX_ATTEMPTS",
    "EXTENSION_PORT_FLAG",
    "HTTP_OK",
    "LOOPBACK_HOST",
    "MAX_PORT",
    "MIN_PORT",
    "PROCESS_NAMES",
    "UNLEASH_DATA_PATH",
]
