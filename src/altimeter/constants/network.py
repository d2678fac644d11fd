"""Network and HTTP constants.

These constants define the loopback endpoint, request headers and status
codes used when probing the language server's RPC port.
"""

# HTTP status codes
HTTP_OK = 200

# TCP port range
MIN_PORT = 1
MAX_PORT = 65535

# Loopback RPC endpoint
LOOPBACK_HOST = "127.0.0.1"
UNLEASH_DATA_PATH = "/exa.language_server_pb.LanguageServerService/GetUnleashData"
PROBE_BODY = {"wrapper_data": {}}
PROBE_TIMEOUT_SECONDS = 5.0

# Request headers
CSRF_TOKEN_HEADER = "X-Codeium-Csrf-Token"
CONNECT_PROTOCOL_VERSION_HEADER = "Connect-Protocol-Version"
CONNECT_PROTOCOL_VERSION = "1"

__all__ = [
    "HTTP_OK",
    "MIN_PORT",
    "MAX_PORT",
    "LOOPBACK_HOST",
    "UNLEASH_DATA_PATH",
    "PROBE_BODY",
    "PROBE_TIMEOUT_SECONDS",
    "CSRF_TOKEN_HEADER",
    "CONNECT_PROTOCOL_VERSION_HEADER",
    "CONNECT_PROTOCOL_VERSION",
]
