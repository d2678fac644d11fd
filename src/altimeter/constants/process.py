"""Process discovery constants.

Target executable names per platform, the command-line markers that identify
the language server, and the timing bounds for every external command.
"""

# Language server executable names keyed by platform family/architecture
PROCESS_NAMES = {
    "windows": "language_server_windows_x64.exe",
    "darwin_arm": "language_server_macos_arm",
    "darwin_x64": "language_server_macos",
    "linux_x64": "language_server_linux_x64",
    "linux_arm": "language_server_linux_arm",
}

# Command-line markers
CSRF_TOKEN_FLAG = "--csrf_token"
EXTENSION_PORT_FLAG = "--extension_server_port"
APP_DATA_DIR_FLAG = "--app_data_dir"
APP_IDENTITY = "antigravity"

# Broad pattern for diagnostic process listings
DIAGNOSTIC_KEYWORDS = "language|antigravity"

# Port listing tools in preference order
PORT_TOOLS = ("lsof", "ss", "netstat")

# Timing (seconds)
DEFAULT_MAX_ATTEMPTS = 3
PROCESS_COMMAND_TIMEOUT_SECONDS = 15.0
PROCESS_SCAN_RETRY_SECONDS = 0.1
PORT_TOOL_PROBE_TIMEOUT_SECONDS = 3.0
DIAGNOSTIC_COMMAND_TIMEOUT_SECONDS = 5.0

__all__ = [
    "PROCESS_NAMES",
    "CSRF_TOKEN_FLAG",
    "EXTENSION_PORT_FLAG",
    "APP_DATA_DIR_FLAG",
    "APP_IDENTITY",
    "DIAGNOSTIC_KEYWORDS",
    "PORT_TOOLS",
    "DEFAULT_MAX_ATTEMPTS",
    "PROCESS_COMMAND_TIMEOUT_SECONDS",
    "PROCESS_SCAN_RETRY_SECONDS",
    "PORT_TOOL_PROBE_TIMEOUT_SECONDS",
    "DIAGNOSTIC_COMMAND_TIMEOUT_SECONDS",
]
