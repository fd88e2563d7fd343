"""
dufs-mcp Protocol Constants
"""

JSONRPC_VERSION = "2.0"

SUPPORTED_PROTOCOL_VERSIONS = ("2025-06-18", "2025-03-26", "2024-11-05")
DEFAULT_PROTOCOL_VERSION = "2024-11-05"

SERVER_NAME = "dufs-mcp-server"

# Standard JSON-RPC Error Codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
INTERNAL_ERROR = -32603

# Application error: unknown method/tool, bad tool arguments, dufs failures
APPLICATION_ERROR = -32000


def negotiate_protocol_version(version) -> str:
    if isinstance(version, str) and version in SUPPORTED_PROTOCOL_VERSIONS:
        return version
    return DEFAULT_PROTOCOL_VERSION
