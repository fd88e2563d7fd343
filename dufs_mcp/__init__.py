"""
dufs-mcp: MCP tool server for the dufs file server
"""

from dufs_mcp.sdk import (
    DufsAPIError,
    DufsClient,
    DufsConnectionError,
    DufsError,
)
from dufs_mcp.version import __version__

__all__ = [
    "__version__",
    "DufsClient",
    "DufsError",
    "DufsConnectionError",
    "DufsAPIError",
]
