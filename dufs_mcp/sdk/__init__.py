"""
dufs client public exports.
"""

from dufs_mcp.sdk.client import DufsClient, DufsResponse
from dufs_mcp.sdk.errors import DufsAPIError, DufsConnectionError, DufsError

__all__ = [
    "DufsClient",
    "DufsResponse",
    "DufsError",
    "DufsConnectionError",
    "DufsAPIError",
]
