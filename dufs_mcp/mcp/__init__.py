"""
dufs-mcp MCP layer: envelope handling, tool registry, upload jobs and the
stdio/HTTP transports.
"""

from dufs_mcp.mcp.definitions import TOOL_REGISTRY, ToolRegistry
from dufs_mcp.mcp.dispatcher import Dispatcher
from dufs_mcp.mcp.jobs import JobNotFoundError, JobStore
from dufs_mcp.mcp.runner import JobRunner

__all__ = [
    "TOOL_REGISTRY",
    "ToolRegistry",
    "Dispatcher",
    "JobStore",
    "JobNotFoundError",
    "JobRunner",
]
