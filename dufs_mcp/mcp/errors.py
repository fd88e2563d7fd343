"""
Errors surfaced to MCP clients as JSON-RPC error objects.
"""

from typing import Optional

from .protocol import APPLICATION_ERROR, INVALID_REQUEST


class RpcError(Exception):
    """An error with a JSON-RPC code and a client-facing message."""

    code = APPLICATION_ERROR

    def __init__(self, message: str, code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class InvalidRequestError(RpcError):
    code = INVALID_REQUEST


class ApplicationError(RpcError):
    code = APPLICATION_ERROR


class UnknownMethodError(ApplicationError):
    def __init__(self, method: str):
        super().__init__(f"unknown method: {method}")
        self.method = method


class UnknownToolError(ApplicationError):
    def __init__(self, name: str):
        super().__init__(f"unknown tool: {name}")
        self.name = name


class ToolArgumentError(ApplicationError):
    """A tool argument is missing or has the wrong shape."""
