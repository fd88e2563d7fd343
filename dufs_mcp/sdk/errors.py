"""
dufs client exceptions.
"""

from __future__ import annotations

from typing import Optional


class DufsError(RuntimeError):
    """Base class for dufs client errors."""

    status_code: Optional[int] = None


class DufsConnectionError(DufsError):
    """Raised when the client cannot reach the dufs server."""


class DufsAPIError(DufsError):
    """Raised when dufs answers with an HTTP error status."""

    def __init__(
        self,
        operation: str,
        *,
        status_code: int,
        body: str = "",
        path: Optional[str] = None,
    ) -> None:
        self.operation = operation
        self.status_code = status_code
        self.body = body
        self.path = path
        super().__init__(f"{operation} failed with status {status_code}: {body}")
