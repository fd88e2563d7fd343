"""
Single-file upload to dufs: destination resolution, parent directory
creation and the PUT itself. Shared by the synchronous upload tools and the
background job runner.
"""

import logging
import posixpath
from datetime import datetime
from typing import Callable, List, NamedTuple, Optional

from dufs_mcp.core.config import DEFAULT_UPLOAD_DIR
from dufs_mcp.sdk.client import DufsClient
from dufs_mcp.sdk.errors import DufsAPIError, DufsError

logger = logging.getLogger("DufsMcp.mcp.uploads")

DATE_DIR_FORMAT = "%Y%m%d"


class UploadError(Exception):
    """A single upload failed; ``status_code`` is the dufs status if one was received."""

    def __init__(self, message: str, status_code: Optional[int] = None, remote_path: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.remote_path = remote_path


class UploadOutcome(NamedTuple):
    remote_path: str
    status_code: int


def parent_directories(remote_path: str) -> List[str]:
    """Every ancestor directory of ``remote_path``, shallowest first."""
    parent = remote_path.rsplit("/", 1)[0] if "/" in remote_path else ""
    current = ""
    chain = []
    for part in parent.split("/"):
        if not part:
            continue
        current = f"{current}/{part}" if current else part
        chain.append(current)
    return chain


class Uploader:
    def __init__(
        self,
        client: DufsClient,
        upload_dir: str = DEFAULT_UPLOAD_DIR,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.client = client
        self.upload_dir = upload_dir.strip("/") or DEFAULT_UPLOAD_DIR
        self._clock = clock

    def resolve_remote_path(self, local_path: str, remote_path: Optional[str] = None) -> str:
        """
        Caller-supplied paths are used as given, with backslashes turned into
        ``/`` and the leading ``/`` removed. Otherwise the file lands under
        ``<upload_dir>/<YYYYMMDD>/<file name>``.
        """
        if remote_path:
            return remote_path.replace("\\", "/").lstrip("/")
        file_name = posixpath.basename(local_path.replace("\\", "/"))
        date_dir = self._clock().strftime(DATE_DIR_FORMAT)
        return f"{self.upload_dir}/{date_dir}/{file_name}"

    def ensure_remote_directories(self, remote_path: str) -> None:
        for directory in parent_directories(remote_path):
            try:
                result = self.client.make_directory(directory)
            except DufsAPIError as exc:
                raise UploadError(str(exc), exc.status_code, remote_path) from exc
            except DufsError as exc:
                raise UploadError(
                    f"failed to create remote directory {directory}: {exc}", None, remote_path
                ) from exc
            if result.already_exists:
                logger.debug("Remote directory %s already exists", directory)

    def upload(self, local_path: str, remote_path: Optional[str] = None) -> UploadOutcome:
        if not local_path:
            raise UploadError("local_path is required")

        resolved = self.resolve_remote_path(local_path, remote_path)
        self.ensure_remote_directories(resolved)

        try:
            fh = open(local_path, "rb")
        except OSError as exc:
            raise UploadError(f"failed to open file: {exc}", None, resolved) from exc

        with fh:
            try:
                status_code = self.client.put(resolved, fh)
            except DufsAPIError as exc:
                raise UploadError(str(exc), exc.status_code, resolved) from exc
            except DufsError as exc:
                raise UploadError(f"upload failed: {exc}", None, resolved) from exc

        logger.info("Uploaded %s to %s (status %d)", local_path, resolved, status_code)
        return UploadOutcome(resolved, status_code)
