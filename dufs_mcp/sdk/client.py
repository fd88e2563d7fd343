"""
dufs HTTP client.

dufs exposes a WebDAV-flavoured API: GET/PUT/DELETE on file paths, MKCOL to
create directories, MOVE with a Destination header, and query switches such
as ``?hash``, ``?zip`` and ``?json`` on GET.
"""

from __future__ import annotations

import json
import logging
from typing import Any, BinaryIO, Dict, NamedTuple, Optional, Tuple, Union
from urllib.parse import quote, urlparse

import requests

from dufs_mcp.sdk.errors import DufsAPIError, DufsConnectionError, DufsError

logger = logging.getLogger("DufsMcp.sdk.client")

HEALTH_PATH = "/__dufs__/health"
DOWNLOAD_CHUNK_SIZE = 64 * 1024
# dufs answers MKCOL on an existing directory with 405 Method Not Allowed.
MKCOL_EXISTS_STATUS = 405


class DufsResponse(NamedTuple):
    status_code: int
    text: str


class MkcolResult(NamedTuple):
    created: bool
    status_code: int

    @property
    def already_exists(self) -> bool:
        return not self.created


def _normalize_base_url(base_url: str) -> str:
    value = base_url.rstrip("/")
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError(f"Invalid dufs base URL: {base_url!r}")
    return value


def _read_error_body(response: requests.Response) -> str:
    try:
        return response.text.strip()
    except Exception:
        return ""


class DufsClient:
    """
    Synchronous client for a dufs server.

    Usage:
        client = DufsClient("http://127.0.0.1:5000", username="admin", password="pw")
        client.make_directory("uploads")
        with open("report.pdf", "rb") as fh:
            client.put("uploads/report.pdf", fh)
    """

    def __init__(
        self,
        base_url: str,
        *,
        username: Optional[str] = None,
        password: Optional[str] = None,
        timeout: float = 30.0,
        allow_insecure: bool = False,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = _normalize_base_url(base_url)
        self.timeout = timeout
        self._owns_session = session is None
        self._session = session or requests.Session()
        if username and password:
            self._session.auth = (username, password)
        if allow_insecure:
            self._session.verify = False

    @classmethod
    def from_config(cls, config, session: Optional[requests.Session] = None) -> "DufsClient":
        return cls(
            config.url,
            username=config.username,
            password=config.password,
            timeout=config.timeout,
            allow_insecure=config.allow_insecure,
            session=session,
        )

    def close(self) -> None:
        if self._owns_session:
            self._session.close()

    def __enter__(self) -> "DufsClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def url_for(self, path: str, query: Optional[str] = None) -> str:
        """Absolute URL for a remote path; ``query`` is appended verbatim."""
        url = f"{self.base_url}/{quote(path.lstrip('/'), safe='/')}"
        if query:
            url = f"{url}?{query}"
        return url

    def request(
        self,
        method: str,
        path: str,
        *,
        query: Optional[str] = None,
        data: Union[bytes, BinaryIO, None] = None,
        headers: Optional[Dict[str, str]] = None,
        stream: bool = False,
    ) -> requests.Response:
        url = self.url_for(path, query)
        logger.debug("dufs %s %s", method, url)
        try:
            return self._session.request(
                method=method,
                url=url,
                data=data,
                headers=headers,
                timeout=self.timeout,
                stream=stream,
            )
        except requests.RequestException as exc:
            raise DufsConnectionError(f"{method} {path} failed: {exc}") from exc

    def _checked(
        self,
        operation: str,
        method: str,
        path: str,
        **kwargs: Any,
    ) -> requests.Response:
        response = self.request(method, path, **kwargs)
        if response.status_code >= 400:
            body = _read_error_body(response)
            response.close()
            raise DufsAPIError(operation, status_code=response.status_code, body=body, path=path)
        return response

    def put(self, path: str, data: Union[bytes, BinaryIO]) -> int:
        with self._checked("upload", "PUT", path, data=data) as response:
            return response.status_code

    def delete(self, path: str) -> int:
        with self._checked("delete", "DELETE", path) as response:
            return response.status_code

    def make_directory(self, path: str) -> MkcolResult:
        response = self.request("MKCOL", path)
        with response:
            if response.status_code == MKCOL_EXISTS_STATUS:
                return MkcolResult(created=False, status_code=response.status_code)
            if response.status_code >= 400:
                raise DufsAPIError(
                    "create directory",
                    status_code=response.status_code,
                    body=_read_error_body(response),
                    path=path,
                )
            return MkcolResult(created=True, status_code=response.status_code)

    def move(self, source: str, destination: str) -> int:
        headers = {"Destination": self.url_for(destination)}
        with self._checked("move", "MOVE", source, headers=headers) as response:
            return response.status_code

    def get_hash(self, path: str) -> str:
        with self._checked("get hash", "GET", path, query="hash") as response:
            return response.text.strip()

    def list(
        self,
        path: str = "/",
        *,
        search: Optional[str] = None,
        fmt: Optional[str] = None,
    ) -> Tuple[Any, int]:
        """List a directory. Returns (data, status_code)."""
        parts = []
        if search:
            parts.append(f"q={quote(search)}")
        if fmt:
            parts.append(fmt)
        query = "&".join(parts) or None
        with self._checked("list", "GET", path, query=query) as response:
            body = response.text
            status = response.status_code
        if fmt == "json":
            try:
                return json.loads(body), status
            except ValueError as exc:
                raise DufsError(f"failed to parse JSON: {exc}") from exc
        return body, status

    def download_to(
        self,
        path: str,
        local_path: str,
        *,
        archive: bool = False,
    ) -> Tuple[int, int]:
        """
        Stream a remote file (or a directory as zip when ``archive``) to disk.
        Returns (bytes_written, status_code).
        """
        operation = "download folder" if archive else "download"
        query = "zip" if archive else None
        written = 0
        with self._checked(operation, "GET", path, query=query, stream=True) as response:
            try:
                with open(local_path, "wb") as fh:
                    for chunk in response.iter_content(chunk_size=DOWNLOAD_CHUNK_SIZE):
                        if chunk:
                            fh.write(chunk)
                            written += len(chunk)
            except requests.RequestException as exc:
                raise DufsConnectionError(f"GET {path} interrupted: {exc}") from exc
            return written, response.status_code

    def health(self) -> DufsResponse:
        with self.request("GET", HEALTH_PATH) as response:
            return DufsResponse(response.status_code, _read_error_body(response))
