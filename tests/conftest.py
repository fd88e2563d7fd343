"""Shared fakes for the dufs HTTP API."""

from __future__ import annotations

from typing import Any, Dict, Optional, Tuple, Union
from urllib.parse import unquote, urlparse

import pytest
import requests

from dufs_mcp.sdk.client import DufsClient

DUFS_BASE_URL = "http://dufs.test"

Route = Union[int, requests.Response, Exception]


def make_response(status_code: int = 200, body: Union[str, bytes] = b"", url: str = DUFS_BASE_URL) -> requests.Response:
    response = requests.Response()
    response.status_code = status_code
    response._content = body.encode("utf-8") if isinstance(body, str) else body
    # Lets iter_content() and close() work without a raw urllib3 stream.
    response._content_consumed = True
    response.url = url
    response.encoding = "utf-8"
    return response


class StubSession:
    """
    Stands in for requests.Session. Routes map (METHOD, path) to a status
    code, a prepared response, or an exception to raise.
    """

    def __init__(self, routes: Optional[Dict[Tuple[str, str], Route]] = None, default: Route = 200):
        self.routes = dict(routes or {})
        self.default = default
        self.calls = []
        self.auth = None
        self.verify = True
        self.closed = False

    def request(self, *, method: str, url: str, data: Any, headers: Any, timeout: float, stream: bool):
        parsed = urlparse(url)
        path = unquote(parsed.path)
        body = data.read() if hasattr(data, "read") else data
        self.calls.append(
            {
                "method": method,
                "path": path,
                "query": parsed.query,
                "headers": dict(headers or {}),
                "data": body,
                "timeout": timeout,
                "stream": stream,
            }
        )
        result = self.routes.get((method, path), self.default)
        if isinstance(result, Exception):
            raise result
        if isinstance(result, int):
            return make_response(result, url=url)
        return result

    def calls_for(self, method: str):
        return [call for call in self.calls if call["method"] == method]

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def stub_session():
    return StubSession()


@pytest.fixture
def dufs_client(stub_session):
    return DufsClient(DUFS_BASE_URL, session=stub_session, timeout=5.0)
