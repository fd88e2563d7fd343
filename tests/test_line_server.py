import io
import json

import pytest

from dufs_mcp.cli import build_services
from dufs_mcp.core.config import DufsConfig, DufsMcpConfig
from dufs_mcp.mcp.server import LineStreamServer


@pytest.fixture
def server(dufs_client):
    services = build_services(DufsMcpConfig(dufs=DufsConfig(url="http://dufs.test")), client=dufs_client)
    yield LineStreamServer(services.dispatcher)
    services.runner.shutdown(wait=True)


def _encode(line):
    return line if isinstance(line, bytes) else line.encode("utf-8")


def _serve(server, lines):
    in_stream = io.BytesIO(b"".join(_encode(line) + b"\n" for line in lines))
    out_stream = io.StringIO()
    server.serve(in_stream, out_stream)
    return [json.loads(line) for line in out_stream.getvalue().splitlines()]


def test_responses_in_request_order(server):
    responses = _serve(server, [
        '{"jsonrpc":"2.0","id":1,"method":"initialize","params":{}}',
        '{"jsonrpc":"2.0","method":"notifications/initialized"}',
        b'{"jsonrpc":"2.0","id":2,"method":"tools/list"}',
    ])

    assert [response["id"] for response in responses] == [1, 2]
    assert "protocolVersion" in responses[0]["result"]
    assert len(responses[1]["result"]["tools"]) == 11


def test_blank_lines_are_skipped(server):
    responses = _serve(server, ["", "   ", '{"jsonrpc":"2.0","id":5,"method":"tools/list"}'])
    assert [response["id"] for response in responses] == [5]


def test_parse_error_written_and_loop_continues(server):
    responses = _serve(server, [
        "this is not json",
        '{"jsonrpc":"2.0","id":9,"method":"bogus","params":[',
        '{"jsonrpc":"2.0","id":3,"method":"tools/list"}',
    ])

    assert responses[0]["error"]["code"] == -32700
    assert responses[0]["id"] is None
    assert responses[1]["error"]["code"] == -32700
    assert responses[2]["id"] == 3


def test_parse_error_keeps_recoverable_id(server):
    responses = _serve(server, ['{"jsonrpc":"2.0","id":11,"method":["tools/list"]}'])
    assert len(responses) == 1
    assert responses[0]["id"] == 11
    assert responses[0]["error"]["code"] == -32700
    assert responses[0]["error"]["message"].startswith("Parse error:")


def test_each_response_is_one_line(server):
    in_stream = io.BytesIO(b'{"jsonrpc":"2.0","id":1,"method":"tools/list"}\n')
    out_stream = io.StringIO()
    server.serve(in_stream, out_stream)
    output = out_stream.getvalue()
    assert output.count("\n") == 1
    assert output.endswith("\n")


class _ClosedPipe(io.StringIO):
    def write(self, s):
        raise BrokenPipeError("pipe closed")


def test_closed_output_stops_writing(server):
    in_stream = io.BytesIO(
        b'{"jsonrpc":"2.0","id":1,"method":"tools/list"}\n'
        b'{"jsonrpc":"2.0","id":2,"method":"tools/list"}\n'
    )
    server.serve(in_stream, _ClosedPipe())
    assert server.closed


class _FailingInput:
    def readline(self):
        raise OSError("read failed")


def test_read_errors_propagate(server):
    with pytest.raises(OSError, match="read failed"):
        server.serve(_FailingInput(), io.StringIO())


def test_invalid_utf8_is_a_parse_error_and_loop_continues(server):
    responses = _serve(server, [
        b'{"jsonrpc":"2.0","id":7,"method":"tools/list","x":"\xff"}',
        '{"jsonrpc":"2.0","id":8,"method":"tools/list"}',
    ])

    assert len(responses) == 2
    assert responses[0]["error"]["code"] == -32700
    assert responses[0]["error"]["message"].startswith("Parse error:")
    assert responses[1]["id"] == 8
    assert len(responses[1]["result"]["tools"]) == 11
