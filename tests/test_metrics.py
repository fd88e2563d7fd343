import logging

from dufs_mcp.mcp.metrics import ToolCallMetrics


def test_outcome_tracks_matching_response_only():
    metrics = ToolCallMetrics(msg_id=1, name="dufs_list")
    assert metrics.get_outcome() == "no_response"

    metrics.record_response({"id": 2, "result": {}}, "{}")
    assert metrics.get_outcome() == "no_response"

    metrics.record_response({"id": 1, "error": {"code": -32000, "message": "x"}}, '{"x": 1}')
    assert metrics.get_outcome() == "error"
    assert metrics.response_bytes == 8


def test_slow_calls_log_warning(caplog):
    metrics = ToolCallMetrics(msg_id=1, name="dufs_upload", warn_threshold_ms=0.0)
    metrics.record_response({"id": 1, "result": {}}, "{}")

    with caplog.at_level(logging.INFO, logger="DufsMcp.mcp.metrics"):
        metrics.log_telemetry()

    record = caplog.records[-1]
    assert record.levelno == logging.WARNING
    assert "name=dufs_upload" in record.getMessage()
    assert "outcome=success" in record.getMessage()


def test_fast_calls_log_info(caplog):
    metrics = ToolCallMetrics(msg_id="a", name="dufs_health", warn_threshold_ms=60_000.0)

    with caplog.at_level(logging.INFO, logger="DufsMcp.mcp.metrics"):
        metrics.log_telemetry()

    assert caplog.records[-1].levelno == logging.INFO
