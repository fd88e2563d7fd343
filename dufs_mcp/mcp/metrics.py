import time
import logging
from typing import Any, Dict

logger = logging.getLogger("DufsMcp.mcp.metrics")


class ToolCallMetrics:
    """
    Tracks timing and payload size for a single tools/call.
    """
    def __init__(self, msg_id: Any, name: str, warn_threshold_ms: float = 5000.0):
        self.msg_id = msg_id
        self.name = name
        self.warn_threshold_ms = warn_threshold_ms
        self.response_bytes = 0
        self.saw_error = False
        self.saw_response = False
        self.started_monotonic = time.monotonic()

    def record_response(self, message: Dict[str, Any], serialized: str) -> None:
        """Record the JSON-RPC response produced for this call."""
        if self.msg_id != message.get("id"):
            return
        self.saw_response = True
        self.response_bytes = len(serialized.encode("utf-8"))
        if isinstance(message.get("error"), dict):
            self.saw_error = True

    def elapsed_ms(self) -> float:
        return max(0.0, (time.monotonic() - self.started_monotonic) * 1000.0)

    def get_outcome(self) -> str:
        if self.saw_error:
            return "error"
        if self.saw_response:
            return "success"
        return "no_response"

    def log_telemetry(self) -> None:
        elapsed_ms = self.elapsed_ms()
        log_method = logger.warning if elapsed_ms >= self.warn_threshold_ms else logger.info
        log_method(
            "Tool call telemetry: name=%s id=%r outcome=%s elapsed_ms=%.1f response_bytes=%d",
            self.name,
            self.msg_id,
            self.get_outcome(),
            elapsed_ms,
            self.response_bytes,
        )
