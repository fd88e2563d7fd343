"""
dufs-mcp Dispatcher
-------------------
Routes one decoded JSON-RPC message to its method and builds the response.

Transports call ``handle_raw`` with the undecoded payload. The result is
either a response dict or None when nothing may be written back (the message
was a notification).
"""

import json
import logging
from typing import Any, Dict, Optional, Union

from pydantic import StrictStr

from dufs_mcp.sdk.errors import DufsError
from dufs_mcp.version import __version__

from .arguments import ToolArguments, parse_arguments
from .definitions import TOOL_REGISTRY, ToolRegistry
from .envelope import (
    EnvelopeDecodeError,
    JsonRpcMessage,
    decode_message,
    encode_message,
    error_response,
    parse_error_response,
    success_response,
)
from .errors import (
    ApplicationError,
    InvalidRequestError,
    RpcError,
    ToolArgumentError,
    UnknownMethodError,
    UnknownToolError,
)
from .handlers import ToolHandlers
from .jobs import JobNotFoundError
from .metrics import ToolCallMetrics
from .protocol import APPLICATION_ERROR, INTERNAL_ERROR, SERVER_NAME, negotiate_protocol_version
from .uploads import UploadError

logger = logging.getLogger("DufsMcp.mcp.dispatcher")

INTERNAL_ERROR_MESSAGE = "Internal error during request dispatch."

# Failures of the dufs server or of the caller's input, reported as -32000.
APPLICATION_FAILURES = (DufsError, UploadError, JobNotFoundError)


class ToolCallParams(ToolArguments):
    name: StrictStr
    arguments: Optional[Dict[str, Any]] = None


class Dispatcher:
    def __init__(
        self,
        handlers: ToolHandlers,
        registry: ToolRegistry = TOOL_REGISTRY,
        tool_call_warn_ms: float = 5000.0,
    ):
        self.handlers = handlers
        self.registry = registry
        self.tool_call_warn_ms = tool_call_warn_ms

    def handle_raw(self, raw: Union[str, bytes]) -> Optional[Dict[str, Any]]:
        try:
            message = decode_message(raw)
        except EnvelopeDecodeError as exc:
            logger.warning("Rejected malformed message: %s", exc.reason)
            return parse_error_response(exc)
        response = self.handle_message(message)
        if message.is_notification:
            logger.debug("Dropping response to notification %s", message.method)
            return None
        return response

    def handle_message(self, message: JsonRpcMessage) -> Dict[str, Any]:
        if message.method == "tools/call":
            return self._handle_tool_call(message)
        try:
            result = self._route(message)
        except RpcError as exc:
            return error_response(message.id, exc.code, exc.message)
        except Exception:
            logger.exception("Unexpected error while handling %s", message.method)
            return error_response(message.id, INTERNAL_ERROR, INTERNAL_ERROR_MESSAGE)
        return success_response(message.id, result)

    def _route(self, message: JsonRpcMessage) -> Dict[str, Any]:
        if not message.method:
            raise InvalidRequestError("Invalid Request: method is required")
        if message.method == "initialize":
            return self._initialize(message.params)
        if message.method == "tools/list":
            return {"tools": self.registry.list()}
        raise UnknownMethodError(message.method)

    def _initialize(self, params: Any) -> Dict[str, Any]:
        requested = params.get("protocolVersion") if isinstance(params, dict) else None
        version = negotiate_protocol_version(requested)
        logger.info("Client initialized (protocol %s)", version)
        return {
            "protocolVersion": version,
            "capabilities": {"tools": {}},
            "serverInfo": {"name": SERVER_NAME, "version": __version__},
        }

    def _handle_tool_call(self, message: JsonRpcMessage) -> Dict[str, Any]:
        params = message.params if isinstance(message.params, dict) else None
        name = params.get("name") if params else None
        metrics = ToolCallMetrics(message.id, name if isinstance(name, str) else "?", self.tool_call_warn_ms)
        response = self._tool_call_response(message)
        metrics.record_response(response, encode_message(response))
        metrics.log_telemetry()
        return response

    def _tool_call_response(self, message: JsonRpcMessage) -> Dict[str, Any]:
        try:
            result = self._call_tool(message.params)
        except RpcError as exc:
            return error_response(message.id, exc.code, exc.message)
        except APPLICATION_FAILURES as exc:
            return error_response(message.id, APPLICATION_ERROR, str(exc))
        except Exception:
            logger.exception("Unexpected error while running tools/call")
            return error_response(message.id, INTERNAL_ERROR, INTERNAL_ERROR_MESSAGE)
        return success_response(message.id, wrap_tool_result(result))

    def _call_tool(self, params: Any) -> Dict[str, Any]:
        if not isinstance(params, dict):
            raise ApplicationError("invalid parameters: params must be an object")
        try:
            call = parse_arguments(ToolCallParams, params)
        except ToolArgumentError as exc:
            raise ApplicationError(f"invalid parameters: {exc.message}") from exc
        if call.name not in self.registry:
            raise UnknownToolError(call.name)
        return self.handlers.call(call.name, call.arguments)


def wrap_tool_result(result: Any) -> Dict[str, Any]:
    return {
        "content": [
            {
                "type": "text",
                "text": json.dumps(result, separators=(",", ":"), ensure_ascii=False),
            }
        ],
        "isError": False,
    }
