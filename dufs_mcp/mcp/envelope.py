"""
JSON-RPC 2.0 envelope decoding and response construction.

Inbound messages are validated into ``JsonRpcMessage`` at the transport
boundary; handlers never see raw, unvalidated dicts. When a message decodes
as JSON but fails validation, the ``id`` is still recovered from the raw
object so the parse-error response can be correlated by the client.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Union

from pydantic import BaseModel, ConfigDict, StrictStr, ValidationError

from .protocol import JSONRPC_VERSION, PARSE_ERROR


class JsonRpcMessage(BaseModel):
    """Inbound request or notification.

    When ``id`` is None the message is a notification and must not be
    answered on the stream.
    """

    model_config = ConfigDict(extra="ignore")

    jsonrpc: StrictStr = JSONRPC_VERSION
    id: Any = None
    method: StrictStr = ""
    params: Union[Dict[str, Any], List[Any], None] = None

    @property
    def is_notification(self) -> bool:
        return self.id is None


class EnvelopeDecodeError(ValueError):
    """Raised when raw input cannot be decoded into a JsonRpcMessage."""

    def __init__(self, reason: str, msg_id: Any = None):
        super().__init__(reason)
        self.reason = reason
        self.msg_id = msg_id


def _describe_validation_error(exc: ValidationError) -> str:
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ())) or "message"
    return f"{location}: {first.get('msg', 'invalid value')}"


def recover_message_id(raw: Union[str, bytes]) -> Any:
    """Best-effort ``id`` extraction from input that failed strict decoding."""
    try:
        loose = json.loads(raw)
    except ValueError:
        return None
    if isinstance(loose, dict):
        return loose.get("id")
    return None


def decode_message(raw: Union[str, bytes]) -> JsonRpcMessage:
    try:
        payload = json.loads(raw)
    except ValueError as exc:
        raise EnvelopeDecodeError(str(exc)) from exc
    if not isinstance(payload, dict):
        raise EnvelopeDecodeError("message must be a JSON object")
    try:
        return JsonRpcMessage.model_validate(payload)
    except ValidationError as exc:
        raise EnvelopeDecodeError(
            _describe_validation_error(exc),
            msg_id=recover_message_id(raw),
        ) from exc


def success_response(msg_id: Any, result: Any) -> Dict[str, Any]:
    return {"jsonrpc": JSONRPC_VERSION, "id": msg_id, "result": result}


def error_response(msg_id: Any, code: int, message: str) -> Dict[str, Any]:
    return {
        "jsonrpc": JSONRPC_VERSION,
        "id": msg_id,
        "error": {
            "code": code,
            "message": message,
        },
    }


def parse_error_response(exc: EnvelopeDecodeError) -> Dict[str, Any]:
    return error_response(exc.msg_id, PARSE_ERROR, f"Parse error: {exc.reason}")


def encode_message(message: Dict[str, Any]) -> str:
    """Serialize a response as a single line (no embedded newlines)."""
    return json.dumps(message, ensure_ascii=False)

