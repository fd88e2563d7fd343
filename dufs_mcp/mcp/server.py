"""
dufs-mcp stdio transport
------------------------
Newline-delimited JSON-RPC read from a binary stream and written to a text
stream. Input lines are decoded by the envelope layer, so malformed UTF-8
becomes a parse error rather than a transport failure. Requests are handled
one at a time in arrival order; only background upload jobs run concurrently.
"""

import logging
import threading
from typing import Any, BinaryIO, Dict, TextIO

from .dispatcher import Dispatcher
from .envelope import encode_message

logger = logging.getLogger("DufsMcp.mcp.server")


class LineStreamServer:
    def __init__(self, dispatcher: Dispatcher):
        self.dispatcher = dispatcher
        self._closed = threading.Event()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def send(self, message: Dict[str, Any], out_stream: TextIO) -> None:
        if self._closed.is_set():
            return
        try:
            out_stream.write(encode_message(message) + "\n")
            out_stream.flush()
        except (BrokenPipeError, OSError) as exc:
            self._closed.set()
            logger.warning("MCP stdio transport closed while sending JSON-RPC message: %s", exc)

    def serve(self, in_stream: BinaryIO, out_stream: TextIO) -> None:
        """Process lines until EOF or until the output side is closed."""
        logger.info("dufs MCP server listening on stdio")
        for line in iter(in_stream.readline, b""):
            if self._closed.is_set():
                break
            line = line.strip()
            if not line:
                continue
            response = self.dispatcher.handle_raw(line)
            if response is not None:
                self.send(response, out_stream)
        logger.info("stdio transport reached end of input")
