"""
dufs-mcp CLI: run the MCP server or inspect its tool catalog.

Usage:
    python -m dufs_mcp.cli serve [--mode stdio|http|sse] [--host HOST] [--port PORT]
    python -m dufs_mcp.cli tools

Commands:
    serve   Load configuration from the environment and run the selected
            transport. stdout carries protocol traffic in stdio mode, so all
            logging goes to stderr (and optionally DUFS_MCP_LOG_FILE).
    tools   Print the registered tool descriptors as JSON.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import dataclass
from typing import List, Optional

import uvicorn

from dufs_mcp.core.config import SUPPORTED_MODES, ConfigError, DufsMcpConfig
from dufs_mcp.mcp.definitions import TOOL_REGISTRY
from dufs_mcp.mcp.dispatcher import Dispatcher
from dufs_mcp.mcp.handlers import ToolHandlers
from dufs_mcp.mcp.http import create_app
from dufs_mcp.mcp.jobs import JobStore
from dufs_mcp.mcp.runner import JobRunner
from dufs_mcp.mcp.server import LineStreamServer
from dufs_mcp.mcp.uploads import Uploader
from dufs_mcp.sdk.client import DufsClient

logger = logging.getLogger("DufsMcp")

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
UVICORN_LOG_LEVELS = ("critical", "error", "warning", "info", "debug")


@dataclass
class Services:
    client: DufsClient
    store: JobStore
    runner: JobRunner
    dispatcher: Dispatcher

    def close(self) -> None:
        self.runner.shutdown(wait=False)
        self.client.close()


def resolve_log_level(level: str) -> int:
    value = getattr(logging, (level or "").upper(), None)
    return value if isinstance(value, int) else logging.INFO


def uvicorn_log_level(level: str) -> str:
    """Map a logging level name (including aliases like ``warn``) to uvicorn's spelling."""
    name = logging.getLevelName(resolve_log_level(level)).lower()
    return name if name in UVICORN_LOG_LEVELS else "info"


def configure_logging(level: str = "info", log_file: Optional[str] = None) -> None:
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode="a"))
    logging.basicConfig(
        level=resolve_log_level(level),
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )


def build_services(config: DufsMcpConfig, client: Optional[DufsClient] = None) -> Services:
    client = client or DufsClient.from_config(config.dufs)
    store = JobStore(max_retained=config.jobs.max_retained)
    uploader = Uploader(client, config.dufs.base_upload_dir)
    runner = JobRunner(store, uploader, max_workers=config.jobs.max_workers)
    handlers = ToolHandlers(client, uploader, store, runner)
    dispatcher = Dispatcher(
        handlers,
        registry=TOOL_REGISTRY,
        tool_call_warn_ms=config.jobs.tool_call_warn_ms,
    )
    return Services(client=client, store=store, runner=runner, dispatcher=dispatcher)


def cmd_serve(args: argparse.Namespace) -> int:
    config = DufsMcpConfig.from_env()
    if args.mode:
        config.server.mode = args.mode
    if args.host:
        config.server.host = args.host
    if args.port:
        config.server.port = args.port

    configure_logging(config.server.log_level, config.server.log_file)
    try:
        config.validate_runtime()
    except ConfigError as exc:
        print(f"dufs-mcp: {exc}", file=sys.stderr)
        return 2

    services = build_services(config)
    logger.info("Dufs URL: %s", config.dufs.url)
    try:
        if config.server.mode == "stdio":
            LineStreamServer(services.dispatcher).serve(sys.stdin.buffer, sys.stdout)
        else:
            logger.info(
                "MCP Server (%s mode) starting on %s:%d",
                config.server.mode,
                config.server.host,
                config.server.port,
            )
            uvicorn.run(
                create_app(services.dispatcher),
                host=config.server.host,
                port=config.server.port,
                log_level=uvicorn_log_level(config.server.log_level),
            )
    finally:
        services.close()
    return 0


def cmd_tools(args: argparse.Namespace) -> int:
    print(json.dumps({"tools": TOOL_REGISTRY.list()}, indent=2, ensure_ascii=False))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dufs-mcp",
        description="MCP server exposing dufs file server operations as tools.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="Examples:\n"
               "  DUFS_URL=http://127.0.0.1:5000 dufs-mcp serve\n"
               "  DUFS_URL=http://127.0.0.1:5000 dufs-mcp serve --mode http --port 7887\n"
               "  dufs-mcp tools\n",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser(
        "serve",
        help="Run the MCP server.",
        description="Runs the MCP server on stdio or HTTP (MCP_MODE, or --mode).",
    )
    serve.add_argument(
        "--mode",
        choices=SUPPORTED_MODES,
        default=None,
        help="Transport to run (default: MCP_MODE or stdio).",
    )
    serve.add_argument("--host", default=None, help="HTTP bind host (default: HOST or 0.0.0.0).")
    serve.add_argument("--port", type=int, default=None, help="HTTP port (default: PORT or 7887).")

    subparsers.add_parser("tools", help="Print the tool catalog as JSON.")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "serve":
        return cmd_serve(args)
    if args.command == "tools":
        return cmd_tools(args)

    parser.print_help()
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
