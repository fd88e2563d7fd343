"""
dufs-mcp Configuration
----------------------
Centralized configuration for the MCP server, the dufs client and the
background upload jobs. Values come from environment variables; everything
except DUFS_URL has a default.
"""

import os
import logging
from typing import Optional
from urllib.parse import urlparse

from pydantic import BaseModel, Field

logger = logging.getLogger("DufsMcp.Config")

DEFAULT_UPLOAD_DIR = "uploads"
DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_PORT = 7887
SUPPORTED_MODES = ("stdio", "http", "sse")


class ConfigError(ValueError):
    """Raised when the environment does not describe a usable server."""


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _parse_positive_float_env(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
        if value <= 0:
            raise ValueError
        return value
    except ValueError:
        logger.warning(
            "Invalid %s value '%s'; expected positive number. Using %s.",
            name,
            raw,
            default,
        )
        return default


def _parse_int_env(name: str, default: int, minimum: int = 0) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
        if value < minimum:
            raise ValueError
        return value
    except ValueError:
        logger.warning(
            "Invalid %s value '%s'; expected integer >= %d. Using %d.",
            name,
            raw,
            minimum,
            default,
        )
        return default


class DufsConfig(BaseModel):
    """Connection settings for the dufs file server."""
    url: str = ""
    username: Optional[str] = None
    password: Optional[str] = None
    upload_dir: str = DEFAULT_UPLOAD_DIR
    allow_insecure: bool = False
    timeout: float = DEFAULT_TIMEOUT_SECONDS

    @property
    def base_upload_dir(self) -> str:
        """Upload base directory without surrounding slashes."""
        return self.upload_dir.strip("/") or DEFAULT_UPLOAD_DIR


class ServerConfig(BaseModel):
    """MCP transport configuration."""
    mode: str = "stdio"
    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    log_level: str = "info"
    log_file: Optional[str] = None


class JobsConfig(BaseModel):
    """Background upload job configuration."""
    max_workers: int = 4
    # 0 keeps every job for the life of the process.
    max_retained: int = 0
    tool_call_warn_ms: float = 5000.0


class DufsMcpConfig(BaseModel):
    """Root configuration for the dufs MCP server."""
    dufs: DufsConfig = Field(default_factory=DufsConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    jobs: JobsConfig = Field(default_factory=JobsConfig)

    @classmethod
    def from_env(cls) -> "DufsMcpConfig":
        """
        Load configuration from environment variables.

        - DUFS_URL: dufs server base URL (required)
        - DUFS_USERNAME / DUFS_PASSWORD: basic auth credentials
        - DUFS_UPLOAD_DIR: base directory for auto-resolved uploads
        - DUFS_ALLOW_INSECURE: skip TLS certificate verification
        - DUFS_TIMEOUT: per-request timeout in seconds
        - MCP_MODE: stdio | http | sse
        - HOST / PORT: HTTP transport binding
        - DUFS_MCP_LOG_LEVEL / DUFS_MCP_LOG_FILE: logging
        - DUFS_MCP_JOB_WORKERS: concurrent background upload jobs
        - DUFS_MCP_JOBS_MAX_RETAINED: finished jobs kept in memory (0 = all)
        - DUFS_MCP_TOOL_CALL_WARN_MS: slow tool-call warning threshold
        """
        return cls(
            dufs=DufsConfig(
                url=os.environ.get("DUFS_URL", "").strip(),
                username=os.environ.get("DUFS_USERNAME") or None,
                password=os.environ.get("DUFS_PASSWORD") or None,
                upload_dir=os.environ.get("DUFS_UPLOAD_DIR") or DEFAULT_UPLOAD_DIR,
                allow_insecure=_env_flag("DUFS_ALLOW_INSECURE"),
                timeout=_parse_positive_float_env("DUFS_TIMEOUT", DEFAULT_TIMEOUT_SECONDS),
            ),
            server=ServerConfig(
                mode=(os.environ.get("MCP_MODE") or "stdio").strip().lower(),
                host=os.environ.get("HOST") or "0.0.0.0",
                port=_parse_int_env("PORT", DEFAULT_PORT, minimum=1),
                log_level=(os.environ.get("DUFS_MCP_LOG_LEVEL") or "info").lower(),
                log_file=os.environ.get("DUFS_MCP_LOG_FILE") or None,
            ),
            jobs=JobsConfig(
                max_workers=_parse_int_env("DUFS_MCP_JOB_WORKERS", 4, minimum=1),
                max_retained=_parse_int_env("DUFS_MCP_JOBS_MAX_RETAINED", 0),
                tool_call_warn_ms=_parse_positive_float_env("DUFS_MCP_TOOL_CALL_WARN_MS", 5000.0),
            ),
        )

    def validate_runtime(self) -> None:
        """Raise ConfigError if the server cannot start with this config."""
        if not self.dufs.url:
            raise ConfigError("DUFS_URL environment variable is required")
        parsed = urlparse(self.dufs.url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ConfigError(f"Invalid DUFS_URL: {self.dufs.url!r}")
        if self.server.mode not in SUPPORTED_MODES:
            raise ConfigError(
                f"Unknown MCP_MODE: {self.server.mode}. "
                f"Supported modes: {', '.join(SUPPORTED_MODES)}"
            )
