from dufs_mcp.core.config import ConfigError, DufsConfig, DufsMcpConfig, JobsConfig, ServerConfig

__all__ = ["ConfigError", "DufsConfig", "DufsMcpConfig", "JobsConfig", "ServerConfig"]
