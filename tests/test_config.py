"""Tests for dufs_mcp.core.config: configuration management."""

import pytest

from dufs_mcp.core.config import (
    ConfigError,
    DufsConfig,
    DufsMcpConfig,
    JobsConfig,
    ServerConfig,
)

_ENV_VARS = (
    "DUFS_URL",
    "DUFS_USERNAME",
    "DUFS_PASSWORD",
    "DUFS_UPLOAD_DIR",
    "DUFS_ALLOW_INSECURE",
    "DUFS_TIMEOUT",
    "MCP_MODE",
    "HOST",
    "PORT",
    "DUFS_MCP_LOG_LEVEL",
    "DUFS_MCP_LOG_FILE",
    "DUFS_MCP_JOB_WORKERS",
    "DUFS_MCP_JOBS_MAX_RETAINED",
    "DUFS_MCP_TOOL_CALL_WARN_MS",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestDefaults:
    def test_from_env_defaults(self):
        config = DufsMcpConfig.from_env()
        assert config.dufs.url == ""
        assert config.dufs.upload_dir == "uploads"
        assert config.dufs.timeout == 30.0
        assert config.dufs.allow_insecure is False
        assert config.server.mode == "stdio"
        assert config.server.port == 7887
        assert config.server.host == "0.0.0.0"
        assert config.jobs.max_workers == 4
        assert config.jobs.max_retained == 0

    def test_model_defaults(self):
        assert ServerConfig().log_level == "info"
        assert JobsConfig().tool_call_warn_ms == 5000.0


class TestOverrides:
    def test_reads_dufs_settings(self, monkeypatch):
        monkeypatch.setenv("DUFS_URL", "https://files.example.com")
        monkeypatch.setenv("DUFS_USERNAME", "admin")
        monkeypatch.setenv("DUFS_PASSWORD", "secret")
        monkeypatch.setenv("DUFS_UPLOAD_DIR", "/inbox/")
        monkeypatch.setenv("DUFS_ALLOW_INSECURE", "true")
        monkeypatch.setenv("DUFS_TIMEOUT", "12.5")

        config = DufsMcpConfig.from_env()

        assert config.dufs.url == "https://files.example.com"
        assert config.dufs.username == "admin"
        assert config.dufs.password == "secret"
        assert config.dufs.base_upload_dir == "inbox"
        assert config.dufs.allow_insecure is True
        assert config.dufs.timeout == 12.5

    def test_reads_server_and_job_settings(self, monkeypatch):
        monkeypatch.setenv("MCP_MODE", "HTTP")
        monkeypatch.setenv("PORT", "9000")
        monkeypatch.setenv("DUFS_MCP_JOB_WORKERS", "2")
        monkeypatch.setenv("DUFS_MCP_JOBS_MAX_RETAINED", "100")

        config = DufsMcpConfig.from_env()

        assert config.server.mode == "http"
        assert config.server.port == 9000
        assert config.jobs.max_workers == 2
        assert config.jobs.max_retained == 100

    @pytest.mark.parametrize(
        "name, value",
        [("PORT", "not-a-port"), ("DUFS_MCP_JOB_WORKERS", "0"), ("DUFS_TIMEOUT", "-1")],
    )
    def test_invalid_numbers_fall_back_to_defaults(self, monkeypatch, name, value):
        monkeypatch.setenv(name, value)
        config = DufsMcpConfig.from_env()
        assert config.server.port == 7887
        assert config.jobs.max_workers == 4
        assert config.dufs.timeout == 30.0


class TestBaseUploadDir:
    def test_blank_upload_dir_uses_default(self):
        assert DufsConfig(upload_dir="/").base_upload_dir == "uploads"

    def test_nested_upload_dir_is_kept(self):
        assert DufsConfig(upload_dir="team/inbox").base_upload_dir == "team/inbox"


class TestValidateRuntime:
    def test_missing_url(self):
        with pytest.raises(ConfigError, match="DUFS_URL environment variable is required"):
            DufsMcpConfig().validate_runtime()

    def test_invalid_url(self):
        config = DufsMcpConfig(dufs=DufsConfig(url="files.example.com"))
        with pytest.raises(ConfigError, match="Invalid DUFS_URL"):
            config.validate_runtime()

    def test_unknown_mode(self):
        config = DufsMcpConfig(
            dufs=DufsConfig(url="http://127.0.0.1:5000"),
            server=ServerConfig(mode="websocket"),
        )
        with pytest.raises(ConfigError, match="Unknown MCP_MODE: websocket"):
            config.validate_runtime()

    def test_valid(self):
        DufsMcpConfig(dufs=DufsConfig(url="http://127.0.0.1:5000")).validate_runtime()
