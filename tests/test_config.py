"""
Tests for client configuration loading and precedence.
"""

import pytest

from shredmate_shared.exceptions import ConfigurationError, ErrorCode
from shredmate_client.config import ClientConfiguration, ENV_MAPPINGS


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    for env_var in ENV_MAPPINGS:
        monkeypatch.delenv(env_var, raising=False)


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "client.conf"
    path.write_text(
        "[server]\n"
        "base_url = https://file.example.com\n"
        "timeout = 12\n"
        "\n"
        "[logging]\n"
        "level = WARNING\n"
    )
    return str(path)


class TestClientConfiguration:
    """Test configuration sources and validation."""

    def test_defaults_without_file(self, tmp_path):
        config = ClientConfiguration(config_file=str(tmp_path / "missing.conf"))

        assert config.get_base_url() == "http://localhost:3000"
        assert config.get_timeout() == 30.0
        assert config.get_token_backend() == "auto"
        assert config.get_log_level() == "INFO"

    def test_file_values(self, config_file):
        config = ClientConfiguration(config_file=config_file)

        assert config.get_base_url() == "https://file.example.com"
        assert config.get_timeout() == 12.0
        assert config.get_log_level() == "WARNING"
        assert config.get_config("auth.token_service") == "shredmate-client"

    def test_environment_overrides_file(self, config_file, monkeypatch):
        monkeypatch.setenv("SHREDMATE_BASE_URL", "https://env.example.com")
        monkeypatch.setenv("SHREDMATE_TIMEOUT", "2.5")
        monkeypatch.setenv("SHREDMATE_TOKEN_BACKEND", "memory")

        config = ClientConfiguration(config_file=config_file)

        assert config.get_base_url() == "https://env.example.com"
        assert config.get_timeout() == 2.5
        assert config.get_token_backend() == "memory"

    def test_overrides_beat_environment(self, config_file, monkeypatch):
        monkeypatch.setenv("SHREDMATE_BASE_URL", "https://env.example.com")

        config = ClientConfiguration(
            config_file=config_file,
            overrides={"server.base_url": "https://cli.example.com"}
        )

        assert config.get_base_url() == "https://cli.example.com"
        assert config.get_all_config()["server"]["base_url"] == "https://cli.example.com"

    def test_invalid_base_url(self, tmp_path, monkeypatch):
        monkeypatch.setenv("SHREDMATE_BASE_URL", "ftp//nope")

        with pytest.raises(ConfigurationError) as exc_info:
            ClientConfiguration(config_file=str(tmp_path / "missing.conf"))

        assert exc_info.value.error_code == ErrorCode.CONFIG_INVALID_VALUE
        assert exc_info.value.context["config_key"] == "server.base_url"

    def test_invalid_timeout_override(self, tmp_path):
        config = ClientConfiguration(config_file=str(tmp_path / "missing.conf"))

        with pytest.raises(ConfigurationError):
            config.set_override("server.timeout", 0)

    def test_unknown_token_backend(self, tmp_path, monkeypatch):
        monkeypatch.setenv("SHREDMATE_TOKEN_BACKEND", "vault")

        with pytest.raises(ConfigurationError):
            ClientConfiguration(config_file=str(tmp_path / "missing.conf"))
