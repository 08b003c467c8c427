import os

import pytest
from pydantic import ValidationError

from bearerkit.auth.models.errors import ConfigurationError
from bearerkit.config import ClientConfig

ENV_NAMES = ("API_URL", "API_TIMEOUT", "API_DEBUG_COOKIE")


class TestClientConfig:
    def test_defaults(self):
        config = ClientConfig(base_url="https://api.example.com/")

        assert config.base_url == "https://api.example.com"
        assert config.timeout == 30.0
        assert config.refresh_path == "/token/refresh"
        assert config.refresh_header == "X-Refresh-Token"
        assert config.access_token_threshold_seconds == 10
        assert config.refresh_token_fallback_days == 30
        assert config.debug_cookie is None

    def test_rejects_non_http_base_url(self):
        with pytest.raises(ValidationError):
            ClientConfig(base_url="ftp://api.example.com")

    def test_rejects_malformed_debug_cookie(self):
        with pytest.raises(ValidationError):
            ClientConfig(base_url="https://api.example.com", debug_cookie="PHPSTORM")


class TestConfigFromEnv:
    @pytest.fixture(autouse=True)
    def clean_env(self, monkeypatch, tmp_path):
        for name in ENV_NAMES:
            monkeypatch.delenv(name, raising=False)
        self.dotenv_path = tmp_path / ".env"
        yield
        # load_dotenv writes to os.environ directly
        for name in ENV_NAMES:
            os.environ.pop(name, None)

    def test_reads_environment(self, monkeypatch):
        # Arrange
        monkeypatch.setenv("API_URL", "https://api.example.com")
        monkeypatch.setenv("API_TIMEOUT", "12.5")
        monkeypatch.setenv("API_DEBUG_COOKIE", "XDEBUG_SESSION=PHPSTORM")

        # Act
        config = ClientConfig.from_env(str(self.dotenv_path))

        # Assert
        assert config.base_url == "https://api.example.com"
        assert config.timeout == 12.5
        assert config.debug_cookie == "XDEBUG_SESSION=PHPSTORM"

    def test_reads_dotenv_file(self):
        # Arrange
        self.dotenv_path.write_text("API_URL=https://staging.example.com\n")

        # Act
        config = ClientConfig.from_env(str(self.dotenv_path))

        # Assert
        assert config.base_url == "https://staging.example.com"

    def test_missing_url_is_a_configuration_error(self):
        with pytest.raises(ConfigurationError):
            ClientConfig.from_env(str(self.dotenv_path))

    def test_invalid_value_is_a_configuration_error(self, monkeypatch):
        monkeypatch.setenv("API_URL", "https://api.example.com")
        monkeypatch.setenv("API_TIMEOUT", "-1")

        with pytest.raises(ConfigurationError):
            ClientConfig.from_env(str(self.dotenv_path))
