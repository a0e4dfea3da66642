"""Configuration management via environment variables."""

from typing import Optional

from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class SplunkSettings(BaseSettings):
    """
    Splunk REST API configuration.

    All values are read from environment variables prefixed with SPLUNK_.
    A .env file in the current directory is loaded automatically.

    Either username and password, or a token, must be supplied.

    Attributes:
        base_url: Management endpoint, e.g. https://splunk.example.com:8089
        username: Splunk user for Basic authentication
        password: Password for Basic authentication (stored securely)
        token: Authentication token, used instead of username/password
        verify_ssl: Verify the server's TLS certificate
        timeout: Per-request timeout in seconds
        web_url: Base URL of the Splunk web UI, used for job links

    Example:
        # Set environment variables:
        # SPLUNK_BASE_URL=https://splunk.example.com:8089
        # SPLUNK_USERNAME=admin
        # SPLUNK_PASSWORD=changeme

        settings = SplunkSettings()
        print(settings.base_url)
    """

    base_url: str
    username: Optional[str] = None
    password: Optional[SecretStr] = None
    token: Optional[SecretStr] = None
    verify_ssl: bool = True
    timeout: float = 30.0
    web_url: Optional[str] = None

    model_config = SettingsConfigDict(
        env_prefix="SPLUNK_",
        env_file=".env",
        env_file_encoding="utf-8",
    )

    @model_validator(mode="after")
    def _check_credentials(self) -> "SplunkSettings":
        if self.token is None and (self.username is None or self.password is None):
            raise ValueError("either token or both username and password must be set")
        return self

    @property
    def api_base_url(self) -> str:
        """Management base URL without a trailing slash."""
        return self.base_url.rstrip("/")
