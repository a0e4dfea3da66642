"""Credential handling for the Splunk REST API."""

import base64
import logging

import httpx

from splunkjobs.config import SplunkSettings
from splunkjobs.exceptions import AuthenticationError

logger = logging.getLogger(__name__)


class Credentials:
    """
    Holds the Authorization header used for every request.

    The header is computed once from the settings and never refreshed:
    Basic auth when username/password are configured, Bearer when a
    token is configured (the token wins if both are present).

    Attributes:
        settings: SplunkSettings instance with credentials

    Example:
        credentials = Credentials(SplunkSettings())

        async with httpx.AsyncClient(base_url=settings.api_base_url) as client:
            await credentials.verify(client)
            response = await client.get(url, headers=credentials.headers)
    """

    VERIFY_PATH = "/services/authentication/current-context"

    def __init__(self, settings: SplunkSettings):
        """
        Initialize the credentials.

        Args:
            settings: SplunkSettings instance containing username/password or a token
        """
        self.settings = settings
        self._authorization = self._build_authorization(settings)

    @staticmethod
    def _build_authorization(settings: SplunkSettings) -> str:
        if settings.token is not None:
            return f"Bearer {settings.token.get_secret_value()}"
        raw = f"{settings.username}:{settings.password.get_secret_value()}"
        return "Basic " + base64.b64encode(raw.encode("utf-8")).decode("ascii")

    @property
    def headers(self) -> dict:
        """Headers to attach to each request."""
        return {"Authorization": self._authorization}

    async def verify(self, client: httpx.AsyncClient) -> None:
        """
        Make one round trip to check the credentials are accepted.

        Args:
            client: httpx.AsyncClient to send the request with

        Raises:
            AuthenticationError: If the check is rejected or cannot be made
        """
        try:
            response = await client.get(
                f"{self.settings.api_base_url}{self.VERIFY_PATH}",
                params={"output_mode": "json"},
                headers=self.headers,
            )
        except httpx.RequestError as e:
            raise AuthenticationError(
                f"Authentication request failed: {e}"
            ) from e

        if response.status_code != 200:
            raise AuthenticationError(
                f"Authentication failed: {response.status_code} - {response.text}",
                status_code=response.status_code,
            )
        logger.debug("Credentials verified against %s", self.settings.api_base_url)
