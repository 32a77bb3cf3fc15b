"""Resend email API client module."""

import logging
from typing import Any

import httpx

from core.config import settings
from core.exceptions import ConfigurationError, EmailDeliveryError

logger = logging.getLogger(__name__)


class ResendClient:
    """Client for the Resend transactional email REST API."""

    def __init__(
        self,
        api_key: str,
        api_url: str = "https://api.resend.com",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the Resend client.

        Args:
            api_key: Resend API key; an empty key fails every send
            api_url: API base URL
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.api_key = api_key
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def _get_headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    async def send(self, payload: dict[str, Any]) -> dict[str, Any]:
        """
        Send one email.

        Args:
            payload: Resend ``POST /emails`` body

        Returns:
            Resend response body, containing at least the message ``id``

        Raises:
            ConfigurationError: No API key configured
            EmailDeliveryError: Resend rejected the email or could not be reached
        """
        if not self.api_key:
            raise ConfigurationError("RESEND_API_KEY is not configured")

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            try:
                response = await client.post(
                    f"{self.api_url}/emails",
                    headers=self._get_headers(),
                    json=payload,
                )
            except httpx.TimeoutException as e:
                logger.error(f"Resend API timeout after {self.timeout}s")
                raise EmailDeliveryError("Email provider timed out", status_code=504) from e
            except httpx.HTTPError as e:
                logger.error(f"Resend API request failed: {e}")
                raise EmailDeliveryError("Email provider unreachable", status_code=502) from e

        try:
            data = response.json()
        except ValueError:
            data = {"message": response.text[:200]}

        if response.is_error:
            logger.error(f"Resend API returned status {response.status_code}: {data}")
            raise EmailDeliveryError(
                "Failed to send email",
                status_code=response.status_code,
                details={"provider_response": data},
            )

        if not isinstance(data, dict) or "id" not in data:
            raise EmailDeliveryError(
                "Email provider returned an unexpected response",
                status_code=502,
                details={"provider_response": data},
            )
        return data


def create_resend_client(transport: httpx.AsyncBaseTransport | None = None) -> ResendClient:
    """Resend client configured from application settings."""
    return ResendClient(
        api_key=settings.resend_api_key,
        api_url=settings.resend_api_url,
        timeout=settings.email_timeout_seconds,
        transport=transport,
    )
