"""
Outbound WhatsApp messaging through the Twilio Messages API.
"""

from typing import Any, Dict, Optional
import httpx

from ...config import ExternalAPIConfig
from ...core.exceptions import WhatsAppAPIError
from ...utils.logging import get_logger
from ...utils.phone import PhoneNumberParser

logger = get_logger("whatsapp")


class WhatsAppSender:
    """Sends WhatsApp text messages. One request per message, no retries."""

    def __init__(self, config: ExternalAPIConfig, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config
        self.timeout = config.twilio_timeout
        self._transport = transport

    async def _make_request(self, url: str, data: Dict[str, str]) -> Dict[str, Any]:
        """POST a form to Twilio with basic auth."""
        auth = (self.config.twilio_account_sid or "", self.config.twilio_auth_token or "")
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(url, data=data, auth=auth)
                response.raise_for_status()
                return response.json()
        except httpx.TimeoutException as e:
            raise WhatsAppAPIError("Twilio request timed out") from e
        except httpx.HTTPStatusError as e:
            raise WhatsAppAPIError(
                f"Twilio HTTP error {e.response.status_code}: {e.response.text[:200]}"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise WhatsAppAPIError(f"Twilio request failed: {e}") from e

    async def send_whatsapp_message(self, to: str, body: str) -> Optional[str]:
        """
        Send ``body`` to ``to``.

        Returns:
            The provider message SID, or None if the message was not sent
        """
        url = self.config.get_twilio_messages_url()
        sender = self.config.get_whatsapp_sender()
        if not url or not sender or not self.config.is_twilio_configured():
            logger.warning("Twilio is not configured; dropping message to %s", to)
            return None

        data = {
            "From": sender,
            "To": PhoneNumberParser.to_whatsapp_address(to),
            "Body": body,
        }
        try:
            result = await self._make_request(url, data)
        except WhatsAppAPIError as e:
            logger.error("WhatsApp send to %s failed: %s", to, e)
            return None
        return result.get("sid")
