"""
WhatsApp webhook handler.
"""

from typing import Dict, Optional
from urllib.parse import parse_qsl

from fastapi import APIRouter, BackgroundTasks, Request, Response, status

from ...config import Settings
from ...core.enums import MessageDirection
from ...core.models import IncomingMessage
from ...services.container import Services
from ...utils.logging import get_logger
from ...utils.phone import PhoneNumberParser
from ...utils.security import verify_twilio_signature

logger = get_logger("webhook")

EMPTY_TWIML = '<?xml version="1.0" encoding="UTF-8"?><Response></Response>'
SIGNATURE_HEADER = "X-Twilio-Signature"


def _to_float(value: Optional[str]) -> Optional[float]:
    try:
        return float(value) if value not in (None, "") else None
    except ValueError:
        return None


def _to_int(value: Optional[str]) -> int:
    try:
        return int(value or 0)
    except ValueError:
        return 0


class WhatsAppWebhook:
    """Handler for inbound Twilio WhatsApp webhooks."""

    def __init__(self, services: Services):
        self.settings: Settings = services.settings
        self.services = services
        self.router = APIRouter()
        self._setup_routes()

    def _setup_routes(self):
        """Setup WhatsApp webhook routes."""

        @self.router.post("/whatsapp")
        async def receive_whatsapp_message(request: Request, background_tasks: BackgroundTasks):
            """Verify, acknowledge at once, and process in the background."""
            raw = await request.body()
            params = dict(parse_qsl(raw.decode("utf-8", errors="replace"), keep_blank_values=True))

            if not self._verify_signature(request, params):
                logger.warning("rejected webhook with bad signature from %s", params.get("From"))
                return Response(status_code=status.HTTP_403_FORBIDDEN)

            message = self._parse_message(params)
            if message is not None:
                background_tasks.add_task(self.handle_message, message)
            return Response(content=EMPTY_TWIML, media_type="text/xml")

    def _verify_signature(self, request: Request, params: Dict[str, str]) -> bool:
        if self.settings.twilio_dev_mode:
            return True
        auth_token = self.settings.twilio_auth_token
        if not auth_token:
            logger.error("TWILIO_AUTH_TOKEN is not set; refusing unsigned webhooks")
            return False
        url = self.settings.webhook_public_url or str(request.url)
        return verify_twilio_signature(
            auth_token, url, params, request.headers.get(SIGNATURE_HEADER)
        )

    def _parse_message(self, params: Dict[str, str]) -> Optional[IncomingMessage]:
        sender = params.get("From", "")
        if not sender:
            return None
        return IncomingMessage(
            sender=sender,
            body=params.get("Body", "") or "",
            message_sid=params.get("MessageSid") or None,
            num_media=_to_int(params.get("NumMedia")),
            latitude=_to_float(params.get("Latitude")),
            longitude=_to_float(params.get("Longitude")),
        )

    async def handle_message(self, message: IncomingMessage) -> None:
        """Process one message, send the reply and log it."""
        try:
            reply = await self.services.processor.process(message)
            if reply is None:
                return

            phone = PhoneNumberParser.from_whatsapp_address(message.sender)
            sid = await self.services.sender.send_whatsapp_message(phone, reply)
            if sid is None:
                logger.error("reply to %s was not delivered", phone)

            conversation = await self.services.store.get(phone)
            if conversation is not None:
                await self.services.store.log_message(
                    conversation, MessageDirection.OUTBOUND, reply, sid
                )
        except Exception:
            logger.exception("background handling failed for %s", message.sender)
