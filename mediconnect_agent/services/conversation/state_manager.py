"""
Persistent conversation state for each WhatsApp number.
"""

import json
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from ...core.enums import ConversationState, MessageDirection
from ...core.exceptions import ConversationConflictError
from ...core.models import Conversation, ConversationContext
from ...utils.date import parse_timestamp, utc_now
from ...utils.logging import get_logger
from ..storage import Database, new_id, now_iso

logger = get_logger("conversation")


def _load_context(raw: Optional[str]) -> ConversationContext:
    if not raw:
        return ConversationContext()
    try:
        return ConversationContext(**json.loads(raw))
    except (ValueError, TypeError, ValidationError):
        logger.warning("discarding unreadable conversation context")
        return ConversationContext()


def _to_conversation(row: Dict[str, Any]) -> Conversation:
    return Conversation(
        id=row["id"],
        phone=row["phone"],
        user_id=row["user_id"],
        state=ConversationState.from_string(row["current_state"]),
        context=_load_context(row["context"]),
        last_message_at=parse_timestamp(row["last_message_at"]),
        version=row["version"],
    )


class ConversationStore:
    """Reads and writes ``whatsapp_conversations`` and the message log."""

    def __init__(self, db: Database, stale_after_seconds: int = 3600):
        self.db = db
        self.stale_after = timedelta(seconds=stale_after_seconds)

    async def get(self, phone: str) -> Optional[Conversation]:
        row = await self.db.fetch_one(
            "SELECT * FROM whatsapp_conversations WHERE phone = ?", (phone,)
        )
        return _to_conversation(row) if row else None

    async def get_or_create(self, phone: str) -> Conversation:
        """Return the conversation for ``phone``, creating an idle one if needed."""
        stamp = now_iso()
        await self.db.execute(
            """
            INSERT OR IGNORE INTO whatsapp_conversations (
                id, phone, current_state, context, last_message_at, version,
                created_at, updated_at
            ) VALUES (?, ?, ?, '{}', ?, 0, ?, ?)
            """,
            (new_id(), phone, ConversationState.IDLE.value, stamp, stamp, stamp),
        )
        conversation = await self.get(phone)
        if conversation is None:
            raise RuntimeError(f"Failed to create conversation for {phone}")
        return conversation

    async def update(
        self,
        conversation: Conversation,
        state: ConversationState,
        context: ConversationContext,
        user_id: Optional[str] = None,
        force: bool = False,
    ) -> Conversation:
        """
        Persist a transition; last activity and version are always bumped.

        The write only applies if the stored version still matches
        ``conversation.version``, unless ``force`` is set.

        Raises:
            ConversationConflictError: if the conversation changed since it was loaded
        """
        stamp = utc_now()
        user_id = user_id or conversation.user_id
        sql = """
            UPDATE whatsapp_conversations
            SET current_state = ?, context = ?, user_id = ?, last_message_at = ?,
                last_message_from = 'bot', version = version + 1, updated_at = ?
            WHERE id = ?
            """
        params: List[Any] = [
            state.value, context.to_json(), user_id,
            stamp.isoformat(), stamp.isoformat(), conversation.id,
        ]
        if not force:
            sql += " AND version = ?"
            params.append(conversation.version)

        changed = await self.db.execute(sql, params)
        if changed != 1:
            raise ConversationConflictError(
                f"conversation {conversation.phone} changed since version {conversation.version}"
            )

        version = conversation.version + 1
        if force:
            row = await self.db.fetch_one(
                "SELECT version FROM whatsapp_conversations WHERE id = ?", (conversation.id,)
            )
            version = row["version"] if row else version

        logger.debug("conversation %s -> %s", conversation.phone, state.value)
        return conversation.model_copy(
            update={
                "state": state,
                "context": context,
                "user_id": user_id,
                "last_message_at": stamp,
                "version": version,
            }
        )

    async def reset(self, conversation: Conversation, force: bool = False) -> Conversation:
        """Back to ``idle`` with an empty context."""
        return await self.update(
            conversation, ConversationState.IDLE, ConversationContext(), force=force
        )

    async def reset_if_stale(
        self, conversation: Conversation, now: Optional[datetime] = None
    ) -> Conversation:
        """Reset a non-idle conversation whose last activity is older than the stale window."""
        if conversation.state == ConversationState.IDLE:
            return conversation
        now = now or utc_now()
        if now - conversation.last_message_at <= self.stale_after:
            return conversation
        logger.info(
            "resetting stale conversation %s (was %s)", conversation.phone, conversation.state.value
        )
        return await self.reset(conversation)

    async def log_message(
        self,
        conversation: Conversation,
        direction: MessageDirection,
        text: str,
        provider_message_id: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> None:
        """Append to the message audit log."""
        await self.db.insert(
            "whatsapp_messages",
            {
                "id": new_id(),
                "conversation_id": conversation.id,
                "user_id": user_id or conversation.user_id,
                "direction": direction.value,
                "message_text": text,
                "message_type": "text",
                "provider_message_id": provider_message_id,
                "created_at": now_iso(),
            },
        )

    async def has_inbound_message(self, provider_message_id: str) -> bool:
        """True if an inbound message with this provider id was already logged."""
        row = await self.db.fetch_one(
            """
            SELECT 1 FROM whatsapp_messages
            WHERE provider_message_id = ? AND direction = ?
            LIMIT 1
            """,
            (provider_message_id, MessageDirection.INBOUND.value),
        )
        return row is not None
