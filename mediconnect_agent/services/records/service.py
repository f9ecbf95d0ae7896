"""
Short-lived secure links for viewing medical records.
"""

import hmac
import json
from datetime import datetime, timedelta
from typing import Optional
from urllib.parse import quote

import jwt

from ...core.models import RecordAccessGrant, RecordSummary
from ...utils.date import parse_timestamp, utc_now
from ...utils.logging import get_logger
from ...utils.security import generate_otp, hash_secret
from ..storage import Database, new_id, now_iso

logger = get_logger("records")

TOKEN_ALGORITHM = "HS256"


class RecordAccessService:
    """
    Issues and redeems record access tokens.

    A grant is an HS256 JWT plus a 6-digit OTP. Only hashes are stored, in
    ``record_access_tokens``; a token can be redeemed once, before it expires.
    """

    def __init__(self, db: Database, secret: str, app_url: str, ttl_seconds: int = 300):
        self.db = db
        self.secret = secret
        self.app_url = app_url.rstrip("/")
        self.ttl = timedelta(seconds=ttl_seconds)

    @property
    def ttl_minutes(self) -> int:
        return max(1, int(self.ttl.total_seconds() // 60))

    async def request_access(
        self, user_id: str, record: RecordSummary, now: Optional[datetime] = None
    ) -> RecordAccessGrant:
        now = now or utc_now()
        expires_at = now + self.ttl
        token = jwt.encode(
            {
                "record_id": record.id,
                "user_id": user_id,
                "nonce": new_id(),
                "exp": expires_at,
            },
            self.secret,
            algorithm=TOKEN_ALGORITHM,
        )
        otp = generate_otp(6)
        stamp = now_iso()

        def _store(conn):
            conn.execute(
                """
                INSERT INTO record_access_tokens (
                    id, record_id, user_id, token_hash, otp_hash, expires_at, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    new_id(), record.id, user_id, hash_secret(token), hash_secret(otp),
                    expires_at.isoformat(), stamp,
                ),
            )
            conn.execute(
                """
                INSERT INTO audit_logs (
                    id, actor_id, actor_type, action, entity_type, entity_id, metadata, created_at
                ) VALUES (?, ?, 'patient', 'medical_record.access_requested', 'medical_record', ?, ?, ?)
                """,
                (new_id(), user_id, record.id, json.dumps({"expires_at": expires_at.isoformat()}), stamp),
            )

        await self.db.transaction(_store)
        logger.info("issued record access for %s to user %s", record.id, user_id)
        return RecordAccessGrant(
            record_id=record.id,
            token=token,
            otp=otp,
            url=f"{self.app_url}/view-record?token={quote(token, safe='')}",
            expires_at=expires_at,
        )

    async def redeem(self, token: str, otp: str, now: Optional[datetime] = None) -> Optional[str]:
        """
        Consume a grant.

        Returns:
            The record id, or None if the token is forged, expired, already
            used, or the OTP does not match
        """
        try:
            jwt.decode(token, self.secret, algorithms=[TOKEN_ALGORITHM])
        except jwt.ExpiredSignatureError:
            logger.info("expired record access token presented")
            return None
        except jwt.InvalidTokenError as e:
            logger.warning("invalid record access token: %s", e)
            return None
        now = now or utc_now()
        token_hash = hash_secret(token)

        row = await self.db.fetch_one(
            """
            SELECT record_id, otp_hash, expires_at, consumed_at
            FROM record_access_tokens WHERE token_hash = ?
            """,
            (token_hash,),
        )
        if row is None or row["consumed_at"]:
            return None
        if parse_timestamp(row["expires_at"]) <= now:
            return None
        if not hmac.compare_digest(row["otp_hash"], hash_secret(otp.strip())):
            return None

        consumed = await self.db.execute(
            """
            UPDATE record_access_tokens SET consumed_at = ?
            WHERE token_hash = ? AND consumed_at IS NULL
            """,
            (now.isoformat(), token_hash),
        )
        if consumed != 1:
            return None
        return row["record_id"]
