"""
Signature and one-time-code helpers.
"""

import base64
import hashlib
import hmac
import secrets
from typing import Mapping, Optional


def compute_twilio_signature(auth_token: str, url: str, params: Mapping[str, str]) -> str:
    """
    Compute the Twilio webhook signature.

    The signed string is the full request URL followed by every POST parameter
    name and value, sorted by name, hashed with HMAC-SHA1 and base64-encoded.
    """
    data = url
    for key in sorted(params):
        data += str(key) + str(params[key])
    digest = hmac.new(auth_token.encode("utf-8"), data.encode("utf-8"), hashlib.sha1).digest()
    return base64.b64encode(digest).decode("ascii")


def verify_twilio_signature(
    auth_token: str, url: str, params: Mapping[str, str], signature: Optional[str]
) -> bool:
    """Check an ``X-Twilio-Signature`` header value."""
    if not signature:
        return False
    expected = compute_twilio_signature(auth_token, url, params)
    return hmac.compare_digest(expected, signature)


def generate_otp(digits: int = 6) -> str:
    """Random numeric code with no leading-zero loss."""
    low = 10 ** (digits - 1)
    return str(low + secrets.randbelow(9 * low))


def hash_secret(value: str) -> str:
    return hashlib.sha256(value.encode("utf-8")).hexdigest()
