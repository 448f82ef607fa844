"""
Webhook authenticity check (X-Hub-Signature-256).
"""

import hashlib
import hmac
import logging
from typing import Optional

logger = logging.getLogger(__name__)

SIGNATURE_PREFIX = "sha256="


def compute_signature(body: bytes, secret: str) -> str:
    """Lowercase hex HMAC-SHA256 of `body` keyed by `secret`."""
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


def verify_signature(body: bytes, signature: Optional[str], secret: str) -> bool:
    """True if `signature` (with or without the sha256= prefix) matches the body."""
    if not signature:
        return False

    provided = signature.strip()
    if provided.startswith(SIGNATURE_PREFIX):
        provided = provided[len(SIGNATURE_PREFIX):]

    expected = compute_signature(body, secret).encode("ascii")
    return hmac.compare_digest(expected, provided.lower().encode("utf-8"))


def is_request_authentic(body: bytes, signature: Optional[str], secret: Optional[str]) -> bool:
    """
    Request-level check. Without a configured app secret verification is
    skipped and the request is accepted.
    """
    if not secret:
        logger.warning("FACEBOOK_APP_SECRET not configured - skipping signature verification")
        return True
    return verify_signature(body, signature, secret)
