"""Signed action nonces

A nonce binds an action name and a target (a badge record id) to an issue
time, signed with HMAC-SHA256 under the configured nonce signing key:
``<issued_at>.<hex signature>``.
"""

import hashlib
import hmac
import logging
import time

from fastapi import HTTPException

from badgepress.config import settings

logger = logging.getLogger(__name__)

DESIGNER_ACTION = "badge-designer"


def _sign(action: str, target: str, issued_at: int, key: str) -> str:
    message = f"{action}|{target}|{issued_at}".encode()
    return hmac.new(key.encode(), message, hashlib.sha256).hexdigest()


def create_nonce(action: str, target, now: float | None = None) -> str:
    """Issue a nonce for action on target"""
    issued_at = int(now if now is not None else time.time())
    signature = _sign(action, str(target), issued_at, settings.NONCE_SIGNING_KEY)
    return f"{issued_at}.{signature}"


def verify_nonce(token: str | None, action: str, target, now: float | None = None) -> bool:
    """Check signature and age of a nonce"""
    if not token or "." not in token:
        return False
    issued_part, _, signature = token.partition(".")
    try:
        issued_at = int(issued_part)
    except ValueError:
        return False

    current = now if now is not None else time.time()
    if issued_at > current + 60 or current - issued_at > settings.NONCE_TTL:
        return False

    expected = _sign(action, str(target), issued_at, settings.NONCE_SIGNING_KEY)
    return hmac.compare_digest(expected, signature)


def require_designer_nonce(token: str | None, record_id: int | None) -> None:
    """Raise 403 unless token is a valid designer nonce for record_id"""
    if not verify_nonce(token, DESIGNER_ACTION, record_id):
        logger.warning("Designer nonce rejected for badge %s", record_id)
        raise HTTPException(status_code=403, detail="Nonce validation failed")
