"""
Security utilities for the RAP Dashboard API.
HMAC signature handling for inbound webhooks.
"""
import hashlib
import hmac
import logging
from typing import Optional, Literal

from rap_dashboard.core.exceptions import AuthError

logger = logging.getLogger(__name__)

SIGNATURE_PREFIX = "sha256="

SignaturePolicy = Literal["permissive", "strict"]


def compute_signature(secret: str, body: bytes) -> str:
    """Return the `sha256=<hex>` signature of a raw body."""
    digest = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()
    return f"{SIGNATURE_PREFIX}{digest}"


def verify_webhook_signature(
    body: bytes,
    signature: Optional[str],
    secret: Optional[str],
    policy: SignaturePolicy = "permissive"
) -> bool:
    """
    Verify a webhook signature header against the raw request body.

    Args:
        body: Raw request body exactly as received
        signature: Value of the signature header (`sha256=<hex>`), if any
        secret: Shared secret, if configured
        policy: What to do when the secret or the header is missing

    Returns:
        True when the signature was checked and matched, False when the
        request was let through unauthenticated under the permissive policy.

    Raises:
        AuthError: signature mismatch, or missing secret/header under strict policy
    """
    if not signature or not secret:
        if policy == "strict":
            raise AuthError("Missing webhook signature or secret")
        logger.warning("Missing webhook signature or secret, accepting unauthenticated request")
        return False

    expected = compute_signature(secret, body)
    if not hmac.compare_digest(expected.encode("utf-8"), signature.strip().encode("utf-8")):
        raise AuthError("Invalid signature")
    return True
