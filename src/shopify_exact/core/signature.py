"""Shopify Webhook Signature Verification.

Shopify signs each webhook with HMAC-SHA256 over the raw request body, base64
encoded, in the X-Shopify-Hmac-Sha256 header.
"""

import base64
import hashlib
import hmac
from typing import Optional

from shopify_exact.core.logger import setup_logger

logger = setup_logger(__name__)


def verify_shopify_hmac(
    raw_body: bytes,
    hmac_header: Optional[str],
    secret: Optional[str],
) -> bool:
    """
    Verify a Shopify webhook signature.

    Args:
        raw_body: Raw request body (NOT parsed JSON)
        hmac_header: Value of the X-Shopify-Hmac-Sha256 header
        secret: Webhook signing secret of the Shopify app

    Returns:
        True if the signature matches
    """
    if not secret or not hmac_header or not raw_body:
        return False

    computed = hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha256).digest()
    expected = base64.b64encode(computed).decode("utf-8")

    # Constant-time comparison
    return hmac.compare_digest(expected, hmac_header.strip())


def validate_webhook_request(
    raw_body: bytes,
    hmac_header: Optional[str],
    secret: Optional[str],
) -> tuple[bool, Optional[str]]:
    """
    Full webhook validation: basic checks + signature verification.

    Signature verification is skipped when no secret is configured.

    Returns:
        Tuple of (is_valid: bool, error_message: Optional[str])
    """
    try:
        body_str = raw_body.decode("utf-8")
    except UnicodeDecodeError as e:
        error = f"Invalid UTF-8 in request body: {e}"
        logger.error(error)
        return False, error

    if not body_str.strip():
        return False, "Empty request body"

    if not secret:
        return True, None

    if not verify_shopify_hmac(raw_body, hmac_header, secret):
        header_preview = hmac_header[:16] if hmac_header else None
        logger.warning(f"Invalid webhook signature. Got: {header_preview}...")
        return False, "Invalid webhook signature"

    return True, None
