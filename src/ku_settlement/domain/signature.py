"""Paystack webhook signature: hex HMAC-SHA512 of the raw body."""

import hashlib
import hmac


def compute_signature(secret: str, body: bytes) -> str:
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha512).hexdigest()


def verify_signature(secret: str, body: bytes, signature: str | None) -> bool:
    """Reject a missing header and any byte difference from the expected digest."""
    if not signature:
        return False
    expected = compute_signature(secret, body).encode("ascii")
    # Header values are not guaranteed to be ASCII
    supplied = signature.strip().lower().encode("utf-8", "replace")
    return hmac.compare_digest(expected, supplied)
