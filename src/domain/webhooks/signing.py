"""HMAC-SHA256 payload signatures.

The signature sent in ``X-Webhook-Signature`` is the base64 encoding of
``HMAC-SHA256(secret, raw_body)``. Subscribers verify it against the exact
bytes they received, so the dispatcher signs the serialized body it sends.
"""

import base64
import hashlib
import hmac

from src.core.exceptions import SignatureError


def _key_bytes(secret: str) -> bytes:
    if not secret:
        raise SignatureError("Webhook secret is empty")
    try:
        return secret.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise SignatureError("Webhook secret is not valid UTF-8", cause=exc) from exc


def sign_payload(payload: bytes, secret: str) -> str:
    """Return the base64 HMAC-SHA256 signature of ``payload``.

    Raises:
        SignatureError: The secret cannot be used as a key.
    """
    digest = hmac.new(_key_bytes(secret), payload, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")


def verify_signature(payload: bytes, signature: str, secret: str) -> bool:
    """Check ``signature`` against ``payload`` in constant time.

    The encoded forms are compared, so a signature that differs only in base64
    padding bits is still a mismatch. Any malformed input yields False rather
    than an exception.
    """
    try:
        expected = sign_payload(payload, secret).encode("ascii")
        provided = signature.encode("utf-8")
    except (SignatureError, UnicodeEncodeError):
        return False
    return hmac.compare_digest(expected, provided)
