"""Password hashing and session token helpers."""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import os
import time
from typing import Optional, Tuple

_ITERATIONS = 390_000
_ALGORITHM = "sha256"
_SALT_BYTES = 16


def _b64(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode().rstrip("=")


def _unb64(value: str) -> bytes:
    return base64.urlsafe_b64decode(value + "=" * (-len(value) % 4))


def _split_hash(hash_value: str) -> Tuple[bytes, bytes]:
    try:
        salt_b64, digest_b64 = hash_value.split(":", 1)
        return base64.b64decode(salt_b64), base64.b64decode(digest_b64)
    except (ValueError, binascii.Error) as exc:
        raise ValueError("Invalid stored hash format") from exc


def hash_password(password: str) -> str:
    """Return a salted PBKDF2 hash for *password*."""

    salt = os.urandom(_SALT_BYTES)
    digest = hashlib.pbkdf2_hmac(_ALGORITHM, password.encode("utf-8"), salt, _ITERATIONS)
    return f"{base64.b64encode(salt).decode()}:{base64.b64encode(digest).decode()}"


def verify_password(password: str, stored_hash: str) -> bool:
    salt, digest = _split_hash(stored_hash)
    check = hashlib.pbkdf2_hmac(_ALGORITHM, password.encode("utf-8"), salt, _ITERATIONS)
    return hmac.compare_digest(digest, check)


def _signature(payload: str, secret_key: str) -> str:
    return _b64(hmac.new(secret_key.encode(), payload.encode(), hashlib.sha256).digest())


def issue_session_token(user_id: int, secret_key: str, *, issued_at: Optional[int] = None) -> str:
    """Return a signed token of the form ``<user_id>:<issued_at>.<signature>``."""

    issued = int(time.time()) if issued_at is None else issued_at
    payload = f"{user_id}:{issued}"
    return f"{payload}.{_signature(payload, secret_key)}"


def read_session_token(token: str, secret_key: str, *, max_age: int) -> Optional[int]:
    """Return the user id carried by *token*, or ``None`` when it is forged or expired."""

    try:
        payload, signature = token.rsplit(".", 1)
        user_part, issued_part = payload.split(":", 1)
        user_id, issued_at = int(user_part), int(issued_part)
        provided = _unb64(signature)
    except (ValueError, binascii.Error):
        return None

    expected = hmac.new(secret_key.encode(), payload.encode(), hashlib.sha256).digest()
    if not hmac.compare_digest(expected, provided):
        return None
    if max_age >= 0 and time.time() - issued_at > max_age:
        return None
    return user_id
