# momo_auth/domain/services.py
from __future__ import annotations

import base64
import hashlib
import hmac
import os
import re
import secrets
from datetime import datetime, timezone
from typing import Iterable

AUTH_CODE_BYTES = 16

_NON_DIGITS = re.compile(r"\D")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_auth_code() -> str:
    """
    Opaque one-time code for the web -> mobile handoff.
    16 random bytes as hex (32 chars, 128 bits).
    """
    return secrets.token_hex(AUTH_CODE_BYTES)


def generate_6digit_code() -> str:
    """6-digit numeric code in [100000, 999999]."""
    return str(100_000 + secrets.randbelow(900_000))


def secure_compare(a: str, b: str) -> bool:
    """
    Constant-time comparison for secrets.
    Accepts strings; falls back to bytes if needed.
    """
    try:
        # hmac.compare_digest supports str if types match
        return hmac.compare_digest(a, b)
    except TypeError:
        return hmac.compare_digest(a.encode("utf-8"), b.encode("utf-8"))


def _sha256_salt_plus_code(salt: bytes, code: str) -> bytes:
    h = hashlib.sha256()
    h.update(salt)
    h.update(code.encode("utf-8"))
    return h.digest()


def make_code_digest(code: str) -> tuple[str, str]:
    """
    Return (salt_b64, digest_b64) where digest = SHA256(salt || code).
    """
    salt = os.urandom(16)
    digest = _sha256_salt_plus_code(salt, code)
    return (
        base64.b64encode(salt).decode("utf-8"),
        base64.b64encode(digest).decode("utf-8"),
    )


def code_digest_with_salt(code: str, salt_b64: str) -> str:
    """Digest of `code` under an existing salt, base64 encoded."""
    salt = base64.b64decode(salt_b64.encode("utf-8"), validate=True)
    return base64.b64encode(_sha256_salt_plus_code(salt, code)).decode("utf-8")


def verify_code_digest(code: str, salt_b64: str, digest_b64: str) -> bool:
    """
    Verify code against (salt_b64, digest_b64) from make_code_digest().
    """
    try:
        calc = code_digest_with_salt(code, salt_b64)
    except ValueError:
        return False
    return secure_compare(calc, digest_b64)


def normalize_canadian_phone(raw_phone: str | None) -> str | None:
    """
    Normalize to E.164 (+1XXXXXXXXXX). Accepts 10 digits, or 11 digits with a
    leading country code 1. Anything else returns None.
    """
    if not raw_phone:
        return None
    digits = _NON_DIGITS.sub("", raw_phone)
    if len(digits) == 10:
        return f"+1{digits}"
    if len(digits) == 11 and digits.startswith("1"):
        return f"+{digits}"
    return None


def is_allowed_redirect_uri(uri: str | None, schemes: Iterable[str]) -> bool:
    if not uri or not isinstance(uri, str):
        return False
    trimmed = uri.strip().lower()
    return any(trimmed.startswith(s.lower()) for s in schemes)
