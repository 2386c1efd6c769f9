"""
Password hashing and session token utilities.

Responsibilities:
- Hash and verify user passwords with Argon2id
- Generate session token strings of the form: tc_sess_<token_id>_<secret>
- Digest token secrets with HMAC-SHA256 and verify them in constant time
"""
from __future__ import annotations

import hashlib
import hmac
import secrets
import uuid
from dataclasses import dataclass
from typing import Optional, Tuple

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError


TOKEN_PREFIX = "tc_sess_"

_password_hasher = PasswordHasher()


@dataclass(frozen=True)
class ParsedToken:
    token_id: str
    secret: str


def hash_password(password: str) -> str:
    return _password_hasher.hash(password)


def verify_password(password: str, encoded_hash: str) -> bool:
    if not password or not encoded_hash:
        return False
    try:
        return _password_hasher.verify(encoded_hash, password)
    except (VerificationError, InvalidHashError):
        return False


def password_needs_rehash(encoded_hash: str) -> bool:
    return _password_hasher.check_needs_rehash(encoded_hash)


def generate_token_id() -> str:
    """Return a short hex token id suitable for DB lookup and logs."""
    # Hex only, so the id never contains the '_' separator
    return uuid.uuid4().hex[:16]


def generate_secret(length: int = 32) -> str:
    return secrets.token_urlsafe(length)


def build_token_string(token_id: str, secret: str) -> str:
    return f"{TOKEN_PREFIX}{token_id}_{secret}"


def parse_token(token: str) -> Optional[ParsedToken]:
    """Parse a token string into token_id and secret.

    Returns None if format is invalid.
    """
    if not token or not token.startswith(TOKEN_PREFIX):
        return None
    body = token[len(TOKEN_PREFIX):]
    # token_id contains no underscores (hex), secret may contain '_' so split once
    idx = body.find("_")
    if idx <= 0:
        return None
    token_id = body[:idx]
    secret = body[idx + 1:]
    if not token_id or not secret:
        return None
    return ParsedToken(token_id=token_id, secret=secret)


def digest_secret(secret: str, token_id: str) -> str:
    """Keyed digest of a session secret; the token id acts as the key salt."""
    return hmac.new(token_id.encode("utf-8"), secret.encode("utf-8"), hashlib.sha256).hexdigest()


def verify_secret(secret: str, token_id: str, expected_digest: str) -> bool:
    if not secret or not expected_digest:
        return False
    return hmac.compare_digest(digest_secret(secret, token_id), expected_digest)


def generate_token() -> Tuple[str, str, str]:
    """Generate a new token and return (token_id, secret, full_token)."""
    tid = generate_token_id()
    sec = generate_secret()
    return tid, sec, build_token_string(tid, sec)
