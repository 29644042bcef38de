"""Password hashing and opaque bearer token helpers."""

import hashlib
import hmac
import re
import secrets
from typing import Optional, Tuple

from passlib.context import CryptContext

from catalog_api.core.config import settings
from catalog_api.db.base import MAX_INTEGER


pwd_context = CryptContext(schemes=settings.PASSWORD_SCHEMES, deprecated="auto")

TOKEN_SECRET_BYTES = 30

TOKEN_ID_PATTERN = re.compile(r"[0-9]{1,19}")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Check a password against a stored hash; unknown hash formats never match."""
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError):
        return False


def generate_token_secret() -> str:
    """Random URL-safe secret handed to the client once."""
    return secrets.token_urlsafe(TOKEN_SECRET_BYTES)


def hash_token(secret: str) -> str:
    """Digest stored in place of the secret."""
    return hashlib.sha256(secret.encode("utf-8")).hexdigest()


def token_matches(secret: str, digest: str) -> bool:
    return hmac.compare_digest(hash_token(secret), digest)


def format_plain_token(token_id: int, secret: str) -> str:
    return f"{token_id}|{secret}"


def split_plain_token(plain: str) -> Tuple[Optional[int], str]:
    """Split ``"<id>|<secret>"`` into its parts.

    A bare secret (no ``|``) yields ``(None, secret)``. An id that is not
    plain ASCII digits, or is too large for the id column, is treated the
    same way so lookup falls back to the digest.
    """
    if "|" not in plain:
        return None, plain
    token_id, secret = plain.split("|", 1)
    if not TOKEN_ID_PATTERN.fullmatch(token_id) or int(token_id) > MAX_INTEGER:
        return None, plain
    return int(token_id), secret
