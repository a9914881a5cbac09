# ticketing_auth/core/security.py
import hashlib
import hmac
import secrets

import bcrypt

from ticketing_auth.core.config import get_settings

# bcrypt only looks at the first 72 bytes of a password
BCRYPT_MAX_BYTES = 72


def hash_password(password: str) -> str:
    """
    Hash a password with bcrypt.

    The salt and cost are embedded in the returned string, so it is
    the only thing that needs to be stored.
    """
    salt = bcrypt.gensalt(rounds=get_settings().BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str | None) -> bool:
    """
    Check a plain password against a stored bcrypt hash.

    Accounts without a hash (social-only) never match.
    """
    if not password_hash:
        return False

    encoded = password.encode("utf-8")
    if len(encoded) > BCRYPT_MAX_BYTES:
        return False

    try:
        return bcrypt.checkpw(encoded, password_hash.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


def generate_token(nbytes: int = 40) -> str:
    """Random URL-safe token for bearer sessions and reset links."""
    return secrets.token_urlsafe(nbytes)


def generate_remember_token() -> str:
    """60-character remember token."""
    return secrets.token_urlsafe(45)[:60]


def hash_token(token: str) -> str:
    """SHA-256 hex digest; tokens are looked up by digest, never stored raw."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def token_matches(token: str, token_hash: str) -> bool:
    return hmac.compare_digest(hash_token(token), token_hash)
