"""
Credential utilities.

Password hashing (bcrypt), access token issuing/verification (PyJWT) and
temporary password generation. The people requisition engine never calls
these directly; it trusts the identity resolved from the token.
"""

import logging
import secrets
import string
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import bcrypt
import jwt

from core.config import settings
from core.exceptions import UnauthorizedError

logger = logging.getLogger(__name__)

TEMPORARY_PASSWORD_SPECIALS = "@#$%&*"


@dataclass(frozen=True)
class JWTPayload:
    """Decoded access token claims."""

    user_id: int
    role: str
    expires_at: datetime


def hash_password(password: str) -> str:
    """Hash a password with a fresh bcrypt salt."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    """Check a plain password against a bcrypt hash."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Malformed hash stored for the user
        logger.warning("Password verification against a malformed hash")
        return False


def create_access_token(
    user_id: int,
    role: str,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a signed access token.

    Args:
        user_id: Internal id of the user
        role: Role name carried as a claim
        expires_delta: Token lifetime (defaults to configured minutes)

    Returns:
        Encoded JWT
    """
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    claims: dict[str, Any] = {
        "sub": str(user_id),
        "role": role,
        "exp": expire,
        "type": "access",
    }
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def verify_jwt_token(token: str) -> JWTPayload:
    """
    Decode and validate an access token.

    Raises:
        UnauthorizedError: If the token is expired, tampered or malformed
    """
    try:
        claims = jwt.decode(
            token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm]
        )
    except jwt.ExpiredSignatureError:
        raise UnauthorizedError("Your session has expired. Please log in again.")
    except jwt.InvalidTokenError:
        raise UnauthorizedError("Your session is invalid. Please log in again.")

    try:
        return JWTPayload(
            user_id=int(claims["sub"]),
            role=str(claims.get("role", "")),
            expires_at=datetime.fromtimestamp(claims["exp"], tz=timezone.utc),
        )
    except (KeyError, TypeError, ValueError):
        raise UnauthorizedError("Your session is invalid. Please log in again.")


def generate_temporary_password(length: int = 12) -> str:
    """
    Generate a random password that satisfies the complexity rules.

    Always contains an upper-case letter, a lower-case letter, a digit and one
    of ``TEMPORARY_PASSWORD_SPECIALS``.
    """
    length = max(length, 8)
    required = [
        secrets.choice(string.ascii_uppercase),
        secrets.choice(string.ascii_lowercase),
        secrets.choice(string.digits),
        secrets.choice(TEMPORARY_PASSWORD_SPECIALS),
    ]
    alphabet = string.ascii_letters + string.digits + TEMPORARY_PASSWORD_SPECIALS
    rest = [secrets.choice(alphabet) for _ in range(length - len(required))]
    chars = required + rest
    secrets.SystemRandom().shuffle(chars)
    return "".join(chars)
