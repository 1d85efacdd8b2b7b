"""Authentication service functions."""

from typing import Any, Dict
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from core.authorization import Actor
from core.config import settings
from core.exceptions import UnauthorizedError
from core.security import create_access_token, verify_jwt_token, verify_password
from database.repositories.directory import Directory

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS_MESSAGE = "Invalid email or password."


async def login(session: AsyncSession, email: str, password: str) -> Dict[str, Any]:
    """
    Authenticate a user and issue an access token.

    Args:
        session: Database session
        email: Login email
        password: Plain password

    Returns:
        Token response with the user's name, email and role

    Raises:
        UnauthorizedError: Unknown email, wrong password, inactive or deleted user
    """
    user = await Directory(session).find_user_by_email((email or "").strip())
    if user is None or not verify_password(password or "", user.password_hash):
        raise UnauthorizedError(INVALID_CREDENTIALS_MESSAGE)

    if not user.is_active or not user.is_usable:
        logger.info(f"{user.user_code} tried to log in but the account is deleted or inactive")
        raise UnauthorizedError(INVALID_CREDENTIALS_MESSAGE)

    token = create_access_token(user.id, user.role_name)
    logger.info(f"User {user.user_code} logged in")

    return {
        "access_token": token,
        "token_type": "bearer",
        "expires_in": settings.access_token_expire_minutes * 60,
        "user": {
            "id": user.id,
            "user_code": user.user_code,
            "name": user.name,
            "email": user.email,
            "role": user.role_name,
        },
    }


async def resolve_actor(session: AsyncSession, token: str) -> Actor:
    """
    Resolve a bearer token to the acting user.

    Raises:
        UnauthorizedError: Invalid or expired token, or the user no longer
            exists, was deleted or deactivated
    """
    payload = verify_jwt_token(token)

    user = await Directory(session).find_user(payload.user_id)
    if user is None or not user.is_usable or not user.is_active:
        logger.warning(f"Token presented for unavailable user {payload.user_id}")
        raise UnauthorizedError("User belonging to this token no longer exists.")

    return Actor(
        id=user.id,
        user_code=user.user_code,
        role=user.role_name,
        department_id=user.department_id,
        name=user.name,
        email=user.email,
    )
