"""
Authentication endpoints.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.users import LoginRequest
from api.services import auth as auth_service
from database.engine import get_db

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/login", summary="Log In")
async def login(body: LoginRequest, db: AsyncSession = Depends(get_db)):
    """Exchange email and password for a bearer access token."""
    return await auth_service.login(db, body.email, body.password)
