"""
User management endpoints.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status

from api.dependencies import get_current_actor, get_user_service, require_hrbp
from api.schemas.common import MessageResponse
from api.schemas.users import UserCreate, UserUpdate
from api.services.users import UserService
from core.authorization import Actor

router = APIRouter()


@router.get("", summary="List Users")
async def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = Query(None, description="Search by name or email"),
    role_id: Optional[int] = Query(None),
    department_id: Optional[int] = Query(None),
    actor: Actor = Depends(get_current_actor),
    service: UserService = Depends(get_user_service),
):
    return await service.list_users(
        actor,
        page=page,
        limit=limit,
        search=search,
        role_id=role_id,
        department_id=department_id,
    )


@router.get("/{user_id}", summary="Get User")
async def get_user(
    user_id: int = Path(..., description="User ID"),
    actor: Actor = Depends(get_current_actor),
    service: UserService = Depends(get_user_service),
):
    return await service.get_user(user_id, actor)


@router.post("", status_code=status.HTTP_201_CREATED, summary="Create User")
async def create_user(
    body: UserCreate,
    actor: Actor = Depends(require_hrbp),
    service: UserService = Depends(get_user_service),
):
    """Create an account; a temporary password is emailed to the new user."""
    return await service.create_user(body.model_dump(), actor)


@router.put("/{user_id}", summary="Update User")
async def update_user(
    body: UserUpdate,
    user_id: int = Path(..., description="User ID"),
    actor: Actor = Depends(require_hrbp),
    service: UserService = Depends(get_user_service),
):
    """Refused with 409 while the user is assigned to a requisition that is not completed."""
    return await service.edit_user(user_id, body.model_dump(exclude_unset=True), actor)


@router.delete("/{user_id}", response_model=MessageResponse, summary="Delete User")
async def delete_user(
    user_id: int = Path(..., description="User ID"),
    actor: Actor = Depends(require_hrbp),
    service: UserService = Depends(get_user_service),
):
    await service.remove_user(user_id, actor)
    return {"message": "User deleted successfully."}
