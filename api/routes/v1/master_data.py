"""
Master data endpoints.

The same five routes are mounted for departments, roles, job positions and
natures of employment. Reads need any authenticated user; writes need an HRBP.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status

from api.dependencies import get_current_actor, master_data_service, require_hrbp
from api.schemas.common import MessageResponse, PaginatedResponse
from api.schemas.master_data import MasterDataResponse, MasterDataWrite
from api.services.master_data import MASTER_LABELS, MasterDataService
from core.authorization import Actor


def build_router(kind: str) -> APIRouter:
    """Create the CRUD router for one master data kind."""
    router = APIRouter()
    get_service = master_data_service(kind)
    label = MASTER_LABELS[kind]

    @router.get(
        "",
        response_model=PaginatedResponse[MasterDataResponse],
        summary=f"List {label} entries",
    )
    async def list_entries(
        page: int = Query(1, ge=1),
        limit: int = Query(10, ge=1, le=100),
        search: Optional[str] = Query(None, description="Search by name"),
        actor: Actor = Depends(get_current_actor),
        service: MasterDataService = Depends(get_service),
    ):
        return await service.list(page=page, limit=limit, search=search)

    @router.get(
        "/{entity_id}",
        response_model=MasterDataResponse,
        summary=f"Get {label}",
    )
    async def get_entry(
        entity_id: int = Path(...),
        actor: Actor = Depends(get_current_actor),
        service: MasterDataService = Depends(get_service),
    ):
        return await service.get(entity_id)

    @router.post(
        "",
        status_code=status.HTTP_201_CREATED,
        response_model=MasterDataResponse,
        summary=f"Create {label}",
    )
    async def create_entry(
        body: MasterDataWrite,
        actor: Actor = Depends(require_hrbp),
        service: MasterDataService = Depends(get_service),
    ):
        return await service.create(body.name, actor)

    @router.put(
        "/{entity_id}",
        response_model=MasterDataResponse,
        summary=f"Rename {label}",
    )
    async def rename_entry(
        body: MasterDataWrite,
        entity_id: int = Path(...),
        actor: Actor = Depends(require_hrbp),
        service: MasterDataService = Depends(get_service),
    ):
        return await service.rename(entity_id, body.name, actor)

    @router.delete(
        "/{entity_id}",
        response_model=MessageResponse,
        summary=f"Delete {label}",
    )
    async def delete_entry(
        entity_id: int = Path(...),
        actor: Actor = Depends(require_hrbp),
        service: MasterDataService = Depends(get_service),
    ):
        await service.remove(entity_id, actor)
        return {"message": f"{label} deleted successfully."}

    return router


departments_router = build_router("department")
roles_router = build_router("role")
job_positions_router = build_router("job_position")
natures_of_employment_router = build_router("nature_of_employment")
