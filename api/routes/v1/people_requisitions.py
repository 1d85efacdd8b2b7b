"""
People requisition endpoints.

Thin HTTP wrappers over ``PeopleRequisitionService``; the service decides
every authorization and state question.
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, Path, Query, UploadFile, status
from fastapi.responses import FileResponse

from api.dependencies import (
    get_current_actor,
    get_people_requisition_service,
    get_storage,
    require_hrbp,
)
from api.schemas.common import MessageResponse
from api.schemas.people_requisitions import (
    RequisitionCreate,
    RequisitionList,
    RequisitionResponse,
    RequisitionUpdate,
    SortField,
    SortOrder,
    StatusUpdate,
)
from api.services.people_requisitions import PeopleRequisitionService
from core.authorization import Actor
from core.exceptions import NotFoundError
from core.storage.local import LocalStorage
from database.models.people_requisitions import RequisitionStatus
from database.repositories.people_requisitions import RequisitionFilter

router = APIRouter()


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=RequisitionResponse,
    summary="Create People Requisition",
)
async def create_requisition(
    body: RequisitionCreate,
    actor: Actor = Depends(require_hrbp),
    service: PeopleRequisitionService = Depends(get_people_requisition_service),
):
    """Raise a new requisition; the job code is generated from the job position."""
    return await service.create(body.model_dump(), actor)


@router.get(
    "",
    response_model=RequisitionList,
    summary="List People Requisitions",
)
async def list_requisitions(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status_filter: Optional[RequisitionStatus] = Query(None, alias="status"),
    department_id: Optional[int] = Query(None),
    search: Optional[str] = Query(None, description="Search by job code"),
    sort_by: SortField = Query("created_at"),
    order_by: SortOrder = Query("desc"),
    actor: Actor = Depends(get_current_actor),
    service: PeopleRequisitionService = Depends(get_people_requisition_service),
):
    filters = RequisitionFilter(
        page=page,
        limit=limit,
        status=status_filter,
        department_id=department_id,
        search=search.strip() if search else None,
        sort_by=sort_by,
        order_by=order_by,
    )
    return await service.list(filters, actor)


@router.get(
    "/{pr_id}",
    response_model=RequisitionResponse,
    summary="Get People Requisition",
)
async def get_requisition(
    pr_id: int = Path(..., description="People requisition ID"),
    actor: Actor = Depends(get_current_actor),
    service: PeopleRequisitionService = Depends(get_people_requisition_service),
):
    return await service.get_by_id(pr_id, actor)


@router.put(
    "/{pr_id}",
    response_model=RequisitionResponse,
    summary="Edit People Requisition",
)
async def update_requisition(
    body: RequisitionUpdate,
    pr_id: int = Path(..., description="People requisition ID"),
    actor: Actor = Depends(get_current_actor),
    service: PeopleRequisitionService = Depends(get_people_requisition_service),
):
    """Edit the fields the caller's role allows; any other submitted field is rejected."""
    return await service.update(pr_id, body.model_dump(exclude_unset=True), actor)


@router.delete(
    "/{pr_id}",
    response_model=MessageResponse,
    summary="Delete People Requisition",
)
async def delete_requisition(
    pr_id: int = Path(..., description="People requisition ID"),
    actor: Actor = Depends(require_hrbp),
    service: PeopleRequisitionService = Depends(get_people_requisition_service),
):
    await service.delete(pr_id, actor)
    return {"message": "People Requisition deleted successfully."}


@router.put(
    "/{pr_id}/approve",
    response_model=RequisitionResponse,
    summary="Approve People Requisition",
)
async def approve_requisition(
    pr_id: int = Path(..., description="People requisition ID"),
    actor: Actor = Depends(require_hrbp),
    service: PeopleRequisitionService = Depends(get_people_requisition_service),
):
    return await service.approve(pr_id, actor)


@router.patch(
    "/{pr_id}/status",
    response_model=RequisitionResponse,
    summary="Change People Requisition Status",
)
async def update_requisition_status(
    body: StatusUpdate,
    pr_id: int = Path(..., description="People requisition ID"),
    actor: Actor = Depends(get_current_actor),
    service: PeopleRequisitionService = Depends(get_people_requisition_service),
):
    return await service.update_status(pr_id, body.status, actor)


@router.post(
    "/{pr_id}/upload-jd",
    response_model=RequisitionResponse,
    summary="Upload Job Description",
)
async def upload_job_description(
    pr_id: int = Path(..., description="People requisition ID"),
    job_description: Optional[UploadFile] = File(None, alias="jobDescription"),
    actor: Actor = Depends(get_current_actor),
    service: PeopleRequisitionService = Depends(get_people_requisition_service),
    storage: LocalStorage = Depends(get_storage),
):
    """Attach a .pdf, .doc or .docx job description (assigned recruiter only)."""
    upload = None
    if job_description is not None:
        data = await job_description.read()
        upload = storage.save_upload(data, job_description.filename, job_description.content_type)
    return await service.upload_jd(pr_id, upload, actor)


@router.get(
    "/{pr_id}/download-jd",
    summary="Download Job Description",
    response_class=FileResponse,
)
async def download_job_description(
    pr_id: int = Path(..., description="People requisition ID"),
    actor: Actor = Depends(get_current_actor),
    service: PeopleRequisitionService = Depends(get_people_requisition_service),
    storage: LocalStorage = Depends(get_storage),
):
    jd = await service.download_jd(pr_id, actor)
    if not storage.exists(jd.path):
        raise NotFoundError("Job description not found for this requisition.")
    return FileResponse(jd.path, filename=jd.file_name)
