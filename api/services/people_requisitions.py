"""
People requisition lifecycle.

Creation with duplicate and reference checks, HRBP approval, role-gated field
edits and status transitions, soft deletion, authorization-scoped reads and
job description attachments. Every operation takes the acting ``Actor`` and
returns plain dictionaries or raises an ``AppError``.
"""

from dataclasses import dataclass
from math import ceil
from typing import Any, Dict, Optional
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from core.authorization import (
    EDITABLE_STATUSES,
    LISTING_ROLES,
    Actor,
    Visibility,
    can_transition,
    get_editable_fields,
    is_assigned,
    visibility,
)
from core.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidInputError,
    NotFoundError,
)
from core.notifications import Notifier, get_notification_dispatcher
from core.storage.local import LocalStorage, StoredFile
from core.utils.datetime import isoformat_or_none, now
from core.utils.formatting import derive_code_prefix, format_sequence_code
from database.models.people_requisitions import ACTIVE_STATUSES, PeopleRequisition, RequisitionStatus
from database.repositories.counters import PrefixCounterRepository
from database.repositories.directory import Directory, ResolvedReferences
from database.repositories.people_requisitions import (
    PeopleRequisitionRepository,
    RequisitionFilter,
)

logger = logging.getLogger(__name__)


NOT_FOUND_MESSAGE = "People Requisition not found."
INVALID_FIELDS_MESSAGE = "One or more provided fields are invalid."
NO_PERMISSION_MESSAGE = "You do not have permission to perform this action."
DUPLICATE_MESSAGE = (
    "An active People Requisition for this job, department and "
    "nature of employment already exists."
)

# References that identify a requisition for the one-active-per-triple rule
TRIPLE_FIELDS = ("job_position_id", "department_id", "nature_of_employment_id")

REFERENCE_FIELDS = (
    "job_position_id",
    "department_id",
    "nature_of_employment_id",
    "recruiter_id",
)


@dataclass(frozen=True)
class JobDescriptionFile:
    """Location of an attached job description."""

    path: str
    file_name: str


def _named(entity) -> Optional[Dict[str, Any]]:
    if entity is None:
        return None
    return {"id": entity.id, "name": entity.name}


def _person(user) -> Optional[Dict[str, Any]]:
    if user is None:
        return None
    return {
        "id": user.id,
        "user_code": user.user_code,
        "name": user.name,
        "email": user.email,
    }


def serialize_requisition(pr: PeopleRequisition) -> Dict[str, Any]:
    """Relation-expanded view of a requisition loaded with details."""
    return {
        "id": pr.id,
        "job_code": pr.job_code,
        "job_position": _named(pr.job_position),
        "department": _named(pr.department),
        "nature_of_employment": _named(pr.nature_of_employment),
        "recruiter": _person(pr.recruiter),
        "hrbp": _person(pr.hrbp),
        "job_description": pr.job_description,
        "prf_number": pr.prf_number,
        "prf_link": pr.prf_link,
        "status": pr.status.value if hasattr(pr.status, "value") else str(pr.status),
        "is_approved_by_hrbp": pr.is_approved_by_hrbp,
        "closing_date": isoformat_or_none(pr.closing_date),
        "jd_file_name": pr.jd_file_name,
        "jd_uploaded_at": isoformat_or_none(pr.jd_uploaded_at),
        "created_by": pr.created_by,
        "created_at": isoformat_or_none(pr.created_at),
        "modified_by": pr.modified_by,
        "modified_at": isoformat_or_none(pr.modified_at),
    }


class PeopleRequisitionService:
    """Lifecycle operations on people requisitions within one session."""

    def __init__(
        self,
        session: AsyncSession,
        notifier: Optional[Notifier] = None,
        storage: Optional[LocalStorage] = None,
    ):
        self.session = session
        self.notifier = notifier or get_notification_dispatcher()
        self._storage = storage
        self.requisitions = PeopleRequisitionRepository(session)
        self.directory = Directory(session)
        self.counters = PrefixCounterRepository(session)

    @property
    def storage(self) -> LocalStorage:
        if self._storage is None:
            self._storage = LocalStorage()
        return self._storage

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    async def _load(self, pr_id: int) -> PeopleRequisition:
        pr = await self.requisitions.find_by_id_with_details(pr_id)
        if pr is None:
            raise NotFoundError(NOT_FOUND_MESSAGE)
        return pr

    async def _validate_references(self, action: str, actor: Actor, **references) -> ResolvedReferences:
        """Resolve references, raising a generic InvalidInputError if any fails."""
        missing = [name for name, value in references.items() if value is None]
        resolved = await self.directory.resolve_references(**references)
        invalid = missing + resolved.invalid_fields
        if invalid:
            logger.error(
                f"PR {action} by {actor.user_code} failed: invalid or deleted "
                f"references {', '.join(invalid)}"
            )
            raise InvalidInputError(INVALID_FIELDS_MESSAGE)
        return resolved

    def _notify(
        self,
        recipient,
        subject: str,
        template_name: str,
        template_data: Dict[str, Any],
    ) -> None:
        if recipient is None:
            logger.warning(f"No recipient for {template_name}, skipping")
            return
        try:
            self.notifier.send(recipient.email, subject, template_name, template_data)
        except Exception as e:
            logger.error(f"Failed to dispatch {template_name}: {type(e).__name__}: {e}")

    def _discard_upload(self, upload: StoredFile) -> None:
        try:
            self.storage.delete(upload.path)
        except OSError as e:
            logger.error(f"Failed to remove rejected upload {upload.path}: {e}")

    async def _ensure_no_active_duplicate(
        self,
        triple: Dict[str, Any],
        actor: Actor,
        exclude_id: Optional[int] = None,
    ) -> None:
        existing = await self.requisitions.find_active_by_details(
            triple["job_position_id"],
            triple["department_id"],
            triple["nature_of_employment_id"],
            exclude_id=exclude_id,
        )
        if existing is not None:
            logger.warning(
                f"Duplicate PR attempt by {actor.role} {actor.user_code}. "
                f"An active PR ({existing.job_code}) already exists."
            )
            raise ConflictError(DUPLICATE_MESSAGE)

    # ------------------------------------------------------------------ #
    # Mutations
    # ------------------------------------------------------------------ #

    async def create(self, payload: Dict[str, Any], actor: Actor) -> Dict[str, Any]:
        """
        Create a requisition raised by an HRBP.

        Args:
            payload: job_position_id, department_id, recruiter_id,
                nature_of_employment_id, job_description, prf_number,
                prf_link, closing_date
            actor: Creating HRBP

        Returns:
            The created requisition, relation-expanded

        Raises:
            ForbiddenError: Actor is not an HRBP
            ConflictError: An active requisition exists for the same job
                position, department and nature of employment
            InvalidInputError: A reference is missing, deleted, or the
                recruiter does not hold the Recruiter role
        """
        if not actor.is_hrbp:
            logger.warning(f"{actor.role} {actor.user_code} attempted to create a PR")
            raise ForbiddenError(NO_PERMISSION_MESSAGE)

        references = {name: payload.get(name) for name in REFERENCE_FIELDS}

        if None not in references.values():
            await self._ensure_no_active_duplicate(references, actor)

        resolved = await self._validate_references("creation", actor, **references)

        prefix = derive_code_prefix(resolved.job_position.name)
        count = await self.counters.increment_and_get(prefix)
        job_code = format_sequence_code(prefix, count)

        pr = PeopleRequisition(
            job_code=job_code,
            job_position_id=references["job_position_id"],
            department_id=references["department_id"],
            nature_of_employment_id=references["nature_of_employment_id"],
            recruiter_id=references["recruiter_id"],
            hrbp_id=actor.id,
            job_description=payload.get("job_description"),
            prf_number=payload.get("prf_number"),
            prf_link=payload.get("prf_link"),
            closing_date=payload.get("closing_date"),
            status=RequisitionStatus.OPEN,
            is_approved_by_hrbp=False,
            created_by=actor.user_code,
        )
        self.requisitions.add(pr)
        await self.session.commit()

        logger.info(f"People Requisition {job_code} created by HRBP {actor.user_code}")
        return serialize_requisition(await self._load(pr.id))

    async def approve(self, pr_id: int, actor: Actor) -> Dict[str, Any]:
        """
        Approve a requisition and notify its recruiter.

        Raises:
            ForbiddenError: Actor is not an HRBP
            NotFoundError: No such requisition
            ConflictError: Requisition deleted or already approved
        """
        if not actor.is_hrbp:
            logger.warning(f"{actor.role} {actor.user_code} attempted to approve PR {pr_id}")
            raise ForbiddenError(NO_PERMISSION_MESSAGE)

        pr = await self._load(pr_id)
        if not pr.is_usable:
            raise ConflictError(
                "This People Requisition has been deleted and cannot be approved."
            )
        if pr.is_approved_by_hrbp:
            raise ConflictError("This People Requisition has already been approved.")

        pr.is_approved_by_hrbp = True
        pr.touch(actor.user_code)
        await self.session.commit()
        logger.info(f"People Requisition {pr.job_code} approved by HRBP {actor.user_code}")

        pr = await self._load(pr_id)
        self._notify(
            pr.recruiter,
            f"New Requirement Assigned: {pr.job_position.name}",
            "prApprovalEmail",
            {
                "recruiterName": pr.recruiter.name,
                "departmentName": pr.department.name,
                "positionName": pr.job_position.name,
            },
        )
        return serialize_requisition(pr)

    async def update(
        self,
        pr_id: int,
        changes: Dict[str, Any],
        actor: Actor,
    ) -> Dict[str, Any]:
        """
        Apply field edits allowed for the actor's role.

        Every submitted key is checked against the role's editable fields,
        whether or not its value differs from the stored one. Nothing is
        written unless all checks pass.

        Args:
            pr_id: Requisition id
            changes: Field name to new value
            actor: Assigned HRBP or recruiter

        Returns:
            The updated requisition, relation-expanded

        Raises:
            NotFoundError: No such requisition
            ConflictError: Requisition deleted, its status locks edits, or the
                edit would duplicate another active requisition
            ForbiddenError: Actor not assigned, or a field outside their set
            InvalidInputError: A changed reference does not resolve
        """
        pr = await self._load(pr_id)
        if not pr.is_usable:
            raise ConflictError(
                "This People Requisition has been deleted and cannot be edited."
            )
        if not is_assigned(actor, pr):
            logger.warning(f"Unassigned user {actor.user_code} attempted to edit PR {pr.job_code}")
            raise ForbiddenError("You do not have permission to edit this People Requisition.")
        if pr.status not in EDITABLE_STATUSES:
            raise ConflictError(
                f'Cannot edit details of a requisition with status "{pr.status.value}".'
            )

        allowed = get_editable_fields(actor.role)
        for key in changes:
            if key not in allowed:
                logger.warning(
                    f"{actor.role} {actor.user_code} attempted to edit unallowed "
                    f'field "{key}" on PR {pr.job_code}'
                )
                raise ForbiddenError(f"You do not have permission to edit the {key} field.")

        references = {
            name: changes[name] for name in REFERENCE_FIELDS if name in changes
        }
        if references:
            await self._validate_references("update", actor, **references)

        if pr.status in ACTIVE_STATUSES and any(name in changes for name in TRIPLE_FIELDS):
            triple = {name: changes.get(name, getattr(pr, name)) for name in TRIPLE_FIELDS}
            await self._ensure_no_active_duplicate(triple, actor, exclude_id=pr.id)

        old_recruiter_id = pr.recruiter_id
        for key, value in changes.items():
            setattr(pr, key, value)
        pr.touch(actor.user_code)
        await self.session.commit()
        logger.info(f"People Requisition {pr.job_code} details updated by {actor.role} {actor.user_code}")

        pr = await self._load(pr_id)
        if pr.recruiter_id != old_recruiter_id:
            logger.info(f"Recruiter changed for PR {pr.job_code}, notifying new recruiter")
            self._notify(
                pr.recruiter,
                f"Reassignment: New Requirement Assigned - {pr.job_position.name}",
                "prReassignmentEmail",
                {
                    "recruiterName": pr.recruiter.name,
                    "departmentName": pr.department.name,
                    "positionName": pr.job_position.name,
                },
            )
        return serialize_requisition(pr)

    async def update_status(
        self,
        pr_id: int,
        new_status: str,
        actor: Actor,
    ) -> Dict[str, Any]:
        """
        Move a requisition to a new status if the actor's role allows it.

        Raises:
            NotFoundError: No such requisition, or it was deleted
            ForbiddenError: Actor is not assigned to the requisition
            InvalidInputError: Transition not allowed for the actor's role
            ConflictError: Reopening would give the job position, department
                and nature of employment a second active requisition
        """
        pr = await self._load(pr_id)
        if not pr.is_usable:
            raise NotFoundError(NOT_FOUND_MESSAGE)
        if not is_assigned(actor, pr):
            logger.warning(f"Unassigned user {actor.user_code} attempted to change status of PR {pr.job_code}")
            raise ForbiddenError("You do not have permission to update this People Requisition.")

        current = pr.status
        try:
            target = RequisitionStatus(new_status)
        except ValueError:
            target = None

        if target is None or not can_transition(actor.role, current, target):
            logger.warning(
                f"Invalid status transition attempted on PR {pr.job_code} by "
                f"{actor.role} {actor.user_code}: from {current.value} to {new_status}"
            )
            raise InvalidInputError(
                f"As a {actor.role}, you cannot change the status from "
                f"{current.value} to {new_status}."
            )

        if target in ACTIVE_STATUSES and current not in ACTIVE_STATUSES:
            await self._ensure_no_active_duplicate(
                {name: getattr(pr, name) for name in TRIPLE_FIELDS}, actor, exclude_id=pr.id
            )

        pr.status = target
        pr.touch(actor.user_code)
        await self.session.commit()
        logger.info(f"Status of PR {pr.job_code} updated to {target.value} by {actor.role} {actor.user_code}")

        pr = await self._load(pr_id)
        if actor.is_recruiter and target == RequisitionStatus.COMPLETED:
            self._notify(
                pr.hrbp,
                f"Process Completed: {pr.job_position.name} ({pr.job_code})",
                "prCompletedEmail",
                {
                    "hrbpName": pr.hrbp.name,
                    "recruiterName": pr.recruiter.name,
                    "positionName": pr.job_position.name,
                    "jobCode": pr.job_code,
                },
            )
        return serialize_requisition(pr)

    async def delete(self, pr_id: int, actor: Actor) -> None:
        """
        Soft delete an open requisition.

        Raises:
            ForbiddenError: Actor is not an HRBP
            NotFoundError: No such requisition
            ConflictError: Already deleted, or status is not open
        """
        if not actor.is_hrbp:
            logger.warning(f"{actor.role} {actor.user_code} attempted to delete PR {pr_id}")
            raise ForbiddenError(NO_PERMISSION_MESSAGE)

        pr = await self.requisitions.find_by_id(pr_id)
        if pr is None:
            raise NotFoundError(NOT_FOUND_MESSAGE)
        if not pr.is_usable:
            raise ConflictError("This People Requisition has already been deleted.")
        if pr.status != RequisitionStatus.OPEN:
            raise ConflictError(
                f"Cannot delete a requisition with status {pr.status.value}. "
                "Only open requisitions can be deleted."
            )

        pr.mark_deleted(actor.user_code)
        await self.session.commit()
        logger.info(f"People Requisition {pr.job_code} soft-deleted by HRBP {actor.user_code}")

    # ------------------------------------------------------------------ #
    # Job description files
    # ------------------------------------------------------------------ #

    async def upload_jd(
        self,
        pr_id: int,
        upload: Optional[StoredFile],
        actor: Actor,
    ) -> Dict[str, Any]:
        """
        Attach a stored job description file, replacing any previous one.

        The stored file is removed again whenever the upload is rejected.

        Args:
            pr_id: Requisition id
            upload: File already written by ``LocalStorage.save_upload``
            actor: Assigned recruiter

        Returns:
            The updated requisition, relation-expanded

        Raises:
            InvalidInputError: No file
            ForbiddenError: Actor is not the requisition's recruiter
            NotFoundError: No such requisition, or it was deleted
        """
        if upload is None:
            raise InvalidInputError("No file was uploaded.")

        if not actor.is_recruiter:
            self._discard_upload(upload)
            logger.warning(f"Non-recruiter user {actor.user_code} attempted to upload a JD for PR {pr_id}")
            raise ForbiddenError(NO_PERMISSION_MESSAGE)

        pr = await self.requisitions.find_by_id(pr_id)
        if pr is None or not pr.is_usable:
            self._discard_upload(upload)
            raise NotFoundError(NOT_FOUND_MESSAGE)

        if pr.recruiter_id != actor.id:
            self._discard_upload(upload)
            logger.warning(f"Recruiter {actor.user_code} attempted to upload a JD for unassigned PR {pr.job_code}")
            raise ForbiddenError(NO_PERMISSION_MESSAGE)

        if pr.jd_file_path:
            try:
                if self.storage.delete(pr.jd_file_path):
                    logger.info(f"Old JD file {pr.jd_file_path} deleted for PR {pr.job_code}")
            except OSError as e:
                logger.error(f"Failed to delete old JD file for PR {pr.job_code}: {e}")

        pr.jd_file_name = upload.original_name
        pr.jd_file_path = upload.path
        pr.jd_uploaded_at = now()
        pr.touch(actor.user_code)
        await self.session.commit()
        logger.info(f"JD file uploaded for PR {pr.job_code} by user {actor.user_code}")

        pr = await self._load(pr_id)
        self._notify(
            pr.hrbp,
            f"Job Description Uploaded for {pr.job_position.name} ({pr.job_code})",
            "jdUploadedEmail",
            {
                "hrbpName": pr.hrbp.name,
                "positionName": pr.job_position.name,
                "jobCode": pr.job_code,
                "uploaderName": actor.user_code,
            },
        )
        return serialize_requisition(pr)

    async def download_jd(self, pr_id: int, actor: Actor) -> JobDescriptionFile:
        """
        Locate the attached job description for an assigned user.

        Raises:
            NotFoundError: No requisition, deleted, or nothing attached
            ForbiddenError: Actor is not assigned to the requisition
        """
        pr = await self.requisitions.find_by_id(pr_id)
        if pr is None or not pr.is_usable or not pr.jd_file_path:
            raise NotFoundError("Job description not found for this requisition.")
        if not is_assigned(actor, pr):
            raise ForbiddenError("You do not have permission to download this file.")
        return JobDescriptionFile(path=pr.jd_file_path, file_name=pr.jd_file_name)

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #

    async def get_by_id(self, pr_id: int, actor: Actor) -> Dict[str, Any]:
        """
        Fetch one requisition the actor may see.

        Raises:
            NotFoundError: Missing, deleted, or unapproved for a recruiter
            ForbiddenError: Actor is not assigned to the requisition
        """
        pr = await self.requisitions.find_by_id_with_details(pr_id)
        if pr is None:
            raise NotFoundError(NOT_FOUND_MESSAGE)

        outcome = visibility(actor, pr)
        if outcome == Visibility.HIDDEN_AS_NOT_FOUND:
            if pr.is_usable:
                logger.warning(f"Recruiter {actor.user_code} attempted to access unapproved PR {pr.job_code}")
            raise NotFoundError(NOT_FOUND_MESSAGE)
        if outcome == Visibility.FORBIDDEN:
            logger.warning(f"Unauthorized attempt to access PR {pr.job_code} by user {actor.user_code}")
            raise ForbiddenError("You do not have permission to view this People Requisition.")

        return serialize_requisition(pr)

    async def list(self, filters: RequisitionFilter, actor: Actor) -> Dict[str, Any]:
        """
        List requisitions visible to the actor.

        Recruiters only see approved requisitions assigned to them; HRBPs see
        every non-deleted requisition.

        Args:
            filters: Status, department, search, sort and paging options
            actor: HRBP or recruiter

        Returns:
            {"data": [...], "pagination": {"page", "limit", "total", "total_pages"}}

        Raises:
            ForbiddenError: Actor's role may not list requisitions
        """
        if actor.role not in LISTING_ROLES:
            logger.warning(f"Unauthorized attempt to list People Requisitions by {actor.user_code}")
            raise ForbiddenError("You do not have permission to view this People Requisition.")

        if actor.is_recruiter:
            filters.recruiter_id = actor.id
            filters.approved_only = True

        results, total = await self.requisitions.list(filters)
        return {
            "data": [serialize_requisition(pr) for pr in results],
            "pagination": {
                "page": filters.page,
                "limit": filters.limit,
                "total": total,
                "total_pages": ceil(total / filters.limit) if filters.limit else 0,
            },
        }
