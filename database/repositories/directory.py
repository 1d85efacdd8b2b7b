"""
Identity directory: lookups of master data and users by id or name.

Lookups return rows whether or not they have been soft deleted; callers
decide with ``is_usable``.
"""

from dataclasses import dataclass, field
from typing import Optional
import logging

from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from core.authorization import RoleName
from database.models.master_data import Department, JobPosition, NatureOfEmployment, Role
from database.models.people_requisitions import PeopleRequisition, RequisitionStatus
from database.models.users import User

logger = logging.getLogger(__name__)


# Master entity kind -> model
MASTER_MODELS = {
    "department": Department,
    "role": Role,
    "job_position": JobPosition,
    "nature_of_employment": NatureOfEmployment,
}

# Master entity kind -> foreign key column name on referencing tables
_PR_REFERENCES = {
    "department": PeopleRequisition.department_id,
    "job_position": PeopleRequisition.job_position_id,
    "nature_of_employment": PeopleRequisition.nature_of_employment_id,
}
_USER_REFERENCES = {
    "department": User.department_id,
    "role": User.role_id,
    "job_position": User.job_position_id,
}


@dataclass
class ResolvedReferences:
    """Outcome of resolving the references a requisition points at."""

    job_position: Optional[JobPosition] = None
    department: Optional[Department] = None
    nature_of_employment: Optional[NatureOfEmployment] = None
    recruiter: Optional[User] = None
    invalid_fields: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.invalid_fields


class Directory:
    """Read access to master data and users within one session."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _find(self, model, entity_id: int):
        result = await self.session.execute(select(model).where(model.id == entity_id))
        return result.scalar_one_or_none()

    async def find_master(self, kind: str, entity_id: int):
        return await self._find(MASTER_MODELS[kind], entity_id)

    async def find_job_position(self, entity_id: int) -> Optional[JobPosition]:
        return await self._find(JobPosition, entity_id)

    async def find_department(self, entity_id: int) -> Optional[Department]:
        return await self._find(Department, entity_id)

    async def find_nature_of_employment(self, entity_id: int) -> Optional[NatureOfEmployment]:
        return await self._find(NatureOfEmployment, entity_id)

    async def find_role(self, entity_id: int) -> Optional[Role]:
        return await self._find(Role, entity_id)

    async def find_user(self, user_id: int, reload: bool = False) -> Optional[User]:
        """
        Find a user with role, department and job position loaded.

        With ``reload`` an instance already in the session is overwritten from
        the database, relationships included.
        """
        query = (
            select(User)
            .options(
                selectinload(User.role),
                selectinload(User.department),
                selectinload(User.job_position),
            )
            .where(User.id == user_id)
        )
        if reload:
            query = query.execution_options(populate_existing=True)
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def find_user_by_email(self, email: str) -> Optional[User]:
        """Find the non-deleted user with this email (case-insensitive)."""
        result = await self.session.execute(
            select(User)
            .options(selectinload(User.role))
            .where(func.lower(User.email) == email.lower())
            .where(User.is_usable)
        )
        return result.scalars().first()

    async def find_active_by_name(
        self,
        kind: str,
        name: str,
        exclude_id: Optional[int] = None,
    ):
        """Find a non-deleted master row whose name matches case-insensitively."""
        model = MASTER_MODELS[kind]
        query = (
            select(model)
            .where(func.lower(model.name) == name.lower())
            .where(model.is_usable)
        )
        if exclude_id is not None:
            query = query.where(model.id != exclude_id)
        result = await self.session.execute(query)
        return result.scalars().first()

    async def find_active_referencing_entity(self, kind: str, entity_id: int) -> Optional[str]:
        """
        Find what still references a master row.

        Args:
            kind: Master entity kind (department, role, job_position, nature_of_employment)
            entity_id: Master row id

        Returns:
            "people_requisition" or "user" for the first active referencing
            row found, None when nothing active references it
        """
        pr_column = _PR_REFERENCES.get(kind)
        if pr_column is not None:
            result = await self.session.execute(
                select(PeopleRequisition.id)
                .where(pr_column == entity_id)
                .where(PeopleRequisition.is_usable)
                .limit(1)
            )
            if result.scalar_one_or_none() is not None:
                return "people_requisition"

        user_column = _USER_REFERENCES.get(kind)
        if user_column is not None:
            result = await self.session.execute(
                select(User.id)
                .where(user_column == entity_id)
                .where(User.is_usable)
                .limit(1)
            )
            if result.scalar_one_or_none() is not None:
                return "user"

        return None

    async def find_open_requisition_for_user(self, user_id: int) -> Optional[str]:
        """
        Find a requisition the user is still working on as HRBP or recruiter.

        Any non-deleted requisition that is not completed counts, closed and
        on-hold ones included.

        Returns:
            The job code of the first such requisition, or None
        """
        result = await self.session.execute(
            select(PeopleRequisition.job_code)
            .where(
                or_(
                    PeopleRequisition.recruiter_id == user_id,
                    PeopleRequisition.hrbp_id == user_id,
                )
            )
            .where(PeopleRequisition.is_usable)
            .where(PeopleRequisition.status != RequisitionStatus.COMPLETED)
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def resolve_references(
        self,
        job_position_id: Optional[int] = None,
        department_id: Optional[int] = None,
        nature_of_employment_id: Optional[int] = None,
        recruiter_id: Optional[int] = None,
    ) -> ResolvedReferences:
        """
        Look up every given reference and collect the ones that fail.

        A reference fails when the row is missing or soft deleted; the
        recruiter additionally fails when the user is not a Recruiter.
        References passed as None are not checked.
        """
        resolved = ResolvedReferences()

        if job_position_id is not None:
            resolved.job_position = await self.find_job_position(job_position_id)
            if resolved.job_position is None or not resolved.job_position.is_usable:
                resolved.invalid_fields.append("job_position_id")

        if department_id is not None:
            resolved.department = await self.find_department(department_id)
            if resolved.department is None or not resolved.department.is_usable:
                resolved.invalid_fields.append("department_id")

        if nature_of_employment_id is not None:
            resolved.nature_of_employment = await self.find_nature_of_employment(
                nature_of_employment_id
            )
            if (
                resolved.nature_of_employment is None
                or not resolved.nature_of_employment.is_usable
            ):
                resolved.invalid_fields.append("nature_of_employment_id")

        if recruiter_id is not None:
            resolved.recruiter = await self.find_user(recruiter_id)
            recruiter = resolved.recruiter
            if (
                recruiter is None
                or not recruiter.is_usable
                or recruiter.role_name != RoleName.RECRUITER.value
            ):
                resolved.invalid_fields.append("recruiter_id")

        return resolved
