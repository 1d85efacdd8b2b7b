"""People requisition queries."""

from dataclasses import dataclass
from typing import Optional
import logging

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from database.models.people_requisitions import (
    ACTIVE_STATUSES,
    PeopleRequisition,
    RequisitionStatus,
)
from database.models.users import User

logger = logging.getLogger(__name__)


SORTABLE_COLUMNS = {
    "created_at": PeopleRequisition.created_at,
    "modified_at": PeopleRequisition.modified_at,
    "job_code": PeopleRequisition.job_code,
    "status": PeopleRequisition.status,
    "closing_date": PeopleRequisition.closing_date,
}
DEFAULT_SORT = "created_at"


@dataclass
class RequisitionFilter:
    """Filters, sorting and paging for a requisition listing."""

    page: int = 1
    limit: int = 10
    status: Optional[RequisitionStatus] = None
    department_id: Optional[int] = None
    search: Optional[str] = None
    sort_by: str = DEFAULT_SORT
    order_by: str = "desc"
    recruiter_id: Optional[int] = None
    approved_only: bool = False


def _with_details(query):
    return query.options(
        selectinload(PeopleRequisition.job_position),
        selectinload(PeopleRequisition.department),
        selectinload(PeopleRequisition.nature_of_employment),
        selectinload(PeopleRequisition.recruiter).selectinload(User.role),
        selectinload(PeopleRequisition.hrbp).selectinload(User.role),
    )


class PeopleRequisitionRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    def add(self, pr: PeopleRequisition) -> None:
        self.session.add(pr)

    async def find_by_id(self, pr_id: int) -> Optional[PeopleRequisition]:
        result = await self.session.execute(
            select(PeopleRequisition).where(PeopleRequisition.id == pr_id)
        )
        return result.scalar_one_or_none()

    async def find_by_id_with_details(self, pr_id: int) -> Optional[PeopleRequisition]:
        """Load a requisition with all related rows, refreshing any cached copy."""
        result = await self.session.execute(
            _with_details(select(PeopleRequisition))
            .where(PeopleRequisition.id == pr_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def find_active_by_details(
        self,
        job_position_id: int,
        department_id: int,
        nature_of_employment_id: int,
        exclude_id: Optional[int] = None,
    ) -> Optional[PeopleRequisition]:
        """Find a non-deleted open or in-progress requisition for the triple."""
        query = (
            select(PeopleRequisition)
            .where(PeopleRequisition.job_position_id == job_position_id)
            .where(PeopleRequisition.department_id == department_id)
            .where(PeopleRequisition.nature_of_employment_id == nature_of_employment_id)
            .where(PeopleRequisition.is_usable)
            .where(PeopleRequisition.status.in_(ACTIVE_STATUSES))
        )
        if exclude_id is not None:
            query = query.where(PeopleRequisition.id != exclude_id)
        result = await self.session.execute(query.limit(1))
        return result.scalars().first()

    async def list(self, filters: RequisitionFilter) -> tuple[list[PeopleRequisition], int]:
        """
        List non-deleted requisitions.

        Returns:
            Tuple of (requisitions on the requested page, total matching)
        """
        query = select(PeopleRequisition).where(PeopleRequisition.is_usable)

        if filters.recruiter_id is not None:
            query = query.where(PeopleRequisition.recruiter_id == filters.recruiter_id)

        if filters.approved_only:
            query = query.where(PeopleRequisition.is_approved_by_hrbp.is_(True))

        if filters.status is not None:
            query = query.where(PeopleRequisition.status == filters.status)

        if filters.department_id is not None:
            query = query.where(PeopleRequisition.department_id == filters.department_id)

        if filters.search:
            query = query.where(PeopleRequisition.job_code.ilike(f"%{filters.search}%"))

        count_query = select(func.count()).select_from(query.subquery())
        total_result = await self.session.execute(count_query)
        total = total_result.scalar() or 0

        sort_column = SORTABLE_COLUMNS.get(filters.sort_by, SORTABLE_COLUMNS[DEFAULT_SORT])
        if filters.order_by == "asc":
            query = query.order_by(sort_column.asc(), PeopleRequisition.id.asc())
        else:
            query = query.order_by(sort_column.desc(), PeopleRequisition.id.desc())

        offset = (filters.page - 1) * filters.limit
        query = _with_details(query).limit(filters.limit).offset(offset)

        result = await self.session.execute(query)
        return list(result.scalars().all()), total
