"""
People Requisitions Module

A people requisition (PR) is an open hiring need raised by an HRBP for a job
position in a department, worked by an assigned recruiter once approved.
"""

from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import (
    String,
    Boolean,
    ForeignKey,
    BigInteger,
    Date,
    DateTime,
    Text,
    Enum as SQLEnum,
    Index,
)
from datetime import date, datetime
from enum import Enum as PyEnum
from typing import TYPE_CHECKING

from database.engine import Base
from database.models.mixins import AuditMixin, BigIntPK, SoftDeleteMixin, enum_values

if TYPE_CHECKING:
    from database.models.master_data import Department, JobPosition, NatureOfEmployment
    from database.models.users import User


# ==================== Requisition Status ===================== #
class RequisitionStatus(str, PyEnum):
    OPEN = "open"
    INPROGRESS = "inprogress"
    ONHOLD = "onhold"
    COMPLETED = "completed"
    CLOSED = "closed"


# Statuses that count towards the one-active-PR-per-triple rule
ACTIVE_STATUSES: frozenset[RequisitionStatus] = frozenset({
    RequisitionStatus.OPEN,
    RequisitionStatus.INPROGRESS,
})


class PeopleRequisition(Base, AuditMixin, SoftDeleteMixin):
    __tablename__: str = "people_requisitions"
    __table_args__ = (
        Index(
            "ix_people_requisitions_triple",
            "job_position_id",
            "department_id",
            "nature_of_employment_id",
        ),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    job_code: Mapped[str] = mapped_column(
        String(50), unique=True, nullable=False, index=True
    )

    job_position_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("job_positions.id"), nullable=False
    )
    department_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("departments.id"), nullable=False
    )
    nature_of_employment_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("natures_of_employment.id"), nullable=False
    )
    recruiter_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id"), nullable=False, index=True
    )
    hrbp_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id"), nullable=False, index=True
    )

    job_description: Mapped[str | None] = mapped_column(Text)
    prf_number: Mapped[str | None] = mapped_column(String(100))
    prf_link: Mapped[str | None] = mapped_column(String(500))

    status: Mapped[RequisitionStatus] = mapped_column(
        SQLEnum(
            RequisitionStatus,
            native_enum=False,
            length=20,
            values_callable=enum_values,
        ),
        nullable=False,
        default=RequisitionStatus.OPEN,
        index=True,
    )
    is_approved_by_hrbp: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    closing_date: Mapped[date | None] = mapped_column(Date)

    # Attached job description file
    jd_file_name: Mapped[str | None] = mapped_column(String(255))
    jd_file_path: Mapped[str | None] = mapped_column(String(500))
    jd_uploaded_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    # Relationships
    job_position: Mapped["JobPosition"] = relationship("JobPosition")
    department: Mapped["Department"] = relationship("Department")
    nature_of_employment: Mapped["NatureOfEmployment"] = relationship(
        "NatureOfEmployment"
    )
    recruiter: Mapped["User"] = relationship("User", foreign_keys=[recruiter_id])
    hrbp: Mapped["User"] = relationship("User", foreign_keys=[hrbp_id])
