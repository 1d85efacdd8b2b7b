from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import (
    String,
    Boolean,
    ForeignKey,
    BigInteger,
    DateTime,
)
from datetime import datetime
from typing import TYPE_CHECKING

from database.engine import Base
from database.models.mixins import AuditMixin, BigIntPK, SoftDeleteMixin

if TYPE_CHECKING:
    from database.models.master_data import Department, JobPosition, Role


class User(Base, AuditMixin, SoftDeleteMixin):
    """
    Staff account. ``user_code`` (RHUB-###) is the external identifier written
    into audit columns.
    """

    __tablename__: str = "users"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_code: Mapped[str] = mapped_column(
        String(50), unique=True, nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(
        String(255), unique=True, nullable=False, index=True
    )
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    role_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("roles.id"), nullable=False, index=True
    )
    department_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("departments.id"), nullable=False, index=True
    )
    job_position_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("job_positions.id"), nullable=False, index=True
    )

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Password reset (flow not exposed)
    reset_password_token: Mapped[str | None] = mapped_column(String(255))
    reset_password_expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True)
    )

    # Relationships
    role: Mapped["Role"] = relationship("Role")
    department: Mapped["Department"] = relationship("Department")
    job_position: Mapped["JobPosition"] = relationship("JobPosition")

    @property
    def role_name(self) -> str | None:
        return self.role.name if self.role is not None else None
