"""
Master Data Module

Departments, roles, job positions and natures of employment. Each is a named
lookup row referenced by id from users and people requisitions.
"""

from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String

from database.engine import Base
from database.models.mixins import AuditMixin, BigIntPK, SoftDeleteMixin


class Department(Base, AuditMixin, SoftDeleteMixin):
    __tablename__: str = "departments"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(150), nullable=False, index=True)


class Role(Base, AuditMixin, SoftDeleteMixin):
    """User role; the names HRBP and Recruiter carry workflow rights."""

    __tablename__: str = "roles"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)


class JobPosition(Base, AuditMixin, SoftDeleteMixin):
    """Position title; its initials form the job code prefix."""

    __tablename__: str = "job_positions"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(150), nullable=False, index=True)


class NatureOfEmployment(Base, AuditMixin, SoftDeleteMixin):
    __tablename__: str = "natures_of_employment"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
