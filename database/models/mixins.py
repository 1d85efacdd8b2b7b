"""
Shared column mixins.

Audit columns record the external ``user_code`` of whoever created or last
modified a row. Soft deletion is expressed through ``LifecycleState``; every
"is this row still active" check goes through ``is_usable``.
"""

from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.ext.hybrid import hybrid_property
from sqlalchemy import (
    String,
    BigInteger,
    Integer,
    DateTime,
    func,
    Enum as SQLEnum,
)
from datetime import datetime
from enum import Enum as PyEnum

from core.utils.datetime import now

# BIGINT in PostgreSQL, INTEGER in SQLite so rowid autoincrement still applies
BigIntPK = BigInteger().with_variant(Integer, "sqlite")


def enum_values(enum_cls: type[PyEnum]) -> list[str]:
    """Persist enum values rather than member names."""
    return [member.value for member in enum_cls]


# ==================== Lifecycle ===================== #
class LifecycleState(str, PyEnum):
    ACTIVE = "active"
    DELETED = "deleted"


class AuditMixin:
    """created/modified who and when."""

    created_by: Mapped[str | None] = mapped_column(String(50))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=now,
        server_default=func.now(),
    )
    modified_by: Mapped[str | None] = mapped_column(String(50))
    modified_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    def touch(self, actor_code: str) -> None:
        self.modified_by = actor_code
        self.modified_at = now()


class SoftDeleteMixin:
    """Logical deletion through a lifecycle state."""

    lifecycle_state: Mapped[LifecycleState] = mapped_column(
        SQLEnum(
            LifecycleState,
            native_enum=False,
            length=20,
            values_callable=enum_values,
        ),
        nullable=False,
        default=LifecycleState.ACTIVE,
        server_default=LifecycleState.ACTIVE.value,
        index=True,
    )
    deleted_by: Mapped[str | None] = mapped_column(String(50))
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    @hybrid_property
    def is_usable(self):
        """True while the row has not been soft deleted (also usable in queries)."""
        return self.lifecycle_state == LifecycleState.ACTIVE

    def mark_deleted(self, actor_code: str) -> None:
        self.lifecycle_state = LifecycleState.DELETED
        self.deleted_by = actor_code
        self.deleted_at = now()
