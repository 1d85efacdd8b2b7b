"""
Role-based authorization rules for people requisitions.

This module holds:
1. The authenticated ``Actor`` passed into every service call
2. Role -> editable field sets
3. Role -> allowed status transitions
4. The ``visibility`` policy applied before any requisition is returned
"""

import logging
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional

from database.models.people_requisitions import PeopleRequisition, RequisitionStatus

logger = logging.getLogger(__name__)


class RoleName(str, Enum):
    """Role names stored in the roles table that carry workflow rights."""

    HRBP = "HRBP"
    RECRUITER = "Recruiter"
    INTERVIEW_PANEL = "Interview Panel"


class Visibility(str, Enum):
    """Outcome of the visibility policy."""

    VISIBLE = "visible"
    HIDDEN_AS_NOT_FOUND = "hidden_as_not_found"
    FORBIDDEN = "forbidden"


@dataclass(frozen=True)
class Actor:
    """Authenticated identity performing an operation."""

    id: int
    user_code: str
    role: str
    department_id: Optional[int] = None
    name: Optional[str] = None
    email: Optional[str] = None

    @property
    def is_hrbp(self) -> bool:
        return self.role == RoleName.HRBP.value

    @property
    def is_recruiter(self) -> bool:
        return self.role == RoleName.RECRUITER.value


# Role to editable field mapping
EDITABLE_FIELDS: Mapping[RoleName, frozenset[str]] = MappingProxyType({
    RoleName.HRBP: frozenset({
        "prf_number",
        "prf_link",
        "recruiter_id",
        "department_id",
        "nature_of_employment_id",
        "job_description",
    }),
    RoleName.RECRUITER: frozenset({
        "prf_number",
        "prf_link",
        "department_id",
        "nature_of_employment_id",
        "job_description",
    }),
})

# Role to (from -> allowed targets) mapping
STATUS_TRANSITIONS: Mapping[RoleName, Mapping[RequisitionStatus, frozenset[RequisitionStatus]]] = MappingProxyType({
    RoleName.HRBP: MappingProxyType({
        RequisitionStatus.OPEN: frozenset({RequisitionStatus.ONHOLD}),
        RequisitionStatus.ONHOLD: frozenset({RequisitionStatus.OPEN}),
        RequisitionStatus.COMPLETED: frozenset({RequisitionStatus.CLOSED}),
        RequisitionStatus.CLOSED: frozenset({RequisitionStatus.OPEN, RequisitionStatus.ONHOLD}),
    }),
    RoleName.RECRUITER: MappingProxyType({
        RequisitionStatus.OPEN: frozenset({RequisitionStatus.INPROGRESS}),
        RequisitionStatus.INPROGRESS: frozenset({RequisitionStatus.COMPLETED}),
    }),
})

# Statuses in which requisition details may be edited
EDITABLE_STATUSES: frozenset[RequisitionStatus] = frozenset({
    RequisitionStatus.OPEN,
    RequisitionStatus.ONHOLD,
})

# Roles allowed to list requisitions
LISTING_ROLES: frozenset[str] = frozenset({RoleName.HRBP.value, RoleName.RECRUITER.value})


def _role(role: str) -> Optional[RoleName]:
    try:
        return RoleName(role)
    except ValueError:
        return None


def get_editable_fields(role: str) -> frozenset[str]:
    """Fields the given role may edit; empty for any other role."""
    role_name = _role(role)
    if role_name is None:
        return frozenset()
    return EDITABLE_FIELDS.get(role_name, frozenset())


def can_transition(
    role: str,
    current: RequisitionStatus,
    target: RequisitionStatus,
) -> bool:
    """Check a (role, from, to) triple against the transition table."""
    role_name = _role(role)
    if role_name is None:
        return False
    allowed = STATUS_TRANSITIONS.get(role_name, MappingProxyType({}))
    return target in allowed.get(current, frozenset())


def is_assigned(actor: Actor, pr: PeopleRequisition) -> bool:
    """True when the actor is the requisition's HRBP or recruiter."""
    return actor.id in (pr.hrbp_id, pr.recruiter_id)


def visibility(actor: Actor, pr: PeopleRequisition) -> Visibility:
    """
    Decide whether a requisition may be shown to an actor.

    Deleted requisitions, and unapproved ones requested by a recruiter, are
    reported as missing so their existence is not revealed.

    Args:
        actor: Requesting identity
        pr: Requisition being accessed

    Returns:
        Visibility outcome
    """
    if not pr.is_usable:
        return Visibility.HIDDEN_AS_NOT_FOUND

    if actor.is_recruiter and not pr.is_approved_by_hrbp:
        return Visibility.HIDDEN_AS_NOT_FOUND

    if not is_assigned(actor, pr):
        return Visibility.FORBIDDEN

    return Visibility.VISIBLE
