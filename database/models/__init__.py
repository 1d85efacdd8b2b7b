from database.models.mixins import LifecycleState
from database.models.master_data import Department, Role, JobPosition, NatureOfEmployment
from database.models.users import User
from database.models.people_requisitions import PeopleRequisition, RequisitionStatus
from database.models.prefix_counters import PrefixCounter

__all__ = [
    "LifecycleState",
    "Department",
    "Role",
    "JobPosition",
    "NatureOfEmployment",
    "User",
    "PeopleRequisition",
    "RequisitionStatus",
    "PrefixCounter",
]
