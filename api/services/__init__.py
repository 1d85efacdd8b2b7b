"""
API Services Layer.

Database-backed operations behind the API endpoints. Each service works
inside the request's session and raises ``core.exceptions.AppError``
subclasses for expected failures.
"""

from api.services.people_requisitions import (
    JobDescriptionFile,
    PeopleRequisitionService,
    serialize_requisition,
)

from api.services.master_data import (
    MasterDataService,
    serialize_master,
)

from api.services.users import (
    UserService,
    serialize_user,
)

from api.services.auth import (
    login,
    resolve_actor,
)

__all__ = [
    # People requisitions
    "JobDescriptionFile",
    "PeopleRequisitionService",
    "serialize_requisition",
    # Master data
    "MasterDataService",
    "serialize_master",
    # Users
    "UserService",
    "serialize_user",
    # Auth
    "login",
    "resolve_actor",
]
