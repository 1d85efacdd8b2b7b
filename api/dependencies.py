"""FastAPI dependencies for dependency injection."""

from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from api.services import auth as auth_service
from api.services.master_data import MasterDataService
from api.services.people_requisitions import PeopleRequisitionService
from api.services.users import UserService
from core.authorization import Actor
from core.exceptions import ForbiddenError, UnauthorizedError
from core.notifications import Notifier, get_notification_dispatcher
from core.storage.local import LocalStorage
from database.engine import get_db


security = HTTPBearer(auto_error=False)

_storage: Optional[LocalStorage] = None


async def get_current_actor(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> Actor:
    """Resolve the bearer token to the acting user."""
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError("Authentication required.")
    return await auth_service.resolve_actor(db, credentials.credentials)


async def require_hrbp(actor: Actor = Depends(get_current_actor)) -> Actor:
    """Require the acting user to be an HRBP."""
    if not actor.is_hrbp:
        raise ForbiddenError("You do not have permission to perform this action.")
    return actor


def get_notifier() -> Notifier:
    return get_notification_dispatcher()


def get_storage() -> LocalStorage:
    """Shared job description storage rooted at the configured upload dir."""
    global _storage
    if _storage is None:
        _storage = LocalStorage()
    return _storage


def get_people_requisition_service(
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
    storage: LocalStorage = Depends(get_storage),
) -> PeopleRequisitionService:
    return PeopleRequisitionService(db, notifier=notifier, storage=storage)


def get_user_service(
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
) -> UserService:
    return UserService(db, notifier=notifier)


def master_data_service(kind: str):
    """Build a dependency yielding the service for one master data kind."""

    def dependency(db: AsyncSession = Depends(get_db)) -> MasterDataService:
        return MasterDataService(db, kind)

    return dependency
