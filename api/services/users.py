"""User service functions."""

from math import ceil
from typing import Any, Dict, Optional
import logging

from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from core.authorization import Actor, RoleName
from core.exceptions import ConflictError, ForbiddenError, InvalidInputError, NotFoundError
from core.notifications import Notifier, get_notification_dispatcher
from core.security import generate_temporary_password, hash_password
from core.utils.datetime import isoformat_or_none
from core.utils.formatting import format_sequence_code
from core.utils.validators import validate_email
from database.models.master_data import Role
from database.models.users import User
from database.repositories.counters import PrefixCounterRepository
from database.repositories.directory import Directory

logger = logging.getLogger(__name__)

USER_CODE_PREFIX = "RHUB-"

# Roles a recruiter may see in the user directory, besides themselves
RECRUITER_VISIBLE_ROLES = (RoleName.HRBP.value, RoleName.INTERVIEW_PANEL.value)

_REFERENCE_LABELS = {
    "department": "department",
    "role": "role",
    "job_position": "job position",
}

# Payload key -> master kind for the references a user holds
_USER_REFERENCE_FIELDS = {
    "department_id": "department",
    "role_id": "role",
    "job_position_id": "job_position",
}


def serialize_user(user: User) -> Dict[str, Any]:
    """User view with role, department and job position loaded."""
    return {
        "id": user.id,
        "user_code": user.user_code,
        "name": user.name,
        "email": user.email,
        "role": {"id": user.role.id, "name": user.role.name} if user.role else None,
        "department": (
            {"id": user.department.id, "name": user.department.name}
            if user.department else None
        ),
        "job_position": (
            {"id": user.job_position.id, "name": user.job_position.name}
            if user.job_position else None
        ),
        "is_active": user.is_active,
        "created_by": user.created_by,
        "created_at": isoformat_or_none(user.created_at),
    }


class UserService:
    def __init__(self, session: AsyncSession, notifier: Optional[Notifier] = None):
        self.session = session
        self.notifier = notifier or get_notification_dispatcher()
        self.directory = Directory(session)
        self.counters = PrefixCounterRepository(session)

    async def _usable_reference(self, kind: str, entity_id: Optional[int]):
        entity = await self.directory.find_master(kind, entity_id) if entity_id is not None else None
        if entity is None or not entity.is_usable:
            if entity is not None:
                logger.info(f"Rejected deleted {kind} {entity_id} for a user")
            raise InvalidInputError(
                f"The specified {_REFERENCE_LABELS[kind]} does not exist or is inactive."
            )
        return entity

    async def _ensure_unassigned(self, user: User, action: str) -> None:
        job_code = await self.directory.find_open_requisition_for_user(user.id)
        if job_code is not None:
            logger.warning(f"Refusing to {action} user {user.user_code}: assigned to PR {job_code}")
            raise ConflictError(
                f"Cannot {action} user. They are assigned to active People Requisitions."
            )

    async def create_user(self, payload: Dict[str, Any], actor: Actor) -> Dict[str, Any]:
        """
        Create a user and send them a temporary password.

        Args:
            payload: name, email, department_id, role_id, job_position_id
            actor: Creating user

        Returns:
            The created user

        Raises:
            InvalidInputError: Bad email, or an inactive department/role/position
            ConflictError: An active user already has the email
        """
        name = (payload.get("name") or "").strip()
        if not name:
            raise InvalidInputError("Name is required.")

        is_valid, normalized = validate_email((payload.get("email") or "").strip())
        if not is_valid:
            raise InvalidInputError(f"Invalid email address: {normalized}")
        email = normalized.lower()

        if await self.directory.find_user_by_email(email) is not None:
            raise ConflictError("An active user with this email already exists.")

        department = await self._usable_reference("department", payload.get("department_id"))
        role = await self._usable_reference("role", payload.get("role_id"))
        job_position = await self._usable_reference("job_position", payload.get("job_position_id"))

        count = await self.counters.increment_and_get(USER_CODE_PREFIX)
        user_code = format_sequence_code(USER_CODE_PREFIX, count)
        temporary_password = generate_temporary_password()

        user = User(
            user_code=user_code,
            name=name,
            email=email,
            password_hash=hash_password(temporary_password),
            role_id=role.id,
            department_id=department.id,
            job_position_id=job_position.id,
            is_active=True,
            created_by=actor.user_code,
        )
        self.session.add(user)
        await self.session.commit()
        logger.info(f"User {user_code} created by {actor.user_code}")

        try:
            self.notifier.send(
                email,
                "Welcome to R-Hub! Your Account Details",
                "welcomeEmail",
                {
                    "name": name,
                    "userCode": user_code,
                    "temporaryPassword": temporary_password,
                },
            )
        except Exception as e:
            logger.error(f"Failed to dispatch welcomeEmail for {user_code}: {type(e).__name__}: {e}")

        created = await self.directory.find_user(user.id)
        return serialize_user(created)

    async def get_user(self, user_id: int, actor: Actor) -> Dict[str, Any]:
        """
        Get a user.

        Raises:
            NotFoundError: Missing or deleted
            ForbiddenError: A recruiter asking for another recruiter
        """
        user = await self.directory.find_user(user_id)
        if user is None or not user.is_usable:
            raise NotFoundError("User not found.")

        if (
            actor.is_recruiter
            and user.role_name == RoleName.RECRUITER.value
            and user.id != actor.id
        ):
            raise ForbiddenError("You are not authorized to view this user.")

        return serialize_user(user)

    async def edit_user(self, user_id: int, changes: Dict[str, Any], actor: Actor) -> Dict[str, Any]:
        """
        Update a user's name, email, department, role or job position.

        Only keys present in ``changes`` are applied. Users assigned to a
        requisition that is not completed cannot be edited, so a PR never ends
        up pointing at a user whose role no longer matches.

        Args:
            user_id: User to edit
            changes: Any of name, email, department_id, role_id, job_position_id
            actor: Editing user

        Returns:
            The updated user

        Raises:
            NotFoundError: Missing or deleted
            ConflictError: Assigned to an open requisition, or the email is taken
            InvalidInputError: Blank name, bad email, or an inactive reference
        """
        user = await self.directory.find_user(user_id)
        if user is None or not user.is_usable:
            if user is not None:
                logger.info(f"Can't edit user {user.user_code}: deleted")
            raise NotFoundError("User not found.")

        await self._ensure_unassigned(user, "edit")

        for key, kind in _USER_REFERENCE_FIELDS.items():
            if changes.get(key) is not None:
                entity = await self._usable_reference(kind, changes[key])
                setattr(user, key, entity.id)

        if changes.get("email") is not None:
            is_valid, normalized = validate_email(changes["email"].strip())
            if not is_valid:
                raise InvalidInputError(f"Invalid email address: {normalized}")
            email = normalized.lower()
            if email != user.email.lower():
                if await self.directory.find_user_by_email(email) is not None:
                    raise ConflictError("Another active user with this email already exists.")
                user.email = email

        if changes.get("name") is not None:
            name = changes["name"].strip()
            if not name:
                raise InvalidInputError("Name is required.")
            user.name = name

        user.touch(actor.user_code)
        await self.session.commit()
        logger.info(f"User {user.user_code} updated by {actor.user_code}")

        updated = await self.directory.find_user(user_id, reload=True)
        return serialize_user(updated)

    async def remove_user(self, user_id: int, actor: Actor) -> None:
        """
        Soft delete a user.

        Raises:
            ForbiddenError: The actor is deleting their own account
            NotFoundError: Missing or already deleted
            ConflictError: Assigned to an open requisition
        """
        if user_id == actor.id:
            logger.warning(f"User {actor.user_code} attempted to delete their own account")
            raise ForbiddenError("You cannot delete your own account.")

        user = await self.directory.find_user(user_id)
        if user is None or not user.is_usable:
            if user is not None:
                logger.info(f"Can't delete user {user.user_code}: already deleted")
            raise NotFoundError("User not found.")

        await self._ensure_unassigned(user, "delete")

        user.mark_deleted(actor.user_code)
        await self.session.commit()
        logger.info(f"User {user.user_code} deleted by {actor.user_code}")

    async def list_users(
        self,
        actor: Actor,
        page: int = 1,
        limit: int = 10,
        search: Optional[str] = None,
        role_id: Optional[int] = None,
        department_id: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        List non-deleted users.

        Recruiters only see HRBP and Interview Panel users plus themselves.
        """
        query = (
            select(User)
            .options(
                selectinload(User.role),
                selectinload(User.department),
                selectinload(User.job_position),
            )
            .where(User.is_usable)
        )

        if search:
            pattern = f"%{search.strip()}%"
            query = query.where(or_(User.name.ilike(pattern), User.email.ilike(pattern)))

        if role_id is not None:
            query = query.where(User.role_id == role_id)

        if department_id is not None:
            query = query.where(User.department_id == department_id)

        if actor.is_recruiter:
            visible_roles = select(Role.id).where(Role.name.in_(RECRUITER_VISIBLE_ROLES))
            query = query.where(or_(User.role_id.in_(visible_roles), User.id == actor.id))

        count_query = select(func.count()).select_from(query.subquery())
        total = (await self.session.execute(count_query)).scalar() or 0

        query = query.order_by(User.created_at.desc(), User.id.desc())
        query = query.limit(limit).offset((page - 1) * limit)
        result = await self.session.execute(query)

        return {
            "data": [serialize_user(user) for user in result.scalars().all()],
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "total_pages": ceil(total / limit) if limit else 0,
            },
        }
