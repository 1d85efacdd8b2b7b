"""Master data service functions (departments, roles, job positions, natures of employment)."""

from math import ceil
from typing import Any, Dict, Optional
import logging

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from core.authorization import Actor
from core.exceptions import ConflictError, InvalidInputError, NotFoundError
from core.utils.datetime import isoformat_or_none
from core.utils.formatting import title_case
from database.repositories.directory import MASTER_MODELS, Directory

logger = logging.getLogger(__name__)


# Kind -> human readable label used in messages
MASTER_LABELS = {
    "department": "Department",
    "role": "Role",
    "job_position": "Job position",
    "nature_of_employment": "Nature of employment",
}

VERBATIM_KINDS = frozenset({"role"})

_REFERENCE_LABELS = {
    "people_requisition": "active People Requisitions",
    "user": "active User",
}


def serialize_master(entity) -> Dict[str, Any]:
    return {
        "id": entity.id,
        "name": entity.name,
        "created_by": entity.created_by,
        "created_at": isoformat_or_none(entity.created_at),
        "modified_by": entity.modified_by,
        "modified_at": isoformat_or_none(entity.modified_at),
    }


class MasterDataService:
    """CRUD over one kind of master data row."""

    def __init__(self, session: AsyncSession, kind: str):
        if kind not in MASTER_MODELS:
            raise ValueError(f"Unknown master data kind: {kind}")
        self.session = session
        self.kind = kind
        self.model = MASTER_MODELS[kind]
        self.label = MASTER_LABELS[kind]
        self.directory = Directory(session)

    async def _get_usable(self, entity_id: int):
        entity = await self.directory.find_master(self.kind, entity_id)
        if entity is None or not entity.is_usable:
            if entity is not None:
                logger.info(f"{self.label} {entity_id} is deleted")
            raise NotFoundError(f"{self.label} not found.")
        return entity

    async def _ensure_unused(self, entity_id: int, action: str) -> None:
        reference = await self.directory.find_active_referencing_entity(self.kind, entity_id)
        if reference is not None:
            logger.warning(f"Refusing to {action} {self.label.lower()} {entity_id}: still referenced by {reference}")
            raise ConflictError(
                f"Cannot {action} {self.label.lower()}. They are assigned to "
                f"{_REFERENCE_LABELS[reference]}."
            )

    async def _normalised_unique_name(self, name: str, exclude_id: Optional[int] = None) -> str:
        # Role names must match RoleName values exactly
        if self.kind in VERBATIM_KINDS:
            formatted = (name or "").strip()
        else:
            formatted = title_case(name or "")
        if not formatted:
            raise InvalidInputError(f"{self.label} name is required.")
        existing = await self.directory.find_active_by_name(self.kind, formatted, exclude_id)
        if existing is not None:
            raise ConflictError(f"{self.label} name already exists.")
        return formatted

    async def list(self, page: int = 1, limit: int = 10, search: Optional[str] = None) -> Dict[str, Any]:
        """List non-deleted rows, optionally filtered by a name substring."""
        query = select(self.model).where(self.model.is_usable)
        if search:
            query = query.where(self.model.name.ilike(f"%{search.strip()}%"))

        count_query = select(func.count()).select_from(query.subquery())
        total = (await self.session.execute(count_query)).scalar() or 0

        query = query.order_by(self.model.name.asc()).limit(limit).offset((page - 1) * limit)
        result = await self.session.execute(query)

        return {
            "data": [serialize_master(entity) for entity in result.scalars().all()],
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "total_pages": ceil(total / limit) if limit else 0,
            },
        }

    async def get(self, entity_id: int) -> Dict[str, Any]:
        return serialize_master(await self._get_usable(entity_id))

    async def create(self, name: str, actor: Actor) -> Dict[str, Any]:
        """
        Create a row with a name unique among active rows.

        Names are stored in Title Case, except role names which are only trimmed.

        Raises:
            ConflictError: Name already in use
        """
        formatted = await self._normalised_unique_name(name)
        entity = self.model(name=formatted, created_by=actor.user_code)
        self.session.add(entity)
        await self.session.commit()
        logger.info(f"{self.label} \"{formatted}\" created by {actor.user_code}")
        return serialize_master(entity)

    async def rename(self, entity_id: int, name: str, actor: Actor) -> Dict[str, Any]:
        """
        Rename a row that nothing active references.

        Raises:
            NotFoundError: Missing or deleted
            ConflictError: Still referenced, or the new name is taken
        """
        entity = await self._get_usable(entity_id)
        await self._ensure_unused(entity_id, "update")
        entity.name = await self._normalised_unique_name(name, exclude_id=entity_id)
        entity.touch(actor.user_code)
        await self.session.commit()
        logger.info(f"{self.label} {entity_id} renamed to \"{entity.name}\" by {actor.user_code}")
        return serialize_master(entity)

    async def remove(self, entity_id: int, actor: Actor) -> None:
        """
        Soft delete a row that nothing active references.

        Raises:
            NotFoundError: Missing or already deleted
            ConflictError: Still referenced
        """
        entity = await self._get_usable(entity_id)
        await self._ensure_unused(entity_id, "delete")
        entity.mark_deleted(actor.user_code)
        await self.session.commit()
        logger.info(f"{self.label} {entity_id} soft-deleted by {actor.user_code}")
