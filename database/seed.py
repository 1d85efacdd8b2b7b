"""
Bootstrap data for a fresh database.

Creates the workflow roles, a starter set of master data and the first HRBP
account, which every other write through the API depends on. Existing active
rows are left alone, so running it twice is harmless.

Usage:
    python -m database.seed            # create missing rows
    python -m database.seed --reset    # drop every table first
"""

import argparse
import asyncio
import logging
import sys
from dataclasses import dataclass, field
from typing import Optional, Sequence

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from api.services.users import USER_CODE_PREFIX
from core.authorization import RoleName
from core.config import settings
from core.middleware.logging import setup_logging
from core.security import generate_temporary_password, hash_password
from core.utils.formatting import format_sequence_code
from database.engine import AsyncSessionLocal, Base, close_db, db_engine, init_db
from database.models.master_data import Department, JobPosition, NatureOfEmployment, Role
from database.models.users import User
from database.repositories.counters import PrefixCounterRepository
from database.repositories.directory import Directory

logger = logging.getLogger(__name__)

SEED_ACTOR = "SYSTEM"

SEED_ROLES = tuple(role.value for role in RoleName)
SEED_DEPARTMENTS = ("Engineering", "Human Resources", "Marketing")
SEED_JOB_POSITIONS = (
    "Senior Software Engineer",
    "Junior Software Engineer",
    "People Partner",
    "Technical Recruiter",
    "Quality Assurance Engineer",
)
SEED_NATURES_OF_EMPLOYMENT = ("Full Time", "Part Time", "Contract", "Internship")

ADMIN_DEPARTMENT = "Human Resources"
ADMIN_JOB_POSITION = "People Partner"


@dataclass
class SeedReport:
    """What a seeding run added."""

    created: dict[str, list[str]] = field(default_factory=dict)
    admin_code: Optional[str] = None
    # Only set when the password was generated rather than configured
    admin_password: Optional[str] = None


async def _ensure_rows(
    session: AsyncSession,
    kind: str,
    model,
    names: Sequence[str],
    report: SeedReport,
) -> dict[str, int]:
    directory = Directory(session)
    ids = {}
    for name in names:
        row = await directory.find_active_by_name(kind, name)
        if row is None:
            row = model(name=name, created_by=SEED_ACTOR)
            session.add(row)
            await session.flush()
            report.created.setdefault(kind, []).append(name)
        ids[name] = row.id
    return ids


async def seed_database(
    session: AsyncSession,
    admin_name: Optional[str] = None,
    admin_email: Optional[str] = None,
    admin_password: Optional[str] = None,
) -> SeedReport:
    """
    Create whatever bootstrap rows are missing and commit.

    Args:
        session: Database session
        admin_name: Initial HRBP name, defaults to ``SEED_ADMIN_NAME``
        admin_email: Initial HRBP email, defaults to ``SEED_ADMIN_EMAIL``
        admin_password: Initial HRBP password; ``SEED_ADMIN_PASSWORD`` or a
            generated temporary password when omitted

    Returns:
        Report of the rows created
    """
    report = SeedReport()

    roles = await _ensure_rows(session, "role", Role, SEED_ROLES, report)
    departments = await _ensure_rows(session, "department", Department, SEED_DEPARTMENTS, report)
    positions = await _ensure_rows(session, "job_position", JobPosition, SEED_JOB_POSITIONS, report)
    await _ensure_rows(
        session, "nature_of_employment", NatureOfEmployment, SEED_NATURES_OF_EMPLOYMENT, report
    )

    email = (admin_email or settings.seed_admin_email).strip().lower()
    # Emails are unique across deleted users too
    existing = await session.execute(select(User.id).where(func.lower(User.email) == email))
    if existing.scalar_one_or_none() is not None:
        logger.info("Initial HRBP account already exists, skipping")
    else:
        password = admin_password or settings.seed_admin_password
        if not password:
            password = generate_temporary_password()
            report.admin_password = password

        count = await PrefixCounterRepository(session).increment_and_get(USER_CODE_PREFIX)
        user_code = format_sequence_code(USER_CODE_PREFIX, count)
        session.add(User(
            user_code=user_code,
            name=(admin_name or settings.seed_admin_name).strip(),
            email=email,
            password_hash=hash_password(password),
            role_id=roles[RoleName.HRBP.value],
            department_id=departments[ADMIN_DEPARTMENT],
            job_position_id=positions[ADMIN_JOB_POSITION],
            is_active=True,
            created_by=SEED_ACTOR,
        ))
        report.admin_code = user_code
        logger.info(f"Initial HRBP {user_code} created")

    await session.commit()
    for kind, names in report.created.items():
        logger.info(f"Seeded {len(names)} {kind} row(s)")
    return report


async def _run(reset: bool) -> SeedReport:
    if reset:
        import database.models  # noqa: F401  register tables

        async with db_engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        logger.warning("All tables dropped")

    await init_db()
    try:
        async with AsyncSessionLocal() as session:
            return await seed_database(session)
    finally:
        await close_db()


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Seed roles, master data and the first HRBP")
    parser.add_argument(
        "--reset",
        action="store_true",
        help="drop every table before seeding",
    )
    args = parser.parse_args(argv)

    setup_logging(log_level=settings.log_level, json_logs=settings.json_logs)
    report = asyncio.run(_run(args.reset))

    if report.admin_password:
        print(f"Initial HRBP {report.admin_code} temporary password: {report.admin_password}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
