"""Shared fixtures and utilities for tests."""

import os
import tempfile
from dataclasses import dataclass, field
from typing import Any

# Settings are read at import time, so the environment is prepared first
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("NOTIFICATIONS_ENABLED", "false")
os.environ.setdefault("JSON_LOGS", "false")
os.environ.setdefault("JWT_SECRET_KEY", "test-jwt-secret-key-min-32-chars-long-for-security")
os.environ.setdefault("JWT_ALGORITHM", "HS256")
os.environ.setdefault("CELERY_BROKER_URL", "memory://")
os.environ.setdefault("CELERY_RESULT_BACKEND", "cache+memory://")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="rhub-uploads-"))

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine, AsyncSession
from sqlalchemy.pool import StaticPool

import database.models  # noqa: F401  register tables
from core.authorization import Actor
from core.security import hash_password
from core.storage.local import LocalStorage
from database.engine import Base
from database.models.master_data import Department, JobPosition, NatureOfEmployment, Role
from database.models.prefix_counters import PrefixCounter
from database.models.users import User


TEST_PASSWORD = "Secret@123"

PDF_BYTES = b"%PDF-1.4\n1 0 obj<</Type/Catalog>>endobj\ntrailer<</Root 1 0 R>>\n%%EOF"
PDF_CONTENT_TYPE = "application/pdf"


class RecordingNotifier:
    """Notifier that keeps every message instead of sending it."""

    def __init__(self):
        self.sent: list[dict[str, Any]] = []

    def send(self, to_address, subject, template_name, template_data):
        self.sent.append({
            "to": to_address,
            "subject": subject,
            "template_name": template_name,
            "template_data": template_data,
        })

    def templates(self) -> list[str]:
        return [message["template_name"] for message in self.sent]


class FailingNotifier:
    """Notifier whose transport is down."""

    def send(self, to_address, subject, template_name, template_data):
        raise ConnectionError("broker unreachable")


@dataclass
class SeedData:
    """Ids of the seeded master data and users."""

    roles: dict[str, int] = field(default_factory=dict)
    departments: dict[str, int] = field(default_factory=dict)
    job_positions: dict[str, int] = field(default_factory=dict)
    natures: dict[str, int] = field(default_factory=dict)
    users: dict[str, User] = field(default_factory=dict)

    def actor(self, key: str) -> Actor:
        user = self.users[key]
        role_name = {v: k for k, v in self.roles.items()}[user.role_id]
        return Actor(
            id=user.id,
            user_code=user.user_code,
            role=role_name,
            department_id=user.department_id,
            name=user.name,
            email=user.email,
        )

    def create_payload(self, **overrides) -> dict[str, Any]:
        payload = {
            "job_position_id": self.job_positions["Senior Software Engineer"],
            "department_id": self.departments["Engineering"],
            "recruiter_id": self.users["recruiter"].id,
            "nature_of_employment_id": self.natures["Full Time"],
            "job_description": "Build and run the hiring platform",
            "prf_number": "PRF-1",
            "prf_link": "https://prf.example.org/1",
            "closing_date": None,
        }
        payload.update(overrides)
        return payload


@pytest_asyncio.fixture
async def db_engine():
    """In-memory SQLite engine with every table created."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def seed(session_factory) -> SeedData:
    """Roles, master data and one user per workflow role."""
    data = SeedData()
    async with session_factory() as session:
        for name in ("HRBP", "Recruiter", "Interview Panel"):
            role = Role(name=name, created_by="seed")
            session.add(role)
            await session.flush()
            data.roles[name] = role.id

        for name in ("Engineering", "Finance"):
            department = Department(name=name, created_by="seed")
            session.add(department)
            await session.flush()
            data.departments[name] = department.id

        for name in ("Senior Software Engineer", "Data Analyst"):
            position = JobPosition(name=name, created_by="seed")
            session.add(position)
            await session.flush()
            data.job_positions[name] = position.id

        for name in ("Full Time", "Contract"):
            nature = NatureOfEmployment(name=name, created_by="seed")
            session.add(nature)
            await session.flush()
            data.natures[name] = nature.id

        users = [
            ("hrbp", "RHUB-001", "Hannah Hrbp", "hannah@rhub.io", "HRBP", hash_password(TEST_PASSWORD)),
            ("hrbp2", "RHUB-002", "Harry Hrbp", "harry@rhub.io", "HRBP", "not-a-hash"),
            ("recruiter", "RHUB-003", "Rita Recruiter", "rita@rhub.io", "Recruiter", hash_password(TEST_PASSWORD)),
            ("recruiter2", "RHUB-004", "Rob Recruiter", "rob@rhub.io", "Recruiter", "not-a-hash"),
            ("panel", "RHUB-005", "Pat Panel", "pat@rhub.io", "Interview Panel", "not-a-hash"),
        ]
        for key, code, name, email, role_name, password_hash in users:
            user = User(
                user_code=code,
                name=name,
                email=email,
                password_hash=password_hash,
                role_id=data.roles[role_name],
                department_id=data.departments["Engineering"],
                job_position_id=data.job_positions["Data Analyst"],
                is_active=True,
                created_by="seed",
            )
            session.add(user)
            await session.flush()
            data.users[key] = user

        session.add(PrefixCounter(prefix="RHUB-", count=len(users)))
        await session.commit()
    return data


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def storage(tmp_path):
    return LocalStorage(base_path=str(tmp_path / "uploads"))
