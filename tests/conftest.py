"""
Shared test fixtures for the workforce console test suite.

Each API test gets a fresh in-memory database (aiosqlite + AsyncSession);
the pure service tests need none of this.
"""

import os
import sys
from collections.abc import AsyncGenerator
from datetime import datetime

import pytest

# Ensure project root is importable
ROOT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

# Override environment BEFORE importing application modules
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["CORS_ORIGINS"] = '["*"]'

from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from workforce.api.v1.deps import get_db
from workforce.db.base import Base
from workforce.main import app
from workforce.models.employee import Attendance, Branch, Employee
from workforce.schemas.attendance import AttendanceEvent, AttendanceStatus


@pytest.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Create all tables on a fresh engine and route `get_db` to it."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with factory() as session:
            yield session

    app.dependency_overrides[get_db] = _override_get_db
    yield factory

    app.dependency_overrides.pop(get_db, None)
    await engine.dispose()


@pytest.fixture
async def async_client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """Return a httpx AsyncClient wired to the app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Return a raw database session for seeding and direct queries in tests."""
    async with session_factory() as session:
        yield session


@pytest.fixture
async def seeded(db_session: AsyncSession) -> AsyncSession:
    """Two branches, four employees and a handful of sessions on 2025-11-10.

    N1 works a split shift, S1 is late, N2 is absent, U1 (no branch) is present.
    """
    db_session.add_all(
        [
            Branch(branch_id="B-N", name="North", address="1 North Rd", is_active=True),
            Branch(branch_id="B-S", name="South", is_active=True),
            Employee(employee_id="N1", name="Asha", branch_id="B-N", face_id="face-1", designation="Baker"),
            Employee(employee_id="N2", name="Bilal", branch_id="B-N"),
            Employee(employee_id="S1", name="Chen", branch_id="B-S", face_id="face-3"),
            Employee(employee_id="U1", name="Dara", branch_id=None),
        ]
    )
    await db_session.flush()
    db_session.add_all(
        [
            _attendance("A1", "N1", datetime(2025, 11, 10, 8, 58), datetime(2025, 11, 10, 13, 2)),
            _attendance("A2", "N1", datetime(2025, 11, 10, 14, 0), datetime(2025, 11, 10, 18, 5)),
            _attendance("A3", "S1", datetime(2025, 11, 10, 9, 40), None, status="late"),
            _attendance("A4", "U1", datetime(2025, 11, 10, 9, 0), datetime(2025, 11, 10, 17, 0)),
            _attendance("A5", "N1", datetime(2025, 11, 11, 9, 0), datetime(2025, 11, 11, 17, 0)),
        ]
    )
    await db_session.commit()
    return db_session


def _attendance(attendance_id, employee_id, check_in, check_out, status="present") -> Attendance:
    return Attendance(
        attendance_id=attendance_id,
        employee_id=employee_id,
        check_in_time=check_in,
        check_out_time=check_out,
        status=status,
        date=check_in.strftime("%Y-%m-%d"),
    )


def make_event(
    attendance_id: str,
    employee_id: str,
    check_in: datetime,
    check_out: datetime | None = None,
    status: AttendanceStatus = AttendanceStatus.PRESENT,
) -> AttendanceEvent:
    return AttendanceEvent(
        attendance_id=attendance_id,
        employee_id=employee_id,
        check_in_time=check_in,
        check_out_time=check_out,
        status=status,
    )
