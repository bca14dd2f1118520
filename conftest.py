"""Root pytest configuration."""

import os
from pathlib import Path

import pytest
import pytest_asyncio
from dotenv import load_dotenv

# Load environment variables before tests run
_root = Path(__file__).parent
load_dotenv(_root / ".env")
load_dotenv(_root / ".env.local", override=True)

os.environ.setdefault("JWT_SECRET", "test-secret-key-with-at-least-32-bytes!")


@pytest.fixture(scope="session")
def event_loop_policy():
    """Use default event loop policy for all async tests."""
    import asyncio

    return asyncio.DefaultEventLoopPolicy()


@pytest_asyncio.fixture
async def db_engine():
    """
    In-memory SQLite database built from core.tables.metadata.

    Installed as the engine behind core.database.get_connection /
    get_transaction for the duration of one test.
    """
    from sqlalchemy.ext.asyncio import create_async_engine
    from sqlalchemy.pool import StaticPool

    from core.database import set_engine
    from core.tables import metadata

    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)

    set_engine(engine)
    try:
        yield engine
    finally:
        set_engine(None)
        await engine.dispose()


@pytest_asyncio.fixture
async def seed(db_engine):
    """
    A small campus:
        admin, two lecturers, four students
        venues "Hall A" and "Hall B"
        CS101 (taught by lecturer) with 3 active students + 1 dropped
        MA201 (taught by lecturer2) with no students

    Returns a dict of the created rows keyed by short names.
    """
    from sqlalchemy import insert

    from core.enums import EnrollmentStatus, UserRole
    from core.tables import courses, enrollments, users, venues

    async def add(conn, table, **values):
        result = await conn.execute(insert(table).values(**values).returning(table))
        return dict(result.mappings().first())

    data = {}
    async with db_engine.begin() as conn:
        data["admin"] = await add(
            conn, users, email="admin@uni.test", first_name="Ada",
            last_name="Admin", role=UserRole.ADMIN,
        )
        data["lecturer"] = await add(
            conn, users, email="lee@uni.test", first_name="Lee",
            last_name="Turner", role=UserRole.LECTURER,
        )
        data["lecturer2"] = await add(
            conn, users, email="mo@uni.test", first_name="Mo",
            last_name="Rivers", role=UserRole.LECTURER,
        )
        for n, (first, last) in enumerate(
            [("Sam", "One"), ("Kim", "Two"), ("Ola", "Three"), ("Dee", "Four")],
            start=1,
        ):
            data[f"student{n}"] = await add(
                conn, users, email=f"s{n}@uni.test", first_name=first,
                last_name=last, role=UserRole.STUDENT,
            )

        data["hall_a"] = await add(
            conn, venues, name="Hall A", building="Main", capacity=120,
            facilities=["projector"],
        )
        data["hall_b"] = await add(
            conn, venues, name="Hall B", building="Annex", capacity=40,
            facilities=[],
        )

        data["cs101"] = await add(
            conn, courses, code="CS101", name="Intro to Computing",
            department="CS", lecturer_id=data["lecturer"]["user_id"],
        )
        data["ma201"] = await add(
            conn, courses, code="MA201", name="Linear Algebra",
            department="Maths", lecturer_id=data["lecturer2"]["user_id"],
        )

        statuses = [
            EnrollmentStatus.ENROLLED,
            EnrollmentStatus.IN_PROGRESS,
            EnrollmentStatus.ENROLLED,
            EnrollmentStatus.DROPPED,
        ]
        for n, status in enumerate(statuses, start=1):
            await add(
                conn, enrollments, course_id=data["cs101"]["course_id"],
                student_id=data[f"student{n}"]["user_id"], status=status,
            )

    return data


class RecordingNotifier:
    """Notifier that keeps every request it is handed."""

    def __init__(self):
        self.requests = []

    async def notify(self, request) -> None:
        self.requests.append(request)


@pytest.fixture
def notifier():
    return RecordingNotifier()
