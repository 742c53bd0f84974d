"""Shared fixtures: a throwaway SQLite database and the service container."""

import pytest
import pytest_asyncio
from datetime import date
from types import SimpleNamespace

from campus_attendance.container import build_container
from campus_attendance.core.database import create_engine, create_session_factory, init_db
from campus_attendance.models.attendance import AttendanceStatus
from campus_attendance.models.class_record import ClassRecord, Campus, Grade
from campus_attendance.services.cache.backends import InMemoryCacheBackend


@pytest_asyncio.fixture
async def engine(tmp_path):
    """File-backed SQLite so concurrent sessions get their own connections."""
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'attendance.db'}", echo=False)
    await init_db(engine)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def container(session_factory):
    return build_container(session_factory, cache_backend=InMemoryCacheBackend())


@pytest_asyncio.fixture
async def classes(container):
    """One class per floor plus a second Boys 11th class in another program."""
    created = {}
    for class_id, name, campus, grade, program in [
        (1, "ICS Morning", Campus.BOYS, Grade.ELEVENTH, "ICS"),
        (2, "Pre Engineering A", Campus.BOYS, Grade.TWELFTH, "Pre Engineering"),
        (3, "Pre Medical A", Campus.GIRLS, Grade.ELEVENTH, "Pre Medical"),
        (4, "ICOM Evening", Campus.GIRLS, Grade.TWELFTH, "ICOM"),
        (5, "Pre Medical B", Campus.BOYS, Grade.ELEVENTH, "Pre Medical"),
    ]:
        created[class_id] = await container.classes.add(
            ClassRecord(id=class_id, name=name, campus=campus, grade=grade, program=program)
        )
    return created


@pytest.fixture
def day():
    return date(2024, 3, 4)


@pytest.fixture
def make_record():
    """Lightweight stand-in for an AttendanceRecord row."""
    def _make(student_id, class_id, status=AttendanceStatus.PRESENT):
        return SimpleNamespace(student_id=student_id, class_id=class_id, status=status)
    return _make


@pytest.fixture
def make_class():
    def _make(class_id, campus, grade, program="ICS"):
        return ClassRecord(id=class_id, name=f"Class {class_id}", campus=campus, grade=grade, program=program)
    return _make
