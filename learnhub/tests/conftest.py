"""
Shared fixtures: an in-memory SQLite database per test, seed helpers,
and a scripted mock session for driver-shaped (string typed) rows.
"""
from datetime import datetime
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from learnhub.orm import Base, Course, Chapter


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db(engine):
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest.fixture
def make_course(db: AsyncSession):
    """Create a course owned by `user_id` with `chapters` chapters; returns (course, [chapters])."""
    async def _make_course(
        user_id: str,
        title: str,
        chapters: int = 0,
        created_at: Optional[datetime] = None,
    ):
        course = Course(
            user_id=user_id,
            title=title,
            topic=f"{title} topic",
            study_type="self-paced",
            difficulty_level="beginner",
        )
        if created_at is not None:
            course.created_at = created_at
        db.add(course)
        await db.flush()
        
        chapter_rows = [
            Chapter(course_id=course.id, title=f"{title} chapter {i + 1}", order=i + 1)
            for i in range(chapters)
        ]
        db.add_all(chapter_rows)
        await db.commit()
        return course, chapter_rows
    
    return _make_course


class MockMappings:
    def __init__(self, rows: List[Dict[str, Any]]):
        self._rows = rows
    
    def first(self):
        return self._rows[0] if self._rows else None
    
    def all(self):
        return list(self._rows)


class MockResult:
    def __init__(self, rows: List[Dict[str, Any]]):
        self._rows = rows
    
    def mappings(self):
        return MockMappings(self._rows)
    
    def scalar_one(self):
        # ORM-instance shaped: attribute access, like a RETURNING entity
        return SimpleNamespace(**self._rows[0])


class MockSession:
    """
    Async session stand-in that answers execute() calls with pre-scripted
    row lists, in order, or raises `error` on every call.
    """
    
    def __init__(self, results: Optional[List[List[Dict[str, Any]]]] = None, error: Exception = None, dialect: str = "sqlite"):
        self._results = list(results or [])
        self.error = error
        self.dialect = dialect
        self.executed = []
        self.committed = False
        self.rolled_back = False
    
    async def execute(self, stmt, params=None):
        self.executed.append(stmt)
        if self.error is not None:
            raise self.error
        rows = self._results.pop(0) if self._results else []
        return MockResult(rows)
    
    async def commit(self):
        self.committed = True
    
    async def rollback(self):
        self.rolled_back = True
    
    def get_bind(self):
        return SimpleNamespace(dialect=SimpleNamespace(name=self.dialect))


@pytest.fixture
def mock_session():
    return MockSession
