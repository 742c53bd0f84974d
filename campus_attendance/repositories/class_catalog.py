from typing import Dict, Iterable, Optional, Protocol, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from campus_attendance.models.class_record import ClassRecord, Campus, Grade


class ClassCatalog(Protocol):
    async def get(self, class_id: int) -> Optional[ClassRecord]:
        raise NotImplementedError

    async def get_many(self, class_ids: Iterable[int]) -> Dict[int, ClassRecord]:
        """Classes keyed by id; ids with no class are simply missing."""
        raise NotImplementedError

    async def find(
        self,
        *,
        campus: Optional[Campus] = None,
        grade: Optional[Grade] = None,
        program: Optional[str] = None,
        class_id: Optional[int] = None,
    ) -> Sequence[ClassRecord]:
        raise NotImplementedError

    async def add(self, class_record: ClassRecord) -> ClassRecord:
        raise NotImplementedError


class SQLClassCatalog:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def get(self, class_id: int) -> Optional[ClassRecord]:
        async with self._session_factory() as session:
            return await session.get(ClassRecord, class_id)

    async def get_many(self, class_ids: Iterable[int]) -> Dict[int, ClassRecord]:
        ids = set(class_ids)
        if not ids:
            return {}

        async with self._session_factory() as session:
            result = await session.execute(select(ClassRecord).where(ClassRecord.id.in_(ids)))
            return {c.id: c for c in result.scalars().all()}

    async def find(
        self,
        *,
        campus: Optional[Campus] = None,
        grade: Optional[Grade] = None,
        program: Optional[str] = None,
        class_id: Optional[int] = None,
    ) -> Sequence[ClassRecord]:
        query = select(ClassRecord)
        if campus is not None:
            query = query.where(ClassRecord.campus == Campus(campus))
        if grade is not None:
            query = query.where(ClassRecord.grade == Grade(grade))
        if program is not None:
            query = query.where(ClassRecord.program == program)
        if class_id is not None:
            query = query.where(ClassRecord.id == class_id)

        async with self._session_factory() as session:
            result = await session.execute(query.order_by(ClassRecord.id))
            return result.scalars().all()

    async def add(self, class_record: ClassRecord) -> ClassRecord:
        async with self._session_factory() as session:
            session.add(class_record)
            await session.commit()
            await session.refresh(class_record)
            return class_record
