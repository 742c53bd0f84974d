"""
Attendance record persistence.

The analytics services only depend on the ``AttendanceRecordStore`` protocol;
``SQLAttendanceRecordStore`` is the SQLAlchemy implementation. Every call opens
its own session so independent reads and writes can run concurrently.
"""
import logging
from datetime import date
from typing import Iterable, Optional, Protocol, Sequence

from sqlalchemy import select, and_
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from campus_attendance.models.attendance import (
    AttendanceRecord, AttendanceStatus, MarkedByRole, attendance_day
)


logger = logging.getLogger(__name__)


class AttendanceRecordStore(Protocol):
    async def find_records(
        self,
        start_date: date,
        end_date: date,
        *,
        class_ids: Optional[Iterable[int]] = None,
        student_id: Optional[int] = None,
    ) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    async def upsert(
        self,
        *,
        student_id: int,
        class_id: int,
        day: date,
        status: AttendanceStatus,
        marked_by: int,
        marked_by_role: MarkedByRole,
        remarks: Optional[str] = None,
        subject: Optional[str] = None,
    ) -> AttendanceRecord:
        """Create the (student, day) record or overwrite the existing one."""
        raise NotImplementedError

    async def get_class_attendance(self, class_id: int, day: date) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    async def get_student_attendance(
        self,
        student_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Sequence[AttendanceRecord]:
        raise NotImplementedError


class SQLAttendanceRecordStore:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def find_records(
        self,
        start_date: date,
        end_date: date,
        *,
        class_ids: Optional[Iterable[int]] = None,
        student_id: Optional[int] = None,
    ) -> Sequence[AttendanceRecord]:
        conditions = [
            AttendanceRecord.date >= start_date,
            AttendanceRecord.date <= end_date,
        ]
        if class_ids is not None:
            conditions.append(AttendanceRecord.class_id.in_(list(class_ids)))
        if student_id is not None:
            conditions.append(AttendanceRecord.student_id == student_id)

        async with self._session_factory() as session:
            result = await session.execute(select(AttendanceRecord).where(and_(*conditions)))
            return result.scalars().all()

    async def upsert(
        self,
        *,
        student_id: int,
        class_id: int,
        day: date,
        status: AttendanceStatus,
        marked_by: int,
        marked_by_role: MarkedByRole,
        remarks: Optional[str] = None,
        subject: Optional[str] = None,
    ) -> AttendanceRecord:
        day = attendance_day(day)

        async with self._session_factory() as session:
            result = await session.execute(
                select(AttendanceRecord).where(
                    and_(
                        AttendanceRecord.student_id == student_id,
                        AttendanceRecord.date == day
                    )
                )
            )
            record = result.scalar_one_or_none()

            if record is None:
                record = AttendanceRecord(student_id=student_id, date=day)
                session.add(record)

            record.class_id = class_id
            record.status = AttendanceStatus(status)
            record.remarks = remarks
            record.marked_by = marked_by
            record.marked_by_role = MarkedByRole(marked_by_role)
            record.subject = subject

            await session.commit()
            await session.refresh(record)
            return record

    async def get_class_attendance(self, class_id: int, day: date) -> Sequence[AttendanceRecord]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(AttendanceRecord)
                .where(
                    and_(
                        AttendanceRecord.class_id == class_id,
                        AttendanceRecord.date == attendance_day(day)
                    )
                )
                .order_by(AttendanceRecord.student_id)
            )
            return result.scalars().all()

    async def get_student_attendance(
        self,
        student_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Sequence[AttendanceRecord]:
        query = select(AttendanceRecord).where(AttendanceRecord.student_id == student_id)
        if start_date is not None:
            query = query.where(AttendanceRecord.date >= attendance_day(start_date))
        if end_date is not None:
            query = query.where(AttendanceRecord.date <= attendance_day(end_date))

        async with self._session_factory() as session:
            result = await session.execute(query.order_by(AttendanceRecord.date.desc()))
            return result.scalars().all()
