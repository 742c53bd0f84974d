"""
Attendance write paths.

Both paths persist first and then await the cache invalidation hook before
returning to the caller.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional, Sequence

from campus_attendance.core.exceptions import ClassNotFoundError
from campus_attendance.models.attendance import (
    AttendanceRecord, AttendanceStatus, MarkedByRole, attendance_day
)
from campus_attendance.repositories.attendance_store import AttendanceRecordStore
from campus_attendance.repositories.class_catalog import ClassCatalog
from campus_attendance.services.cache.invalidation import AttendanceWriteEvent, CacheInvalidationHook


logger = logging.getLogger(__name__)


@dataclass
class MarkEntry:
    """One student's status within a bulk mark."""
    student_id: int
    status: AttendanceStatus = AttendanceStatus.PRESENT
    remarks: Optional[str] = None


@dataclass
class BulkMarkResult:
    total: int
    successful: int
    failed: int
    errors: List[Dict[str, Any]] = field(default_factory=list)
    marked_by_role: Optional[MarkedByRole] = None


class AttendanceMarkingService:
    def __init__(
        self,
        records: AttendanceRecordStore,
        classes: ClassCatalog,
        invalidation_hook: CacheInvalidationHook
    ):
        self._records = records
        self._classes = classes
        self._invalidate = invalidation_hook

    async def _require_class(self, class_id: int):
        class_record = await self._classes.get(class_id)
        if class_record is None:
            raise ClassNotFoundError(class_id)
        return class_record

    async def mark(
        self,
        *,
        student_id: int,
        class_id: int,
        day: date,
        status: AttendanceStatus,
        marked_by: int,
        marked_by_role: MarkedByRole,
        remarks: Optional[str] = None,
        subject: Optional[str] = None
    ) -> AttendanceRecord:
        """Record one student's attendance for a day, replacing any earlier mark."""
        await self._require_class(class_id)
        day = attendance_day(day)

        record = await self._records.upsert(
            student_id=student_id,
            class_id=class_id,
            day=day,
            status=status,
            marked_by=marked_by,
            marked_by_role=marked_by_role,
            remarks=remarks,
            subject=subject
        )

        await self._invalidate(AttendanceWriteEvent(
            source="mark",
            class_ids=frozenset({class_id}),
            student_ids=frozenset({student_id}),
            dates=frozenset({day})
        ))
        return record

    async def bulk_mark(
        self,
        *,
        class_id: int,
        day: date,
        entries: Sequence[MarkEntry],
        marked_by: int,
        marked_by_role: MarkedByRole,
        subject: Optional[str] = None
    ) -> BulkMarkResult:
        """
        Mark a whole class for one day.

        Entries are persisted concurrently and independently: a failing entry
        is reported in ``errors`` and does not roll back the others.
        """
        await self._require_class(class_id)
        day = attendance_day(day)

        results = await asyncio.gather(
            *(
                self._records.upsert(
                    student_id=entry.student_id,
                    class_id=class_id,
                    day=day,
                    status=entry.status,
                    marked_by=marked_by,
                    marked_by_role=marked_by_role,
                    remarks=entry.remarks,
                    subject=subject
                )
                for entry in entries
            ),
            return_exceptions=True
        )

        errors = []
        persisted = set()
        for entry, result in zip(entries, results):
            if isinstance(result, Exception):
                logger.error(f"Error marking attendance for student {entry.student_id}: {result}")
                errors.append({"student_id": entry.student_id, "error": str(result)})
            else:
                persisted.add(entry.student_id)

        result = BulkMarkResult(
            total=len(entries),
            successful=len(entries) - len(errors),
            failed=len(errors),
            errors=errors,
            marked_by_role=MarkedByRole(marked_by_role)
        )
        logger.info(
            f"Attendance marked for {result.successful}/{result.total} students "
            f"in class {class_id} on {day.isoformat()} by {result.marked_by_role.value}"
        )

        if persisted:
            await self._invalidate(AttendanceWriteEvent(
                source="bulk_mark",
                class_ids=frozenset({class_id}),
                student_ids=frozenset(persisted),
                dates=frozenset({day})
            ))
        return result

    async def get_class_attendance(self, class_id: int, day: date) -> Sequence[AttendanceRecord]:
        await self._require_class(class_id)
        return await self._records.get_class_attendance(class_id, day)

    async def get_student_attendance(
        self,
        student_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None
    ) -> Sequence[AttendanceRecord]:
        return await self._records.get_student_attendance(student_id, start_date, end_date)
