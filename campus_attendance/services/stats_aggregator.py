"""
Attendance statistics over a date range.

The module-level functions are pure: they take attendance records (and, for
breakdowns, the classes those records point at) and return plain dictionaries
ready to be cached as JSON. ``StatsAggregator`` loads the inputs from the
record store and class catalog and delegates to them.
"""
import logging
import math
from collections import defaultdict
from datetime import date
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from campus_attendance.core.config import settings
from campus_attendance.core.exceptions import ClassNotFoundError, InvalidFilterError
from campus_attendance.models.attendance import AttendanceRecord, AttendanceStatus
from campus_attendance.models.class_record import (
    ClassRecord, Campus, GRADE_FLOOR_LABELS, floor_label, grade_for_floor_label
)
from campus_attendance.repositories.attendance_store import AttendanceRecordStore
from campus_attendance.repositories.class_catalog import ClassCatalog


logger = logging.getLogger(__name__)


ALL = "all"
CAMPUSES = (Campus.BOYS, Campus.GIRLS)


def round_percentage(part: int, whole: int) -> int:
    """Percentage rounded half up; 0 when there is nothing to divide by."""
    if whole == 0:
        return 0
    return int(math.floor(part / whole * 100 + 0.5))


def resolve_date_range(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    today: Optional[date] = None
) -> Tuple[date, date]:
    start = start_date or settings.SYSTEM_START_DATE
    end = end_date or today or date.today()
    if start > end:
        raise InvalidFilterError(
            f"startDate {start.isoformat()} is after endDate {end.isoformat()}",
            {"startDate": start.isoformat(), "endDate": end.isoformat()}
        )
    return start, end


def _status(record: AttendanceRecord) -> AttendanceStatus:
    return AttendanceStatus(record.status)


def _campus_key(campus) -> str:
    return Campus(campus).value.lower()


def summarize(records: Iterable[AttendanceRecord]) -> Dict[str, int]:
    """Per-group summary shared by every breakdown."""
    students = set()
    present = absent = total_records = 0
    for record in records:
        total_records += 1
        students.add(record.student_id)
        status = _status(record)
        if status == AttendanceStatus.PRESENT:
            present += 1
        elif status == AttendanceStatus.ABSENT:
            absent += 1

    return {
        "total": len(students),
        "present": present,
        "absent": absent,
        "totalRecords": total_records,
        "percentage": round_percentage(present, total_records),
    }


def basic_stats(records: Iterable[AttendanceRecord]) -> Dict[str, int]:
    students = set()
    counts = defaultdict(int)
    total_records = 0
    for record in records:
        total_records += 1
        students.add(record.student_id)
        counts[_status(record)] += 1

    present = counts[AttendanceStatus.PRESENT]
    return {
        "totalStudents": len(students),
        "presentStudents": present,
        "absentStudents": counts[AttendanceStatus.ABSENT],
        "lateStudents": counts[AttendanceStatus.LATE],
        "totalRecords": total_records,
        "attendancePercentage": round_percentage(present, total_records),
    }


def join_classes(
    records: Iterable[AttendanceRecord],
    classes: Mapping[int, ClassRecord]
) -> List[Tuple[AttendanceRecord, ClassRecord]]:
    """Pair records with their class; records whose class is unknown are dropped."""
    joined = []
    dropped = 0
    for record in records:
        class_record = classes.get(record.class_id)
        if class_record is None:
            dropped += 1
            continue
        joined.append((record, class_record))

    if dropped:
        logger.debug(f"Dropped {dropped} attendance records with unresolved class references")
    return joined


def campus_breakdown(joined: Iterable[Tuple[AttendanceRecord, ClassRecord]]) -> Dict[str, Dict[str, int]]:
    groups = defaultdict(list)
    for record, class_record in joined:
        groups[Campus(class_record.campus)].append(record)

    return {_campus_key(campus): summarize(groups[campus]) for campus in CAMPUSES}


def floor_breakdown(joined: Iterable[Tuple[AttendanceRecord, ClassRecord]]) -> Dict[str, Dict[str, Dict[str, Any]]]:
    groups = defaultdict(list)
    for record, class_record in joined:
        groups[(Campus(class_record.campus), floor_label(class_record.grade))].append(record)

    breakdown = {}
    for campus in CAMPUSES:
        floors = {}
        for grade, label in GRADE_FLOOR_LABELS.items():
            floors[label] = {**summarize(groups[(campus, label)]), "grade": grade.value}
        breakdown[_campus_key(campus)] = floors
    return breakdown


def program_breakdown(joined: Iterable[Tuple[AttendanceRecord, ClassRecord]]) -> Dict[str, Dict[str, Dict[str, int]]]:
    groups = defaultdict(list)
    for record, class_record in joined:
        if not class_record.program:
            continue
        groups[(Campus(class_record.campus), class_record.program)].append(record)

    breakdown = {_campus_key(campus): {} for campus in CAMPUSES}
    for (campus, program), records in sorted(groups.items(), key=lambda item: (item[0][0].value, item[0][1])):
        breakdown[_campus_key(campus)][program] = summarize(records)
    return breakdown


def class_breakdown(records: Iterable[AttendanceRecord]) -> Dict[str, Dict[str, int]]:
    groups = defaultdict(list)
    for record in records:
        groups[record.class_id].append(record)
    return {str(class_id): summarize(groups[class_id]) for class_id in sorted(groups)}


def class_stats(records: Iterable[AttendanceRecord]) -> Dict[str, int]:
    counts = {
        AttendanceStatus.PRESENT.value: 0,
        AttendanceStatus.ABSENT.value: 0,
        AttendanceStatus.LATE.value: 0,
    }
    for record in records:
        status = _status(record).value
        if status in counts:
            counts[status] += 1

    total = sum(counts.values())
    attended = counts[AttendanceStatus.PRESENT.value] + counts[AttendanceStatus.LATE.value]
    return {**counts, "total": total, "percentage": round_percentage(attended, total)}


def _active_filter(value):
    if value is None or value == ALL:
        return None
    return value


class StatsAggregator:
    """Read-only statistics over the attendance store and class catalog."""

    def __init__(self, records: AttendanceRecordStore, classes: ClassCatalog):
        self._records = records
        self._classes = classes

    async def _joined(self, start_date, end_date):
        start, end = resolve_date_range(start_date, end_date)
        records = await self._records.find_records(start, end)
        classes = await self._classes.get_many({r.class_id for r in records})
        return join_classes(records, classes)

    async def compute_basic_stats(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None
    ) -> Dict[str, int]:
        start, end = resolve_date_range(start_date, end_date)
        return basic_stats(await self._records.find_records(start, end))

    async def compute_campus_breakdown(self, start_date: Optional[date] = None, end_date: Optional[date] = None):
        return campus_breakdown(await self._joined(start_date, end_date))

    async def compute_floor_breakdown(self, start_date: Optional[date] = None, end_date: Optional[date] = None):
        return floor_breakdown(await self._joined(start_date, end_date))

    async def compute_program_breakdown(self, start_date: Optional[date] = None, end_date: Optional[date] = None):
        return program_breakdown(await self._joined(start_date, end_date))

    async def compute_class_breakdown(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        *,
        campus: Optional[str] = None,
        floor: Optional[str] = None,
        program: Optional[str] = None,
        class_id: Optional[int] = None
    ) -> Dict[str, Dict[str, int]]:
        """
        Per-class summary for the classes matching the filters.

        ``floor`` is a breakdown label ("1st"/"2nd") and selects the grade.
        A value of "all" disables a filter. Returns an empty dict when no
        class matches.
        """
        start, end = resolve_date_range(start_date, end_date)

        campus = _active_filter(campus)
        floor = _active_filter(floor)
        program = _active_filter(program)

        try:
            campus_filter = Campus(campus) if campus else None
        except ValueError as e:
            raise InvalidFilterError(f"Unknown campus filter: {campus}") from e

        try:
            grade_filter = grade_for_floor_label(floor) if floor else None
        except ValueError as e:
            raise InvalidFilterError(f"Unknown floor filter: {floor}") from e

        candidates = await self._classes.find(
            campus=campus_filter,
            grade=grade_filter,
            program=program,
            class_id=class_id
        )
        class_ids = [c.id for c in candidates]
        if not class_ids:
            return {}

        return class_breakdown(await self._records.find_records(start, end, class_ids=class_ids))

    async def compute_class_stats(
        self,
        class_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None
    ) -> Dict[str, int]:
        start, end = resolve_date_range(start_date, end_date)
        if await self._classes.get(class_id) is None:
            raise ClassNotFoundError(class_id)
        return class_stats(await self._records.find_records(start, end, class_ids=[class_id]))
