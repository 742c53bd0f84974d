"""
Attendance marking endpoints. Every successful write clears the cached
attendance analytics before the response is sent.
"""
import logging
from typing import List, Optional
from datetime import date
from fastapi import APIRouter, Depends, Query

from campus_attendance.api.deps import get_container, domain_http_error, internal_http_error
from campus_attendance.container import Container
from campus_attendance.core.exceptions import AttendanceAnalyticsError
from campus_attendance.schemas.attendance import (
    MarkAttendanceRequest, MarkAttendanceResponse, BulkMarkRequest, BulkMarkResponse,
    AttendanceResponse
)
from campus_attendance.services.attendance_marking import MarkEntry


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/attendance", tags=["attendance"])


@router.post("/mark", response_model=MarkAttendanceResponse)
async def mark_attendance(
    mark_data: MarkAttendanceRequest,
    container: Container = Depends(get_container)
):
    """Mark a single student for a day; an existing mark for that day is replaced."""
    try:
        record = await container.marking.mark(
            student_id=mark_data.student_id,
            class_id=mark_data.class_id,
            day=mark_data.date,
            status=mark_data.status,
            marked_by=mark_data.marked_by,
            marked_by_role=mark_data.marked_by_role,
            remarks=mark_data.remarks,
            subject=mark_data.subject
        )
        return MarkAttendanceResponse(
            success=True,
            message=f"Attendance marked as {record.status.value}",
            record=AttendanceResponse.model_validate(record)
        )

    except AttendanceAnalyticsError as e:
        raise domain_http_error(e)
    except Exception as e:
        logger.error(f"Error marking attendance: {e}")
        raise internal_http_error("mark attendance", e)


@router.post("/mark/bulk", response_model=BulkMarkResponse)
async def bulk_mark_attendance(
    bulk_data: BulkMarkRequest,
    container: Container = Depends(get_container)
):
    """Mark a class for a day. Per-student failures are reported, not raised."""
    try:
        result = await container.marking.bulk_mark(
            class_id=bulk_data.class_id,
            day=bulk_data.date,
            entries=[
                MarkEntry(student_id=e.student_id, status=e.status, remarks=e.remarks)
                for e in bulk_data.attendance_data
            ],
            marked_by=bulk_data.marked_by,
            marked_by_role=bulk_data.marked_by_role,
            subject=bulk_data.subject
        )

        subject = f" ({bulk_data.subject})" if bulk_data.subject else ""
        return BulkMarkResponse(
            success=True,
            message=f"Attendance marked for {result.successful} students by {result.marked_by_role.value}{subject}",
            total=result.total,
            successful=result.successful,
            failed=result.failed,
            errors=result.errors,
            marked_by_role=result.marked_by_role
        )

    except AttendanceAnalyticsError as e:
        raise domain_http_error(e)
    except Exception as e:
        logger.error(f"Error marking attendance: {e}")
        raise internal_http_error("mark attendance", e)


@router.get("/class/{class_id}/{day}", response_model=List[AttendanceResponse])
async def get_class_attendance(
    class_id: int,
    day: date,
    container: Container = Depends(get_container)
):
    try:
        records = await container.marking.get_class_attendance(class_id, day)
        return [AttendanceResponse.model_validate(r) for r in records]

    except AttendanceAnalyticsError as e:
        raise domain_http_error(e)
    except Exception as e:
        raise internal_http_error("get class attendance", e)


@router.get("/student/{student_id}", response_model=List[AttendanceResponse])
async def get_student_attendance(
    student_id: int,
    start_date: Optional[date] = Query(default=None, alias="startDate"),
    end_date: Optional[date] = Query(default=None, alias="endDate"),
    container: Container = Depends(get_container)
):
    try:
        records = await container.marking.get_student_attendance(student_id, start_date, end_date)
        return [AttendanceResponse.model_validate(r) for r in records]

    except Exception as e:
        raise internal_http_error("get student attendance", e)
