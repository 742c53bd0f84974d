from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from datetime import date, datetime
from typing import Optional, List, Dict, Any

from campus_attendance.models.attendance import AttendanceStatus, MarkedByRole


class CamelModel(BaseModel):
    """Accepts and emits camelCase field names; snake_case works on input too."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Marking Schemas
class MarkAttendanceRequest(CamelModel):
    student_id: int
    class_id: int
    date: date
    status: AttendanceStatus = AttendanceStatus.PRESENT
    marked_by: int
    marked_by_role: MarkedByRole
    remarks: Optional[str] = Field(None, max_length=200)
    subject: Optional[str] = Field(None, max_length=100)


class BulkMarkEntry(CamelModel):
    student_id: int
    status: AttendanceStatus = AttendanceStatus.PRESENT
    remarks: Optional[str] = Field(None, max_length=200)


class BulkMarkRequest(CamelModel):
    class_id: int
    date: date
    marked_by: int
    marked_by_role: MarkedByRole
    subject: Optional[str] = Field(None, max_length=100)
    attendance_data: List[BulkMarkEntry] = Field(..., min_length=1)


class AttendanceResponse(CamelModel):
    id: int
    student_id: int
    class_id: int
    date: date
    status: AttendanceStatus
    remarks: Optional[str] = None
    marked_by: int
    marked_by_role: MarkedByRole
    subject: Optional[str] = None
    created_on: Optional[datetime] = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class MarkAttendanceResponse(CamelModel):
    success: bool
    message: str
    record: AttendanceResponse


class BulkMarkResponse(CamelModel):
    success: bool
    message: str
    total: int
    successful: int
    failed: int
    errors: List[Dict[str, Any]] = []
    marked_by_role: MarkedByRole
