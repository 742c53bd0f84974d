from sqlalchemy import Column, Integer, String, Date, DateTime, ForeignKey, Enum as SQLEnum, Index, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from datetime import date, datetime
import enum

from campus_attendance.core.database import Base


class AttendanceStatus(str, enum.Enum):
    PRESENT = "Present"
    ABSENT = "Absent"
    LATE = "Late"
    HALF_LEAVE = "Half Leave"
    FULL_LEAVE = "Full Leave"


class MarkedByRole(str, enum.Enum):
    CLASS_INCHARGE = "Class Incharge"
    FLOOR_INCHARGE = "Floor Incharge"
    SUBJECT_TEACHER = "Subject Teacher"


def attendance_day(value) -> date:
    """Normalize a date or datetime to the calendar day it falls on."""
    if isinstance(value, datetime):
        return value.date()
    return value


class AttendanceRecord(Base):
    """One student's attendance for one day."""
    __tablename__ = "attendance_records"

    id = Column(Integer, primary_key=True, index=True)

    # Foreign keys
    student_id = Column(Integer, nullable=False, index=True)
    class_id = Column(Integer, ForeignKey("classes.id"), nullable=False, index=True)

    # Attendance details
    date = Column(Date, nullable=False, index=True)
    status = Column(SQLEnum(AttendanceStatus), nullable=False, default=AttendanceStatus.PRESENT)
    remarks = Column(String(200), nullable=True)

    # Who marked it
    marked_by = Column(Integer, nullable=False)
    marked_by_role = Column(SQLEnum(MarkedByRole), nullable=False)
    subject = Column(String(100), nullable=True)

    # Timestamps
    created_on = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    class_record = relationship("ClassRecord", back_populates="attendance_records")

    __table_args__ = (
        # A student has at most one record per day
        UniqueConstraint('student_id', 'date', name='uq_attendance_student_date'),
        Index('idx_attendance_class_date', 'class_id', 'date'),
    )
