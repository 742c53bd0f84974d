from .class_record import ClassRecord, Campus, Grade, floor_of, floor_label, grade_for_floor_label
from .attendance import AttendanceRecord, AttendanceStatus, MarkedByRole, attendance_day

__all__ = [
    "ClassRecord",
    "Campus",
    "Grade",
    "floor_of",
    "floor_label",
    "grade_for_floor_label",
    "AttendanceRecord",
    "AttendanceStatus",
    "MarkedByRole",
    "attendance_day",
]
