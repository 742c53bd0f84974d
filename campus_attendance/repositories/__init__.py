from .attendance_store import AttendanceRecordStore, SQLAttendanceRecordStore
from .class_catalog import ClassCatalog, SQLClassCatalog

__all__ = [
    "AttendanceRecordStore",
    "SQLAttendanceRecordStore",
    "ClassCatalog",
    "SQLClassCatalog",
]
