"""
Domain exceptions for the attendance analytics service.
"""
from typing import Any, Dict, Optional


class AttendanceAnalyticsError(Exception):
    """Base exception for attendance analytics errors."""

    status_code = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ClassNotFoundError(AttendanceAnalyticsError):
    """Raised when a referenced class does not exist in the catalog."""

    status_code = 404

    def __init__(self, class_id: int):
        super().__init__(f"Class {class_id} not found", {"class_id": class_id})
        self.class_id = class_id


class InvalidFilterError(AttendanceAnalyticsError):
    """Raised when query filters cannot be interpreted."""

    status_code = 400
