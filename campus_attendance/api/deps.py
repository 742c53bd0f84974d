from fastapi import HTTPException, Request, status

from campus_attendance.container import Container
from campus_attendance.core.exceptions import AttendanceAnalyticsError


def get_container(request: Request) -> Container:
    return request.app.state.container


def domain_http_error(error: AttendanceAnalyticsError) -> HTTPException:
    return HTTPException(status_code=error.status_code, detail=error.message)


def internal_http_error(action: str, error: Exception) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Failed to {action}: {str(error)}"
    )
