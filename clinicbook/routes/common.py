from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError

from clinicbook.core.errors import (
    BookingRejected,
    InvalidInterval,
    InvalidStatusTransition,
    NotFound,
    SchedulingError,
    SlotConflict,
    WindowExpired,
)
from clinicbook.database import ensure_booking_schema

DATABASE_UNAVAILABLE_DETAIL = 'Database unavailable. Verify DATABASE_URL and database credentials.'

ERROR_STATUS_CODES = {
    NotFound: status.HTTP_404_NOT_FOUND,
    WindowExpired: status.HTTP_403_FORBIDDEN,
    SlotConflict: status.HTTP_409_CONFLICT,
    InvalidInterval: status.HTTP_400_BAD_REQUEST,
    InvalidStatusTransition: status.HTTP_400_BAD_REQUEST,
    BookingRejected: status.HTTP_400_BAD_REQUEST,
}


def ensure_database_ready() -> None:
    try:
        ensure_booking_schema()
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


def database_unavailable() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=DATABASE_UNAVAILABLE_DETAIL,
    )


def to_http_exception(exc: SchedulingError) -> HTTPException:
    status_code = ERROR_STATUS_CODES.get(type(exc), status.HTTP_400_BAD_REQUEST)
    return HTTPException(status_code=status_code, detail=exc.message)
