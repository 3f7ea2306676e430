from fastapi import HTTPException, status

from ..domain.errors import (
    AlreadyBookedError,
    BookingError,
    BusyError,
    CancellationWindowClosedError,
    DateNotBookableError,
    DeskFullError,
    ForbiddenError,
    InvalidDateRangeError,
    NotFoundError,
    ParkingFullError,
    ParkingNotAvailableError,
    QuotaExceededError,
    StorageUnavailableError,
)

_STATUS_BY_ERROR: dict[type[BookingError], int] = {
    DateNotBookableError: status.HTTP_400_BAD_REQUEST,
    InvalidDateRangeError: status.HTTP_400_BAD_REQUEST,
    ParkingNotAvailableError: status.HTTP_400_BAD_REQUEST,
    QuotaExceededError: status.HTTP_409_CONFLICT,
    AlreadyBookedError: status.HTTP_409_CONFLICT,
    DeskFullError: status.HTTP_409_CONFLICT,
    ParkingFullError: status.HTTP_409_CONFLICT,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ForbiddenError: status.HTTP_403_FORBIDDEN,
    CancellationWindowClosedError: status.HTTP_403_FORBIDDEN,
    BusyError: status.HTTP_503_SERVICE_UNAVAILABLE,
    StorageUnavailableError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def to_http_exception(exc: BookingError) -> HTTPException:
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    for error_type in type(exc).__mro__:
        if error_type in _STATUS_BY_ERROR:
            status_code = _STATUS_BY_ERROR[error_type]
            break
    headers = {"X-Error-Code": exc.code}
    if isinstance(exc, BusyError):
        headers["Retry-After"] = "1"
    return HTTPException(status_code=status_code, detail=exc.message, headers=headers)
