import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from domain.exceptions import (
    BookingError,
    ConflictError,
    ForbiddenError,
    InvalidRangeError,
    InvalidStateError,
    NotFoundError,
    UnauthorizedError,
)

logger = logging.getLogger(__name__)

STATUS_CODES = {
    NotFoundError: 404,
    UnauthorizedError: 401,
    ForbiddenError: 403,
    InvalidRangeError: 400,
    ConflictError: 409,
    InvalidStateError: 400,
}


def status_code_for(exc: BookingError) -> int:
    for cls in type(exc).__mro__:
        if cls in STATUS_CODES:
            return STATUS_CODES[cls]
    return 400


async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    status_code = status_code_for(exc)
    logger.warning(
        "%s on %s %s: %s (status=%s)",
        type(exc).__name__, request.method, request.url.path, exc.message, status_code
    )
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message},
    )
