"""Domain Errors"""


class BookingError(Exception):
    """Base class for errors returned to the caller with a readable message"""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NotFoundError(BookingError):
    """Room, reservation or user does not exist"""


class UnauthorizedError(BookingError):
    """Actor is neither the owner of the resource nor an admin"""


class ForbiddenError(BookingError):
    """Actor's role may not access the operation at all"""


class InvalidRangeError(BookingError):
    """Dates are missing or check-out is not after check-in"""


class ConflictError(BookingError):
    """Overlapping dates, exceeded capacity, or room still has bookings"""


class InvalidStateError(BookingError):
    """Operation is not legal in the reservation's current state"""
