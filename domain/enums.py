"""Domain Enums"""
from enum import Enum


class ReservationStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    REFUNDED = "refunded"
    CANCELLED = "cancelled"


class UserRole(str, Enum):
    USER = "user"
    ADMIN = "admin"


class RoomSort(str, Enum):
    """Sort keys accepted by the room listing; a leading '-' means descending"""
    CREATED_AT_ASC = "created_at"
    CREATED_AT_DESC = "-created_at"
    PRICE_ASC = "price"
    PRICE_DESC = "-price"
    CAPACITY_ASC = "capacity"
    CAPACITY_DESC = "-capacity"
    TITLE_ASC = "title"
    TITLE_DESC = "-title"

    @property
    def field(self) -> str:
        return self.value.lstrip("-")

    @property
    def descending(self) -> bool:
        return self.value.startswith("-")
