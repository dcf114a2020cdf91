"""Domain Entities - Aggregates"""
from pydantic import BaseModel, Field
from uuid import UUID, uuid4
from datetime import datetime
from typing import Any, Dict, List, Optional
from decimal import Decimal

from domain.enums import ReservationStatus, PaymentStatus
from domain.exceptions import InvalidStateError
from domain.value_objects import DateRange, Location, PriceBreakdown, RoomImage, as_utc, utc_now


# Legal status moves; cancelled and completed are terminal
STATUS_TRANSITIONS = {
    ReservationStatus.PENDING: {ReservationStatus.CONFIRMED, ReservationStatus.CANCELLED},
    ReservationStatus.CONFIRMED: {ReservationStatus.COMPLETED, ReservationStatus.CANCELLED},
    ReservationStatus.CANCELLED: set(),
    ReservationStatus.COMPLETED: set(),
}


class Room(BaseModel):
    """Room Aggregate Root Entity"""

    # Identity
    room_id: UUID = Field(default_factory=uuid4)

    # Listing details
    title: str = Field(min_length=1, max_length=100)
    description: str = Field(min_length=1, max_length=2000)
    price: Decimal = Field(ge=0)
    location: Location
    capacity: int = Field(ge=1)
    amenities: List[str] = []
    images: List[RoomImage] = []
    is_available: bool = True

    # Reference to the owning user
    owner_id: UUID

    # Metadata
    created_at: datetime = Field(default_factory=utc_now)
    modified_at: datetime = Field(default_factory=utc_now)

    class Config:
        from_attributes = True

    def accommodates(self, guests: int) -> bool:
        return guests <= self.capacity

    def with_changes(self, changes: Dict[str, Any]) -> "Room":
        """Return a re-validated copy with the given fields replaced"""
        data = self.model_dump()
        data.update(changes)
        data["modified_at"] = utc_now()
        return Room.model_validate(data)


class Reservation(BaseModel):
    """Reservation Aggregate Root Entity"""

    # Identity
    reservation_id: UUID = Field(default_factory=uuid4)

    # References
    room_id: UUID
    user_id: UUID

    # Value Objects
    date_range: DateRange
    price_breakdown: PriceBreakdown

    guests: int = Field(ge=1)
    total_price: Decimal = Field(ge=0)

    # Enums/Status
    status: ReservationStatus = ReservationStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.PENDING

    special_requests: Optional[str] = Field(default=None, max_length=500)

    # Metadata
    created_at: datetime = Field(default_factory=utc_now)
    modified_at: datetime = Field(default_factory=utc_now)
    version: int = 1

    class Config:
        from_attributes = True

    # ==================== FACTORY METHOD ====================
    @staticmethod
    def create(
        room_id: UUID,
        user_id: UUID,
        date_range: DateRange,
        guests: int,
        price_breakdown: PriceBreakdown,
        special_requests: Optional[str] = None
    ) -> "Reservation":
        """Create a booked reservation; there is no separate payment step"""
        return Reservation(
            room_id=room_id,
            user_id=user_id,
            date_range=date_range,
            guests=guests,
            price_breakdown=price_breakdown,
            total_price=price_breakdown.grand_total,
            special_requests=special_requests,
            status=ReservationStatus.CONFIRMED
        )

    # ==================== QUERY METHODS ====================
    @property
    def check_in(self) -> datetime:
        return self.date_range.check_in

    @property
    def check_out(self) -> datetime:
        return self.date_range.check_out

    def is_terminal(self) -> bool:
        return not STATUS_TRANSITIONS[self.status]

    def is_cancelled(self) -> bool:
        return self.status == ReservationStatus.CANCELLED

    def has_started(self, now: datetime) -> bool:
        return as_utc(now) > self.check_in

    def can_transition_to(self, new_status: ReservationStatus) -> bool:
        return new_status in STATUS_TRANSITIONS[self.status]

    # ==================== STATE TRANSITION METHODS ====================
    def transition_to(self, new_status: ReservationStatus) -> None:
        if not self.can_transition_to(new_status):
            raise InvalidStateError(
                f"Cannot change reservation status from {self.status.value} to {new_status.value}"
            )
        self.status = new_status
        self._touch()

    def cancel(self, now: datetime) -> None:
        """Cancel before the stay starts; no refund is computed"""
        if self.has_started(now):
            raise InvalidStateError("Cannot cancel a reservation that has already started")
        self.transition_to(ReservationStatus.CANCELLED)

    # ==================== MODIFICATION METHODS ====================
    def reschedule(self, date_range: DateRange, price_breakdown: PriceBreakdown) -> None:
        self._ensure_editable()
        self.date_range = date_range
        self.price_breakdown = price_breakdown
        self.total_price = price_breakdown.grand_total
        self._touch()

    def change_guests(self, guests: int) -> None:
        self._ensure_editable()
        if guests < 1:
            raise ValueError("Number of guests must be at least 1")
        self.guests = guests
        self._touch()

    def update_special_requests(self, special_requests: Optional[str]) -> None:
        self._ensure_editable()
        if special_requests is not None and len(special_requests) > 500:
            raise ValueError("Special requests cannot be more than 500 characters")
        self.special_requests = special_requests
        self._touch()

    def _ensure_editable(self) -> None:
        if self.is_terminal():
            raise InvalidStateError(
                f"Cannot modify reservation with status {self.status.value}"
            )

    def _touch(self) -> None:
        self.modified_at = utc_now()
        self.version += 1
