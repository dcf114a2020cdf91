"""Application Services - Business use cases"""
import logging
from uuid import UUID
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

from pydantic import BaseModel

from domain.auth import User, UserInDB
from domain.entities import Reservation, Room
from domain.enums import ReservationStatus, UserRole
from domain.exceptions import (
    ConflictError, InvalidRangeError, InvalidStateError, NotFoundError, UnauthorizedError
)
from domain.pricing import compute_total
from domain.repositories import ReservationRepository, RoomRepository, UserRepository
from domain.value_objects import DateRange, FeeConfig, PriceBreakdown, RoomQuery, as_utc, utc_now
from infrastructure.security import get_password_hash, verify_password

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def build_date_range(check_in: Optional[datetime], check_out: Optional[datetime]) -> DateRange:
    """Validate raw dates into a DateRange, raising InvalidRangeError"""
    if check_in is None or check_out is None:
        raise InvalidRangeError("Please provide both check-in and check-out dates")
    if as_utc(check_in) >= as_utc(check_out):
        raise InvalidRangeError("Check-out date must be after check-in date")
    return DateRange(check_in=check_in, check_out=check_out)


class AvailabilityResult(BaseModel):
    available: bool
    conflicts: List[Reservation] = []


class AvailabilityService:
    """Answers whether a room is free for a stay"""

    def __init__(self,
                 reservation_repo: ReservationRepository,
                 room_repo: RoomRepository,
                 cancelled_blocks_dates: bool = False):
        self.reservation_repo = reservation_repo
        self.room_repo = room_repo
        self.cancelled_blocks_dates = cancelled_blocks_dates

    async def find_conflicts(
        self,
        room_id: UUID,
        check_in: datetime,
        check_out: datetime,
        exclude_reservation_id: Optional[UUID] = None
    ) -> List[Reservation]:
        """Reservations on the room overlapping [check_in, check_out)"""
        date_range = build_date_range(check_in, check_out)
        return await self.reservation_repo.find_overlapping(
            room_id,
            date_range,
            exclude_reservation_id=exclude_reservation_id,
            include_cancelled=self.cancelled_blocks_dates
        )

    async def is_available(
        self,
        room_id: UUID,
        check_in: datetime,
        check_out: datetime,
        exclude_reservation_id: Optional[UUID] = None
    ) -> bool:
        conflicts = await self.find_conflicts(room_id, check_in, check_out, exclude_reservation_id)
        return not conflicts

    async def check_availability(
        self,
        room_id: UUID,
        check_in: Optional[datetime],
        check_out: Optional[datetime]
    ) -> AvailabilityResult:
        """Availability of an existing room together with the blocking bookings"""
        if check_in is None or check_out is None:
            raise InvalidRangeError("Please provide both check-in and check-out dates")
        if not await self.room_repo.find_by_id(room_id):
            raise NotFoundError(f"Room not found with id of {room_id}")

        conflicts = await self.find_conflicts(room_id, check_in, check_out)
        return AvailabilityResult(available=not conflicts, conflicts=conflicts)


class ReservationService:
    """Service for Reservation business use cases"""

    def __init__(self,
                 repository: ReservationRepository,
                 room_repo: RoomRepository,
                 availability: AvailabilityService,
                 fee_config: Optional[FeeConfig] = None,
                 clock: Clock = utc_now):
        self.repository = repository
        self.room_repo = room_repo
        self.availability = availability
        self.fee_config = fee_config or FeeConfig()
        self.clock = clock

    async def _get_room(self, room_id: UUID) -> Room:
        room = await self.room_repo.find_by_id(room_id)
        if not room:
            raise NotFoundError(f"Room not found with id of {room_id}")
        return room

    async def _get_owned_reservation(self, actor: User, reservation_id: UUID, action: str) -> Reservation:
        reservation = await self.repository.find_by_id(reservation_id)
        if not reservation:
            raise NotFoundError(f"Reservation not found with id of {reservation_id}")
        if not actor.can_manage(reservation.user_id):
            raise UnauthorizedError(
                f"User {actor.user_id} is not authorized to {action} this reservation"
            )
        return reservation

    async def create_reservation(
        self,
        actor: User,
        room_id: UUID,
        check_in: Optional[datetime],
        check_out: Optional[datetime],
        guests: int,
        special_requests: Optional[str] = None
    ) -> Reservation:
        """Book a room after range, capacity and availability checks"""
        room = await self._get_room(room_id)
        date_range = build_date_range(check_in, check_out)

        if guests < 1:
            raise ValueError("Number of guests must be at least 1")
        if not room.accommodates(guests):
            raise ConflictError(f"This room can accommodate maximum {room.capacity} guests")

        if not await self.availability.is_available(room.room_id, date_range.check_in, date_range.check_out):
            raise ConflictError("The room is not available for the selected dates")

        price = compute_total(room.price, date_range.check_in, date_range.check_out, self.fee_config)
        reservation = Reservation.create(
            room_id=room.room_id,
            user_id=actor.user_id,
            date_range=date_range,
            guests=guests,
            price_breakdown=price,
            special_requests=special_requests
        )
        saved = await self.repository.save(reservation)
        logger.info(
            "Reservation %s created for room %s by user %s (%d nights, total %s)",
            saved.reservation_id, room.room_id, actor.user_id, price.nights, price.grand_total
        )
        return saved

    async def get_reservation(self, actor: User, reservation_id: UUID) -> Reservation:
        return await self._get_owned_reservation(actor, reservation_id, "view")

    async def get_user_reservations(self, actor: User) -> List[Reservation]:
        return await self.repository.find_by_user(actor.user_id)

    async def get_room_reservations(self, room_id: UUID) -> List[Reservation]:
        room = await self._get_room(room_id)
        return await self.repository.find_by_room(room.room_id)

    async def get_all_reservations(self) -> List[Reservation]:
        return await self.repository.find_all()

    async def update_reservation(
        self,
        actor: User,
        reservation_id: UUID,
        check_in: Optional[datetime] = None,
        check_out: Optional[datetime] = None,
        guests: Optional[int] = None,
        special_requests: Optional[str] = None,
        status: Optional[ReservationStatus] = None
    ) -> Reservation:
        """
        Apply a partial update.

        Every check runs before anything is changed: a date change is
        re-validated against the room's other bookings and re-priced, a
        guest change against capacity, and a status change against the
        lifecycle.
        """
        reservation = await self._get_owned_reservation(actor, reservation_id, "update")

        edits_details = any(v is not None for v in (check_in, check_out, guests, special_requests))
        if edits_details and reservation.is_terminal():
            raise InvalidStateError(
                f"Cannot modify reservation with status {reservation.status.value}"
            )

        new_range = None
        new_price = None
        room = None
        if check_in is not None or check_out is not None:
            new_range = build_date_range(
                check_in if check_in is not None else reservation.check_in,
                check_out if check_out is not None else reservation.check_out
            )
            available = await self.availability.is_available(
                reservation.room_id,
                new_range.check_in,
                new_range.check_out,
                exclude_reservation_id=reservation.reservation_id
            )
            if not available:
                raise ConflictError("The room is not available for the selected dates")
            room = await self._get_room(reservation.room_id)
            new_price = compute_total(room.price, new_range.check_in, new_range.check_out, self.fee_config)

        if guests is not None:
            room = room or await self._get_room(reservation.room_id)
            if guests < 1:
                raise ValueError("Number of guests must be at least 1")
            if not room.accommodates(guests):
                raise ConflictError(f"This room can accommodate maximum {room.capacity} guests")

        if special_requests is not None and len(special_requests) > 500:
            raise ValueError("Special requests cannot be more than 500 characters")

        if status is not None and status != reservation.status:
            if not reservation.can_transition_to(status):
                raise InvalidStateError(
                    f"Cannot change reservation status from {reservation.status.value} to {status.value}"
                )
            if status == ReservationStatus.CANCELLED and reservation.has_started(self.clock()):
                raise InvalidStateError("Cannot cancel a reservation that has already started")

        if new_range is not None:
            reservation.reschedule(new_range, new_price)
        if guests is not None:
            reservation.change_guests(guests)
        if special_requests is not None:
            reservation.update_special_requests(special_requests or None)
        if status is not None and status != reservation.status:
            reservation.transition_to(status)

        updated = await self.repository.update(reservation)
        logger.info("Reservation %s updated by user %s", reservation_id, actor.user_id)
        return updated

    async def cancel_reservation(self, actor: User, reservation_id: UUID) -> Reservation:
        """Cancel a reservation whose stay has not started yet"""
        reservation = await self._get_owned_reservation(actor, reservation_id, "cancel")
        reservation.cancel(self.clock())
        cancelled = await self.repository.update(reservation)
        logger.info("Reservation %s cancelled by user %s", reservation_id, actor.user_id)
        return cancelled


class RoomService:
    """Service for Room business use cases"""

    def __init__(self,
                 repository: RoomRepository,
                 reservation_repo: ReservationRepository,
                 fee_config: Optional[FeeConfig] = None,
                 cancelled_blocks_dates: bool = False,
                 clock: Clock = utc_now):
        self.repository = repository
        self.reservation_repo = reservation_repo
        self.fee_config = fee_config or FeeConfig()
        self.cancelled_blocks_dates = cancelled_blocks_dates
        self.clock = clock

    async def _get_managed_room(self, actor: User, room_id: UUID, action: str) -> Room:
        room = await self.get_room(room_id)
        if not actor.can_manage(room.owner_id):
            raise UnauthorizedError(f"User {actor.user_id} is not authorized to {action} this room")
        return room

    async def create_room(self, actor: User, details: Dict[str, Any]) -> Room:
        """Create a room owned by the acting user"""
        room = Room.model_validate({**details, "owner_id": actor.user_id})
        saved = await self.repository.save(room)
        logger.info("Room %s created by user %s", saved.room_id, actor.user_id)
        return saved

    async def get_room(self, room_id: UUID) -> Room:
        room = await self.repository.find_by_id(room_id)
        if not room:
            raise NotFoundError(f"Room not found with id of {room_id}")
        return room

    async def list_rooms(self, query: RoomQuery) -> Tuple[List[Room], int]:
        return await self.repository.search(query)

    async def update_room(self, actor: User, room_id: UUID, changes: Dict[str, Any]) -> Room:
        room = await self._get_managed_room(actor, room_id, "update")
        changes = {k: v for k, v in changes.items() if k not in ("room_id", "owner_id", "created_at")}
        return await self.repository.update(room.with_changes(changes))

    async def delete_room(self, actor: User, room_id: UUID) -> None:
        """Remove a room that has no reservations checking in from now on"""
        room = await self._get_managed_room(actor, room_id, "delete")
        upcoming = await self.reservation_repo.find_checking_in_since(
            room.room_id, self.clock(), include_cancelled=self.cancelled_blocks_dates
        )
        if upcoming:
            raise ConflictError("Cannot delete room with future reservations")
        await self.repository.delete(room.room_id)
        logger.info("Room %s deleted by user %s", room_id, actor.user_id)

    async def quote(
        self,
        room_id: UUID,
        check_in: Optional[datetime],
        check_out: Optional[datetime]
    ) -> PriceBreakdown:
        """Price a stay in the room without booking it"""
        room = await self.get_room(room_id)
        date_range = build_date_range(check_in, check_out)
        return compute_total(room.price, date_range.check_in, date_range.check_out, self.fee_config)


class AuthService:
    """Service for user registration and password login"""

    def __init__(self, repository: UserRepository):
        self.repository = repository

    async def register(
        self,
        username: str,
        password: str,
        email: Optional[str] = None,
        full_name: Optional[str] = None,
        role: UserRole = UserRole.USER
    ) -> UserInDB:
        if await self.repository.find_by_username(username):
            raise ConflictError(f"Username {username} is already taken")
        user = UserInDB(
            username=username,
            email=email,
            full_name=full_name,
            role=role,
            hashed_password=get_password_hash(password)
        )
        saved = await self.repository.save(user)
        logger.info("Registered user %s with role %s", username, role.value)
        return saved

    async def authenticate(self, username: str, password: str) -> Optional[UserInDB]:
        user = await self.repository.find_by_username(username)
        if not user or not verify_password(password, user.hashed_password):
            return None
        return user

    async def ensure_admin(self, username: str, password: str, email: Optional[str] = None) -> UserInDB:
        """Create the configured administrator unless it already exists"""
        existing = await self.repository.find_by_username(username)
        if existing:
            return existing
        return await self.register(
            username=username,
            password=password,
            email=email,
            full_name="Admin User",
            role=UserRole.ADMIN
        )
