"""In-Memory Repository Implementations"""
from typing import Optional, List, Dict, Tuple
from uuid import UUID
from datetime import datetime

from domain.auth import UserInDB
from domain.repositories import ReservationRepository, RoomRepository, UserRepository
from domain.entities import Reservation, Room
from domain.value_objects import DateRange, RoomQuery, as_utc


class InMemoryReservationRepository(ReservationRepository):
    """In-memory implementation of ReservationRepository"""

    def __init__(self):
        self._storage: Dict[UUID, Reservation] = {}

    async def save(self, reservation: Reservation) -> Reservation:
        """Save reservation to memory"""
        self._storage[reservation.reservation_id] = reservation
        return reservation

    async def find_by_id(self, reservation_id: UUID) -> Optional[Reservation]:
        """Find reservation by ID"""
        return self._storage.get(reservation_id)

    async def find_by_room(self, room_id: UUID) -> List[Reservation]:
        """Find reservations for a room"""
        return [r for r in self._storage.values() if r.room_id == room_id]

    async def find_by_user(self, user_id: UUID) -> List[Reservation]:
        """Find reservations made by a user"""
        return [r for r in self._storage.values() if r.user_id == user_id]

    async def find_all(self) -> List[Reservation]:
        """Find all reservations"""
        return list(self._storage.values())

    async def find_overlapping(
        self,
        room_id: UUID,
        date_range: DateRange,
        exclude_reservation_id: Optional[UUID] = None,
        include_cancelled: bool = False
    ) -> List[Reservation]:
        """Scan the room's reservations for a half-open interval overlap"""
        return [
            r for r in self._storage.values()
            if r.room_id == room_id
            and r.reservation_id != exclude_reservation_id
            and (include_cancelled or not r.is_cancelled())
            and r.date_range.overlaps(date_range)
        ]

    async def find_checking_in_since(
        self,
        room_id: UUID,
        since: datetime,
        include_cancelled: bool = False
    ) -> List[Reservation]:
        """Find reservations on the room with check-in at or after since"""
        since = as_utc(since)
        return [
            r for r in self._storage.values()
            if r.room_id == room_id
            and (include_cancelled or not r.is_cancelled())
            and r.check_in >= since
        ]

    async def update(self, reservation: Reservation) -> Reservation:
        """Update reservation"""
        if reservation.reservation_id in self._storage:
            self._storage[reservation.reservation_id] = reservation
            return reservation
        raise ValueError("Reservation not found")


class InMemoryRoomRepository(RoomRepository):
    """In-memory implementation of RoomRepository"""

    def __init__(self):
        self._storage: Dict[UUID, Room] = {}

    async def save(self, room: Room) -> Room:
        """Save room to memory"""
        self._storage[room.room_id] = room
        return room

    async def find_by_id(self, room_id: UUID) -> Optional[Room]:
        """Find room by ID"""
        return self._storage.get(room_id)

    async def search(self, query: RoomQuery) -> Tuple[List[Room], int]:
        """Filter, sort and slice rooms according to the query"""
        matches = [room for room in self._storage.values() if _matches(room, query)]
        matches.sort(key=lambda room: _sort_value(room, query.sort.field), reverse=query.sort.descending)
        return matches[query.offset:query.offset + query.limit], len(matches)

    async def update(self, room: Room) -> Room:
        """Update room"""
        if room.room_id in self._storage:
            self._storage[room.room_id] = room
            return room
        raise ValueError("Room not found")

    async def delete(self, room_id: UUID) -> bool:
        """Delete room"""
        if room_id in self._storage:
            del self._storage[room_id]
            return True
        return False


class InMemoryUserRepository(UserRepository):
    """In-memory implementation of UserRepository"""

    def __init__(self):
        self._storage: Dict[UUID, UserInDB] = {}

    async def save(self, user: UserInDB) -> UserInDB:
        """Save user to memory"""
        self._storage[user.user_id] = user
        return user

    async def find_by_id(self, user_id: UUID) -> Optional[UserInDB]:
        """Find user by ID"""
        return self._storage.get(user_id)

    async def find_by_username(self, username: str) -> Optional[UserInDB]:
        """Find user by username"""
        for user in self._storage.values():
            if user.username == username:
                return user
        return None


def _matches(room: Room, query: RoomQuery) -> bool:
    if query.city and room.location.city.lower() != query.city.lower():
        return False
    if query.country and room.location.country.lower() != query.country.lower():
        return False
    if query.min_price is not None and room.price < query.min_price:
        return False
    if query.max_price is not None and room.price > query.max_price:
        return False
    if query.min_capacity is not None and room.capacity < query.min_capacity:
        return False
    if query.is_available is not None and room.is_available != query.is_available:
        return False
    room_amenities = {a.lower() for a in room.amenities}
    return all(a.lower() in room_amenities for a in query.amenities)


def _sort_value(room: Room, field: str):
    value = getattr(room, field)
    # Case-insensitive title ordering
    if isinstance(value, str):
        return value.lower()
    return value
