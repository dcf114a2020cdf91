"""Domain Repository Interfaces"""
from abc import ABC, abstractmethod
from typing import Optional, List, Tuple
from uuid import UUID
from datetime import datetime

from domain.auth import UserInDB
from domain.entities import Reservation, Room
from domain.value_objects import DateRange, RoomQuery


class ReservationRepository(ABC):
    """Repository interface for Reservation Aggregate"""

    @abstractmethod
    async def save(self, reservation: Reservation) -> Reservation:
        """Save reservation"""
        pass

    @abstractmethod
    async def find_by_id(self, reservation_id: UUID) -> Optional[Reservation]:
        """Find reservation by ID"""
        pass

    @abstractmethod
    async def find_by_room(self, room_id: UUID) -> List[Reservation]:
        """Find reservations for a room"""
        pass

    @abstractmethod
    async def find_by_user(self, user_id: UUID) -> List[Reservation]:
        """Find reservations made by a user"""
        pass

    @abstractmethod
    async def find_all(self) -> List[Reservation]:
        """Find all reservations"""
        pass

    @abstractmethod
    async def find_overlapping(
        self,
        room_id: UUID,
        date_range: DateRange,
        exclude_reservation_id: Optional[UUID] = None,
        include_cancelled: bool = False
    ) -> List[Reservation]:
        """Find reservations on the room whose stay overlaps date_range"""
        pass

    @abstractmethod
    async def find_checking_in_since(
        self,
        room_id: UUID,
        since: datetime,
        include_cancelled: bool = False
    ) -> List[Reservation]:
        """Find reservations on the room with check-in at or after since"""
        pass

    @abstractmethod
    async def update(self, reservation: Reservation) -> Reservation:
        """Update reservation"""
        pass


class RoomRepository(ABC):
    """Repository interface for Room Aggregate"""

    @abstractmethod
    async def save(self, room: Room) -> Room:
        """Save room"""
        pass

    @abstractmethod
    async def find_by_id(self, room_id: UUID) -> Optional[Room]:
        """Find room by ID"""
        pass

    @abstractmethod
    async def search(self, query: RoomQuery) -> Tuple[List[Room], int]:
        """Return one page of matching rooms and the total match count"""
        pass

    @abstractmethod
    async def update(self, room: Room) -> Room:
        """Update room"""
        pass

    @abstractmethod
    async def delete(self, room_id: UUID) -> bool:
        """Delete room"""
        pass


class UserRepository(ABC):
    """Repository interface for users"""

    @abstractmethod
    async def save(self, user: UserInDB) -> UserInDB:
        """Save user"""
        pass

    @abstractmethod
    async def find_by_id(self, user_id: UUID) -> Optional[UserInDB]:
        """Find user by ID"""
        pass

    @abstractmethod
    async def find_by_username(self, username: str) -> Optional[UserInDB]:
        """Find user by username"""
        pass
