"""API Schemas - Request and Response DTOs"""
from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal
from uuid import UUID
from typing import Dict, List, Optional

from domain.enums import PaymentStatus, ReservationStatus, UserRole


# ============================================================================
# ROOM SCHEMAS
# ============================================================================

class LocationSchema(BaseModel):
    """Room location DTO"""
    address: str = Field(min_length=1)
    city: str = Field(min_length=1)
    country: str = Field(min_length=1)


class RoomImageSchema(BaseModel):
    """Room image DTO"""
    url: str
    alt_text: Optional[str] = None


class CreateRoomRequest(BaseModel):
    """Create room request DTO"""
    title: str = Field(min_length=1, max_length=100)
    description: str = Field(min_length=1, max_length=2000)
    price: Decimal = Field(ge=0, description="Nightly price")
    location: LocationSchema
    capacity: int = Field(ge=1)
    amenities: List[str] = []
    images: List[RoomImageSchema] = []
    is_available: bool = True


class UpdateRoomRequest(BaseModel):
    """Update room request DTO; omitted fields are left unchanged"""
    title: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, min_length=1, max_length=2000)
    price: Optional[Decimal] = Field(None, ge=0)
    location: Optional[LocationSchema] = None
    capacity: Optional[int] = Field(None, ge=1)
    amenities: Optional[List[str]] = None
    images: Optional[List[RoomImageSchema]] = None
    is_available: Optional[bool] = None


class RoomResponse(BaseModel):
    """Room response DTO"""
    room_id: UUID
    title: str
    description: str
    price: Decimal
    location: LocationSchema
    capacity: int
    amenities: List[str]
    images: List[RoomImageSchema]
    is_available: bool
    owner_id: UUID
    created_at: datetime
    modified_at: datetime


class PageLink(BaseModel):
    page: int
    limit: int


class Pagination(BaseModel):
    next: Optional[PageLink] = None
    prev: Optional[PageLink] = None


class RoomListResponse(BaseModel):
    """Paginated room listing DTO"""
    count: int
    total: int
    pagination: Pagination
    data: List[RoomResponse]


# ============================================================================
# RESERVATION SCHEMAS
# ============================================================================

class CreateReservationRequest(BaseModel):
    """Create reservation request DTO"""
    check_in: Optional[datetime] = None
    check_out: Optional[datetime] = None
    guests: int = Field(ge=1)
    special_requests: Optional[str] = Field(None, max_length=500)


class ModifyReservationRequest(BaseModel):
    """Modify reservation request DTO"""
    check_in: Optional[datetime] = None
    check_out: Optional[datetime] = None
    guests: Optional[int] = Field(None, ge=1)
    special_requests: Optional[str] = Field(None, max_length=500)
    status: Optional[ReservationStatus] = None


class PriceBreakdownResponse(BaseModel):
    """Price breakdown DTO"""
    nights: int
    nightly_price: Decimal
    subtotal: Decimal
    service_fee: Decimal
    cleaning_fee: Decimal
    tax: Decimal
    grand_total: Decimal
    currency: str


class QuoteResponse(PriceBreakdownResponse):
    """Price breakdown with amounts rounded for display"""
    display: Dict[str, str]


class ReservationResponse(BaseModel):
    """Reservation response DTO"""
    reservation_id: UUID
    room_id: UUID
    user_id: UUID
    check_in: datetime
    check_out: datetime
    nights: int
    guests: int
    total_price: Decimal
    price_breakdown: PriceBreakdownResponse
    status: ReservationStatus
    payment_status: PaymentStatus
    special_requests: Optional[str] = None
    created_at: datetime
    modified_at: datetime
    version: int


class AvailabilityResponse(BaseModel):
    """Availability check DTO"""
    available: bool
    message: str
    conflicts: List[ReservationResponse]


# ============================================================================
# AUTH SCHEMAS
# ============================================================================

class Token(BaseModel):
    """Token response DTO"""
    access_token: str
    token_type: str


class TokenData(BaseModel):
    """Token payload DTO"""
    username: Optional[str] = None


class RegisterRequest(BaseModel):
    """User registration DTO"""
    username: str = Field(min_length=3, max_length=50)
    password: str = Field(min_length=6)
    email: Optional[str] = None
    full_name: Optional[str] = None


class LoginRequest(BaseModel):
    """JSON login DTO"""
    username: str
    password: str


class UserResponse(BaseModel):
    """User response DTO"""
    user_id: UUID
    username: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    role: UserRole
    disabled: bool
