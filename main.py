import logging
import sys
from contextlib import asynccontextmanager
from datetime import datetime, timedelta
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.security import OAuth2PasswordRequestForm
from pydantic import ValidationError

from api.schemas import (
    # Rooms
    CreateRoomRequest, UpdateRoomRequest, RoomResponse, RoomListResponse, Pagination, PageLink,
    # Reservations
    CreateReservationRequest, ModifyReservationRequest, ReservationResponse,
    PriceBreakdownResponse, QuoteResponse, AvailabilityResponse,
    # Auth
    Token, UserResponse, RegisterRequest, LoginRequest
)
from api.dependencies import (
    get_auth_service, get_current_active_user, require_admin
)
from api.error_handlers import booking_error_handler
from application.services import AuthService, AvailabilityService, ReservationService, RoomService
from domain.auth import User
from domain.entities import Reservation, Room
from domain.enums import RoomSort
from domain.exceptions import BookingError
from domain.value_objects import PriceBreakdown, RoomQuery
from infrastructure.config import get_settings
from infrastructure.repositories.in_memory_repositories import (
    InMemoryReservationRepository, InMemoryRoomRepository
)
from infrastructure.security import create_access_token

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stdout,
    )
    await get_auth_service().ensure_admin(
        settings.admin_username, settings.admin_password, settings.admin_email
    )
    logger.info("Booking API starting (currency=%s)", settings.currency)
    yield


app = FastAPI(
    title="Vacation Rental Booking API",
    description="Rooms, availability, pricing and reservations for short-term rentals",
    version="1.0.0",
    lifespan=lifespan
)
app.add_exception_handler(BookingError, booking_error_handler)

# Initialize repositories
reservation_repo = InMemoryReservationRepository()
room_repo = InMemoryRoomRepository()


# Dependency injection
def get_availability_service() -> AvailabilityService:
    settings = get_settings()
    return AvailabilityService(
        reservation_repo, room_repo,
        cancelled_blocks_dates=settings.cancelled_reservations_block_dates
    )


def get_reservation_service(
    availability: AvailabilityService = Depends(get_availability_service)
) -> ReservationService:
    return ReservationService(
        reservation_repo, room_repo, availability,
        fee_config=get_settings().fee_config()
    )


def get_room_service() -> RoomService:
    settings = get_settings()
    return RoomService(
        room_repo, reservation_repo,
        fee_config=settings.fee_config(),
        cancelled_blocks_dates=settings.cancelled_reservations_block_dates
    )


ROOM_QUERY_PARAMS = {
    "city", "country", "min_price", "max_price", "min_capacity",
    "amenities", "is_available", "sort", "page", "limit"
}


def get_room_query(
    request: Request,
    city: Optional[str] = Query(None),
    country: Optional[str] = Query(None),
    min_price: Optional[Decimal] = Query(None, ge=0),
    max_price: Optional[Decimal] = Query(None, ge=0),
    min_capacity: Optional[int] = Query(None, ge=1),
    amenities: List[str] = Query([]),
    is_available: Optional[bool] = Query(None),
    sort: RoomSort = Query(RoomSort.CREATED_AT_DESC),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100)
) -> RoomQuery:
    """Room listing parameters; anything outside the enumerated set is rejected"""
    unknown = sorted(set(request.query_params.keys()) - ROOM_QUERY_PARAMS)
    if unknown:
        raise HTTPException(status_code=400, detail=f"Unsupported query parameters: {', '.join(unknown)}")
    try:
        return RoomQuery(
            city=city, country=country, min_price=min_price, max_price=max_price,
            min_capacity=min_capacity, amenities=amenities, is_available=is_available,
            sort=sort, page=page, limit=limit
        )
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=[err["msg"] for err in e.errors()])


# ============================================================================
# HEALTH ENDPOINT
# ============================================================================

@app.get("/api/health", tags=["Health"])
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "message": "API is running"}


# ============================================================================
# AUTH ENDPOINTS
# ============================================================================

def _issue_token(user: User) -> dict:
    access_token_expires = timedelta(minutes=get_settings().access_token_expire_minutes)
    access_token = create_access_token(
        data={"sub": user.username, "role": user.role.value}, expires_delta=access_token_expires
    )
    return {"access_token": access_token, "token_type": "bearer"}


@app.post("/token", response_model=Token, tags=["Auth"])
async def login_for_access_token(
    form_data: OAuth2PasswordRequestForm = Depends(),
    auth_service: AuthService = Depends(get_auth_service)
):
    user = await auth_service.authenticate(form_data.username, form_data.password)
    if not user:
        raise HTTPException(
            status_code=401,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return _issue_token(user)


@app.post("/api/auth/login", response_model=Token, tags=["Auth"])
async def login(request: LoginRequest, auth_service: AuthService = Depends(get_auth_service)):
    """JSON variant of the password login"""
    user = await auth_service.authenticate(request.username, request.password)
    if not user:
        raise HTTPException(status_code=401, detail="Incorrect username or password")
    return _issue_token(user)


@app.post("/api/auth/register", response_model=UserResponse, status_code=201, tags=["Auth"])
async def register(request: RegisterRequest, auth_service: AuthService = Depends(get_auth_service)):
    """Register a regular user"""
    user = await auth_service.register(
        username=request.username,
        password=request.password,
        email=request.email,
        full_name=request.full_name
    )
    return _user_to_response(user)


@app.get("/users/me", response_model=UserResponse, tags=["Auth"])
async def read_users_me(current_user: User = Depends(get_current_active_user)):
    return _user_to_response(current_user)


# ============================================================================
# ROOM ENDPOINTS
# ============================================================================

@app.get("/api/rooms", response_model=RoomListResponse, tags=["Rooms"])
async def list_rooms(
    query: RoomQuery = Depends(get_room_query),
    service: RoomService = Depends(get_room_service)
):
    """List rooms with filters, sorting and pagination"""
    rooms, total = await service.list_rooms(query)
    pagination = Pagination()
    if query.offset + query.limit < total:
        pagination.next = PageLink(page=query.page + 1, limit=query.limit)
    if query.offset > 0:
        pagination.prev = PageLink(page=query.page - 1, limit=query.limit)
    return RoomListResponse(
        count=len(rooms),
        total=total,
        pagination=pagination,
        data=[_room_to_response(r) for r in rooms]
    )


@app.get("/api/rooms/{room_id}", response_model=RoomResponse, tags=["Rooms"])
async def get_room(room_id: UUID, service: RoomService = Depends(get_room_service)):
    """Get room by ID"""
    return _room_to_response(await service.get_room(room_id))


@app.get("/api/rooms/{room_id}/check-availability", response_model=AvailabilityResponse, tags=["Rooms"])
async def check_availability(
    room_id: UUID,
    check_in: Optional[datetime] = Query(None),
    check_out: Optional[datetime] = Query(None),
    service: AvailabilityService = Depends(get_availability_service)
):
    """Check whether a room is free for the given dates"""
    result = await service.check_availability(room_id, check_in, check_out)
    return AvailabilityResponse(
        available=result.available,
        message=(
            "Room is available for the selected dates" if result.available
            else "Room is not available for the selected dates"
        ),
        conflicts=[_reservation_to_response(r) for r in result.conflicts]
    )


@app.get("/api/rooms/{room_id}/quote", response_model=QuoteResponse, tags=["Rooms"])
async def quote_stay(
    room_id: UUID,
    check_in: Optional[datetime] = Query(None),
    check_out: Optional[datetime] = Query(None),
    service: RoomService = Depends(get_room_service)
):
    """Price breakdown for a stay without booking it"""
    breakdown = await service.quote(room_id, check_in, check_out)
    return QuoteResponse(**_breakdown_to_response(breakdown).model_dump(), display=breakdown.display())


@app.post("/api/rooms", response_model=RoomResponse, status_code=201, tags=["Rooms"])
async def create_room(
    request: CreateRoomRequest,
    service: RoomService = Depends(get_room_service),
    current_user: User = Depends(require_admin)
):
    """Create new room"""
    try:
        room = await service.create_room(current_user, request.model_dump())
        return _room_to_response(room)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.put("/api/rooms/{room_id}", response_model=RoomResponse, tags=["Rooms"])
async def update_room(
    room_id: UUID,
    request: UpdateRoomRequest,
    service: RoomService = Depends(get_room_service),
    current_user: User = Depends(require_admin)
):
    """Update room details"""
    try:
        room = await service.update_room(current_user, room_id, request.model_dump(exclude_none=True))
        return _room_to_response(room)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.delete("/api/rooms/{room_id}", tags=["Rooms"])
async def delete_room(
    room_id: UUID,
    service: RoomService = Depends(get_room_service),
    current_user: User = Depends(require_admin)
):
    """Delete a room that has no upcoming reservations"""
    await service.delete_room(current_user, room_id)
    return {"success": True, "message": "Room deleted successfully"}


@app.get("/api/rooms/{room_id}/reservations", response_model=List[ReservationResponse], tags=["Rooms"])
async def get_room_reservations(
    room_id: UUID,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(require_admin)
):
    """Get all reservations for a room"""
    reservations = await service.get_room_reservations(room_id)
    return [_reservation_to_response(r) for r in reservations]


@app.post("/api/rooms/{room_id}/reservations", response_model=ReservationResponse, status_code=201,
          tags=["Reservations"])
async def create_reservation(
    room_id: UUID,
    request: CreateReservationRequest,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_active_user)
):
    """Book a room"""
    try:
        reservation = await service.create_reservation(
            actor=current_user,
            room_id=room_id,
            check_in=request.check_in,
            check_out=request.check_out,
            guests=request.guests,
            special_requests=request.special_requests
        )
        return _reservation_to_response(reservation)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


# ============================================================================
# RESERVATION ENDPOINTS
# ============================================================================

@app.get("/api/reservations", response_model=List[ReservationResponse], tags=["Reservations"])
async def get_all_reservations(
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(require_admin)
):
    """Get all reservations"""
    reservations = await service.get_all_reservations()
    return [_reservation_to_response(r) for r in reservations]


@app.get("/api/reservations/me", response_model=List[ReservationResponse], tags=["Reservations"])
async def get_my_reservations(
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_active_user)
):
    """Get the current user's reservations"""
    reservations = await service.get_user_reservations(current_user)
    return [_reservation_to_response(r) for r in reservations]


@app.get("/api/reservations/{reservation_id}", response_model=ReservationResponse, tags=["Reservations"])
async def get_reservation(
    reservation_id: UUID,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_active_user)
):
    """Get reservation by ID"""
    return _reservation_to_response(await service.get_reservation(current_user, reservation_id))


@app.put("/api/reservations/{reservation_id}", response_model=ReservationResponse, tags=["Reservations"])
async def modify_reservation(
    reservation_id: UUID,
    request: ModifyReservationRequest,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_active_user)
):
    """Modify reservation details"""
    try:
        reservation = await service.update_reservation(
            actor=current_user,
            reservation_id=reservation_id,
            check_in=request.check_in,
            check_out=request.check_out,
            guests=request.guests,
            special_requests=request.special_requests,
            status=request.status
        )
        return _reservation_to_response(reservation)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.delete("/api/reservations/{reservation_id}", response_model=ReservationResponse, tags=["Reservations"])
async def cancel_reservation(
    reservation_id: UUID,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_active_user)
):
    """Cancel reservation; the record is kept with status cancelled"""
    reservation = await service.cancel_reservation(current_user, reservation_id)
    return _reservation_to_response(reservation)


# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def _breakdown_to_response(breakdown: PriceBreakdown) -> PriceBreakdownResponse:
    return PriceBreakdownResponse(
        nights=breakdown.nights,
        nightly_price=breakdown.nightly_price,
        subtotal=breakdown.subtotal,
        service_fee=breakdown.service_fee,
        cleaning_fee=breakdown.cleaning_fee,
        tax=breakdown.tax,
        grand_total=breakdown.grand_total,
        currency=breakdown.currency
    )


def _reservation_to_response(reservation: Reservation) -> ReservationResponse:
    """Convert Reservation entity to ReservationResponse"""
    return ReservationResponse(
        reservation_id=reservation.reservation_id,
        room_id=reservation.room_id,
        user_id=reservation.user_id,
        check_in=reservation.check_in,
        check_out=reservation.check_out,
        nights=reservation.price_breakdown.nights,
        guests=reservation.guests,
        total_price=reservation.total_price,
        price_breakdown=_breakdown_to_response(reservation.price_breakdown),
        status=reservation.status,
        payment_status=reservation.payment_status,
        special_requests=reservation.special_requests,
        created_at=reservation.created_at,
        modified_at=reservation.modified_at,
        version=reservation.version
    )


def _room_to_response(room: Room) -> RoomResponse:
    """Convert Room entity to RoomResponse"""
    return RoomResponse.model_validate(room.model_dump())


def _user_to_response(user: User) -> UserResponse:
    return UserResponse(
        user_id=user.user_id,
        username=user.username,
        email=user.email,
        full_name=user.full_name,
        role=user.role,
        disabled=user.disabled
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
