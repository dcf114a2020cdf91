"""Domain Value Objects"""
import math
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, validator

from domain.enums import RoomSort

SECONDS_PER_DAY = 24 * 60 * 60
CENTS = Decimal("0.01")


def utc_now() -> datetime:
    """Default clock: timezone-aware current time"""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so they compare with aware ones"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class DateRange(BaseModel):
    """Value Object for a half-open stay interval [check_in, check_out)"""
    check_in: datetime
    check_out: datetime

    @validator('check_in', 'check_out')
    def normalize_timezone(cls, v):
        return as_utc(v)

    @validator('check_out')
    def check_out_after_check_in(cls, v, values):
        if 'check_in' in values and v <= values['check_in']:
            raise ValueError('Check-out must be after check-in')
        return v

    def nights(self) -> int:
        """Number of nights, counting any partial day as a whole night"""
        seconds = (self.check_out - self.check_in).total_seconds()
        return math.ceil(seconds / SECONDS_PER_DAY)

    def overlaps(self, other: "DateRange") -> bool:
        return self.check_in < other.check_out and other.check_in < self.check_out

    class Config:
        frozen = True


class Location(BaseModel):
    """Value Object for a room's address"""
    address: str = Field(min_length=1)
    city: str = Field(min_length=1)
    country: str = Field(min_length=1)

    class Config:
        frozen = True


class RoomImage(BaseModel):
    url: str
    alt_text: Optional[str] = None

    class Config:
        frozen = True


class FeeConfig(BaseModel):
    """Value Object for the fee rules applied on top of the nightly price"""
    service_fee_rate: Decimal = Field(default=Decimal("0.10"), ge=0)
    cleaning_fee: Decimal = Field(default=Decimal("25"), ge=0)
    tax_rate: Decimal = Field(default=Decimal("0.08"), ge=0)
    currency: str = "USD"

    class Config:
        frozen = True


class PriceBreakdown(BaseModel):
    """Value Object for a computed stay price; amounts are kept unrounded"""
    nights: int = Field(ge=1)
    nightly_price: Decimal = Field(ge=0)
    subtotal: Decimal = Field(ge=0)
    service_fee: Decimal = Field(ge=0)
    cleaning_fee: Decimal = Field(ge=0)
    tax: Decimal = Field(ge=0)
    grand_total: Decimal = Field(ge=0)
    currency: str = "USD"

    def display(self) -> Dict[str, str]:
        """Amounts rounded to cents for presentation"""
        return {
            "subtotal": str(self.subtotal.quantize(CENTS, rounding=ROUND_HALF_UP)),
            "service_fee": str(self.service_fee.quantize(CENTS, rounding=ROUND_HALF_UP)),
            "cleaning_fee": str(self.cleaning_fee.quantize(CENTS, rounding=ROUND_HALF_UP)),
            "tax": str(self.tax.quantize(CENTS, rounding=ROUND_HALF_UP)),
            "grand_total": str(self.grand_total.quantize(CENTS, rounding=ROUND_HALF_UP)),
        }

    class Config:
        frozen = True


class RoomQuery(BaseModel):
    """Enumerated room listing filters, sort key and page window"""
    city: Optional[str] = None
    country: Optional[str] = None
    min_price: Optional[Decimal] = Field(default=None, ge=0)
    max_price: Optional[Decimal] = Field(default=None, ge=0)
    min_capacity: Optional[int] = Field(default=None, ge=1)
    amenities: List[str] = []
    is_available: Optional[bool] = None
    sort: RoomSort = RoomSort.CREATED_AT_DESC
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1, le=100)

    @validator('max_price')
    def max_price_not_below_min(cls, v, values):
        if v is not None and values.get('min_price') is not None and v < values['min_price']:
            raise ValueError('max_price must not be below min_price')
        return v

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    class Config:
        frozen = True
