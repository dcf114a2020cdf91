"""Domain Service - stay price calculation"""
from datetime import datetime
from decimal import Decimal
from typing import Optional, Union

from domain.exceptions import InvalidRangeError
from domain.value_objects import DateRange, FeeConfig, PriceBreakdown, as_utc

Amount = Union[Decimal, int, float, str]


def to_decimal(value: Amount) -> Decimal:
    """Convert through str so floats like 0.1 keep their written value"""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def compute_total(
    nightly_price: Amount,
    check_in: datetime,
    check_out: datetime,
    fee_config: Optional[FeeConfig] = None
) -> PriceBreakdown:
    """
    Price a stay.

    tax applies to subtotal + service fee + cleaning fee. Nothing is
    rounded here; PriceBreakdown.display() rounds for presentation.
    """
    if check_in is None or check_out is None:
        raise InvalidRangeError("Please provide both check-in and check-out dates")
    if as_utc(check_in) >= as_utc(check_out):
        raise InvalidRangeError("Check-out date must be after check-in date")

    fees = fee_config or FeeConfig()
    price = to_decimal(nightly_price)
    if price < 0:
        raise ValueError("Nightly price cannot be negative")

    nights = DateRange(check_in=check_in, check_out=check_out).nights()
    subtotal = price * nights
    service_fee = subtotal * fees.service_fee_rate
    cleaning_fee = fees.cleaning_fee
    tax = (subtotal + service_fee + cleaning_fee) * fees.tax_rate
    grand_total = subtotal + service_fee + cleaning_fee + tax

    return PriceBreakdown(
        nights=nights,
        nightly_price=price,
        subtotal=subtotal,
        service_fee=service_fee,
        cleaning_fee=cleaning_fee,
        tax=tax,
        grand_total=grand_total,
        currency=fees.currency
    )
