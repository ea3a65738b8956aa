"""
Booking price computation.

Room bookings cost the room type's nightly base price times the number of
nights, less an optional promotion discount. Package bookings cost the
package's fixed price and never carry a promotion.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from budget_hotel.models import BookingOrigin, DiscountType, Package, Promotion

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(amount: Decimal) -> Decimal:
    """Round to the currency's two decimal places, half up."""
    return Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class PriceQuote:
    nights: int
    base_price: Decimal
    discount: Decimal
    total: Decimal
    origin: BookingOrigin
    promotion_id: Optional[int] = None
    package_id: Optional[int] = None


def compute_discount(base_price: Decimal, promotion: Promotion) -> Decimal:
    """Discount for ``base_price``, clamped to the range [0, base_price]. Not rounded."""
    value = Decimal(promotion.value)
    if promotion.discount_type == DiscountType.PERCENTAGE:
        discount = base_price * value / Decimal(100)
    else:
        discount = value
    return max(ZERO, min(discount, base_price))


def room_base_price(nightly_rate: Decimal, nights: int) -> Decimal:
    return Decimal(nightly_rate) * nights


def quote(
    nightly_rate: Decimal,
    nights: int,
    promotion: Optional[Promotion] = None,
    package: Optional[Package] = None,
) -> PriceQuote:
    """
    Price a stay.

    Args:
        nightly_rate: Room type base price per night
        nights: Number of nights (check-out minus check-in)
        promotion: Already validated promotion, ignored for packages
        package: Chosen package; its fixed price replaces the room price

    Returns:
        PriceQuote with the amounts rounded to cents
    """
    base_price = room_base_price(nightly_rate, nights)

    if package is not None:
        return PriceQuote(
            nights=nights,
            base_price=to_money(base_price),
            discount=ZERO,
            total=to_money(package.total_price),
            origin=BookingOrigin.PACKAGE,
            package_id=package.id,
        )

    discount = compute_discount(base_price, promotion) if promotion is not None else ZERO
    return PriceQuote(
        nights=nights,
        base_price=to_money(base_price),
        discount=to_money(discount),
        total=to_money(base_price - discount),
        origin=BookingOrigin.ROOM,
        promotion_id=promotion.id if promotion is not None else None,
    )
