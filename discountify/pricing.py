"""Pure pricing arithmetic.

Business Rules:
1. Subtotal is the sum of quantity x price; a zero quantity aborts
2. The combined discount rate (global + conditions + coupons) is clamped to 0-100
3. Tax is charged on the pre-discount subtotal
4. The final total applies the discount rate to subtotal plus tax, floored at 0
5. Reported total and savings are rounded to 3 decimal places
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import asdict, dataclass
from typing import Any, Optional

import structlog

from .errors import ZeroQuantityError
from .fields import FieldResolver

REPORT_PRECISION = 3
MAX_DISCOUNT_RATE = 100.0


@dataclass(frozen=True)
class CalculationContext:
    """Inputs of a single calculation; rebuilt for every call."""

    items: tuple
    global_discount: float
    tax_rate: float


@dataclass(frozen=True)
class TotalBreakdown:
    total: float
    subtotal: float
    tax_amount: float
    total_after_discount: float
    savings: float
    tax_rate: float
    discount_rate: float

    def as_dict(self) -> dict[str, float]:
        return asdict(self)


def subtotal(
    items: Iterable[Mapping[str, Any]],
    fields: FieldResolver,
    log: Optional[structlog.BoundLogger] = None,
) -> float:
    """Sum of quantity x price over all items.

    Items missing a price or a quantity contribute nothing.

    Raises:
        ZeroQuantityError: If any item's quantity is exactly 0.
    """
    total = 0
    for index, item in enumerate(items):
        quantity = fields.quantity(item)
        price = fields.price(item)

        if quantity is not None and quantity == 0:
            raise ZeroQuantityError()

        if quantity is None or price is None:
            if log is not None:
                log.warning("item_field_missing", index=index, quantity=quantity, price=price)
            continue

        total += quantity * price
    return float(total)


def combine_discount_rates(global_discount: float, condition_rate: float, coupon_rate: float) -> float:
    rate = global_discount + condition_rate + coupon_rate
    return max(0.0, min(float(rate), MAX_DISCOUNT_RATE))


def percent_of(amount: float, rate: float) -> float:
    return amount * (rate / 100)


def tax_amount(amount: float, tax_rate: float) -> float:
    return percent_of(amount, tax_rate)


def total_with_taxes(amount: float, tax_rate: float) -> float:
    return amount + tax_amount(amount, tax_rate)


def total_after_discount(amount: float, discount_rate: float) -> float:
    return amount - percent_of(amount, discount_rate)


def final_total(amount: float, tax_rate: float, discount_rate: float) -> float:
    discounted = total_with_taxes(amount, tax_rate) * (1 - discount_rate / 100)
    return max(0.0, discounted)


def savings(amount: float, tax_rate: float, discount_rate: float) -> float:
    return percent_of(total_with_taxes(amount, tax_rate), discount_rate)


def breakdown(amount: float, tax_rate: float, discount_rate: float) -> TotalBreakdown:
    """Build the full breakdown for a subtotal and already combined rates."""
    return TotalBreakdown(
        total=round(final_total(amount, tax_rate, discount_rate), REPORT_PRECISION),
        subtotal=amount,
        tax_amount=tax_amount(amount, tax_rate),
        total_after_discount=total_after_discount(amount, discount_rate),
        savings=round(savings(amount, tax_rate, discount_rate), REPORT_PRECISION),
        tax_rate=float(tax_rate),
        discount_rate=discount_rate,
    )
