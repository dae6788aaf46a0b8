"""Validation helpers for registry and engine precondition checks.

Eliminates repeated validation boilerplate across the registries and the
calculation engine.
"""

from collections.abc import Collection
from numbers import Real

from .errors import (
    DuplicateCouponError,
    DuplicateSlugError,
    EmptySlugError,
    InvalidRateError,
    ValidationError,
    errmsg,
)


def require_slug(slug) -> None:
    """Require that a condition slug is a non-empty string."""
    if not slug:
        raise EmptySlugError()


def require_unique_slug(slug: str, taken: Collection[str]) -> None:
    """Require that a slug has not been accepted before."""
    if slug in taken:
        raise DuplicateSlugError(slug)


def require_code(code) -> None:
    """Require that a coupon code is a non-empty string."""
    if not code:
        raise ValidationError(errmsg.COUPON_CODE_REQUIRED)


def require_unique_code(code: str, taken: Collection[str]) -> None:
    """Require that no stored coupon uses this code."""
    if code in taken:
        raise DuplicateCouponError(code)


def require_rate(value) -> float:
    """Require that a rate is a real number, returning it as a float."""
    if isinstance(value, bool) or not isinstance(value, Real):
        raise InvalidRateError(errmsg.RATE_NOT_NUMBER)
    return float(value)


def require_discount_rate(value) -> float:
    """Require that a global discount rate lies within 0-100."""
    rate = require_rate(value)
    if rate < 0 or rate > 100:
        raise InvalidRateError(errmsg.DISCOUNT_RANGE)
    return rate


def require_tax_rate(value) -> float:
    """Require that a tax rate is zero or greater."""
    rate = require_rate(value)
    if rate < 0:
        raise InvalidRateError(errmsg.TAX_NEGATIVE)
    return rate


def require_coupon_discount(value) -> None:
    """Require that a coupon carries a numeric discount."""
    if value is None:
        raise ValidationError(errmsg.COUPON_DISCOUNT_REQUIRED)
    require_rate(value)
