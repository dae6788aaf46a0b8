"""Error types and error message constants for discountify."""

from typing import Optional


class errmsg:
    """Error message constants."""

    SLUG_REQUIRED = "Slug must be provided."
    DUPLICATE_SLUG = (
        "Duplicate slug found: '{slug}'. Each discount must have a unique identifier."
    )
    DUPLICATE_COUPON = "Coupon with code '{code}' already exists."
    COUPON_CODE_REQUIRED = "Coupon code must be provided."
    ZERO_QUANTITY = "Quantity cannot be zero."
    DISCOUNT_RANGE = "Global discount must be 0-100"
    TAX_NEGATIVE = "Tax rate cannot be negative"
    RATE_NOT_NUMBER = "Rate must be a number"
    STATE_FILE_INVALID = "State file does not contain a JSON object"
    NOTIFIER_CONFLICT = "Engine and coupon registry were given different notifiers"
    COUPON_DISCOUNT_REQUIRED = "Coupon discount must be provided."
    RULE_MODULE_CLASH = "Rule module '{name}' is already loaded from {loaded}, not {path}"


class DiscountifyError(Exception):
    """Base class for discountify errors."""

    def __init__(self, message: str, cause: Optional[Exception] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause

    def __str__(self) -> str:
        if self.cause:
            return f"{self.message}: {self.cause}"
        return self.message


class ValidationError(DiscountifyError, ValueError):
    """Caller supplied data that violates a registry or engine invariant."""


class EmptySlugError(ValidationError):
    """Condition slug is missing or empty."""

    def __init__(self):
        super().__init__(errmsg.SLUG_REQUIRED)


class DuplicateSlugError(ValidationError):
    """A condition with the same slug is already registered."""

    def __init__(self, slug: str):
        super().__init__(errmsg.DUPLICATE_SLUG.format(slug=slug))
        self.slug = slug


class DuplicateCouponError(ValidationError):
    """A coupon with the same code is already stored."""

    def __init__(self, code: str):
        super().__init__(errmsg.DUPLICATE_COUPON.format(code=code))
        self.code = code


class InvalidRateError(ValidationError):
    """Discount or tax rate outside the accepted range."""


class ZeroQuantityError(DiscountifyError, ValueError):
    """A line item has a quantity of exactly zero."""

    def __init__(self):
        super().__init__(errmsg.ZERO_QUANTITY)


class StateFileError(DiscountifyError):
    """Coupon state file could not be read."""

    def __init__(self, path: str, cause: Optional[Exception] = None):
        super().__init__(f"invalid state file {path}", cause)
        self.path = path


class InvalidTimestampError(DiscountifyError):
    """Failed to parse timestamp."""

    def __init__(self, message: str):
        super().__init__(f"invalid timestamp: {message}")
