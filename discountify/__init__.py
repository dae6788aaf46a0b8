"""Discount, coupon and tax calculation for line items."""

from .conditions import ConditionRegistry
from .config import Settings, configure_logging
from .coupons import CouponRegistry
from .engine import Discountify
from .errors import (
    DiscountifyError,
    ValidationError,
    EmptySlugError,
    DuplicateSlugError,
    DuplicateCouponError,
    InvalidRateError,
    ZeroQuantityError,
    StateFileError,
    InvalidTimestampError,
    errmsg,
)
from .events import ConditionEvaluated, CouponApplied, Notifier
from .fields import FieldResolver
from .models import Condition, Coupon
from .pricing import CalculationContext, TotalBreakdown
from .rules import ConditionRule, RuleTable, condition_rule, load_rule_modules
from .store import CouponStore, JsonFileCouponStore

__all__ = [
    "ConditionRegistry",
    "Settings",
    "configure_logging",
    "CouponRegistry",
    "Discountify",
    "DiscountifyError",
    "ValidationError",
    "EmptySlugError",
    "DuplicateSlugError",
    "DuplicateCouponError",
    "InvalidRateError",
    "ZeroQuantityError",
    "StateFileError",
    "InvalidTimestampError",
    "errmsg",
    "ConditionEvaluated",
    "CouponApplied",
    "Notifier",
    "FieldResolver",
    "Condition",
    "Coupon",
    "CalculationContext",
    "TotalBreakdown",
    "ConditionRule",
    "RuleTable",
    "condition_rule",
    "load_rule_modules",
    "CouponStore",
    "JsonFileCouponStore",
]
