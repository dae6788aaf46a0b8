"""Calculation engine.

Discountify combines a condition registry, a coupon registry and a field
resolver to price a list of items:

    engine = Discountify().set_items([
        {"quantity": 2, "price": 50},
        {"quantity": 1, "price": 100},
    ])
    engine.set_global_tax_rate(19).define("bulk_10", lambda items: len(items) > 1, 10)
    engine.total_detailed().as_dict()
    # {'total': 214.2, 'subtotal': 200.0, 'tax_amount': 38.0, ...}

The engine owns no state beyond its items and its two configured rates;
everything else lives in the registries it was given.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any, Optional

import structlog

from . import pricing
from .conditions import ConditionRegistry
from .config import Settings
from .coupons import CouponInput, CouponRegistry
from .errors import ValidationError, errmsg
from .events import ConditionEvaluated, Notifier
from .fields import FieldResolver
from .models import Condition, Coupon, Rule, UserId
from .pricing import CalculationContext, TotalBreakdown
from .store import JsonFileCouponStore
from .validation import require_discount_rate, require_tax_rate


class Discountify:
    """Prices items with global, condition and coupon discounts plus tax."""

    def __init__(
        self,
        conditions: Optional[ConditionRegistry] = None,
        coupons: Optional[CouponRegistry] = None,
        fields: Optional[FieldResolver] = None,
        notifier: Optional[Notifier] = None,
        global_discount: float = 0.0,
        global_tax_rate: float = 0.0,
    ) -> None:
        if coupons is not None and coupons.notifier is not None:
            if notifier is not None and notifier is not coupons.notifier:
                raise ValidationError(errmsg.NOTIFIER_CONFLICT)
            notifier = coupons.notifier
        self._notifier = notifier if notifier is not None else Notifier()
        self._conditions = conditions if conditions is not None else ConditionRegistry()
        self._coupons = coupons if coupons is not None else CouponRegistry()
        # An injected registry without its own notifier reports through ours.
        if self._coupons.notifier is None:
            self._coupons.notifier = self._notifier
        self._fields = fields if fields is not None else FieldResolver()
        self._items: list[Mapping[str, Any]] = []
        self._global_discount = require_discount_rate(global_discount)
        self._global_tax_rate = require_tax_rate(global_tax_rate)
        self._log = structlog.get_logger(component="engine")

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> Discountify:
        """Build an engine wired from settings (environment when omitted).

        Discovers rule modules when a condition path is configured and
        persists coupons when a state file path is configured.
        """
        settings = settings if settings is not None else Settings.from_env()
        notifier = Notifier(enabled=settings.fire_events)

        conditions = ConditionRegistry()
        if settings.condition_path:
            conditions.discover(settings.condition_namespace, settings.condition_path)

        store = JsonFileCouponStore(settings.state_file_path) if settings.state_file_path else None
        coupons = CouponRegistry(store=store, notifier=notifier)

        return cls(
            conditions=conditions,
            coupons=coupons,
            fields=FieldResolver(settings.fields),
            notifier=notifier,
            global_discount=settings.global_discount,
            global_tax_rate=settings.global_tax_rate,
        )

    # --- Collaborators ---------------------------------------------------

    @property
    def conditions(self) -> ConditionRegistry:
        return self._conditions

    @property
    def coupons(self) -> CouponRegistry:
        return self._coupons

    @property
    def fields(self) -> FieldResolver:
        return self._fields

    @property
    def notifier(self) -> Notifier:
        return self._notifier

    # --- Configuration ---------------------------------------------------

    def set_items(self, items: Iterable[Mapping[str, Any]]) -> Discountify:
        self._items = list(items)
        return self

    @property
    def items(self) -> list[Mapping[str, Any]]:
        return list(self._items)

    def set_global_discount(self, rate: float) -> Discountify:
        """Set the global discount percentage.

        Raises:
            InvalidRateError: If rate is outside 0-100.
        """
        self._global_discount = require_discount_rate(rate)
        return self

    discount = set_global_discount

    def set_global_tax_rate(self, rate: float) -> Discountify:
        """Set the global tax percentage.

        Raises:
            InvalidRateError: If rate is negative.
        """
        self._global_tax_rate = require_tax_rate(rate)
        return self

    @property
    def global_discount(self) -> float:
        return self._global_discount

    @property
    def global_tax_rate(self) -> float:
        return self._global_tax_rate

    def _context(
        self,
        global_discount: Optional[float] = None,
        tax_rate: Optional[float] = None,
    ) -> CalculationContext:
        return CalculationContext(
            items=tuple(self._items),
            global_discount=(
                self._global_discount if global_discount is None else require_discount_rate(global_discount)
            ),
            tax_rate=self._global_tax_rate if tax_rate is None else require_tax_rate(tax_rate),
        )

    # --- Rates -----------------------------------------------------------

    def condition_discount(self) -> float:
        """Sum of discounts of the conditions that hold for the current items."""
        return self._condition_discount(list(self._items))

    def _condition_discount(self, items: list) -> float:
        total = 0.0
        for condition, result in self._conditions.evaluate(items):
            self._notifier.emit(ConditionEvaluated(condition.slug, condition.discount, condition.rule))
            if result:
                total += condition.discount
        return total

    def coupon_discount(self) -> float:
        return self._coupons.coupon_discount()

    def _discount_rate(self, ctx: CalculationContext) -> float:
        return pricing.combine_discount_rates(
            ctx.global_discount,
            self._condition_discount(list(ctx.items)),
            self._coupons.coupon_discount(),
        )

    def discount_rate(self, global_discount: Optional[float] = None) -> float:
        """Combined discount percentage, clamped to 0-100."""
        return self._discount_rate(self._context(global_discount=global_discount))

    # --- Amounts ---------------------------------------------------------

    def _subtotal(self, ctx: CalculationContext) -> float:
        return pricing.subtotal(ctx.items, self._fields, self._log)

    def subtotal(self) -> float:
        """Sum of quantity x price.

        Raises:
            ZeroQuantityError: If any item has a quantity of 0.
        """
        return self._subtotal(self._context())

    def global_discount_amount(self) -> float:
        ctx = self._context()
        return pricing.percent_of(self._subtotal(ctx), ctx.global_discount)

    def tax_amount(self, tax_rate: Optional[float] = None, after_discount: bool = False) -> float:
        """Tax on the subtotal, or on the discounted subtotal when `after_discount`."""
        ctx = self._context(tax_rate=tax_rate)
        amount = self._subtotal(ctx)
        if after_discount:
            amount = pricing.total_after_discount(amount, self._discount_rate(ctx))
        return pricing.tax_amount(amount, ctx.tax_rate)

    def tax(self, tax_rate: Optional[float] = None) -> float:
        """Subtotal plus tax, before any discount."""
        ctx = self._context(tax_rate=tax_rate)
        return pricing.total_with_taxes(self._subtotal(ctx), ctx.tax_rate)

    def total_with_discount(self, global_discount: Optional[float] = None) -> float:
        """Subtotal after the combined discount rate, before tax."""
        ctx = self._context(global_discount=global_discount)
        amount = self._subtotal(ctx)
        return pricing.total_after_discount(amount, self._discount_rate(ctx))

    def savings(self, global_discount: Optional[float] = None) -> float:
        ctx = self._context(global_discount=global_discount)
        amount = self._subtotal(ctx)
        value = pricing.savings(amount, ctx.tax_rate, self._discount_rate(ctx))
        return round(value, pricing.REPORT_PRECISION)

    def total(self) -> float:
        """Final total: (subtotal + tax) less the combined discount, floored at 0."""
        return self.total_detailed().total

    def total_detailed(self) -> TotalBreakdown:
        ctx = self._context()
        amount = self._subtotal(ctx)
        result = pricing.breakdown(amount, ctx.tax_rate, self._discount_rate(ctx))
        self._log.info(
            "total_calculated",
            items=len(ctx.items),
            subtotal=result.subtotal,
            discount_rate=result.discount_rate,
            total=result.total,
        )
        return result

    # --- Conditions ------------------------------------------------------

    def add(self, specs: Iterable[Mapping[str, Any]]) -> Discountify:
        self._conditions.add(specs)
        return self

    def define(self, slug: str, rule: Rule, discount: float, skip: bool = False) -> Discountify:
        self._conditions.define(slug, rule, discount, skip)
        return self

    def define_if(self, slug: str, is_acceptable: bool, discount: float) -> Discountify:
        self._conditions.define_if(slug, is_acceptable, discount)
        return self

    def get_conditions(self) -> list[Condition]:
        return self._conditions.get_conditions()

    # --- Coupons ---------------------------------------------------------

    def add_coupon(self, coupon: CouponInput) -> Discountify:
        self._coupons.add(coupon)
        return self

    def remove_coupon(self, code: str) -> Discountify:
        self._coupons.remove(code)
        return self

    def apply_coupon(self, code: str, user_id: Optional[UserId] = None) -> Discountify:
        """Apply a coupon; an invalid coupon is ignored (see CouponRegistry.apply)."""
        self._coupons.apply(code, user_id)
        return self

    def get_coupon(self, code: str) -> Optional[Coupon]:
        return self._coupons.get(code)

    def applied_coupons(self) -> list[Coupon]:
        return self._coupons.applied_coupons()

    def remove_applied_coupons(self) -> Discountify:
        self._coupons.remove_applied_coupons()
        return self

    clear_applied_coupons = remove_applied_coupons

    def clear_coupons(self) -> Discountify:
        self._coupons.clear()
        return self

    # --- Fields ----------------------------------------------------------

    def set_field(self, name: str, key: str) -> Discountify:
        self._fields.set_field(name, key)
        return self

    def set_fields(self, fields: Mapping[str, str]) -> Discountify:
        self._fields.set_fields(fields)
        return self

    def get_field(self, item: Mapping[str, Any], name: str) -> Any:
        return self._fields.resolve(item, name)
