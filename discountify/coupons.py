"""Coupon registry.

Coupons are keyed by code. The registry owns stored coupons; every read
returns a copy.

Verification rules, checked in order (first failure wins):
1. The coupon exists
2. It has not expired (no end date means it never expires)
3. A user-restricted coupon needs a user ID
4. A user-restricted coupon only accepts listed user IDs
5. A single-use coupon cannot be applied twice
6. A coupon whose usage limit reached 0 is invalid and is evicted

When a store is given, the registry loads from it on construction and saves
the full coupon map after every mutation.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any, Optional, Union

import structlog

from .events import CouponApplied, Notifier
from .models import Coupon, UserId, coerce_coupon
from .store import CouponStore
from .timestamps import now
from .validation import require_code, require_coupon_discount, require_unique_code

CouponInput = Union[Coupon, Mapping[str, Any]]


class CouponRegistry:
    """Stores, validates and applies coupons."""

    def __init__(
        self,
        store: Optional[CouponStore] = None,
        notifier: Optional[Notifier] = None,
    ) -> None:
        self._store = store
        self._notifier = notifier
        self._log = structlog.get_logger(component="coupons")
        self._coupons: dict[str, Coupon] = store.load() if store is not None else {}

    @property
    def notifier(self) -> Optional[Notifier]:
        return self._notifier

    @notifier.setter
    def notifier(self, notifier: Optional[Notifier]) -> None:
        self._notifier = notifier

    def _save(self) -> None:
        if self._store is not None:
            self._store.save(self._coupons)

    # --- Storage ---------------------------------------------------------

    def add(self, coupon: CouponInput) -> CouponRegistry:
        """Store a new coupon.

        A mapping with a true ``skip`` key is validated but not stored.

        Raises:
            ValidationError: If the coupon has no code or no discount.
            DuplicateCouponError: If the code is already stored.
        """
        stored, skip = self._prepare(coupon, self._coupons)
        if skip:
            return self
        self._coupons[stored.code] = stored
        self._save()
        self._log.info("coupon_added", code=stored.code, discount=stored.discount)
        return self

    def add_many(self, coupons: Iterable[CouponInput]) -> CouponRegistry:
        """Store several coupons at once; all-or-nothing.

        Mapping entries with a true ``skip`` key are validated but not stored.
        """
        taken = set(self._coupons)
        accepted: dict[str, Coupon] = {}
        for coupon in coupons:
            stored, skip = self._prepare(coupon, taken)
            taken.add(stored.code)
            if not skip:
                accepted[stored.code] = stored

        self._coupons.update(accepted)
        self._save()
        self._log.info("coupons_added", count=len(accepted))
        return self

    @staticmethod
    def _prepare(coupon: CouponInput, taken) -> tuple[Coupon, bool]:
        if isinstance(coupon, Coupon):
            code, discount, skip = coupon.code, coupon.discount, False
        else:
            coupon = dict(coupon)
            skip = bool(coupon.pop("skip", False))
            code, discount = coupon.get("code"), coupon.get("discount")
        require_code(code)
        require_unique_code(code, taken)
        require_coupon_discount(discount)
        return coerce_coupon(coupon), skip

    def get(self, code: str) -> Optional[Coupon]:
        coupon = self._coupons.get(code)
        return coupon.copy() if coupon is not None else None

    def all(self) -> dict[str, Coupon]:
        return {code: coupon.copy() for code, coupon in self._coupons.items()}

    def update(self, code: str, coupon: CouponInput) -> CouponRegistry:
        """Replace the coupon stored under `code`."""
        self._coupons[code] = coerce_coupon(coupon)
        self._save()
        return self

    def remove(self, code: str) -> CouponRegistry:
        if self._coupons.pop(code, None) is not None:
            self._log.info("coupon_removed", code=code)
        self._save()
        return self

    def clear(self) -> CouponRegistry:
        self._coupons.clear()
        self._save()
        self._log.info("coupons_cleared")
        return self

    # --- Validation ------------------------------------------------------

    def is_expired(self, code: str) -> bool:
        """True if the coupon has an end date in the past.

        Raises:
            KeyError: If no coupon is stored under `code`.
        """
        end_date = self._coupons[code].end_date
        return end_date is not None and end_date < now()

    def is_used_by(self, code: str, user_id: UserId) -> bool:
        coupon = self._coupons.get(code)
        return coupon is not None and user_id in coupon.used_by

    def verify(self, code: str, user_id: Optional[UserId] = None) -> bool:
        """Check whether a coupon can be applied.

        A coupon whose usage limit is exhausted is evicted as a side effect.
        """
        coupon = self._coupons.get(code)
        if coupon is None:
            return False

        if self.is_expired(code):
            return False

        if coupon.is_restricted and user_id is None:
            return False

        if coupon.is_restricted and not coupon.allows(user_id):
            return False

        if coupon.single_use and coupon.applied:
            return False

        if coupon.usage_limit is not None and coupon.usage_limit <= 0:
            del self._coupons[code]
            self._save()
            self._log.info("coupon_evicted", code=code, reason="usage_limit_reached")
            return False

        return True

    def apply(self, code: str, user_id: Optional[UserId] = None) -> bool:
        """Apply a coupon, returning False if it fails verification."""
        if not self.verify(code, user_id):
            self._log.info("coupon_rejected", code=code, user_id=user_id)
            return False

        coupon = self._coupons[code]
        coupon.applied = True
        if user_id is not None:
            coupon.used_by.append(user_id)
        if coupon.usage_limit is not None and coupon.usage_limit > 0:
            coupon.usage_limit -= 1
        self._save()

        self._log.info("coupon_applied", code=code, user_id=user_id, usage_limit=coupon.usage_limit)
        if self._notifier is not None:
            self._notifier.emit(CouponApplied(coupon.copy()))
        return True

    # --- Applied coupons -------------------------------------------------

    def applied_coupons(self) -> list[Coupon]:
        return [coupon.copy() for coupon in self._coupons.values() if coupon.applied]

    def coupon_discount(self) -> float:
        """Sum of discount percentages over applied coupons."""
        return float(sum(coupon.discount for coupon in self._coupons.values() if coupon.applied))

    def remove_applied_coupons(self) -> CouponRegistry:
        """Remove every applied coupon from the registry."""
        self._coupons = {code: c for code, c in self._coupons.items() if not c.applied}
        self._save()
        return self

    clear_applied_coupons = remove_applied_coupons

    def __len__(self) -> int:
        return len(self._coupons)

    def __contains__(self, code: object) -> bool:
        return code in self._coupons
