"""Condition and coupon records."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Callable, Optional, Union

from .timestamps import coerce_datetime, format_timestamp

Items = list
Rule = Union[Callable[[Items], bool], bool]
UserId = Union[int, str]


@dataclass
class Condition:
    """A named discount rule.

    `rule` is either a callable receiving the current items or a literal
    boolean. `discount` is a percentage and is not range checked.
    """

    slug: str
    rule: Rule
    discount: float

    def evaluate(self, items: Items) -> bool:
        result = self.rule(items) if callable(self.rule) else self.rule
        return bool(result)


# Record key (state file / mapping input) -> Coupon attribute.
RECORD_KEYS = {
    "code": "code",
    "discount": "discount",
    "startDate": "start_date",
    "endDate": "end_date",
    "singleUse": "single_use",
    "usageLimit": "usage_limit",
    "userIds": "user_ids",
    "applied": "applied",
    "usedBy": "used_by",
}
_ATTRIBUTES = set(RECORD_KEYS.values())


@dataclass
class Coupon:
    """A code-identified discount voucher.

    Dates are aware UTC datetimes. `user_ids` of None means the coupon is
    not restricted to particular users. `extra` carries record keys this
    library does not interpret so they survive a save.
    """

    code: str
    discount: float
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    single_use: bool = False
    usage_limit: Optional[int] = None
    user_ids: Optional[list[UserId]] = None
    applied: bool = False
    used_by: list[UserId] = field(default_factory=list)
    extra: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.start_date is not None:
            self.start_date = coerce_datetime(self.start_date)
        if self.end_date is not None:
            self.end_date = coerce_datetime(self.end_date)
        if self.user_ids is not None and not isinstance(self.user_ids, list):
            self.user_ids = list(self.user_ids)
        self.used_by = list(self.used_by)

    @property
    def is_restricted(self) -> bool:
        return self.user_ids is not None

    def allows(self, user_id: UserId) -> bool:
        return self.user_ids is not None and user_id in self.user_ids

    def copy(self) -> Coupon:
        return replace(
            self,
            user_ids=None if self.user_ids is None else list(self.user_ids),
            used_by=list(self.used_by),
            extra=dict(self.extra),
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Coupon:
        """Build a coupon from a record or keyword-style mapping.

        Accepts both the state file keys (``startDate``) and attribute
        names (``start_date``). Unknown keys are kept in `extra`.
        """
        kwargs: dict[str, Any] = {}
        extra: dict[str, Any] = dict(data.get("extra") or {})
        for key, value in data.items():
            if key == "extra":
                continue
            attr = RECORD_KEYS.get(key, key)
            if attr in _ATTRIBUTES:
                kwargs[attr] = value
            else:
                extra[key] = value
        if kwargs.get("used_by") is None:
            kwargs.pop("used_by", None)
        return cls(extra=extra, **kwargs)

    def to_record(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible record, omitting unset optionals."""
        record: dict[str, Any] = dict(self.extra)
        record["code"] = self.code
        record["discount"] = self.discount
        if self.start_date is not None:
            record["startDate"] = format_timestamp(self.start_date)
        if self.end_date is not None:
            record["endDate"] = format_timestamp(self.end_date)
        if self.single_use:
            record["singleUse"] = True
        if self.usage_limit is not None:
            record["usageLimit"] = self.usage_limit
        if self.user_ids is not None:
            record["userIds"] = list(self.user_ids)
        record["applied"] = self.applied
        record["usedBy"] = list(self.used_by)
        return record


def coerce_coupon(coupon: Union[Coupon, Mapping[str, Any]]) -> Coupon:
    """Return a private copy of a coupon given as a Coupon or a mapping."""
    if isinstance(coupon, Coupon):
        return coupon.copy()
    return Coupon.from_dict(coupon)
