"""Domain notifications emitted by the engine and the coupon registry.

Notifications are fire-and-forget: a Notifier with no listeners, or a
disabled Notifier, drops them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Union

import structlog

from .models import Coupon


@dataclass(frozen=True)
class ConditionEvaluated:
    """A condition was evaluated against the current items."""

    slug: str
    discount: float
    rule: Any


@dataclass(frozen=True)
class CouponApplied:
    """A coupon passed verification and was applied."""

    coupon: Coupon


Notification = Union[ConditionEvaluated, CouponApplied]
Listener = Callable[[Notification], None]


class Notifier:
    """Delivers notifications to subscribed listeners.

    Example::

        notifier = Notifier()
        notifier.subscribe(lambda n: print(n))
        registry = CouponRegistry(notifier=notifier)
    """

    def __init__(self, enabled: bool = True) -> None:
        self.enabled = enabled
        self._listeners: list[Listener] = []
        self._log = structlog.get_logger(component="notifier")

    def subscribe(self, listener: Listener) -> Notifier:
        self._listeners.append(listener)
        return self

    def unsubscribe(self, listener: Listener) -> Notifier:
        if listener in self._listeners:
            self._listeners.remove(listener)
        return self

    def emit(self, notification: Notification) -> None:
        if not self.enabled:
            return
        self._log.debug("notification", kind=type(notification).__name__)
        for listener in list(self._listeners):
            listener(notification)
