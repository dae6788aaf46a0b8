"""Tests for the Notifier and the notifications it carries."""

import pytest

from discountify import Discountify
from discountify.coupons import CouponRegistry
from discountify.errors import ValidationError
from discountify.events import ConditionEvaluated, CouponApplied, Notifier
from discountify.models import Coupon


class TestNotifier:
    def test_delivers_to_listeners(self) -> None:
        received = []
        notifier = Notifier().subscribe(received.append)
        notifier.emit(ConditionEvaluated("a", 10, True))
        assert received == [ConditionEvaluated("a", 10, True)]

    def test_no_listeners_is_fine(self) -> None:
        Notifier().emit(ConditionEvaluated("a", 10, True))

    def test_disabled_drops_notifications(self) -> None:
        received = []
        notifier = Notifier(enabled=False).subscribe(received.append)
        notifier.emit(ConditionEvaluated("a", 10, True))
        assert received == []

    def test_unsubscribe(self) -> None:
        received = []
        notifier = Notifier().subscribe(received.append).unsubscribe(received.append)
        notifier.emit(ConditionEvaluated("a", 10, True))
        assert received == []

    def test_listener_errors_propagate(self) -> None:
        def fail(notification):
            raise RuntimeError("listener failed")

        with pytest.raises(RuntimeError):
            Notifier().subscribe(fail).emit(ConditionEvaluated("a", 10, True))


class TestEmitters:
    """Tests for notifications raised by the engine and registry."""

    def test_condition_evaluated_for_every_condition(self, items) -> None:
        received = []
        notifier = Notifier().subscribe(received.append)
        engine = (
            Discountify(notifier=notifier)
            .set_items(items)
            .define("many", lambda items: len(items) > 1, 10)
            .define("never", False, 50)
        )
        engine.total()
        assert [(n.slug, n.discount) for n in received] == [("many", 10), ("never", 50)]

    def test_coupon_applied_carries_copy(self) -> None:
        received = []
        registry = CouponRegistry(notifier=Notifier().subscribe(received.append))
        registry.add(Coupon("WELCOME", 20))
        registry.apply("WELCOME", 5)

        [notification] = received
        assert isinstance(notification, CouponApplied)
        assert notification.coupon.code == "WELCOME"
        assert notification.coupon.used_by == [5]
        notification.coupon.used_by.clear()
        assert registry.get("WELCOME").used_by == [5]

    def test_rejected_coupon_emits_nothing(self) -> None:
        received = []
        registry = CouponRegistry(notifier=Notifier().subscribe(received.append))
        assert registry.apply("NOPE") is False
        assert received == []

    def test_engine_shares_notifier_with_default_registry(self, items) -> None:
        received = []
        engine = Discountify(notifier=Notifier().subscribe(received.append))
        engine.add_coupon(Coupon("WELCOME", 20)).apply_coupon("WELCOME")
        assert [type(n) for n in received] == [CouponApplied]

    def test_injected_registry_reports_through_engine_notifier(self) -> None:
        engine = Discountify(coupons=CouponRegistry())
        received = []
        engine.notifier.subscribe(received.append)
        engine.add_coupon(Coupon("A", 10)).apply_coupon("A")
        assert [n.coupon.code for n in received] == ["A"]
        assert engine.coupons.notifier is engine.notifier

    def test_disabled_engine_notifier_gates_injected_registry(self) -> None:
        received = []
        notifier = Notifier(enabled=False).subscribe(received.append)
        engine = Discountify(coupons=CouponRegistry(), notifier=notifier)
        engine.add_coupon(Coupon("A", 10)).apply_coupon("A")
        assert received == []

    def test_engine_adopts_registry_notifier(self) -> None:
        notifier = Notifier()
        engine = Discountify(coupons=CouponRegistry(notifier=notifier))
        assert engine.notifier is notifier

    def test_conflicting_notifiers_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Discountify(coupons=CouponRegistry(notifier=Notifier()), notifier=Notifier())
