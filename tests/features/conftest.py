"""Pytest-bdd configuration and shared steps for discountify feature tests."""

import pytest
from pytest_bdd import given, parsers, then, when

from discountify import Coupon, Discountify, DiscountifyError


@pytest.fixture
def context():
    """Shared test context for scenario state."""
    return {}


@pytest.fixture
def engine(context):
    """Engine under test; a step may install its own before first use."""
    return context.setdefault("engine", Discountify())


# --- Given -------------------------------------------------------------


@given(parsers.parse("an item with quantity {quantity:d} and price {price:g}"))
def given_item(engine, quantity, price):
    engine.set_items(engine.items + [{"quantity": quantity, "price": price}])


@given(parsers.parse("the global discount is {rate:g}%"))
def given_global_discount(engine, rate):
    engine.set_global_discount(rate)


@given(parsers.parse("the tax rate is {rate:g}%"))
def given_tax_rate(engine, rate):
    engine.set_global_tax_rate(rate)


@given(parsers.parse('a coupon "{code}" worth {discount:g}%'))
def given_coupon(engine, code, discount):
    engine.add_coupon(Coupon(code, discount))


@given(parsers.parse('a single-use coupon "{code}" worth {discount:g}%'))
def given_single_use_coupon(engine, code, discount):
    engine.add_coupon(Coupon(code, discount, single_use=True))


@given(parsers.parse('a coupon "{code}" worth {discount:g}% for user {user_id:d}'))
def given_restricted_coupon(engine, code, discount, user_id):
    engine.add_coupon(Coupon(code, discount, user_ids=[user_id]))


@given(parsers.parse('a coupon "{code}" worth {discount:g}% usable {limit:d} time'))
def given_limited_coupon(engine, code, discount, limit):
    engine.add_coupon(Coupon(code, discount, usage_limit=limit))


# --- When --------------------------------------------------------------


@when(parsers.parse('coupon "{code}" is applied'))
def when_coupon_applied(engine, context, code):
    context.setdefault("apply_results", []).append(engine.coupons.apply(code))


@when(parsers.parse('coupon "{code}" is applied by user {user_id:d}'))
def when_coupon_applied_by_user(engine, context, code, user_id):
    context.setdefault("apply_results", []).append(engine.coupons.apply(code, user_id))


@when("the applied coupons are removed")
def when_applied_coupons_removed(engine):
    engine.remove_applied_coupons()


@when("the total is calculated")
def when_total_calculated(engine, context):
    try:
        context["total"] = engine.total()
    except DiscountifyError as e:
        context["error"] = e


# --- Then --------------------------------------------------------------


@then(parsers.parse("the subtotal is {value:g}"))
def then_subtotal(engine, value):
    assert engine.subtotal() == pytest.approx(value)


@then(parsers.parse("the total is {value:g}"))
def then_total(engine, value):
    assert engine.total() == pytest.approx(value)


@then(parsers.parse("the total with discount is {value:g}"))
def then_total_with_discount(engine, value):
    assert engine.total_with_discount() == pytest.approx(value)


@then(parsers.parse("the total with taxes is {value:g}"))
def then_total_with_taxes(engine, value):
    assert engine.tax() == pytest.approx(value)


@then(parsers.parse("the discount rate is {value:g}"))
def then_discount_rate(engine, value):
    assert engine.discount_rate() == pytest.approx(value)


@then("the last coupon application is rejected")
def then_last_apply_rejected(context):
    assert context["apply_results"][-1] is False


@then("the last coupon application is accepted")
def then_last_apply_accepted(context):
    assert context["apply_results"][-1] is True


@then(parsers.parse('the calculation fails with "{message}"'))
def then_calculation_fails(context, message):
    assert "total" not in context
    assert str(context["error"]) == message
