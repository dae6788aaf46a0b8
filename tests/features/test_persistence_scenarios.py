"""Persistence step definitions."""

from datetime import timedelta

from pytest_bdd import given, parsers, scenarios, then, when

from discountify import Coupon, CouponRegistry, Discountify, JsonFileCouponStore
from discountify.timestamps import now

scenarios("persistence.feature")


@given("a coupon state file in a temporary directory")
def given_state_file(context, tmp_path):
    context["state_path"] = tmp_path / "coupons.json"
    context["engine"] = Discountify(coupons=CouponRegistry(JsonFileCouponStore(context["state_path"])))


@given(parsers.parse('a coupon "{code}" worth {discount:g}% valid for {days:d} days'))
def given_dated_coupon(engine, code, discount, days):
    start = now()
    engine.add_coupon(Coupon(code, discount, start_date=start, end_date=start + timedelta(days=days)))


@when("the coupons are reloaded from the state file")
def when_reloaded(context):
    context["reloaded"] = CouponRegistry(JsonFileCouponStore(context["state_path"]))


@then("the reloaded coupons match the stored coupons")
def then_reloaded_match(engine, context):
    assert context["reloaded"].all() == engine.coupons.all()


@then(parsers.parse('the reloaded coupon "{code}" is applied'))
def then_reloaded_applied(context, code):
    coupon = context["reloaded"].get(code)
    assert coupon.applied is True
    assert coupon.used_by == [123]


@then(parsers.parse('the reloaded registry has no coupon "{code}"'))
def then_reloaded_missing(context, code):
    assert code not in context["reloaded"]
