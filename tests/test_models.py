"""Tests for condition and coupon records and the timestamp codec."""

from datetime import datetime, timezone

import pytest

from discountify.errors import InvalidTimestampError
from discountify.models import Condition, Coupon, coerce_coupon
from discountify.timestamps import coerce_datetime, format_timestamp, parse_timestamp


class TestTimestamps:
    """Tests for the RFC 3339 codec."""

    def test_parse_utc(self) -> None:
        assert parse_timestamp("2024-03-01T00:00:00Z") == datetime(2024, 3, 1, tzinfo=timezone.utc)

    def test_parse_offset_normalised_to_utc(self) -> None:
        assert parse_timestamp("2024-03-01T02:00:00+02:00") == datetime(2024, 3, 1, tzinfo=timezone.utc)

    def test_parse_invalid(self) -> None:
        with pytest.raises(InvalidTimestampError):
            parse_timestamp("not a date")

    def test_format(self) -> None:
        assert format_timestamp(datetime(2024, 3, 1, tzinfo=timezone.utc)) == "2024-03-01T00:00:00Z"

    def test_naive_datetime_taken_as_utc(self) -> None:
        assert coerce_datetime(datetime(2024, 3, 1)) == datetime(2024, 3, 1, tzinfo=timezone.utc)

    def test_unsupported_value(self) -> None:
        with pytest.raises(InvalidTimestampError):
            coerce_datetime(42)


class TestCondition:
    def test_callable_rule(self) -> None:
        condition = Condition("many", lambda items: len(items) > 1, 10)
        assert condition.evaluate([1, 2]) is True
        assert condition.evaluate([1]) is False

    def test_literal_rule(self) -> None:
        assert Condition("always", True, 5).evaluate([]) is True
        assert Condition("never", False, 5).evaluate([1]) is False


class TestCoupon:
    """Tests for the Coupon record."""

    def test_defaults(self) -> None:
        coupon = Coupon("WELCOME", 20)
        assert coupon.applied is False
        assert coupon.used_by == []
        assert coupon.is_restricted is False

    def test_string_dates_coerced(self) -> None:
        coupon = Coupon("WELCOME", 20, end_date="2024-03-08T00:00:00Z")
        assert coupon.end_date == datetime(2024, 3, 8, tzinfo=timezone.utc)

    def test_empty_user_list_restricts_everyone(self) -> None:
        coupon = Coupon("NOBODY", 20, user_ids=[])
        assert coupon.is_restricted is True
        assert coupon.allows(123) is False

    def test_allows_listed_user(self) -> None:
        coupon = Coupon("VIP", 20, user_ids=(123, 456))
        assert coupon.user_ids == [123, 456]
        assert coupon.allows(123) is True

    def test_copy_is_independent(self) -> None:
        coupon = Coupon("VIP", 20, user_ids=[1])
        clone = coupon.copy()
        clone.used_by.append(1)
        clone.user_ids.append(2)
        assert coupon.used_by == []
        assert coupon.user_ids == [1]

    def test_from_dict_accepts_record_and_attribute_keys(self) -> None:
        a = Coupon.from_dict({"code": "A", "discount": 5, "singleUse": True, "usageLimit": 3})
        b = Coupon.from_dict({"code": "A", "discount": 5, "single_use": True, "usage_limit": 3})
        assert a == b
        assert a.single_use is True
        assert a.usage_limit == 3

    def test_from_dict_keeps_unknown_keys(self) -> None:
        coupon = Coupon.from_dict({"code": "A", "discount": 5, "campaign": "spring"})
        assert coupon.extra == {"campaign": "spring"}
        assert coupon.to_record()["campaign"] == "spring"

    def test_from_dict_null_used_by(self) -> None:
        assert Coupon.from_dict({"code": "A", "discount": 5, "usedBy": None}).used_by == []

    def test_to_record_omits_unset_optionals(self) -> None:
        assert Coupon("A", 5).to_record() == {
            "code": "A",
            "discount": 5,
            "applied": False,
            "usedBy": [],
        }

    def test_record_round_trip(self) -> None:
        coupon = Coupon(
            "A",
            5,
            start_date=datetime(2024, 3, 1, 12, 30, 15, 250000, tzinfo=timezone.utc),
            end_date="2024-03-08T00:00:00Z",
            single_use=True,
            usage_limit=2,
            user_ids=[123, "guest"],
            applied=True,
            used_by=[123],
        )
        assert Coupon.from_dict(coupon.to_record()) == coupon

    def test_coerce_coupon_copies(self) -> None:
        coupon = Coupon("A", 5)
        assert coerce_coupon(coupon) is not coupon
        assert coerce_coupon({"code": "A", "discount": 5}) == coupon
