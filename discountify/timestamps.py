"""RFC 3339 timestamp codec for coupon dates."""

from datetime import datetime, timezone

from google.protobuf.timestamp_pb2 import Timestamp

from .errors import InvalidTimestampError


def now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Return an aware UTC datetime; naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_timestamp(rfc3339: str) -> datetime:
    """Parse an RFC3339 timestamp string into an aware UTC datetime."""
    try:
        ts = Timestamp()
        ts.FromJsonString(rfc3339)
    except ValueError as e:
        raise InvalidTimestampError(str(e)) from e
    return ts.ToDatetime(tzinfo=timezone.utc)


def format_timestamp(value: datetime) -> str:
    """Format a datetime as an RFC3339 UTC string."""
    ts = Timestamp()
    ts.FromDatetime(ensure_utc(value))
    return ts.ToJsonString()


def coerce_datetime(value) -> datetime:
    """Accept a datetime or an RFC3339 string."""
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, str):
        return parse_timestamp(value)
    raise InvalidTimestampError(f"unsupported value {value!r}")
