"""ISO-8601 timestamp helpers.

Upstream timestamps are ISO strings ("2024-01-01", "2024-01-01T00:00:00.000Z").
Naive values are interpreted as UTC so date-only strings land on midnight UTC.
"""

from datetime import datetime, timedelta, timezone

MS_PER_DAY = 86_400_000

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 string into an aware UTC datetime.

    Raises:
        ValueError: If the value is not a parseable ISO-8601 string.
    """
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Invalid timestamp: {value!r}")
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def to_epoch_ms(value: str) -> int:
    """Return Unix milliseconds for an ISO-8601 string."""
    return (parse_timestamp(value) - _EPOCH) // timedelta(milliseconds=1)


def from_epoch_ms(ms: int) -> str:
    """Format Unix milliseconds as an ISO string with millisecond precision and Z suffix."""
    dt = _EPOCH + timedelta(milliseconds=ms)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def add_days(value: str, days: int) -> str:
    """Shift an ISO timestamp by whole days, returning the ISO string form."""
    return from_epoch_ms(to_epoch_ms(value) + days * MS_PER_DAY)


def utc_now_iso() -> str:
    """Current time as an ISO string with Z suffix."""
    now = datetime.now(timezone.utc)
    return from_epoch_ms((now - _EPOCH) // timedelta(milliseconds=1))


