import math
from datetime import datetime, timezone
from typing import Any

# Epoch values above this are milliseconds; anything at or below is seconds.
SECONDS_MS_BOUNDARY = 10_000_000_000

REFERENCE_TZ = timezone.utc


def utc_now() -> datetime:
    return datetime.now(REFERENCE_TZ)


def epoch_to_millis(value: Any) -> int | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value) or value == 0:
        return None
    if value > SECONDS_MS_BOUNDARY:
        return int(value)
    return int(round(value * 1000))


def epoch_to_datetime(value: Any) -> datetime | None:
    millis = epoch_to_millis(value)
    if millis is None:
        return None
    try:
        return datetime.fromtimestamp(millis / 1000, tz=REFERENCE_TZ)
    except (OverflowError, OSError, ValueError):
        return None


def day_key(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=REFERENCE_TZ)
    return value.astimezone(REFERENCE_TZ).strftime("%Y-%m-%d")


def format_duration(seconds: float) -> str:
    if seconds <= 0:
        return "0 ms"
    if seconds < 1:
        return f"{seconds * 1000:.1f} ms"
    if seconds < 60:
        return f"{seconds:.2f} s"
    return f"{seconds / 60:.2f} min"
