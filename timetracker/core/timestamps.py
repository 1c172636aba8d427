from datetime import datetime, timezone


def utcnow() -> datetime:
    """Current time as naive UTC, the storage convention for every timestamp column."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_utc_naive(value: datetime) -> datetime:
    # naive input is already UTC
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def format_timestamp(value: datetime) -> str:
    return to_utc_naive(value).isoformat(timespec="milliseconds") + "Z"
