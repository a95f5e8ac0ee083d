from datetime import datetime, timezone


def as_utc(value: datetime | None) -> datetime | None:
    """Normalize to UTC; naive values are taken to already be UTC."""
    if value is None:
        return value
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
