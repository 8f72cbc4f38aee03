import datetime


def utcnow() -> datetime.datetime:
    """Naive UTC now; every DateTime column in the schema stores naive UTC."""
    return datetime.datetime.now(datetime.timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime.datetime | None) -> datetime.datetime | None:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(datetime.timezone.utc).replace(tzinfo=None)


def isoformat(value: datetime.datetime | None) -> str | None:
    return value.isoformat() if value else None
