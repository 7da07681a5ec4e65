import enum
from datetime import datetime, timezone

from sqlalchemy import Enum as SAEnum


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def str_enum(enum_cls: type[enum.Enum], length: int = 20) -> SAEnum:
    """Store a str Enum by value in a plain VARCHAR, no native DB enum type."""
    return SAEnum(
        enum_cls,
        native_enum=False,
        create_constraint=False,
        length=length,
        values_callable=lambda members: [m.value for m in members],
    )


def as_utc(ts: datetime) -> datetime:
    # sqlite hands back naive datetimes
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)
