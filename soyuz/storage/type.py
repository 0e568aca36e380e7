import datetime
import enum

from sqlalchemy.engine import Dialect
from sqlalchemy.sql.type_api import TypeDecorator
from sqlalchemy.types import DateTime, Enum, String

from soyuz.model.id import ShortUUIDKey


class ShortUUIDKeyType(TypeDecorator[ShortUUIDKey]):
    """Stores only the 22 character key; the prefix is implied by the column."""

    impl = String
    cache_ok = True

    def __init__(self, key_type: type[ShortUUIDKey]):
        self.key_type = key_type
        super().__init__(22)  # length of shortuuid

    def process_bind_param(self, value: ShortUUIDKey | str | None, dialect: Dialect) -> str | None:
        if value is None:
            return value
        if not isinstance(value, ShortUUIDKey):
            value = self.key_type(value)
        return value.key

    def process_result_value(self, value: str | None, dialect: Dialect) -> ShortUUIDKey | None:
        if value is not None:
            return self.key_type(key=value)
        return value


class UTCDateTime(TypeDecorator[datetime.datetime]):
    """
    Timezone-aware datetimes in UTC. SQLite has no zone support, so values
    are stored naive and reattached to UTC on load.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime.datetime | None, dialect: Dialect) -> datetime.datetime | None:
        if value is None:
            return value
        if value.tzinfo is None:
            raise ValueError("naive datetime cannot be stored")
        value = value.astimezone(datetime.UTC)
        if dialect.name == "sqlite":
            return value.replace(tzinfo=None)
        return value

    def process_result_value(self, value: datetime.datetime | None, dialect: Dialect) -> datetime.datetime | None:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=datetime.UTC)
        return value


def value_enum(en: type[enum.Enum], name: str) -> Enum:
    """Persist enum members by value rather than by name."""
    return Enum(en, name=name, native_enum=False, length=32, values_callable=lambda e: [m.value for m in e])
