from __future__ import annotations

import typing as t

import pydantic as p

from .base import BaseSettings


class PostgresqlSettings(BaseSettings):
    driver: t.Literal["postgresql+psycopg"] = "postgresql+psycopg"
    host: p.IPvAnyAddress | str | None = None
    port: int = 5432
    database: str


class SqliteSettings(BaseSettings):
    """`database` is a file path, or `:memory:` for a process-local database"""

    driver: t.Literal["sqlite+pysqlite"] = "sqlite+pysqlite"
    database: str = ":memory:"

    @property
    def in_memory(self) -> bool:
        return self.database in ("", ":memory:")


DatabaseSettings = t.Annotated[PostgresqlSettings | SqliteSettings, p.Field(discriminator="driver")]

database_settings: p.TypeAdapter[PostgresqlSettings | SqliteSettings] = p.TypeAdapter(DatabaseSettings)


class PersistentSettings(BaseSettings):
    database: DatabaseSettings
    echo: bool = False


class StorageSettings(BaseSettings):
    persistent: PersistentSettings
