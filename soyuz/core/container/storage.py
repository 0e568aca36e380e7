from __future__ import annotations

import typing as t
from pathlib import Path

import alembic.config
import sqlalchemy
import sqlalchemy.event
import sqlalchemy.orm
import sqlalchemy.pool
from dependency_injector.containers import DeclarativeContainer
from dependency_injector.providers import Configuration, Container, Factory, Object, Provider, Resource, Singleton
from sqlalchemy.engine.url import URL as DSN

import soyuz.lib.json as json

from ..config.secrets import PostgresqlSecrets
from ..config.storage import database_settings, PostgresqlSettings, SqliteSettings, StorageSettings
from ..di import NotReady
from ..provider import LoggingProvider


def make_dsn(config: PostgresqlSettings | SqliteSettings, secrets: PostgresqlSecrets) -> DSN:
    match config:
        case SqliteSettings():
            return DSN.create(config.driver, database=None if config.in_memory else config.database)
        case PostgresqlSettings():
            return DSN.create(
                config.driver,
                database=config.database,
                username=secrets.username.get_secret_value() if secrets.username else None,
                password=secrets.password.get_secret_value() if secrets.password else None,
                port=config.port,
                host=str(config.host) if config.host else None,
            )


def provide_alembic_conf(
    migration_path: Path,
    config: PostgresqlSettings | SqliteSettings,
    secrets: PostgresqlSecrets,
    root: Path | NotReady,
) -> alembic.config.Config:
    if isinstance(root, NotReady):
        raise RuntimeError("root path is unavailable")

    escaped_str = make_dsn(config, secrets).render_as_string(hide_password=False).replace("%", "%%")

    ac = alembic.config.Config()
    ac.set_main_option("script_location", str(root / migration_path))
    ac.set_section_option("alembic", "sqlalchemy.url", escaped_str)
    ac.set_section_option("alembic", "file_template", "%%(year)d-%%(month).2d-%%(day).2d-%%(slug)s-%%(rev)s")
    return ac


def provide_engine(
    config: PostgresqlSettings | SqliteSettings, secrets: PostgresqlSecrets, echo: bool, logging: LoggingProvider
) -> sqlalchemy.Engine:
    logger = logging.get_logger()

    kwargs: dict[str, t.Any] = {}
    match config:
        case SqliteSettings() if config.in_memory:
            # one shared connection, otherwise every checkout sees an empty database
            kwargs.update(poolclass=sqlalchemy.pool.StaticPool, connect_args={"check_same_thread": False})
        case SqliteSettings():
            kwargs.update(connect_args={"check_same_thread": False})
        case PostgresqlSettings():
            kwargs.update(connect_args={"options": "-c timezone=utc"})

    engine = sqlalchemy.create_engine(
        make_dsn(config, secrets), echo=echo, json_serializer=json.dumps, json_deserializer=json.loads, **kwargs
    )
    if isinstance(config, SqliteSettings):
        sqlalchemy.event.listen(engine, "connect", configure_sqlite)
        sqlalchemy.event.listen(engine, "begin", begin_sqlite)

    logger.info(
        "initialized SQLAlchemy engine",
        extra={
            "driver": config.driver,
            "database": config.database,
        },
    )
    return engine


def provide_session(engine: sqlalchemy.Engine) -> sqlalchemy.orm.Session:
    """Create a new session. Caller is responsible for closing it (via di.Manage)."""
    maker = sqlalchemy.orm.sessionmaker(engine, expire_on_commit=False, autoflush=False)
    return maker(autobegin=False)


def configure_sqlite(dbapi_conn: t.Any, _: t.Any) -> None:
    # pysqlite's implicit transactions break SAVEPOINT, so BEGIN is emitted by begin_sqlite
    dbapi_conn.isolation_level = None
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def begin_sqlite(conn: sqlalchemy.Connection) -> None:
    conn.exec_driver_sql("BEGIN")


class PersistentContainer(DeclarativeContainer):
    config = Configuration()
    secrets = Configuration()
    logging: Provider[LoggingProvider] = Resource()
    root: Provider[Path | NotReady] = Object()

    alembic_config: Provider[alembic.config.Config] = Singleton(
        provide_alembic_conf,
        migration_path=Path("migrations/"),
        config=config.database.as_(database_settings.validate_python),
        secrets=secrets.postgresql.as_(PostgresqlSecrets),
        root=root,
    )
    engine: Provider[sqlalchemy.Engine] = Singleton(
        provide_engine,
        config=config.database.as_(database_settings.validate_python),
        secrets=secrets.postgresql.as_(PostgresqlSecrets),
        echo=config.echo.as_(bool),
        logging=logging,
    )
    session: Provider[sqlalchemy.orm.Session] = Factory(provide_session, engine=engine)


class StorageContainer(DeclarativeContainer):
    config: Provider[StorageSettings] = Configuration(strict=True)
    secrets: Provider[StorageSettings] = Configuration(strict=True)
    logging: Provider[LoggingProvider] = Resource()
    root: Provider[Path | NotReady] = Object()

    persistent: Provider[PersistentContainer] = Container(
        PersistentContainer, config=config.persistent, secrets=secrets, logging=logging, root=root
    )
