from datetime import UTC, datetime
from functools import lru_cache

from sqlalchemy import Engine, MetaData, create_engine, event
from sqlalchemy.orm import DeclarativeBase, sessionmaker
from sqlalchemy.pool import StaticPool

from shared.config import Settings, get_settings

# Deterministic constraint names so migrations and error messages stay stable
_NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


def utcnow() -> datetime:
    return datetime.now(UTC)


class Base(DeclarativeBase):
    metadata = MetaData(naming_convention=_NAMING_CONVENTION)


def create_db_engine(settings: Settings | None = None) -> Engine:
    """Build the engine for the configured database."""
    settings = settings or get_settings()

    if settings.is_sqlite:
        kwargs = {"connect_args": {"check_same_thread": False}}
        if settings.database_url in ("sqlite://", "sqlite:///:memory:"):
            # One shared connection, otherwise every session sees its own empty database
            kwargs["poolclass"] = StaticPool
        engine = create_engine(settings.database_url, echo=settings.echo_sql, **kwargs)
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine

    return create_engine(
        settings.database_url,
        echo=settings.echo_sql,
        pool_pre_ping=True,
        pool_size=settings.pool_size,
        max_overflow=settings.max_overflow,
    )


def _enable_sqlite_foreign_keys(dbapi_connection, _connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def _load_models() -> None:
    """Import every model module so its tables are registered on ``Base.metadata``."""
    import inventory.stock.stock  # noqa: F401
    import ordering.cart.cart  # noqa: F401
    import ordering.order.order  # noqa: F401


def setup_db(engine: Engine) -> None:
    """Setup database schema"""
    _load_models()
    Base.metadata.create_all(engine)


def drop_db(engine: Engine) -> None:
    """Drop database schema"""
    _load_models()
    Base.metadata.drop_all(engine)


def truncate_db(engine: Engine) -> None:
    """Delete every row, children first. Used between tests."""
    _load_models()
    with engine.begin() as connection:
        for table in reversed(Base.metadata.sorted_tables):
            connection.execute(table.delete())


@lru_cache
def get_session_factory() -> sessionmaker:
    """Process-wide session factory for the configured database."""
    return session_factory(create_db_engine())
