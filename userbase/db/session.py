from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from userbase.core.config import settings

SQLALCHEMY_DATABASE_URL = settings.database_url


def _engine_options(url: str) -> dict:
    if not url.startswith("sqlite"):
        return {"pool_pre_ping": True}
    options = {"connect_args": {"check_same_thread": False}}
    # An in-memory database only lives as long as its connection, so every
    # session has to share the one connection.
    if url in ("sqlite://", "sqlite:///:memory:"):
        options["poolclass"] = StaticPool
    return options


def _unicode_lower(value):
    return value.lower() if isinstance(value, str) else value


engine = create_engine(SQLALCHEMY_DATABASE_URL, **_engine_options(SQLALCHEMY_DATABASE_URL))

if engine.dialect.name == "sqlite":

    @event.listens_for(engine, "connect")
    def _register_sqlite_functions(dbapi_connection, connection_record):
        # SQLite's own lower() only folds ASCII; filters and uniqueness
        # checks compare lower(name) and need "Ä" == "ä" too.
        dbapi_connection.create_function("lower", 1, _unicode_lower, deterministic=True)


SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
