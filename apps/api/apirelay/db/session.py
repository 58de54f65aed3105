from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from apirelay.core.config import Settings


def create_db_engine(settings: Settings) -> Engine:
    """Build an engine for the configured database URL."""
    engine_args: dict = {}
    if settings.database_url.startswith("sqlite"):
        engine_args["connect_args"] = {"check_same_thread": False}
        if settings.database_url in ("sqlite://", "sqlite:///:memory:"):
            # one shared connection, otherwise every checkout sees an empty database
            engine_args["poolclass"] = StaticPool
    else:
        engine_args["pool_pre_ping"] = True

    return create_engine(settings.database_url, echo=settings.database_echo, future=True, **engine_args)


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


def init_db(engine: Engine) -> None:
    """Create all tables that do not exist yet."""
    from apirelay import models  # noqa: F401  # register tables on the metadata
    from apirelay.db.base import metadata

    metadata.create_all(engine)
