from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

Base = declarative_base()


def make_engine(database_url: str) -> Engine:
    """Create an engine; in-memory SQLite shares one connection across threads."""
    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in database_url or database_url == "sqlite://":
            kwargs["poolclass"] = StaticPool
        return create_engine(database_url, **kwargs)
    return create_engine(database_url, pool_pre_ping=True)


def init_db(bind: Engine) -> None:
    """Create tables for all registered models."""
    import tgrouter.models  # noqa: F401

    Base.metadata.create_all(bind=bind)


def make_session_factory(engine: Engine) -> sessionmaker:
    """Session factory for the SQL session store; one short-lived session per operation."""
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)
