from sqlmodel import SQLModel, create_engine, Session
from sqlalchemy.engine import Engine

from .config import get_settings


def build_engine(db_url: str, echo: bool = False) -> Engine:
    # Choose engine options based on database scheme
    engine_kwargs = {}

    if db_url.startswith("sqlite"):
        # SQLite specific connect args
        engine_kwargs.update({
            "connect_args": {"check_same_thread": False}
        })
    else:
        # Better resiliency for managed Postgres
        engine_kwargs.update({
            "pool_pre_ping": True,
            "pool_recycle": 300,
            "pool_size": 5,
            "max_overflow": 10,
        })

    return create_engine(db_url, echo=echo, **engine_kwargs)


_engine: Engine | None = None


def get_engine() -> Engine:
    global _engine
    if _engine is None:
        settings = get_settings()
        _engine = build_engine(settings.DATABASE_URL, echo=settings.DEBUG)
    return _engine


def create_db_and_tables(engine: Engine | None = None):
    # table classes must be imported before create_all
    from .db import models  # noqa: F401
    SQLModel.metadata.create_all(engine or get_engine())


def get_session():
    with Session(get_engine()) as session:
        yield session
