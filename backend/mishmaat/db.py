"""Database engine, session factory and the request-scoped session dependency."""
import os
from typing import Generator

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker


class Base(DeclarativeBase):
    pass


DATABASE_URL = os.getenv(
    "DATABASE_URL",
    "postgresql+psycopg://mishmaat:devpass@db:5432/mishmaat",
)


def make_engine(url: str, **kwargs) -> Engine:
    if url.startswith("sqlite"):
        # sync routes and the remote store run in the threadpool
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    else:
        kwargs.setdefault("pool_pre_ping", True)
    return create_engine(url, future=True, **kwargs)


def make_session_factory(bind: Engine) -> sessionmaker:
    # objects stay readable after commit; routers return them as responses
    return sessionmaker(bind=bind, autoflush=False, expire_on_commit=False, future=True)


engine = make_engine(DATABASE_URL)
SessionLocal = make_session_factory(engine)


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def healthcheck() -> dict:
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
    return {"status": "ok"}
