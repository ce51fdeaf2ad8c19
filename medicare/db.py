from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from fastapi import Request
from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker


class Base(DeclarativeBase):
    """ORM base for every model."""
    pass


def build_engine(database_url: str, echo: bool = False) -> Engine:
    """
    Pooled engine shared by every request.
    The pool replaces a single process-wide connection: each request checks
    out its own connection and gives it back when the session closes.
    """
    connect_args = {}
    if database_url.startswith("sqlite"):
        # FastAPI runs sync handlers in a threadpool
        connect_args["check_same_thread"] = False

    return create_engine(
        database_url,
        echo=echo,              # True to see the queries
        future=True,
        pool_pre_ping=True,
        connect_args=connect_args,
    )


def build_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(
        bind=engine,
        autoflush=False,
        autocommit=False,
        future=True,
        expire_on_commit=False,
    )


@contextmanager
def db_session(factory: sessionmaker[Session]) -> Iterator[Session]:
    """
    Context manager handling the session lifecycle:
    - commit if everything went fine
    - rollback on exceptions
    - always close
    """
    session: Session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def get_session(request: Request) -> Iterator[Session]:
    """FastAPI dependency: one session per request, from the app's pool."""
    with db_session(request.app.state.session_factory) as session:
        yield session


def init_db(engine: Engine) -> None:
    """Create the tables if they do not exist."""
    # models must be imported so that their tables are registered on Base
    from medicare import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
