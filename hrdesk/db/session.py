from __future__ import annotations

from collections.abc import Generator, Iterator
from contextlib import contextmanager

from fastapi import Request
from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from hrdesk.settings import get_settings


def make_engine(url: str) -> Engine:
    # SQLite connections are shared across the threadpool that runs sync endpoints.
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, connect_args=connect_args)


engine = make_engine(get_settings().resolved_db_url())
SessionLocal = sessionmaker(bind=engine, autoflush=False)


def get_db(request: Request) -> Generator[Session, None, None]:
    """
    Tenant-scoped session for route handlers.

    `enforce_security` has already put the caller on `request.state`; its scope
    goes into `Session.info["tenant"]`, so `db.scalars(select(Attendance))` only
    ever sees the caller's rows (see `hrdesk/db/filters.py`). Without a caller the
    session has no scope and any tenant-owned query raises.
    """

    caller = getattr(request.state, "caller", None)
    with SessionLocal() as db:
        if caller is not None:
            db.info["tenant"] = caller.scope
        yield db


def get_system_db() -> Generator[Session, None, None]:
    """Unscoped session for identity resolution and provisioning only."""
    with system_session() as db:
        yield db


@contextmanager
def system_session(factory: sessionmaker = SessionLocal) -> Iterator[Session]:
    with factory() as db:
        db.info["system"] = True
        yield db
