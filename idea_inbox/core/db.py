from __future__ import annotations

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.pool import StaticPool


def _is_sqlite_memory(db_url: str) -> bool:
    return make_url(db_url).database in (None, "", ":memory:")


def make_engine(db_url: str) -> Engine:
    if db_url.startswith("sqlite"):
        if _is_sqlite_memory(db_url):
            # For in-memory SQLite (tests) we need a single shared connection across threads.
            # StaticPool makes the same connection reused for the whole process.
            return create_engine(
                db_url,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        return create_engine(db_url, connect_args={"check_same_thread": False}, pool_pre_ping=True)
    return create_engine(db_url, pool_pre_ping=True)
