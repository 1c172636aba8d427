from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, URL, make_url
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

Base = declarative_base()


def _is_sqlite_memory(url: URL) -> bool:
    return url.database in (None, "", ":memory:")


def create_db_engine(database_url: str) -> Engine:
    url = make_url(database_url)

    if not url.drivername.startswith("sqlite"):
        return create_engine(url, pool_pre_ping=True)

    # Handlers run in FastAPI's threadpool, so the connection crosses threads.
    connect_args = {"check_same_thread": False}
    if _is_sqlite_memory(url):
        return create_engine(url, connect_args=connect_args, poolclass=StaticPool)
    return create_engine(url, connect_args=connect_args)


def ensure_sqlite_directory(engine: Engine) -> None:
    url = engine.url
    if not url.drivername.startswith("sqlite") or _is_sqlite_memory(url):
        return
    Path(url.database).expanduser().parent.mkdir(parents=True, exist_ok=True)


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(
        bind=engine,
        autoflush=False,
        expire_on_commit=False,
    )
