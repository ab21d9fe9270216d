# petshop/db/session.py

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import DeclarativeBase
from petshop.core.config import settings


def _sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite ships with foreign key enforcement off, per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(url: str, **kwargs):
    """Async engine for `url`. SQLite writers wait on each other instead of failing fast."""
    sqlite = make_url(url).get_backend_name() == "sqlite"
    if sqlite:
        kwargs.setdefault("connect_args", {"timeout": 30})
    else:
        kwargs.setdefault("pool_pre_ping", True)  # avoids stale connection errors
    engine = create_async_engine(url, **kwargs)
    if sqlite:
        event.listen(engine.sync_engine, "connect", _sqlite_foreign_keys)
    return engine


# One engine per process
engine = build_engine(settings.async_db_uri)

# Short-lived sessions per request; objects stay readable after commit
AsyncSessionLocal = async_sessionmaker(
    engine,
    expire_on_commit=False,
    class_=AsyncSession,
)


# All models inherit from this
class Base(DeclarativeBase):
    pass
