"""SQLAlchemy engine factory."""

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url


def create_sql_engine(database_url: str, echo: bool = False) -> Engine:
    """Create the engine the observation source reads from.

    Connection pool sizing is left to the dialect defaults; SQLite uses a
    single-connection pool that rejects the sizing arguments.
    """
    url = make_url(database_url)
    options = {"echo": echo, "pool_pre_ping": True}
    if url.get_backend_name() != "sqlite":
        options["pool_recycle"] = 1800
    return create_engine(url, **options)
