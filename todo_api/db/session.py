import logging
from typing import Generator

from fastapi import Request
from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from todo_api.core.config import Settings
from todo_api.core.permissions import seed_catalog

# Registers models and the ownership triggers on SQLModel.metadata
from todo_api import models  # noqa: F401
from todo_api.db import guards  # noqa: F401

logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite ignores ON DELETE CASCADE unless this is set per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _database_url(settings: Settings, tunnel=None) -> str:
    if tunnel is not None:
        return (
            f"mysql+pymysql://{settings.DB_USER}:{settings.DB_PASSWORD}"
            f"@127.0.0.1:{tunnel.local_bind_port}/{settings.DB_NAME}"
        )
    return settings.DATABASE_URL or "sqlite:///./sqlite.db"


def open_ssh_tunnel(settings: Settings):
    """Open an SSH tunnel to the remote MySQL host (e.g., PythonAnywhere)."""
    from sshtunnel import SSHTunnelForwarder

    tunnel = SSHTunnelForwarder(
        (settings.SSH_HOST, 22),
        ssh_username=settings.SSH_USER,
        ssh_password=settings.SSH_PASSWORD,
        remote_bind_address=(settings.DB_HOST, 3306),
        set_keepalive=60  # Send keepalive packets every 60 seconds
    )
    tunnel.start()
    return tunnel


def create_db_engine(settings: Settings, tunnel=None) -> Engine:
    """
    Build the engine (connection pool) the application is served from.

    With a tunnel, the engine points at the tunnel's local port; otherwise
    DATABASE_URL is used, falling back to a local SQLite file.
    """
    db_url = _database_url(settings, tunnel)

    if db_url.startswith("sqlite"):
        # SQLite fix for multithreading
        engine = create_engine(db_url, connect_args={"check_same_thread": False})
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    else:
        engine = create_engine(db_url, pool_pre_ping=True)

    logger.info("Database engine created for %s", engine.url.render_as_string(hide_password=True))
    return engine


def init_db(engine: Engine) -> None:
    """Create missing tables (and their triggers) and seed the role catalog."""
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        seed_catalog(session)
    logger.info("Database schema ready")


def get_db(request: Request) -> Generator[Session, None, None]:
    """
    Yield a session bound to the application's engine.

    Leaving the block without an explicit commit() rolls the transaction back,
    on every exit path including exceptions and client disconnects.
    """
    with Session(request.app.state.engine) as session:
        yield session
