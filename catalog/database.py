import logging
from typing import Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from catalog.book import Base
from catalog.config import settings

logger = logging.getLogger(__name__)


def create_db_engine(database_url: Optional[str] = None, echo: Optional[bool] = None) -> Engine:
    """Create the SQLAlchemy engine for the given URL (defaults to settings)."""
    url = database_url or settings.database_url
    kwargs: dict = {"echo": settings.database_echo if echo is None else echo}

    if url.startswith("sqlite"):
        # FastAPI runs sync endpoints in a thread pool
        kwargs["connect_args"] = {"check_same_thread": False}
        if url in ("sqlite://", "sqlite:///:memory:"):
            # In-memory databases only exist on a single connection
            kwargs["poolclass"] = StaticPool

    engine = create_engine(url, **kwargs)

    if url.startswith("sqlite"):
        @event.listens_for(engine, "connect")
        def _set_sqlite_pragmas(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA journal_mode=WAL;")
            cursor.execute("PRAGMA synchronous=NORMAL;")
            cursor.close()

    return engine


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, expire_on_commit=False)


def create_tables(engine: Engine) -> None:
    """Create the books table if it doesn't exist."""
    Base.metadata.create_all(engine)
    logger.debug(f"Tables ensured on {engine.url!r}")


def initialize_database(database_url: Optional[str] = None) -> Engine:
    """Create the engine and make sure the schema exists."""
    engine = create_db_engine(database_url)
    create_tables(engine)
    return engine
