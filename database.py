"""
Database connection management.

One engine and one session factory are built at process start;
request handlers receive a session through the get_db dependency.
"""
import logging

from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker, Session

from config import Settings

logger = logging.getLogger(__name__)

DATABASE_URL = Settings.DATABASE_URL

_connect_args = {}
if DATABASE_URL.startswith("sqlite"):
    # FastAPI runs sync handlers in a threadpool
    _connect_args["check_same_thread"] = False

engine = create_engine(
    DATABASE_URL,
    connect_args=_connect_args,
    pool_pre_ping=True,
)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    expire_on_commit=False,
)

Base = declarative_base()


@event.listens_for(engine, "connect")
def _on_connect(dbapi_conn, connection_record):
    """Enable foreign keys on SQLite so ON DELETE CASCADE is honoured."""
    if DATABASE_URL.startswith("sqlite"):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()
    logger.debug("New database connection established")


def get_db():
    """
    Dependency for FastAPI to get a database session.
    The session is closed after the request; components commit explicitly.
    """
    db: Session = SessionLocal()
    try:
        yield db
    finally:
        db.close()
