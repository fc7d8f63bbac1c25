import os
from dotenv import load_dotenv
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, declarative_base

# DATABASE_URL may come from .env
load_dotenv()

Base = declarative_base()

# Created on first use so importing the app never touches the database
_engine = None
_SessionLocal = None
_tables_initialized = False


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def get_engine():
    """Engine for DATABASE_URL; SQLite connections get foreign keys switched on."""
    global _engine
    if _engine is not None:
        return _engine

    url = os.getenv("DATABASE_URL") or "sqlite:///./dev.db"

    # SQLAlchemy only accepts the postgresql:// scheme
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql://", 1)

    # TestClient and the threadpool share SQLite connections across threads
    is_sqlite = url.startswith("sqlite")
    connect_args = {"check_same_thread": False} if is_sqlite else {}

    _engine = create_engine(url, connect_args=connect_args)
    if is_sqlite:
        event.listen(_engine, "connect", _enable_sqlite_foreign_keys)
    return _engine


def get_session_local():
    """Session factory bound to the shared engine."""
    global _SessionLocal
    if _SessionLocal is not None:
        return _SessionLocal

    _SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=get_engine())
    return _SessionLocal


def ensure_tables():
    """Create the users, qr_links and scans tables once per process."""
    global _tables_initialized
    if not _tables_initialized:
        # models must be imported so their tables are registered on Base
        from . import models  # noqa: F401
        Base.metadata.create_all(bind=get_engine())
        _tables_initialized = True


def get_db():
    """Request-scoped session, closed when the response is sent."""
    SessionLocal = get_session_local()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
