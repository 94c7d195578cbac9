"""
Database connection and session management module.

Uses SQLAlchemy for ORM operations. Supports PostgreSQL (production)
and SQLite (local development fallback).
Provides session factory and dependency injection for FastAPI routes.
"""

import os
from dotenv import load_dotenv
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, DeclarativeBase

# Load a local .env before reading any setting
load_dotenv()

# Read database URL from environment
# Fallback to SQLite for local development when PostgreSQL is not available
DATABASE_URL = os.getenv(
    "DATABASE_URL",
    "sqlite:///./madrassati.db"
)

# Hosted providers still hand out the legacy "postgres://" scheme
if DATABASE_URL.startswith("postgres://"):
    DATABASE_URL = DATABASE_URL.replace("postgres://", "postgresql://", 1)

DEFAULT_SCHOOL_NAME = os.getenv("DEFAULT_SCHOOL_NAME", "Madrassati")


def build_engine(url: str):
    """
    Create a SQLAlchemy engine with settings suited to the database type.

    SQLite does not support pool_size, max_overflow, or pool_pre_ping.
    """
    engine_kwargs = {"echo": False}

    if url.startswith("postgresql"):
        engine_kwargs.update({
            "pool_size": 10,
            "max_overflow": 20,
            "pool_pre_ping": True,
        })
    elif url.startswith("sqlite"):
        # SQLite needs check_same_thread=False for FastAPI (multi-threaded)
        engine_kwargs["connect_args"] = {"check_same_thread": False}

    new_engine = create_engine(url, **engine_kwargs)

    # Enable WAL mode and foreign keys for SQLite (better concurrency)
    if url.startswith("sqlite"):
        @event.listens_for(new_engine, "connect")
        def set_sqlite_pragma(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return new_engine


engine = build_engine(DATABASE_URL)

# Session factory - creates new database sessions
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models."""
    pass


def get_db():
    """
    FastAPI dependency that provides a database session.

    Yields a session and ensures proper cleanup after request completion.
    Connections are returned to the pool even if the request raises.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables(bind=None):
    """
    Create all database tables directly (used for SQLite local dev).
    For PostgreSQL, use Alembic migrations instead.
    """
    Base.metadata.create_all(bind=bind or engine)


def ensure_default_school(session_factory=None):
    """Create the school that roster imports attach students to, if missing."""
    from portal.models.school import School

    db = (session_factory or SessionLocal)()
    try:
        if db.get(School, 1) is None:
            db.add(School(id=1, name=DEFAULT_SCHOOL_NAME))
            db.commit()
    finally:
        db.close()
