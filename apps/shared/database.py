"""
Database configuration and session management

This module provides the basic SQLAlchemy setup for database connectivity.
NO models are defined here - this is just infrastructure.
"""

import os
from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import NullPool

# Get database URL from environment variable
# Production runs PostgreSQL: postgresql+psycopg2://user:pass@db:5432/blog_db
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./blog.db")

# Base class for ORM models
Base = declarative_base()


def create_db_engine(url: str = DATABASE_URL, echo: bool = False) -> Engine:
    """
    Create an engine for the given URL.

    SQLite connections are shared across FastAPI's worker threads, so the
    same-thread check is disabled there. Other backends use NullPool for
    better compatibility with containerized environments.
    """
    if url.startswith("sqlite"):
        sqlite_engine = create_engine(
            url,
            connect_args={"check_same_thread": False, "timeout": 15},
            echo=echo,
        )
        _use_immediate_transactions(sqlite_engine)
        return sqlite_engine
    return create_engine(url, poolclass=NullPool, echo=echo)


def _use_immediate_transactions(sqlite_engine: Engine) -> None:
    """
    Make every SQLite transaction take the write lock up front.

    pysqlite defers BEGIN until the first write, so two sessions that read
    and then write can deadlock on lock promotion and fail with "database is
    locked". BEGIN IMMEDIATE makes them queue on the busy timeout instead.
    """

    @event.listens_for(sqlite_engine, "connect")
    def disable_pysqlite_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(sqlite_engine, "begin")
    def begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def create_session_factory(bind: Engine) -> sessionmaker:
    """
    Session factory used by the stores.

    Objects stay readable after commit so they can be returned to callers
    once their session is closed.
    """
    return sessionmaker(bind=bind, autoflush=False, expire_on_commit=False)


engine = create_db_engine()


def check_db_connection(bind: Engine = None) -> bool:
    """
    Test database connectivity
    Returns True if connection successful, False otherwise
    """
    try:
        with (bind or engine).connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception:
        return False
