# ----------------------------------
# Database Configuration
# ----------------------------------
# This module handles database connection and session management.
# It provides:
# - Database engine configuration
# - Session management
# - Database initialization

import os

from sqlmodel import SQLModel, create_engine, Session

import config


def _ensure_sqlite_directory(url: str) -> None:
    # sqlite:///relative/path.db -> make sure the parent directory exists
    if url.startswith("sqlite:///") and ":memory:" not in url:
        directory = os.path.dirname(url[len("sqlite:///"):])
        if directory:
            os.makedirs(directory, exist_ok=True)


_ensure_sqlite_directory(config.DATABASE_URL)

connect_args = {"check_same_thread": False} if config.DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(config.DATABASE_URL, echo=config.DATABASE_ECHO, connect_args=connect_args)


def create_db_and_tables():
    # Import models so their tables are registered on the metadata
    import models  # noqa: F401

    SQLModel.metadata.create_all(engine)


def get_session():
    """
    Create and return a new database session.
    Returns:
        SQLModel Session object for database operations
    """
    return Session(engine)


def session_dependency():
    """FastAPI dependency yielding a session that is closed after the request."""
    with Session(engine) as session:
        yield session
