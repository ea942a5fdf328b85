"""Database engine and session factory for the feedback store.

The matching engine itself never touches the database; only the feedback
log and the learned-alias table are persisted.
"""

from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from .models.base import Base


def build_engine(database_url: str, echo: bool = False) -> Engine:
    """Create an engine for the given URL.

    SQLite URLs get check_same_thread disabled so the feedback store can be
    written from worker threads; in-memory SQLite additionally shares a single
    connection, otherwise every connection would see its own empty database.

    Args:
        database_url: SQLAlchemy database URL
        echo: Log SQL statements

    Returns:
        Engine: Configured SQLAlchemy engine
    """
    engine_kwargs = {
        "pool_pre_ping": True,  # Verify connections before using
        "echo": echo,
    }

    if database_url.startswith("sqlite"):
        engine_kwargs["connect_args"] = {"check_same_thread": False}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            engine_kwargs["poolclass"] = StaticPool
    else:
        engine_kwargs["pool_size"] = 5
        engine_kwargs["max_overflow"] = 10

    return create_engine(database_url, **engine_kwargs)


def init_db(engine: Engine) -> None:
    """Create all feedback tables if they do not exist yet."""
    # Register models with Base.metadata before create_all
    from .feedback import models  # noqa: F401

    Base.metadata.create_all(bind=engine)


def build_session_factory(
    database_url: Optional[str] = None,
    engine: Optional[Engine] = None,
) -> sessionmaker:
    """Create a session factory bound to an initialized database.

    Args:
        database_url: Database URL (ignored when engine is given)
        engine: Pre-built engine

    Returns:
        sessionmaker: Session factory with tables created
    """
    if engine is None:
        if database_url is None:
            raise ValueError("database_url or engine is required")
        engine = build_engine(database_url)

    init_db(engine)

    return sessionmaker(
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        bind=engine,
    )


@contextmanager
def session_scope(session_factory: sessionmaker) -> Generator[Session, None, None]:
    """Context manager for database sessions.

    Usage:
        with session_scope(factory) as session:
            session.query(FeedbackEvent).all()

    Automatically commits on success, rolls back on exception.
    """
    session = session_factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
