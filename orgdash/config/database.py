"""Database engine and session factory for persisted UI state"""

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from orgdash.config.settings import settings


def create_state_engine(url: str | None = None):
    """
    Create an engine for the UI state database

    SQLite URLs get ``check_same_thread`` disabled so the session can be
    used from the event loop thread that did not create the connection.
    """
    url = url or settings.STATE_DATABASE_URL
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, connect_args=connect_args, future=True)


engine = create_state_engine()
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def init_db(bind=None) -> None:
    """Create the UI state tables if they do not exist"""
    # Register models on Base.metadata before create_all
    from orgdash.models import ui_state  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
