# app/database.py
"""
Database connection, session management, and table creation.
Uses SQLAlchemy (SQLite by default, any SQLAlchemy URL works). All models are
auto-imported here so create_tables() creates every table in one call.
"""

from sqlalchemy import create_engine
from sqlalchemy.ext.declarative import declarative_base
from sqlalchemy.orm import sessionmaker
from app.config import settings


def make_engine(url: str):
    """Build an engine with pool options suited to the backend."""
    if url.startswith("sqlite"):
        # Request handlers and the scanner share connections across threads
        return create_engine(url, connect_args={"check_same_thread": False}, echo=False)
    return create_engine(
        url,
        pool_pre_ping=True,          # Auto-reconnect if DB connection drops
        pool_size=5,
        max_overflow=10,
        echo=False,                  # Set True to log all SQL queries (debug only)
    )


engine = make_engine(settings.DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def create_tables(bind=None):
    """
    Creates all DB tables on startup. Safe to call multiple times.
    Import all models here so SQLAlchemy knows about them.
    """
    from app.models.parking_record import ParkingRecordRow   # noqa
    from app.models.season_pass import SeasonPassRow         # noqa
    from app.models.otp_entry import OtpEntryRow             # noqa

    Base.metadata.create_all(bind=bind or engine)
