"""Shared fixtures: in-memory record store, fake dispatcher, fixed clock."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

# Keep tests off the real database and log file
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_FILE", "")

import pytest
from datetime import datetime
from unittest.mock import MagicMock, AsyncMock
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from app.database import create_tables
from app.services.notification_service import DispatchResult
from app.services.record_store import RecordStore

NOW = datetime(2026, 10, 17, 9, 0, 0)


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    create_tables(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def store(session_factory):
    return RecordStore(session_factory)


@pytest.fixture
def dispatcher():
    d = MagicMock()
    d.send = AsyncMock(return_value=DispatchResult(ok=True, delivered=True))
    d.sms_enabled = False
    d.email_enabled = False
    return d


@pytest.fixture
def clock():
    return lambda: NOW
