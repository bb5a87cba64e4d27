"""Shared fixtures for the squidbet test suite."""

import os
import random
import tempfile

# 必须在导入 squidbet 之前设置，保证测试不依赖外部服务
os.environ["LEDGER_MIRROR_MODE"] = "none"
os.environ["NARRATOR_API_KEY"] = ""
os.environ["DATABASE_URL"] = "sqlite:///" + os.path.join(tempfile.gettempdir(), "squidbet_test.db")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from squidbet.core.database import Base
from squidbet.data.contestants import initialize_contestants
from squidbet.models.ledger_game import LedgerGame  # noqa: F401
from squidbet.models.ledger_bet import LedgerBet  # noqa: F401
from squidbet.models.ledger_narrative import LedgerNarrative  # noqa: F401

from helpers import RecordingMirror


@pytest.fixture
def rng():
    """Seeded random source."""
    return random.Random(42)


@pytest.fixture
def contestants():
    """Fresh default roster of ten contestants."""
    return initialize_contestants()


@pytest.fixture
def session_factory():
    """In-memory SQLite session factory with the ledger tables created."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    engine.dispose()


@pytest.fixture
def recording_mirror():
    return RecordingMirror()
