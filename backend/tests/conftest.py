import datetime as dt

import pytest

from tutorsync.core.config import Settings
from tutorsync.services.coordination import CoordinationEngine
from tutorsync.services.normalizer import AvailabilityNormalizer
from tutorsync.services.session_store import InMemorySessionStore, SessionCoordinator

# Friday morning; 2025-06-30 is the following Monday.
FIXED_NOW = dt.datetime(2025, 6, 27, 9, 0)


@pytest.fixture()
def now():
    return FIXED_NOW


@pytest.fixture()
def settings():
    # _env_file=None keeps a developer's backend/.env out of the test run.
    return Settings(_env_file=None)


@pytest.fixture()
def normalizer(settings):
    return AvailabilityNormalizer(settings=settings, clock=lambda: FIXED_NOW)


@pytest.fixture()
def engine(settings, normalizer):
    return CoordinationEngine(settings=settings, clock=lambda: FIXED_NOW, normalizer=normalizer)


@pytest.fixture()
def store():
    session_store = InMemorySessionStore()
    yield session_store
    session_store.clear()


@pytest.fixture()
def coordinator(store, engine):
    return SessionCoordinator(store=store, engine=engine)
