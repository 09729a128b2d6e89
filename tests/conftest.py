import os

# In-memory database and no Redis during tests; must be set before app imports
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CACHE_ENABLED"] = "false"
os.environ["DB_LOG_SLOW_QUERIES"] = "false"
os.environ["DRIVE_TIME_DEBOUNCE_SECONDS"] = "0"

from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from appliance_jobs import models, models_google_calendar  # noqa: F401 - register tables
from appliance_jobs.database import Base, SessionLocal, engine
from appliance_jobs.services import drive_time_service


@pytest.fixture(scope="session", autouse=True)
def _create_test_db():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def _clean_state():
    yield
    with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())
    drive_time_service._lookups.clear()


@pytest.fixture
def anyio_backend():
    # asyncio only, no Trio
    return "asyncio"


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    from appliance_jobs.main import app

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def scheduled():
    """Arrival time used across timing tests"""
    return datetime(2030, 6, 1, 14, 0)
