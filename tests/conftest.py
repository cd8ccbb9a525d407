import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

import triage_desk.database
from triage_desk.api import create_app
from triage_desk.config import reset_settings
from triage_desk.database import get_db, load_sample_data

REGISTER_SECRET = "test-register-secret"


@pytest.fixture(autouse=True)
def reset_db(monkeypatch):
    """Fresh database, settings and sample data for every test."""
    monkeypatch.setenv("TRIAGE_DESK_REGISTER_PATIENT_SECRET", REGISTER_SECRET)
    monkeypatch.delenv("TRIAGE_DESK_LOG_LEVEL", raising=False)
    reset_settings()

    triage_desk.database._db = None
    get_db().clear()
    load_sample_data()
    yield
    reset_settings()


@pytest_asyncio.fixture
async def client():
    """
    Test fixture that creates an async client for the API.
    """
    app = create_app()
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as async_client:
        yield async_client
