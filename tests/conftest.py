import asyncio
import os
import tempfile

_db_dir = tempfile.mkdtemp(prefix="second-brain-tests-")
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///" + os.path.join(_db_dir, "test.db")
os.environ["JWT_SECRET"] = "test-secret"
os.environ["BCRYPT_ROUNDS"] = "4"

import pytest
from fastapi.testclient import TestClient
from sqlmodel import SQLModel

from database import engine
from main import app
from services import email_service
from services.otp_service import otp_store


async def reset_database():
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def sent_codes(monkeypatch):
    codes = {}

    async def fake_send(email, otp):
        codes[email] = otp

    monkeypatch.setattr(email_service, "send_otp_email", fake_send)
    return codes


@pytest.fixture
def client(sent_codes):
    with TestClient(app) as test_client:
        yield test_client
    otp_store.clear()
    asyncio.run(reset_database())


@pytest.fixture
def run_db():
    """Run a coroutine against freshly created tables, outside the app."""
    from database import create_db_and_tables

    def runner(scenario):
        async def wrapped():
            await create_db_and_tables()
            try:
                return await scenario()
            finally:
                await reset_database()
        return asyncio.run(wrapped())

    return runner


@pytest.fixture
def signup(client, sent_codes):
    def _signup(email="alice@example.com", username="alice", password="s3cret-pass"):
        response = client.post("/api/auth/request-otp", json={"email": email})
        assert response.status_code == 200, response.text
        response = client.post("/api/auth/signup", json={
            "username": username, "email": email, "password": password, "otp": sent_codes[email],
        })
        assert response.status_code == 201, response.text
        body = response.json()
        return {"Authorization": f"Bearer {body['token']}"}, body["user"]
    return _signup
