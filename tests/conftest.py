"""Shared fixtures for the SyncRelay test suite.

Environment is set before any `syncrelay` import so the cached settings,
the module-level engine and the app all see the test values.
"""

from __future__ import annotations

import base64
import json
import os
from datetime import datetime, timezone
from typing import Any, Callable

TEST_WEBHOOK_SECRET = "whsec_" + base64.b64encode(b"syncrelay-test-webhook-secret-01").decode()
TEST_JWT_KEY = "syncrelay-test-session-key"

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CLERK_WEBHOOK_SECRET"] = TEST_WEBHOOK_SECRET
os.environ["CLERK_SECRET_KEY"] = "sk_test_syncrelay"
os.environ["CLERK_JWT_KEY"] = TEST_JWT_KEY
os.environ["CLERK_JWT_ALGORITHM"] = "HS256"
os.environ["N8N_WEBHOOK_URL"] = "https://n8n.example.com"
os.environ["N8N_VIDEO_ANALYSIS_WEBHOOK_ID"] = "video-hook"
os.environ["N8N_YOUTUBE_ANALYSIS_WEBHOOK_ID"] = "youtube-hook"
os.environ["ENVIRONMENT"] = "test"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from jose import jwt  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from svix.webhooks import Webhook  # noqa: E402

from syncrelay.domain.models.user import User  # noqa: E402
from syncrelay.infrastructure.database import Base, get_db  # noqa: E402


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture()
def session_factory(engine) -> sessionmaker:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture()
def db(session_factory) -> Session:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def fetch_user(session_factory) -> Callable[[str], User | None]:
    """Read a user through a fresh session, detached from it."""

    def _fetch(user_id: str) -> User | None:
        session = session_factory()
        try:
            user = session.get(User, user_id)
            if user is not None:
                session.expunge(user)
            return user
        finally:
            session.close()

    return _fetch


@pytest.fixture()
def count_users(session_factory) -> Callable[[], int]:
    def _count() -> int:
        session = session_factory()
        try:
            return session.query(User).count()
        finally:
            session.close()

    return _count


@pytest.fixture()
def app(session_factory):
    from syncrelay.main import app

    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    yield app
    app.dependency_overrides.clear()


@pytest.fixture()
def client(app) -> TestClient:
    """TestClient without lifespan (no create_all against the real engine)."""
    return TestClient(app)


@pytest.fixture()
def sign_webhook() -> Callable[..., tuple[str, dict[str, str]]]:
    """Build a Svix-signed delivery: returns (body, headers)."""

    def _sign(
        event: dict[str, Any],
        msg_id: str = "msg_test_1",
        timestamp: datetime | None = None,
        secret: str = TEST_WEBHOOK_SECRET,
    ) -> tuple[str, dict[str, str]]:
        ts = timestamp or datetime.now(timezone.utc)
        body = json.dumps(event)
        signature = Webhook(secret).sign(msg_id, ts, body)
        headers = {
            "svix-id": msg_id,
            "svix-timestamp": str(int(ts.timestamp())),
            "svix-signature": signature,
            "content-type": "application/json",
        }
        return body, headers

    return _sign


@pytest.fixture()
def auth_headers() -> Callable[[str], dict[str, str]]:
    def _headers(user_id: str = "user_caller") -> dict[str, str]:
        token = jwt.encode({"sub": user_id, "sid": "sess_1"}, TEST_JWT_KEY, algorithm="HS256")
        return {"Authorization": f"Bearer {token}"}

    return _headers


def clerk_user(user_id: str = "user_1", email: str = "a@x.com", **overrides: Any) -> dict[str, Any]:
    """A Clerk user object as webhooks and the Backend API deliver it."""
    data: dict[str, Any] = {
        "id": user_id,
        "object": "user",
        "email_addresses": [{"id": "idn_1", "email_address": email}],
        "primary_email_address_id": "idn_1",
        "first_name": "Ada",
        "last_name": "Lovelace",
        "image_url": "https://img.clerk.com/ada.png",
        "public_metadata": {},
        "private_metadata": {},
        "created_at": 1700000000000,
        "updated_at": 1700000000000,
        "last_sign_in_at": 1700000500000,
    }
    data.update(overrides)
    return data
