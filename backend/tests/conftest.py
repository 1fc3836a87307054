"""
Pytest configuration and fixtures
"""
import base64
import json
import os
import sys
import uuid
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Add backend directory to path for imports
backend_dir = Path(__file__).parent.parent
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

# Settings are cached on first use, so the test environment must be in place
# before any app module is imported
TEST_JWT_KEY = "prompt-hub-test-signing-key-0123456789abcdef"
TEST_WEBHOOK_SECRET = "whsec_" + base64.b64encode(b"prompt-hub-test-webhook-secret").decode()

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["IDENTITY_JWT_KEY"] = TEST_JWT_KEY
os.environ["IDENTITY_JWT_ALGORITHMS"] = "HS256"
os.environ["WEBHOOK_SIGNING_SECRET"] = TEST_WEBHOOK_SECRET
os.environ["LOG_FILE_ENABLED"] = "false"
os.environ["LOG_FORMAT"] = "text"
os.environ["APP_ENV"] = "test"

import jwt
from sqlalchemy.orm import Session
from svix.webhooks import Webhook

from app.core.auth import Identity
from app.core.database import Base, SessionLocal, engine


@pytest.fixture(scope="function")
def db() -> Session:
    """Create a database session on a fresh in-memory schema"""
    import app.models  # noqa: F401

    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db: Session):
    """Create test client with database dependency override"""
    from app.core.database import get_db
    from fastapi.testclient import TestClient
    from main import app

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    test_client = TestClient(app)
    yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def alice() -> Identity:
    return Identity(user_id="user_alice", email="alice@example.com", full_name="Alice Example")


@pytest.fixture
def bob() -> Identity:
    return Identity(user_id="user_bob", email="bob@example.com", full_name="Bob Example")


@pytest.fixture
def make_token():
    """Factory for session tokens signed with the test key"""

    def _make_token(sub="user_alice", expires_in=timedelta(hours=1), **claims):
        payload = {"iat": datetime.now(timezone.utc), "exp": datetime.now(timezone.utc) + expires_in}
        if sub is not None:
            payload["sub"] = sub
        payload.update(claims)
        return jwt.encode(payload, TEST_JWT_KEY, algorithm="HS256")

    return _make_token


@pytest.fixture
def auth_headers(make_token):
    """Factory for Authorization headers of a given user"""

    def _auth_headers(sub="user_alice", **claims):
        return {"Authorization": f"Bearer {make_token(sub=sub, **claims)}"}

    return _auth_headers


@pytest.fixture
def signed_webhook():
    """Factory returning (body, headers) for a webhook delivery signed with the test secret"""

    def _signed_webhook(event):
        body = event if isinstance(event, str) else json.dumps(event)
        msg_id = f"msg_{uuid.uuid4().hex}"
        timestamp = datetime.now(timezone.utc)
        signature = Webhook(TEST_WEBHOOK_SECRET).sign(msg_id, timestamp, body)
        headers = {
            "svix-id": msg_id,
            "svix-timestamp": str(int(timestamp.timestamp())),
            "svix-signature": signature,
            "content-type": "application/json",
        }
        return body, headers

    return _signed_webhook
