"""
Shared fixtures: in-memory SQLite, a scripted completion provider and
bearer tokens in the identity service's format.
"""
import os
import tempfile

# Settings are read at import time, so they must be in place before the app loads
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SUPABASE_JWT_SECRET"] = "test-jwt-secret"
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_test_secret"
os.environ["STRIPE_MONTHLY_PRICE_ID"] = "price_monthly"
os.environ["STRIPE_YEARLY_PRICE_ID"] = "price_yearly"
os.environ["LINE_MESSAGING_CHANNEL_SECRET"] = "line-channel-secret"
os.environ["APP_URL"] = "https://app.example.com"
os.environ["RUN_MIGRATIONS"] = "0"
os.environ["VIDEO_PAGE_DELAY_SECONDS"] = "0"
os.environ["RAKUTEN_PAGE_DELAY_SECONDS"] = "0"
os.environ["LOG_DIR"] = tempfile.mkdtemp(prefix="mogumogu-logs-")
os.environ.pop("OPENAI_API_KEY", None)

import pytest
from fastapi.testclient import TestClient
from jose import JWTError
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from mogumogu_api.main import app
from mogumogu_api.api import deps
from mogumogu_api.core.security import create_access_token, decode_access_token
from mogumogu_api.db.base import Base
from mogumogu_api.db.session import get_db
from mogumogu_api.llm.provider import LLMProvider, LLMResponse
import mogumogu_api.db.models  # noqa: F401


# Setup in-memory SQLite database for testing
TEST_DATABASE_URL = "sqlite:///:memory:"
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


def override_get_db():
    """Override get_db dependency for testing."""
    db = TestSessionLocal()
    try:
        yield db
    finally:
        db.close()


class FakeLLM(LLMProvider):
    """Returns queued replies in order, or raises ``error`` when set."""

    def __init__(self):
        self.replies = []
        self.calls = []
        self.error = None

    def chat(self, messages, model, temperature=0.7, max_tokens=None):
        self.calls.append({
            "messages": messages,
            "model": model,
            "temperature": temperature,
            "max_tokens": max_tokens,
        })
        if self.error:
            raise self.error
        content = self.replies.pop(0) if self.replies else "OK"
        return LLMResponse(content=content, model=model)


class FakeIdentity:
    """Stands in for the identity service; users in ``signed_out`` are rejected."""

    def __init__(self):
        self.configured = True
        self.signed_out = set()
        self.calls = 0

    def get_user(self, token):
        self.calls += 1
        try:
            claims = decode_access_token(token)
        except JWTError:
            return None
        if claims.get("sub") in self.signed_out:
            return None
        return {"id": claims["sub"], "email": claims.get("email")}


@pytest.fixture(scope="function", autouse=True)
def setup_db():
    """Create and drop tables for each test."""
    Base.metadata.create_all(bind=test_engine)
    yield
    Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def db():
    """Provide a database session for tests."""
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def llm():
    return FakeLLM()


@pytest.fixture
def identity():
    return FakeIdentity()


@pytest.fixture
def client(llm, identity):
    """Test client wired to the test database, the fake provider and identity service."""
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[deps.get_session_factory] = lambda: TestSessionLocal
    app.dependency_overrides[deps.get_llm_provider] = lambda: llm
    app.dependency_overrides[deps.get_identity_client] = lambda: identity
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    """Build a bearer header for a user id."""
    def _headers(user_id: str = "user-1", email: str = "mama@example.com") -> dict:
        token = create_access_token({"sub": user_id, "email": email})
        return {"Authorization": f"Bearer {token}"}
    return _headers
