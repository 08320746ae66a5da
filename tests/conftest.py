"""Shared pytest fixtures for backend tests."""

import os

# Keep tests off Redis and Postgres; must run before quiz_builder.config is imported.
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ["GENERATION_CACHE_ENABLED"] = "false"
os.environ["RATE_LIMIT_AI_RPM"] = "0"

import uuid

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from quiz_builder.db.session import Base, get_db
from quiz_builder.main import app


# Use an in-memory SQLite database for testing with static pool
SQLALCHEMY_TEST_URL = "sqlite:///:memory:"
engine = create_engine(
    SQLALCHEMY_TEST_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,  # Use StaticPool to keep connection alive
    echo=False,
)
TestSession = sessionmaker(bind=engine, autocommit=False, autoflush=False)

# Create all tables once at startup
Base.metadata.create_all(bind=engine)


@pytest.fixture(scope="function")
def db():
    """Get a fresh DB session for each test."""
    session = TestSession()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture(scope="function")
def client(db: Session):
    """FastAPI test client with overridden DB dependency."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    # Remove TrustedHostMiddleware for tests to allow 'testserver' host
    app.user_middleware = [m for m in app.user_middleware if "TrustedHost" not in str(m)]

    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


# ── Helpers shared by the API tests ───────────────────────────────────────────


def register_and_login(client: TestClient, name: str = "Tester") -> str:
    email = f"{name.lower()}_{uuid.uuid4().hex[:8]}@ex.com"
    resp = client.post(
        "/auth/register",
        json={"email": email, "password": "testpwd1", "name": name},
    )
    assert resp.status_code == 201, resp.text
    resp = client.post("/auth/login", json={"email": email, "password": "testpwd1"})
    assert resp.status_code == 200, resp.text
    return resp.json()["accessToken"]


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


SAMPLE_QUESTIONS = [
    {
        "type": "single-choice",
        "text": "Capital of France?",
        "options": ["Paris", "London", "Berlin"],
        "answer": "Paris",
        "explanation": "Paris has been the capital since 987.",
    },
    {
        "type": "multi-choice",
        "text": "Pick the vowels",
        "options": ["A", "B", "C", "E"],
        "answer": ["A", "E"],
    },
    {
        "type": "short-answer",
        "text": "Largest planet?",
        "answer": "Jupiter",
    },
]


def create_quiz(client: TestClient, token: str, questions: list[dict] | None = None, title: str = "Sample") -> dict:
    resp = client.post(
        "/quiz",
        json={
            "title": title,
            "description": "d",
            "questions": SAMPLE_QUESTIONS if questions is None else questions,
        },
        headers=auth(token),
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


def host_quiz(client: TestClient, token: str, quiz_id: str, **overrides) -> dict:
    resp = client.post("/host", json={"quizId": quiz_id, **overrides}, headers=auth(token))
    assert resp.status_code == 201, resp.text
    return resp.json()
