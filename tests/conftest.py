import os

# Must be set before the app modules read their config
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("JWT_SECRET", "test-secret-key-that-is-long-enough-for-hs256")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import Base, get_db
from app.main import app
from app.models.user import User
from app.services.articles import create_article

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

ARTICLE_CONTENT = (
    "This is a long enough article body used by the tests. It talks about comments, "
    "likes and counters so that it passes the minimum length check."
)


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    def override_get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_article(db):
    def _make(slug="test-slug", **fields):
        data = {
            "title": f"Article {slug}",
            "slug": slug,
            "content": ARTICLE_CONTENT,
            "author": "Test Author",
            "tags": ["testing"],
        }
        data.update(fields)
        return create_article(db, **data)

    return _make


@pytest.fixture
def register(client):
    """Register a user through the API. Returns (user_dict, token)."""

    def _register(email="ana@x.com", name="Ana", password="secret123"):
        res = client.post("/api/auth/register", json={"name": name, "email": email, "password": password})
        assert res.status_code == 201, res.text
        body = res.json()["data"]
        return body["user"], body["token"]

    return _register


@pytest.fixture
def admin(db, register):
    user, token = register(email="admin@x.com", name="Admin")
    db.query(User).filter(User.id == user["id"]).update({User.role: "admin"})
    db.commit()
    return user, token


def auth(token):
    return {"Authorization": f"Bearer {token}"}
