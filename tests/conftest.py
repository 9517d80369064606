"""
Shared fixtures: an in-memory SQLite database built from the models, user
factories, and a TestClient wired to the same database.
"""
import itertools
import os

# Must be set before partsmarket.lib.settings is first imported
os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["LOG_JSON"] = "false"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

import partsmarket.models  # noqa: F401  (registers tables on Base.metadata)
from partsmarket.lib.db import Base, create_db_engine, get_db
from partsmarket.lib.jwt import create_access_token
from partsmarket.lib.metrics import reset_metrics
from partsmarket.models import BuyerProfile, SellerProfile, User
from partsmarket.services.review_service import ReviewService


@pytest.fixture
def engine():
    engine = create_db_engine("sqlite+pysqlite:///:memory:")
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )


@pytest.fixture
def db_session(session_factory):
    """Get database session for tests."""
    session = session_factory()
    yield session
    session.close()


@pytest.fixture(autouse=True)
def clean_metrics():
    reset_metrics()
    yield
    reset_metrics()


@pytest.fixture
def review_service(db_session):
    return ReviewService(db_session)


@pytest.fixture
def make_user(db_session):
    """
    Factory creating a user with the requested profiles.

    Usage:
        buyer = make_user(buyer=True)
        seller = make_user(seller=True, business_name="Brake World")
    """
    counter = itertools.count(1)

    def _make(name=None, buyer=False, seller=False, business_name=None, user_id=None, seller_id=None):
        n = next(counter)
        user = User(id=user_id, email=f"user{n}@example.com", name=name or f"User {n}")
        db_session.add(user)
        db_session.flush()

        if buyer:
            db_session.add(BuyerProfile(user_id=user.id))
        if seller:
            db_session.add(SellerProfile(
                id=seller_id,
                user_id=user.id,
                business_name=business_name or f"Parts Shop {n}",
            ))
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make


@pytest.fixture
def client(session_factory):
    """Test client for FastAPI app, sharing the test database."""
    from partsmarket.api.app import app

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    def _headers(user):
        return {"Authorization": f"Bearer {create_access_token(user.id)}"}
    return _headers
