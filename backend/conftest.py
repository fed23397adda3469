"""Shared fixtures: throwaway SQLite file per test, app client with get_db overridden."""
import os

# Must be set before khatabook.core.config is imported
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ["ALLOWED_HOSTS"] = "testserver,localhost"
os.environ["RATE_LIMIT_REQUESTS"] = "100000"

import pytest
from decimal import Decimal
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool

from khatabook.api.deps import get_db
from khatabook.core.security import get_password_hash
from khatabook.db.init_db import init_db
from khatabook.db.session import enable_sqlite_foreign_keys
from khatabook.main import app
from khatabook.models.user import User
from khatabook.schemas.customer import CustomerCreate
from khatabook.services.customer_service import create_customer

TEST_PASSWORD = "Kirana@2024"


@pytest.fixture
def engine(tmp_path):
    eng = create_engine(
        f"sqlite:///{tmp_path / 'khatabook-test.db'}",
        connect_args={"check_same_thread": False},
        poolclass=NullPool,
    )
    enable_sqlite_foreign_keys(eng)
    init_db(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def owner(db):
    user = User(email="owner@shop.in", name="Sharma Kirana", hashed_password=get_password_hash(TEST_PASSWORD))
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def other_owner(db):
    user = User(email="other@shop.in", name="Other Shop", hashed_password=get_password_hash(TEST_PASSWORD))
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def customer(db, owner):
    return create_customer(db, owner.id, CustomerCreate(name="Ravi Kumar", phone="9876543210"))


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def login(client: TestClient, email: str, password: str = TEST_PASSWORD) -> dict:
    resp = client.post("/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.text
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}


@pytest.fixture
def auth_headers(client, owner):
    return login(client, owner.email)


def money(value) -> Decimal:
    """API money fields arrive as strings."""
    return Decimal(str(value))
