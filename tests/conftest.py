"""Shared test fixtures for the PayBridge integration service tests.

Uses a SQLite database file so tests run without PostgreSQL, and
``httpx.MockTransport`` so no test ever reaches a real vendor.
"""

from __future__ import annotations

import json
import os
from typing import Optional

# Override DATABASE_URL before importing anything from app: the Settings
# model reads .env eagerly via pydantic-settings, and the module-level
# ``engine`` in app.core.database would try to connect to PostgreSQL.
os.environ["DATABASE_URL"] = "sqlite:///./test.db"

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.core.database import Base, get_db
from app.main import app
from app.services.registry import PlatformRegistry
from app.services.store.platform_configs import PlatformConfigStore
from app.services.store.transactions import TransactionStore

TEST_DATABASE_URL = "sqlite:///./test.db"

engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh database for each test."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    """FastAPI test client with overridden DB dependency."""

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def transaction_store(db_session) -> TransactionStore:
    return TransactionStore(db_session)


@pytest.fixture
def config_store(db_session) -> PlatformConfigStore:
    return PlatformConfigStore(db_session, PlatformRegistry())


class VendorStub:
    """Fake vendor API: answers every request with a fixed JSON body, or
    with raw ``text`` when given.

    Every request received is kept in ``requests`` for assertions.
    """

    def __init__(
        self,
        body=None,
        status_code: int = 200,
        exc: Optional[Exception] = None,
        text: Optional[str] = None,
    ):
        self.body = body if body is not None else {}
        self.text = text
        self.status_code = status_code
        self.exc = exc
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.exc is not None:
            raise self.exc
        if self.text is not None:
            return httpx.Response(self.status_code, text=self.text)
        return httpx.Response(self.status_code, json=self.body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    def last_json(self):
        return json.loads(self.requests[-1].content)


@pytest.fixture
def vendor_stub():
    """Factory for ``VendorStub`` instances."""
    return VendorStub


# ------------------------------------------------------------------
# Vendor payloads
# ------------------------------------------------------------------


@pytest.fixture
def doppus_order() -> dict:
    """A paid Doppus order, as returned by GET /v1/orders."""
    return {
        "id": 1001,
        "order_number": "DOP-1001",
        "total_amount": 197.0,
        "status": "approved",
        "customer": {
            "name": "Maria Silva",
            "email": "maria@example.com",
            "phone": "+5511999990000",
            "document": "123.456.789-00",
            "address": "Rua das Flores, 100",
            "city": "São Paulo",
            "state": "SP",
            "zipcode": "01000-000",
        },
        "items": [
            {"product_id": "P-1", "name": "Curso de Python", "price": 197.0, "quantity": 1},
        ],
        "payment_method": "pix",
        "payment_details": {"installments": 1, "pix_key": "maria@example.com"},
        "affiliate": {"id": "AF-9", "name": "João", "commission": 30, "tier": 1},
        "membership": {"id": "M-1", "name": "Gold", "type": "annual"},
        "course": {"id": "C-1", "name": "Python", "instructor": "Ana"},
        "created_at": "2024-03-01T12:00:00Z",
        "updated_at": "2024-03-01T12:05:00Z",
    }


@pytest.fixture
def pagtrust_transaction() -> dict:
    """A PagTrust transaction carrying fraud-analysis and split blocks."""
    return {
        "id": "pt_555",
        "order_id": "ORD-555",
        "amount": "89.90",
        "currency": "brl",
        "status": "authorized",
        "customer": {
            "name": "Carlos Souza",
            "email": "carlos@example.com",
            "document": "987.654.321-00",
            "country": "BR",
        },
        "product": {"id": "SKU-7", "name": "Ebook", "price": "89.90", "quantity": 1},
        "payment_method": "credit_card",
        "payment_details": {"installments": 3, "card_brand": "visa", "card_last_four": "4242"},
        "fraud_analysis": {
            "score": 12,
            "status": "approved",
            "details": {"rules": ["velocity", "geo"], "provider": "clearsale"},
        },
        "split": {"enabled": True, "rules": [{"recipient": "r1", "percentage": 10}]},
        "created_at": "2024-03-02 10:00:00",
        "updated_at": "2024-03-02 10:00:00",
    }
