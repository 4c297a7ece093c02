"""
Test configuration and fixtures.

Provides:
- In-memory SQLite database, rebuilt for every test, with the audit
  interceptor installed on SessionLocal
- Factories for contracts, users and departments
- HTTPX AsyncClient bound to the ASGI app
"""
import os
from datetime import date, timedelta
from typing import AsyncGenerator, Callable, Generator

# Settings are read at import time; point them at a throwaway database and
# keep email delivery in dry-run mode.
os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["RESEND_API_KEY"] = ""
os.environ["ENV"] = "test"

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.orm import Session

from app.core.deps import get_db
from app.db.base import Base
from app.db.enums import ContractStatus, ContractType, Role
from app.db.models import Contract, Department, User
from app.db.session import SessionLocal, engine
from app.main import app

TODAY = date(2026, 6, 15)


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Fresh schema per test; app code may commit freely."""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def today() -> date:
    return TODAY


@pytest.fixture
def make_contract(db: Session) -> Callable[..., Contract]:
    """Create and commit a contract; keyword arguments override defaults."""
    counter = {"n": 0}

    def _make(**overrides) -> Contract:
        counter["n"] += 1
        fields = {
            "protocol_number": f"CONTR-2026-{counter['n']:04d}",
            "contract_type": ContractType.CONTRACT.value,
            "counterparty_name": "Acme Facilities",
            "title": f"Maintenance agreement {counter['n']}",
            "effective_date": TODAY - timedelta(days=300),
            "expiry_date": TODAY + timedelta(days=365),
            "status": ContractStatus.ACTIVE.value,
        }
        fields.update(overrides)
        contract = Contract(**fields)
        db.add(contract)
        db.commit()
        return contract

    return _make


@pytest.fixture
def make_user(db: Session) -> Callable[..., User]:
    counter = {"n": 0}

    def _make(**overrides) -> User:
        counter["n"] += 1
        fields = {
            "email": f"user{counter['n']}@example.com",
            "display_name": f"User {counter['n']}",
            "role": Role.OPERATOR.value,
        }
        fields.update(overrides)
        user = User(**fields)
        db.add(user)
        db.commit()
        return user

    return _make


@pytest.fixture
def make_department(db: Session) -> Callable[..., Department]:
    counter = {"n": 0}

    def _make(**overrides) -> Department:
        counter["n"] += 1
        fields = {
            "name": f"Department {counter['n']}",
            "email": f"dept{counter['n']}@example.com",
        }
        fields.update(overrides)
        department = Department(**fields)
        db.add(department)
        db.commit()
        return department

    return _make


# =============================================================================
# Client Fixtures
# =============================================================================

@pytest.fixture(scope="function")
async def client(db: Session) -> AsyncGenerator[AsyncClient, None]:
    """AsyncClient against the API app, sharing the test session."""
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
