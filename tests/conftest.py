"""Pytest fixtures for testing"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")

import pytest
from datetime import date
from decimal import Decimal
from typing import Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from payables_gateway.api.main import create_app
from payables_gateway.domain.models import ObligationRequest, RecurrenceMode
from payables_gateway.infrastructure.database.models import Base
from payables_gateway.infrastructure.database.session import get_db
from payables_gateway.services.undo import UndoJournal


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db: Session) -> TestClient:
    """Create FastAPI test client with test database"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)


@pytest.fixture
def journal() -> UndoJournal:
    return UndoJournal(capacity=10)


@pytest.fixture
def today() -> date:
    """Fixed reference date so status derivation is deterministic"""
    return date(2024, 1, 1)


@pytest.fixture
def obligation_request() -> ObligationRequest:
    """Three fixed installments totalling 300.00"""
    return ObligationRequest(
        description="Compra de estoque",
        counterparty="Fornecedor ABC Ltda",
        category="Fornecedores",
        entity_id="entity-1",
        start_date=date(2024, 1, 5),
        mode=RecurrenceMode.INSTALLMENTS,
        value=Decimal("300.00"),
        installments=3,
    )
