"""Pytest fixtures for testing"""

import pytest
from datetime import datetime, timezone
from typing import Dict, Generator, Optional
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from smart_lending.api.main import create_app
from smart_lending.domain.exceptions import StoreFailureError
from smart_lending.domain.identifiers import SequentialIdentifierGenerator
from smart_lending.domain.models import EvaluationParams, TransactionContext
from smart_lending.infrastructure.database.models import Base
from smart_lending.infrastructure.database.session import get_db
from smart_lending.lifecycle import LoanLifecycleEngine


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

FIXED_NOW = datetime(2024, 3, 1, 9, 30, tzinfo=timezone.utc)


class InMemoryRecordStore:
    """Dict-backed record store; set fail_writes to simulate a rejecting store"""

    def __init__(self):
        self.records: Dict[str, bytes] = {}
        self.fail_writes = False
        self.writes = 0

    def get(self, key: str) -> Optional[bytes]:
        return self.records.get(key)

    def put(self, key: str, value: bytes) -> None:
        if self.fail_writes:
            raise StoreFailureError(f"write rejected for {key}")
        self.records[key] = value
        self.writes += 1


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
def store() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture
def context() -> TransactionContext:
    return TransactionContext(transaction_id="tx-0001", timestamp=FIXED_NOW, caller_metadata=b"operator-7")


@pytest.fixture
def lifecycle(store: InMemoryRecordStore, context: TransactionContext) -> LoanLifecycleEngine:
    """Engine with sequential ids (bids 1..4, then account 5) and a frozen clock"""
    return LoanLifecycleEngine(
        store,
        id_generator=SequentialIdentifierGenerator(),
        context_provider=lambda: context,
        clock=lambda: FIXED_NOW,
    )


@pytest.fixture
def app_one_request() -> dict:
    """APP-1: credit 650, age 35, income 2500, 5 years → every lender prices at 6.00"""
    return dict(
        application_number="APP-1",
        make="Toyota",
        model="Corolla",
        loan_amount=24000.0,
        ssn="1234567",
        age=35,
        monthly_income=2500.0,
        credit_score=650,
        tenure=5,
    )


@pytest.fixture
def eligible_params() -> EvaluationParams:
    return EvaluationParams(
        application_number="APP-1",
        loan_amount=24000.0,
        ssn="1234567",
        age=35,
        monthly_income=2500.0,
        credit_score=650,
        tenure=5,
    )


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW
