from __future__ import annotations

import os
import sys
from decimal import Decimal
from pathlib import Path
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

# Ensure the project root (which exposes the ``backend`` package) is on ``sys.path``
PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

os.environ.setdefault("RUN_MIGRATIONS_ON_STARTUP", "0")
os.environ.setdefault("OBJECT_STORAGE_TRANSPORT", "local")
os.environ.pop("COURIER_API_TOKEN", None)

from backend.app import schemas
from backend.app.database import Base, get_db
from backend.app.dependencies import get_storage_client
from backend.app.main import app
from backend.app.services import LocalObjectStorageClient, OrderService
from backend.app.services.courier import CourierClient, ShipmentRequest, ShipmentResult

SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture(scope="session", autouse=True)
def setup_database() -> Generator[None, None, None]:
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session() -> Generator[Session, None, None]:
    connection = engine.connect()
    transaction = connection.begin()
    session = TestingSessionLocal(bind=connection)
    try:
        yield session
    finally:
        session.close()
        if transaction.is_active:
            transaction.rollback()
        connection.close()


@pytest.fixture
def storage(tmp_path) -> LocalObjectStorageClient:
    return LocalObjectStorageClient(tmp_path / "objects", base_url="/files")


class RecordingCourier(CourierClient):
    """Courier double that remembers every booking it receives."""

    def __init__(self, reference: str = "IP123456789MK") -> None:
        self.reference = reference
        self.requests: list[ShipmentRequest] = []

    def create_shipment(self, request: ShipmentRequest) -> ShipmentResult:
        self.requests.append(request)
        return ShipmentResult(
            tracking_code=self.reference,
            raw={"reference": self.reference, "status": "created"},
        )


@pytest.fixture
def courier() -> RecordingCourier:
    return RecordingCourier()


@pytest.fixture
def client(
    db_session: Session, storage: LocalObjectStorageClient, courier: RecordingCourier
) -> Generator[TestClient, None, None]:
    def override_get_db() -> Generator[Session, None, None]:
        try:
            yield db_session
        finally:
            db_session.expire_all()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage_client] = lambda: storage
    with TestClient(app) as test_client:
        app.state.courier_client = courier
        yield test_client
    app.dependency_overrides.pop(get_db, None)
    app.dependency_overrides.pop(get_storage_client, None)


def _order_payload(**overrides) -> dict:
    order = {
        "customerName": "Ana Petrovska",
        "address": {"street": "Partizanska 12", "city": "Skopje"},
        "phoneNumber": "+38970123456",
        "totalPrice": 1500,
        "notes": "Call before delivery",
    }
    order.update(overrides)
    return order


@pytest.fixture
def order_payload():
    """Build the intake form body sent by the dashboard."""

    return _order_payload


@pytest.fixture
def make_order(db_session: Session):
    """Insert an order directly through the service layer."""

    def _make(**overrides):
        fields = {
            "customer_name": "Marko Nikolov",
            "address": {"street": "Ilindenska 5", "city": "Tetovo"},
            "phone_number": "+38971000111",
            "total_price": Decimal("990.00"),
        }
        fields.update(overrides)
        return OrderService.create_order(db_session, schemas.OrderDraft(**fields))

    return _make
