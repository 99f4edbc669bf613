import dataclasses
import os
from decimal import Decimal

# Must be set before database / dependencies are imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["PAYMENT_RECEIPTS_ENABLED"] = "false"

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from database import SessionLocal, engine
from models import Base, Order, PaymentStatus
from services.exceptions import LedgerConflict
from services.ledger_service import LedgerSnapshot, SqlOrderLedgerStore


class InMemoryOrderLedgerStore:
    """Single-order OrderLedgerStore kept in memory, with the same compare-and-swap rule."""

    def __init__(self, total_amount, order_id=1, installment_amount=None, number_of_installments=None,
                 customer_email=None, customer_name=None):
        self.snapshot = LedgerSnapshot(
            order_id=order_id,
            total_amount=Decimal(total_amount),
            total_paid=Decimal("0.00"),
            payment_status=PaymentStatus.PENDING,
            installment_amount=Decimal(installment_amount) if installment_amount is not None else None,
            number_of_installments=number_of_installments,
            payment_count=0,
            customer_email=customer_email,
            customer_name=customer_name,
        )
        self.writes = 0

    def fetch_snapshot(self, order_id):
        return self.snapshot if order_id == self.snapshot.order_id else None

    def append_payment(self, ledger_update):
        if ledger_update.expected_payment_count != self.snapshot.payment_count:
            raise LedgerConflict(ledger_update.order_id)
        self.snapshot = dataclasses.replace(
            self.snapshot,
            payments=self.snapshot.payments + (ledger_update.payment,),
            total_paid=ledger_update.total_paid,
            payment_status=ledger_update.payment_status,
            installment_amount=ledger_update.installment_amount,
            payment_count=ledger_update.expected_payment_count + 1,
        )
        self.writes += 1


@pytest.fixture(autouse=True)
def tables():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def store(db):
    return SqlOrderLedgerStore(db)


@pytest.fixture
def make_order(db):
    """Create a committed order with an empty ledger."""
    def _make(total_amount="1000.00", **fields):
        order = Order(
            total_amount=Decimal(total_amount),
            total_paid=Decimal("0.00"),
            payment_status=PaymentStatus.PENDING,
            payment_count=0,
            **fields,
        )
        db.add(order)
        db.commit()
        return order
    return _make


@pytest.fixture
def memory_store():
    return InMemoryOrderLedgerStore


@pytest.fixture
def client():
    from main import app
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers():
    token = jwt.encode({"id": 1, "role": "admin"}, "test-secret", algorithm="HS256")
    return {"Authorization": f"Bearer {token}"}
