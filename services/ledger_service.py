# services/ledger_service.py
"""
Order Payment Ledger Service - append-only payment history per order.

Recording a payment:
1. Validate the submission (amount, method, confirmation payload)
2. Load the order's current ledger snapshot
3. Reject amounts above the remaining balance
4. Append the payment (order-local ordinal, SHA-256 chained to the previous one)
5. Recompute total_paid / payment_status, keep the sticky installment amount
6. Persist with a compare-and-swap on the order's payment_count

Storage is reached through an OrderLedgerStore (snapshot provider + writer);
SqlOrderLedgerStore is the SQLAlchemy implementation.
"""
import hashlib
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Mapping, Optional, Protocol, Tuple

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from models import Order, OrderPayment, PaymentStatus
from services.exceptions import ExceedsBalance, LedgerConflict, OrderNotFound, PersistenceFailure
from services.payment_policy import (
     PaymentTypeHint,
     derive_payment_status,
     next_payment_status,
     payment_type_for,
     resolve_installment_amount,
     suggest_payment_amount,
     to_money,
     validate_payment_request,
)

logger = logging.getLogger(__name__)

# First payment of an order has no predecessor
GENESIS_HASH = "0"


@dataclass(frozen=True)
class PaymentEntry:
     """One payment in an order's history (``id`` is the order-local ordinal)."""
     id: int
     order_id: int
     amount: Decimal
     payment_method: str
     payment_type: str
     notes: str
     confirmation_details: dict
     installment_amount: Optional[Decimal]
     created_at: datetime
     previous_hash: str
     entry_hash: str


@dataclass(frozen=True)
class LedgerSnapshot:
     """Payment state of one order as read from storage."""
     order_id: int
     total_amount: Decimal
     total_paid: Decimal
     payment_status: PaymentStatus
     installment_amount: Optional[Decimal]
     number_of_installments: Optional[int]
     payment_count: int
     payments: Tuple[PaymentEntry, ...] = ()
     customer_email: Optional[str] = None
     customer_name: Optional[str] = None

     @property
     def remaining_balance(self) -> Decimal:
          return self.total_amount - self.total_paid

     @property
     def last_hash(self) -> str:
          return self.payments[-1].entry_hash if self.payments else GENESIS_HASH


@dataclass(frozen=True)
class LedgerUpdate:
     """Everything the writer needs to append one payment atomically."""
     order_id: int
     expected_payment_count: int
     payment: PaymentEntry
     total_paid: Decimal
     payment_status: PaymentStatus
     installment_amount: Optional[Decimal]


@dataclass(frozen=True)
class PaymentRecorded:
     """Payment-state-changed notification handed to reporting / email."""
     order_id: int
     payment: PaymentEntry
     previous_status: PaymentStatus
     payment_status: PaymentStatus
     total_amount: Decimal
     total_paid: Decimal
     remaining_balance: Decimal
     customer_email: Optional[str] = None
     customer_name: Optional[str] = None


@dataclass(frozen=True)
class RecordPaymentResult:
     payment: PaymentEntry
     total_paid: Decimal
     payment_status: PaymentStatus
     remaining_balance: Decimal
     installment_amount: Optional[Decimal]
     number_of_installments: Optional[int]
     event: PaymentRecorded = field(repr=False)


class OrderLedgerStore(Protocol):
     """Order snapshot provider and persistence writer used by the ledger."""

     def fetch_snapshot(self, order_id: int) -> Optional[LedgerSnapshot]:
          ...

     def append_payment(self, ledger_update: LedgerUpdate) -> None:
          ...


# ---------------------------------------------------------------------------
# Hash chain
# ---------------------------------------------------------------------------

def _normalize_timestamp(ts: datetime) -> str:
     """Normalize timestamp to ISO format (whole seconds) for deterministic hashing."""
     return ts.replace(microsecond=0, tzinfo=None).isoformat()


def compute_entry_hash(
     order_id: int,
     sequence: int,
     amount: Decimal,
     payment_method: str,
     created_at: datetime,
     previous_hash: str,
) -> str:
     """
     Compute SHA-256 hash for a payment entry.

     Input string: order_id|sequence|amount|method|created_at|previous_hash.
     Returns 64-char hex string.
     """
     payload = "|".join([
          str(order_id),
          str(sequence),
          f"{to_money(amount):.2f}",
          payment_method,
          _normalize_timestamp(created_at),
          previous_hash,
     ])
     return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def _utcnow() -> datetime:
     # Naive UTC truncated to seconds: survives DATETIME round trips unchanged
     return datetime.now(timezone.utc).replace(tzinfo=None, microsecond=0)


def _as_naive_utc(ts: datetime) -> datetime:
     if ts.tzinfo is not None:
          ts = ts.astimezone(timezone.utc).replace(tzinfo=None)
     return ts.replace(microsecond=0)


# ---------------------------------------------------------------------------
# SQLAlchemy store
# ---------------------------------------------------------------------------

def _entry_from_row(row: OrderPayment) -> PaymentEntry:
     return PaymentEntry(
          id=row.sequence,
          order_id=row.order_id,
          amount=to_money(row.amount),
          payment_method=row.payment_method,
          payment_type=row.payment_type,
          notes=row.notes or "",
          confirmation_details=dict(row.confirmation_details or {}),
          installment_amount=to_money(row.installment_amount) if row.installment_amount is not None else None,
          created_at=row.created_at,
          previous_hash=row.previous_hash,
          entry_hash=row.entry_hash,
     )


class SqlOrderLedgerStore:
     """OrderLedgerStore over the orders / order_payments tables."""

     def __init__(self, db: Session):
          self.db = db

     def fetch_snapshot(self, order_id: int) -> Optional[LedgerSnapshot]:
          order = self.db.execute(
               select(Order)
               .where(Order.id == order_id)
               .options(selectinload(Order.payments))
               .execution_options(populate_existing=True)
          ).scalar_one_or_none()
          if order is None:
               return None

          return LedgerSnapshot(
               order_id=order.id,
               total_amount=to_money(order.total_amount),
               total_paid=to_money(order.total_paid),
               payment_status=PaymentStatus(order.payment_status or PaymentStatus.PENDING),
               installment_amount=(
                    to_money(order.installment_amount) if order.installment_amount is not None else None
               ),
               number_of_installments=order.number_of_installments,
               payment_count=order.payment_count or 0,
               payments=tuple(_entry_from_row(row) for row in order.payments),
               customer_email=order.email,
               customer_name=order.customer_name or None,
          )

     def append_payment(self, ledger_update: LedgerUpdate) -> None:
          """
          Write the new payment and the order totals in one transaction.

          The order row is only updated if its payment_count still equals the
          value the ledger read; otherwise another payment won the race.

          Raises:
               LedgerConflict: the order changed since it was read
               PersistenceFailure: any other storage error (transaction rolled back)
          """
          payment = ledger_update.payment
          try:
               updated = self.db.execute(
                    update(Order)
                    .where(
                         Order.id == ledger_update.order_id,
                         Order.payment_count == ledger_update.expected_payment_count,
                    )
                    .values(
                         total_paid=ledger_update.total_paid,
                         payment_status=ledger_update.payment_status,
                         installment_amount=ledger_update.installment_amount,
                         payment_count=ledger_update.expected_payment_count + 1,
                    )
                    .execution_options(synchronize_session=False)
               ).rowcount
               if updated != 1:
                    self.db.rollback()
                    raise LedgerConflict(ledger_update.order_id)

               self.db.add(OrderPayment(
                    order_id=payment.order_id,
                    sequence=payment.id,
                    amount=payment.amount,
                    payment_method=payment.payment_method,
                    payment_type=payment.payment_type,
                    notes=payment.notes,
                    confirmation_details=payment.confirmation_details,
                    installment_amount=payment.installment_amount,
                    created_at=payment.created_at,
                    previous_hash=payment.previous_hash,
                    entry_hash=payment.entry_hash,
               ))
               self.db.commit()
          except IntegrityError as exc:
               self.db.rollback()
               logger.warning("Payment #%s for order %s collided with a concurrent append",
                              payment.id, ledger_update.order_id)
               raise LedgerConflict(ledger_update.order_id) from exc
          except SQLAlchemyError as exc:
               self.db.rollback()
               logger.exception("Failed to persist payment #%s for order %s",
                                payment.id, ledger_update.order_id)
               raise PersistenceFailure("Database error while saving the payment") from exc
          finally:
               self.db.expire_all()


# ---------------------------------------------------------------------------
# Ledger operations
# ---------------------------------------------------------------------------

def _load(store: OrderLedgerStore, order_id: int) -> LedgerSnapshot:
     snapshot = store.fetch_snapshot(order_id)
     if snapshot is None:
          raise OrderNotFound(order_id)
     return snapshot


def get_ledger(store: OrderLedgerStore, order_id: int) -> LedgerSnapshot:
     """Read-only view of an order's payment history and totals."""
     return _load(store, order_id)


def record_payment(
     store: OrderLedgerStore,
     order_id: int,
     amount: Any,
     payment_method: Any,
     notes: Optional[str] = None,
     confirmation: Optional[Mapping[str, Any]] = None,
     installment_amount: Any = None,
     timestamp: Optional[datetime] = None,
) -> RecordPaymentResult:
     """
     Validate and append one payment to an order's ledger.

     Raises:
          MissingField, InvalidAmount, MissingConfirmation: bad submission
          OrderNotFound: order_id does not resolve
          ExceedsBalance: amount above the remaining balance
          PersistenceFailure / LedgerConflict: the write did not happen
     """
     request = validate_payment_request(amount, payment_method, confirmation, installment_amount)
     snapshot = _load(store, order_id)

     remaining = snapshot.remaining_balance
     if request.amount > remaining:
          logger.info("Rejected payment of %s for order %s: remaining balance is %s",
                      request.amount, order_id, remaining)
          raise ExceedsBalance(max(remaining, Decimal("0.00")))

     sequence = snapshot.payment_count + 1
     created_at = _as_naive_utc(timestamp) if timestamp is not None else _utcnow()
     sticky_installment = resolve_installment_amount(
          snapshot.payment_count, snapshot.installment_amount, request.installment_amount
     )
     previous_hash = snapshot.last_hash

     payment = PaymentEntry(
          id=sequence,
          order_id=order_id,
          amount=request.amount,
          payment_method=request.payment_method.value,
          payment_type=payment_type_for(snapshot.payment_count).value,
          notes=(notes or "").strip(),
          confirmation_details=request.confirmation_details,
          installment_amount=sticky_installment,
          created_at=created_at,
          previous_hash=previous_hash,
          entry_hash=compute_entry_hash(
               order_id, sequence, request.amount, request.payment_method.value, created_at, previous_hash
          ),
     )

     new_total_paid = snapshot.total_paid + request.amount
     new_status = next_payment_status(snapshot.payment_status, new_total_paid, snapshot.total_amount)

     store.append_payment(LedgerUpdate(
          order_id=order_id,
          expected_payment_count=snapshot.payment_count,
          payment=payment,
          total_paid=new_total_paid,
          payment_status=new_status,
          installment_amount=sticky_installment,
     ))

     new_remaining = snapshot.total_amount - new_total_paid
     logger.info("Recorded payment #%s of %s (%s) for order %s: total_paid=%s status=%s",
                 sequence, request.amount, payment.payment_method, order_id, new_total_paid, new_status.value)

     return RecordPaymentResult(
          payment=payment,
          total_paid=new_total_paid,
          payment_status=new_status,
          remaining_balance=new_remaining,
          installment_amount=sticky_installment,
          number_of_installments=snapshot.number_of_installments,
          event=PaymentRecorded(
               order_id=order_id,
               payment=payment,
               previous_status=snapshot.payment_status,
               payment_status=new_status,
               total_amount=snapshot.total_amount,
               total_paid=new_total_paid,
               remaining_balance=new_remaining,
               customer_email=snapshot.customer_email,
               customer_name=snapshot.customer_name,
          ),
     )


def suggest_payment(
     store: OrderLedgerStore,
     order_id: int,
     payment_type: PaymentTypeHint = PaymentTypeHint.INSTALLMENT,
     total_due_after_first: Optional[Decimal] = None,
) -> Tuple[LedgerSnapshot, Decimal]:
     """Suggested amount for the order's next payment, with the snapshot it was derived from."""
     snapshot = _load(store, order_id)
     suggestion = suggest_payment_amount(
          total_amount=snapshot.total_amount,
          total_paid=snapshot.total_paid,
          existing_payments=snapshot.payment_count,
          installment_amount=snapshot.installment_amount,
          payment_type=payment_type,
          total_due_after_first=total_due_after_first,
     )
     return snapshot, suggestion


def verify_ledger(store: OrderLedgerStore, order_id: int) -> Tuple[bool, str, int]:
     """
     Verify an order's ledger from first to last payment.

     Checks ordinals are 1..n, every hash recomputes and links to its
     predecessor, the cached totals match the history, and the stored
     status is the one the totals imply.

     Returns:
          (all_valid: bool, message: str, entries_checked: int)
     """
     snapshot = _load(store, order_id)

     prev_hash = GENESIS_HASH
     running_total = Decimal("0.00")
     checked = 0

     for expected_id, entry in enumerate(snapshot.payments, start=1):
          if entry.id != expected_id:
               return False, f"Sequence gap: expected payment #{expected_id}, found #{entry.id}", checked
          if entry.previous_hash != prev_hash:
               return False, f"Chain broken at payment #{entry.id}: previous_hash mismatch", checked
          computed = compute_entry_hash(
               entry.order_id, entry.id, entry.amount, entry.payment_method, entry.created_at, entry.previous_hash
          )
          if computed != entry.entry_hash:
               return False, f"Hash mismatch at payment #{entry.id}", checked
          expected_type = payment_type_for(expected_id - 1).value
          if entry.payment_type != expected_type:
               return False, f"Payment #{entry.id} should be '{expected_type}'", checked
          prev_hash = entry.entry_hash
          running_total += entry.amount
          checked += 1

     if checked != snapshot.payment_count:
          return False, f"payment_count is {snapshot.payment_count} but {checked} payments exist", checked
     if running_total != snapshot.total_paid:
          return False, f"total_paid is {snapshot.total_paid} but payments sum to {running_total}", checked
     if snapshot.total_paid > snapshot.total_amount:
          return False, f"total_paid {snapshot.total_paid} exceeds total_amount {snapshot.total_amount}", checked
     expected_status = derive_payment_status(snapshot.total_paid, snapshot.total_amount)
     if snapshot.payment_status != expected_status:
          return False, (
               f"payment_status is '{snapshot.payment_status.value}' but totals imply '{expected_status.value}'"
          ), checked

     if checked == 0:
          return True, "Ledger is empty (no payments)", 0
     return True, "Ledger verification passed", checked

