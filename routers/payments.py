# routers/payments.py
"""
Order payment ledger API.

GET  /api/admin/orders/{order_id}/payments             payment history and totals
POST /api/admin/orders/{order_id}/payments             record a manual payment
GET  /api/admin/orders/{order_id}/payments/suggestion  amount to pre-fill for the next payment
GET  /api/admin/orders/{order_id}/payments/verify      check the ledger's integrity

No card or bank processing happens here; payments are taken offline (cash,
check, Zelle, PayPal) and only their confirmation codes are recorded.
Ledger errors are rendered as {"error", "details"} by the handler in main.py.
"""
import logging
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Path, Query, status
from sqlalchemy.orm import Session

from database import get_session
from dependencies import verify_token
from schemas.payment import (
     ErrorResponse,
     LedgerResponse,
     LedgerVerificationResponse,
     PaymentRecordRequest,
     PaymentResponse,
     PaymentSuggestionResponse,
     RecordPaymentResponse,
)
from services.ledger_service import (
     LedgerSnapshot,
     SqlOrderLedgerStore,
     get_ledger,
     record_payment,
     suggest_payment,
     verify_ledger,
)
from services.notifications import notify_payment_recorded
from services.payment_policy import PaymentTypeHint

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin/orders", tags=["payments"])

_ERROR_RESPONSES = {
     400: {"model": ErrorResponse, "description": "Invalid payment submission"},
     404: {"model": ErrorResponse, "description": "Order not found"},
}


@router.get(
     "/{order_id}/payments",
     response_model=LedgerResponse,
     responses={404: _ERROR_RESPONSES[404]},
     summary="Get order payment history"
)
def get_order_payments(
     order_id: int = Path(..., gt=0),
     db: Session = Depends(get_session),
     token: dict = Depends(verify_token)
):
     """
     Return the order's payment history with its totals.

     - **payment_history**: payments in the order they were recorded
     - **total_paid** / **remaining_balance**: running totals
     - **installment_amount**: fixed installment size, once set
     """
     snapshot = get_ledger(SqlOrderLedgerStore(db), order_id)
     return _build_ledger_response(snapshot)


@router.post(
     "/{order_id}/payments",
     response_model=RecordPaymentResponse,
     status_code=status.HTTP_201_CREATED,
     responses={
          **_ERROR_RESPONSES,
          409: {"model": ErrorResponse, "description": "Concurrent payment on the same order"},
          500: {"model": ErrorResponse, "description": "Payment could not be saved"},
     },
     summary="Record a payment"
)
def record_order_payment(
     body: PaymentRecordRequest,
     background_tasks: BackgroundTasks,
     order_id: int = Path(..., gt=0),
     db: Session = Depends(get_session),
     token: dict = Depends(verify_token)
):
     """
     Record a cash, check, Zelle or PayPal payment against an order.

     - **amount**: must be positive and no more than the remaining balance
     - **paymentMethod**: cash, check, zelle or paypal
     - **confirmation**: `zelle_confirmation` for Zelle, `paypal_transaction_id` for PayPal
     - **installmentAmount**: fixes the installment size on the first payment; ignored later

     The first payment is stored as `initial`, every later one as `installment`.
     A receipt email is sent to the customer after the payment is saved.
     """
     result = record_payment(
          SqlOrderLedgerStore(db),
          order_id,
          amount=body.amount,
          payment_method=body.payment_method,
          notes=body.notes,
          confirmation=body.confirmation.model_dump(exclude_none=True) if body.confirmation else None,
          installment_amount=body.installment_amount,
     )
     if body.payment_type:
          logger.debug("Order %s payment #%s submitted as '%s'", order_id, result.payment.id, body.payment_type.value)

     background_tasks.add_task(notify_payment_recorded, result.event)

     return RecordPaymentResponse(
          payment=PaymentResponse.model_validate(result.payment),
          total_paid=result.total_paid,
          payment_status=result.payment_status.value,
          remaining_balance=result.remaining_balance,
          installment_amount=result.installment_amount,
          number_of_installments=result.number_of_installments,
     )


@router.get(
     "/{order_id}/payments/suggestion",
     response_model=PaymentSuggestionResponse,
     responses={404: _ERROR_RESPONSES[404]},
     summary="Suggest the next payment amount"
)
def get_payment_suggestion(
     order_id: int = Path(..., gt=0),
     payment_type: PaymentTypeHint = Query(PaymentTypeHint.INSTALLMENT, description="full or installment"),
     total_due_after_first: Optional[Decimal] = Query(
          None, gt=0, description="Installment schedule hint: amount due after the first payment"
     ),
     db: Session = Depends(get_session),
     token: dict = Depends(verify_token)
):
     """
     Amount to pre-fill in the payment form.

     - **full**: the remaining balance ("pay remaining")
     - **installment**: the fixed installment amount once the first payment exists,
       otherwise the remaining balance split by the schedule hint
     """
     snapshot, suggestion = suggest_payment(
          SqlOrderLedgerStore(db), order_id, payment_type, total_due_after_first
     )
     return PaymentSuggestionResponse(
          order_id=order_id,
          payment_type=payment_type.value,
          suggested_amount=suggestion,
          remaining_balance=snapshot.remaining_balance,
          installment_amount=snapshot.installment_amount,
     )


@router.get(
     "/{order_id}/payments/verify",
     response_model=LedgerVerificationResponse,
     responses={404: _ERROR_RESPONSES[404]},
     summary="Verify order payment ledger"
)
def verify_order_payments(
     order_id: int = Path(..., gt=0),
     db: Session = Depends(get_session),
     token: dict = Depends(verify_token),
):
     """
     Recompute every payment hash, check the chain links and payment numbering,
     and compare the cached totals and status with the payment history.
     """
     valid, message, count = verify_ledger(SqlOrderLedgerStore(db), order_id)
     if not valid:
          logger.warning("Ledger verification failed for order %s: %s", order_id, message)
     return LedgerVerificationResponse(
          order_id=order_id,
          verified=valid,
          message=message,
          entries_checked=count,
     )


def _build_ledger_response(snapshot: LedgerSnapshot) -> LedgerResponse:
     """
     Helper function to build LedgerResponse from a ledger snapshot.
     """
     return LedgerResponse(
          order_id=snapshot.order_id,
          payment_history=[PaymentResponse.model_validate(p) for p in snapshot.payments],
          total_paid=snapshot.total_paid,
          total_amount=snapshot.total_amount,
          installment_amount=snapshot.installment_amount,
          number_of_installments=snapshot.number_of_installments,
          payment_status=snapshot.payment_status.value,
          remaining_balance=snapshot.remaining_balance,
     )
