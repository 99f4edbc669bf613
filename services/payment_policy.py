# services/payment_policy.py
"""
Payment policy - the storage-free rules of the order payment ledger.

- Request validation (amount, method, method-specific confirmation)
- Payment status state machine (pending -> partial -> completed)
- Payment type of a new entry (initial / installment)
- Suggested amount for the next payment (fixed installment or remaining balance)
"""
import enum
import math
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Mapping, Optional

from models import PaymentMethod, PaymentStatus, PaymentType
from services.exceptions import InvalidAmount, MissingConfirmation, MissingField

CENT = Decimal("0.01")

# Confirmation payload key required per method; cash and check need none
REQUIRED_CONFIRMATION = {
     PaymentMethod.ZELLE: ("zelle_confirmation", "Zelle confirmation code is required"),
     PaymentMethod.PAYPAL: ("paypal_transaction_id", "PayPal transaction ID is required"),
}

_STATUS_RANK = {
     PaymentStatus.PENDING: 0,
     PaymentStatus.PARTIAL: 1,
     PaymentStatus.COMPLETED: 2,
}


class PaymentTypeHint(str, enum.Enum):
     """Caller's choice in the payment form; only selects the suggested amount."""
     FULL = "full"
     INSTALLMENT = "installment"


@dataclass(frozen=True)
class ValidatedPayment:
     amount: Decimal
     payment_method: PaymentMethod
     confirmation_details: dict = field(default_factory=dict)
     installment_amount: Optional[Decimal] = None


def to_money(value: Any) -> Decimal:
     """Coerce a stored numeric value (None means zero) to a 2-place Decimal."""
     if value is None:
          return Decimal("0.00")
     return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def parse_amount(value: Any, field_name: str = "amount") -> Decimal:
     """
     Parse a caller-supplied monetary amount.

     Raises:
          MissingField: value is absent or blank
          InvalidAmount: not a number, not finite, not positive, or finer than cents
     """
     if value is None or (isinstance(value, str) and not value.strip()):
          raise MissingField(field_name)
     if isinstance(value, bool):
          raise InvalidAmount(f"'{field_name}' must be a number", field=field_name)

     try:
          amount = Decimal(str(value).strip())
     except InvalidOperation:
          raise InvalidAmount(f"'{field_name}' must be a number", field=field_name)

     if not amount.is_finite() or amount <= 0:
          raise InvalidAmount(f"'{field_name}' must be greater than 0", field=field_name)

     try:
          cents = amount.quantize(CENT)
     except InvalidOperation:
          raise InvalidAmount(f"'{field_name}' is too large", field=field_name)
     if cents != amount:
          raise InvalidAmount(f"'{field_name}' cannot have more than 2 decimal places", field=field_name)
     return cents


def parse_payment_method(value: Any) -> PaymentMethod:
     """Resolve the payment method; absent or unsupported methods are a missing field."""
     if isinstance(value, PaymentMethod):
          return value
     if not isinstance(value, str) or not value.strip():
          raise MissingField("paymentMethod")
     try:
          return PaymentMethod(value.strip().lower())
     except ValueError:
          supported = ", ".join(m.value for m in PaymentMethod)
          raise MissingField(
               "paymentMethod",
               f"Unsupported payment method '{value}'. Must be one of: {supported}",
          )


def _confirmation_value(confirmation: Optional[Mapping[str, Any]], key: str) -> str:
     if not confirmation:
          return ""
     value = confirmation.get(key)
     if value is None:
          return ""
     return str(value).strip()


def validate_payment_request(
     amount: Any,
     payment_method: Any,
     confirmation: Optional[Mapping[str, Any]] = None,
     installment_amount: Any = None,
) -> ValidatedPayment:
     """
     Validate a payment submission before the order is loaded.

     Checks run in a fixed order so the caller always sees the first problem:
     required fields, amount, confirmation payload, installment amount.
     """
     if amount is None or (isinstance(amount, str) and not amount.strip()):
          raise MissingField("amount")
     method = parse_payment_method(payment_method)
     parsed_amount = parse_amount(amount)

     confirmation_details = {}
     required = REQUIRED_CONFIRMATION.get(method)
     if required is not None:
          key, message = required
          value = _confirmation_value(confirmation, key)
          if not value:
               raise MissingConfirmation(message)
          confirmation_details[key] = value

     parsed_installment = None
     if installment_amount is not None and installment_amount != "":
          parsed_installment = parse_amount(installment_amount, field_name="installmentAmount")

     return ValidatedPayment(
          amount=parsed_amount,
          payment_method=method,
          confirmation_details=confirmation_details,
          installment_amount=parsed_installment,
     )


def derive_payment_status(total_paid: Decimal, total_amount: Decimal) -> PaymentStatus:
     """Status implied by the totals alone."""
     if total_paid <= 0:
          return PaymentStatus.PENDING
     if total_paid >= total_amount:
          return PaymentStatus.COMPLETED
     return PaymentStatus.PARTIAL


def next_payment_status(
     current: PaymentStatus,
     total_paid: Decimal,
     total_amount: Decimal,
) -> PaymentStatus:
     """
     Single transition function of the payment status state machine.

     The result is never behind ``current``: pending -> partial -> completed only.
     """
     target = derive_payment_status(total_paid, total_amount)
     if _STATUS_RANK[target] < _STATUS_RANK[current]:
          return current
     return target


def payment_type_for(existing_payments: int) -> PaymentType:
     return PaymentType.INITIAL if existing_payments == 0 else PaymentType.INSTALLMENT


def resolve_installment_amount(
     existing_payments: int,
     current: Optional[Decimal],
     requested: Optional[Decimal],
) -> Optional[Decimal]:
     """
     Sticky installment amount: settled when the first payment is recorded,
     read-only afterwards whatever the caller sends.
     """
     if existing_payments == 0 and current is None:
          return requested
     return current


def suggest_payment_amount(
     total_amount: Decimal,
     total_paid: Decimal,
     existing_payments: int,
     installment_amount: Optional[Decimal],
     payment_type: PaymentTypeHint = PaymentTypeHint.INSTALLMENT,
     total_due_after_first: Optional[Decimal] = None,
) -> Decimal:
     """
     Amount to pre-fill for the next payment.

     - full: the whole remaining balance
     - installment, after the first payment: the sticky installment amount
     - installment, no payments yet (or no sticky amount): remaining balance
       divided by ceil(total_due_after_first / total_amount) when that hint
       is known, else the remaining balance

     The suggestion never exceeds the remaining balance.
     """
     remaining = total_amount - total_paid
     if remaining <= 0:
          return Decimal("0.00")
     if PaymentTypeHint(payment_type) is PaymentTypeHint.FULL:
          return remaining.quantize(CENT)

     if existing_payments > 0 and installment_amount is not None:
          suggestion = installment_amount
     elif total_due_after_first is not None and total_due_after_first > 0 and total_amount > 0:
          periods = max(math.ceil(total_due_after_first / total_amount), 1)
          suggestion = remaining / periods
     else:
          suggestion = remaining

     return min(suggestion, remaining).quantize(CENT, rounding=ROUND_HALF_UP)
