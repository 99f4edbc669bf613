# services/exceptions.py
"""
Errors raised by the payment ledger.

Each error carries a short reason (``error``), a human-readable explanation
the admin UI can show as-is (``details``) and the HTTP status the API maps
it to. The ledger never retries; the caller corrects the input and resubmits.
"""
from typing import Optional


class LedgerError(Exception):
     """Base class for all payment ledger failures."""

     status_code: int = 400
     error: str = "Payment could not be recorded"

     def __init__(self, details: Optional[str] = None, error: Optional[str] = None):
          if error is not None:
               self.error = error
          self.details = details or self.error
          super().__init__(self.details)

     def to_dict(self) -> dict:
          return {"error": self.error, "details": self.details}


class OrderNotFound(LedgerError):
     status_code = 404
     error = "Order not found"

     def __init__(self, order_id: int):
          self.order_id = order_id
          super().__init__(f"Order with ID {order_id} not found")


class MissingField(LedgerError):
     error = "Missing required fields"

     def __init__(self, field: str, details: Optional[str] = None):
          self.field = field
          super().__init__(details or f"'{field}' is required")


class InvalidAmount(LedgerError):
     error = "Invalid payment amount"

     def __init__(self, details: str = "Payment amount must be greater than 0", field: str = "amount"):
          self.field = field
          super().__init__(details)


class MissingConfirmation(LedgerError):
     error = "Missing payment confirmation"


class ExceedsBalance(LedgerError):
     error = "Payment amount exceeds remaining balance"

     def __init__(self, maximum_allowed):
          self.maximum_allowed = maximum_allowed
          super().__init__(f"Maximum payment allowed is ${maximum_allowed:.2f}")


class PersistenceFailure(LedgerError):
     """The storage write did not complete; nothing was applied."""
     status_code = 500
     error = "Failed to record payment"


class LedgerConflict(PersistenceFailure):
     """Another payment was appended to the same order between read and write."""
     status_code = 409

     def __init__(self, order_id: int):
          self.order_id = order_id
          super().__init__(
               f"Order {order_id} was updated by another payment; reload the ledger and retry",
               error="Concurrent payment update",
          )
