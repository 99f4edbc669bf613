# schemas/__init__.py
from .payment import (
     PaymentConfirmation,
     PaymentRecordRequest,
     PaymentResponse,
     LedgerResponse,
     RecordPaymentResponse,
     PaymentSuggestionResponse,
     LedgerVerificationResponse,
     ErrorResponse,
)

__all__ = [
     "PaymentConfirmation",
     "PaymentRecordRequest",
     "PaymentResponse",
     "LedgerResponse",
     "RecordPaymentResponse",
     "PaymentSuggestionResponse",
     "LedgerVerificationResponse",
     "ErrorResponse",
]
