# services/__init__.py
from .ledger_service import (
     GENESIS_HASH,
     LedgerSnapshot,
     OrderLedgerStore,
     PaymentEntry,
     PaymentRecorded,
     RecordPaymentResult,
     SqlOrderLedgerStore,
     compute_entry_hash,
     get_ledger,
     record_payment,
     suggest_payment,
     verify_ledger,
)
from .notifications import notify_payment_recorded

__all__ = [
     "GENESIS_HASH",
     "LedgerSnapshot",
     "OrderLedgerStore",
     "PaymentEntry",
     "PaymentRecorded",
     "RecordPaymentResult",
     "SqlOrderLedgerStore",
     "compute_entry_hash",
     "get_ledger",
     "record_payment",
     "suggest_payment",
     "verify_ledger",
     "notify_payment_recorded",
]
