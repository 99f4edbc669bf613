# schemas/payment.py
"""
Pydantic schemas for the order payment ledger API.

Request fields accept both the admin UI's camelCase names and snake_case.
Payment fields other than notes and paymentType are taken as raw JSON
values so the ledger itself reports missing or malformed input with its own
error messages (a JSON ``true`` must not be coerced to 1).
"""
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional, List
from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from services.payment_policy import PaymentTypeHint


class PaymentConfirmation(BaseModel):
     """Method-specific proof of payment; codes may arrive as strings or numbers."""
     zelle_confirmation: Any = Field(
          None,
          validation_alias=AliasChoices("zelle_confirmation", "zelleConfirmation"),
          description="Zelle confirmation code (required for zelle)",
     )
     paypal_transaction_id: Any = Field(
          None,
          validation_alias=AliasChoices("paypal_transaction_id", "paypalTransactionId"),
          description="PayPal transaction ID (required for paypal)",
     )


class PaymentRecordRequest(BaseModel):
     """Request body for POST /api/admin/orders/{order_id}/payments."""
     amount: Any = Field(None, description="Amount paid")
     payment_method: Any = Field(
          None,
          validation_alias=AliasChoices("paymentMethod", "payment_method"),
          description="cash, check, zelle or paypal",
     )
     notes: Optional[str] = Field(None, max_length=2000)
     confirmation: Optional[PaymentConfirmation] = None
     payment_type: Optional[PaymentTypeHint] = Field(
          None,
          validation_alias=AliasChoices("paymentType", "payment_type"),
          description="UI hint (full / installment); does not change what is recorded",
     )
     installment_amount: Any = Field(
          None,
          validation_alias=AliasChoices("installmentAmount", "installment_amount"),
          description="Fixed installment size; only honoured on the first payment",
     )

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "amount": "250.00",
                    "paymentMethod": "zelle",
                    "notes": "Deposit",
                    "confirmation": {"zelle_confirmation": "ZL-889120"},
                    "paymentType": "installment",
                    "installmentAmount": "250.00",
               }
          }
     )


class PaymentResponse(BaseModel):
     """One entry of an order's payment history."""
     id: int = Field(..., description="Order-local payment number (1, 2, 3, ...)")
     order_id: int
     amount: Decimal
     payment_method: str
     payment_type: str
     notes: str = ""
     confirmation_details: dict = Field(default_factory=dict)
     installment_amount: Optional[Decimal] = None
     created_at: datetime

     model_config = ConfigDict(from_attributes=True)


class LedgerResponse(BaseModel):
     """Response for GET /api/admin/orders/{order_id}/payments."""
     success: bool = True
     order_id: int
     payment_history: List[PaymentResponse]
     total_paid: Decimal
     total_amount: Decimal
     installment_amount: Optional[Decimal] = None
     number_of_installments: Optional[int] = None
     payment_status: str
     remaining_balance: Decimal


class RecordPaymentResponse(BaseModel):
     """Response for POST /api/admin/orders/{order_id}/payments."""
     success: bool = True
     payment: PaymentResponse
     total_paid: Decimal
     payment_status: str
     remaining_balance: Decimal
     installment_amount: Optional[Decimal] = None
     number_of_installments: Optional[int] = None

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "success": True,
                    "payment": {
                         "id": 1,
                         "order_id": 42,
                         "amount": "250.00",
                         "payment_method": "cash",
                         "payment_type": "initial",
                         "notes": "",
                         "confirmation_details": {},
                         "installment_amount": None,
                         "created_at": "2026-10-19T15:30:00",
                    },
                    "total_paid": "250.00",
                    "payment_status": "partial",
                    "remaining_balance": "750.00",
                    "installment_amount": None,
                    "number_of_installments": None,
               }
          }
     )


class PaymentSuggestionResponse(BaseModel):
     """Response for GET /api/admin/orders/{order_id}/payments/suggestion."""
     order_id: int
     payment_type: str
     suggested_amount: Decimal
     remaining_balance: Decimal
     installment_amount: Optional[Decimal] = None


class LedgerVerificationResponse(BaseModel):
     """Response for GET /api/admin/orders/{order_id}/payments/verify."""
     order_id: int
     verified: bool
     message: str
     entries_checked: int


class ErrorResponse(BaseModel):
     """Body of every ledger error response."""
     error: str
     details: str
