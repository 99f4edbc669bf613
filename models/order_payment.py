# models/order_payment.py
"""
OrderPayment model - append-only record of a payment taken against an order.

Rows are never updated or deleted. Each row carries a per-order sequence
number (1, 2, 3, ...) and a SHA-256 hash linking it to the previous payment
of the same order ("0" for the first), so tampering is detectable.
"""
import enum
from sqlalchemy import Column, Integer, String, Numeric, Text, DateTime, JSON, ForeignKey, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship
from .base import Base


class PaymentMethod(str, enum.Enum):
     """Accepted manual payment methods."""
     CASH = "cash"
     CHECK = "check"
     ZELLE = "zelle"
     PAYPAL = "paypal"


class PaymentType(str, enum.Enum):
     """Position of a payment in the order's history."""
     INITIAL = "initial"
     INSTALLMENT = "installment"


class OrderPayment(Base):
     """
     Immutable payment entry. The globally unique id is the storage key;
     sequence is the order-local ordinal exposed to callers as the payment id.
     """
     __tablename__ = "order_payments"
     __table_args__ = (
          UniqueConstraint("order_id", "sequence", name="uq_order_payments_order_sequence"),
          CheckConstraint("amount > 0", name="ck_order_payments_amount_positive"),
     )

     id = Column(Integer, primary_key=True, autoincrement=True)
     order_id = Column(
          Integer,
          ForeignKey("orders.id", ondelete="RESTRICT"),  # Prevent delete if payments exist
          nullable=False,
          index=True
     )
     sequence = Column(Integer, nullable=False)

     amount = Column(Numeric(12, 2), nullable=False)
     payment_method = Column(String(20), nullable=False)
     payment_type = Column(String(20), nullable=False)
     notes = Column(Text, default="", nullable=False)
     confirmation_details = Column(JSON, nullable=False, default=dict)
     installment_amount = Column(Numeric(12, 2), nullable=True)  # Sticky order value at record time

     created_at = Column(DateTime, nullable=False)
     previous_hash = Column(String(64), nullable=False)  # "0" for the first payment
     entry_hash = Column(String(64), nullable=False, unique=True, index=True)  # SHA-256 hex length

     # Relationships
     order = relationship("Order", back_populates="payments")

     def __repr__(self):
          return (
               f"<OrderPayment(order_id={self.order_id}, sequence={self.sequence}, "
               f"amount={self.amount}, method='{self.payment_method}')>"
          )
