# models/order.py
import enum
from sqlalchemy import Column, Integer, String, Numeric, DateTime, Enum, CheckConstraint, func
from sqlalchemy.orm import relationship
from .base import Base


class PaymentStatus(str, enum.Enum):
     """Payment progress of an order, derived from total_paid vs total_amount."""
     PENDING = "pending"
     PARTIAL = "partial"
     COMPLETED = "completed"


class Order(Base):
     """
     Order model - customer orders for equipment, installation and services.

     Only the columns the payment ledger reads or writes are mapped here;
     catalog line items and contract data live in other tables.
     """
     __tablename__ = "orders"
     __table_args__ = (
          CheckConstraint("total_paid <= total_amount", name="ck_orders_total_paid_le_total_amount"),
     )

     id = Column(Integer, primary_key=True, autoincrement=True)

     # Customer contact (used for payment receipts)
     first_name = Column(String(100), nullable=True)
     last_name = Column(String(100), nullable=True)
     email = Column(String(255), nullable=True)

     status = Column(String(50), default="pending", nullable=False)  # pending, confirmed, completed, cancelled, delayed

     # Totals
     total_amount = Column(Numeric(12, 2), nullable=False)
     total_paid = Column(Numeric(12, 2), default=0, nullable=False)
     payment_status = Column(
          Enum(
               PaymentStatus,
               name="order_payment_status",
               create_constraint=True,
               values_callable=lambda statuses: [s.value for s in statuses],
          ),
          default=PaymentStatus.PENDING,
          nullable=False,
          index=True
     )

     # Installment plan
     installment_amount = Column(Numeric(12, 2), nullable=True)  # Fixed once the first payment is recorded
     number_of_installments = Column(Integer, nullable=True)

     # Number of appended payments; next payment ordinal and compare-and-swap version
     payment_count = Column(Integer, default=0, nullable=False)

     # Timestamps
     created_at = Column(DateTime, server_default=func.now(), nullable=False)

     # Relationships
     payments = relationship(
          "OrderPayment",
          back_populates="order",
          order_by="OrderPayment.sequence",
     )

     def __repr__(self):
          return (
               f"<Order(id={self.id}, total_amount={self.total_amount}, "
               f"total_paid={self.total_paid}, payment_status='{self.payment_status}')>"
          )

     @property
     def customer_name(self) -> str:
          return " ".join(part for part in (self.first_name, self.last_name) if part)
