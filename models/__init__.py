# models/__init__.py
from .base import Base
from .order import Order, PaymentStatus
from .order_payment import OrderPayment, PaymentMethod, PaymentType

__all__ = [
     "Base",
     "Order",
     "PaymentStatus",
     "OrderPayment",
     "PaymentMethod",
     "PaymentType",
]
