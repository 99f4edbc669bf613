# utils/__init__.py
from .email import EmailDeliveryError, send_transactional_email

__all__ = [
     "EmailDeliveryError",
     "send_transactional_email",
]
