# services/notifications.py
"""
Payment receipt notifications.

Runs after a payment is committed (FastAPI background task), so a mail relay
failure is logged and never affects the recorded payment.
"""
import logging
import os
from typing import Tuple

import requests

from models import PaymentStatus
from services.ledger_service import PaymentRecorded
from utils.email import EmailDeliveryError, send_transactional_email

logger = logging.getLogger(__name__)

PAYMENT_RECEIPTS_ENABLED = os.getenv("PAYMENT_RECEIPTS_ENABLED", "true").lower() == "true"

_METHOD_LABELS = {
     "cash": "Cash",
     "check": "Check",
     "zelle": "Zelle",
     "paypal": "PayPal",
}


def build_payment_receipt(event: PaymentRecorded) -> Tuple[str, str]:
     """Subject and HTML body of the receipt for one recorded payment."""
     payment = event.payment
     method = _METHOD_LABELS.get(payment.payment_method, payment.payment_method)

     if event.payment_status == PaymentStatus.COMPLETED:
          subject = f"Order #{event.order_id} is paid in full"
          closing = "<p>Your order is now paid in full. Thank you!</p>"
     else:
          subject = f"Payment received for order #{event.order_id}"
          closing = f"<p>Remaining balance: <strong>${event.remaining_balance:.2f}</strong></p>"

     reference = ""
     for key, label in (("zelle_confirmation", "Zelle confirmation"), ("paypal_transaction_id", "PayPal transaction")):
          if payment.confirmation_details.get(key):
               reference = f"<p>{label}: {payment.confirmation_details[key]}</p>"

     greeting = f"Hi {event.customer_name}," if event.customer_name else "Hello,"
     html = f"""
          <p>{greeting}</p>
          <p>We received your payment of <strong>${payment.amount:.2f}</strong> by {method}
          for order #{event.order_id} (payment {payment.id}).</p>
          {reference}
          <p>Total paid: ${event.total_paid:.2f} of ${event.total_amount:.2f}</p>
          {closing}
     """
     return subject, html


def notify_payment_recorded(event: PaymentRecorded) -> bool:
     """
     Email the customer a receipt for a recorded payment.

     Returns True if the relay accepted the message.
     """
     if not PAYMENT_RECEIPTS_ENABLED:
          return False
     if not event.customer_email:
          logger.info("Order %s has no customer email; skipping payment receipt", event.order_id)
          return False

     subject, html = build_payment_receipt(event)
     try:
          send_transactional_email(event.customer_email, subject, html, to_name=event.customer_name)
     except (EmailDeliveryError, requests.RequestException):
          logger.exception("Payment receipt for order %s (payment #%s) could not be sent",
                           event.order_id, event.payment.id)
          return False
     return True
