# utils/email.py
import logging
import os

import requests
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

BREVO_KEY = os.getenv("BREVO_API_KEY")
BREVO_URL = "https://api.brevo.com/v3/smtp/email"
MAIL_SENDER_NAME = os.getenv("MAIL_SENDER_NAME", "Way of Glory Media")
MAIL_SENDER_EMAIL = os.getenv("MAIL_SENDER_EMAIL", "noreply@wayofglory.com")


class EmailDeliveryError(Exception):
     """The mail relay refused the message or is not configured."""


def send_transactional_email(to_email: str, subject: str, html_content: str, to_name: str = None) -> str:
     """
     Send one transactional email through Brevo.

     Returns the relay's message id (empty string if none was returned).
     """
     if not BREVO_KEY:
          raise EmailDeliveryError("BREVO_API_KEY is not set")

     recipient = {"email": to_email}
     if to_name:
          recipient["name"] = to_name

     response = requests.post(
          BREVO_URL,
          headers={
               "api-key": BREVO_KEY,
               "Content-Type": "application/json",
          },
          json={
               "sender": {"name": MAIL_SENDER_NAME, "email": MAIL_SENDER_EMAIL},
               "to": [recipient],
               "subject": subject,
               "htmlContent": html_content,
          },
          timeout=10,
     )
     if response.status_code not in (200, 201):
          raise EmailDeliveryError(f"Brevo error: {response.text}")

     message_id = response.json().get("messageId", "") if response.content else ""
     logger.info("Sent '%s' to %s (message id %s)", subject, to_email, message_id or "n/a")
     return message_id
