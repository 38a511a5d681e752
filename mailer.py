"""
Booking confirmation emails.

Sending is best effort: when credentials are missing or the SMTP server
fails, the error is logged and the caller carries on.
"""

import logging
import os
import smtplib
from email.message import EmailMessage
from html import escape
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

EMAIL_USER = os.getenv("EMAIL_USER")
EMAIL_PASS = os.getenv("EMAIL_PASS")
EMAIL_HOST = os.getenv("EMAIL_HOST", "smtp.gmail.com")
EMAIL_PORT = int(os.getenv("EMAIL_PORT", 465))

CELL = "padding: 10px; border: 1px solid #e5e7eb;"
SHADED = "background: #f3f4f6;"
HIGHLIGHT = "background: #2563eb; color: white;"


def _row(label: str, value: str, style: str = "") -> str:
    attr = f' style="{style}"' if style else ""
    return (
        f"<tr{attr}>"
        f'<td style="{CELL}"><strong>{label}</strong></td>'
        f'<td style="{CELL}">{value}</td>'
        "</tr>"
    )


def _text(booking: Dict[str, Any], key: str) -> str:
    value = booking.get(key)
    return escape(str(value)) if value is not None else ""


def render_booking_invoice(booking: Dict[str, Any]) -> str:
    """HTML invoice summarising a newly placed booking."""
    duration = f"{_text(booking, 'durationValue')} {_text(booking, 'durationType')}".strip()
    location = ", ".join(_text(booking, k) for k in ("area", "city", "district", "division"))
    rows = [
        _row("Service", _text(booking, "serviceName"), SHADED),
        _row("Duration", duration),
        _row("Location", location, SHADED),
        _row("Address", _text(booking, "address")),
        _row("Total Cost", f"<strong>৳{_text(booking, 'totalCost')}</strong>", HIGHLIGHT),
    ]
    return (
        '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">'
        '<h2 style="color: #2563eb;">Care.xyz - Booking Invoice</h2>'
        "<hr/>"
        f"<p>Dear <strong>{_text(booking, 'userName')}</strong>,</p>"
        "<p>Your booking has been placed successfully!</p>"
        '<table style="width: 100%; border-collapse: collapse; margin: 20px 0;">'
        + "".join(rows)
        + "</table>"
        f"<p>Status: <strong>{_text(booking, 'status') or 'Pending'}</strong></p>"
        '<p style="color: #6b7280; font-size: 14px;">Thank you for choosing Care.xyz!</p>'
        "</div>"
    )


class Mailer:
    def __init__(self, user: Optional[str] = None, password: Optional[str] = None,
                 host: str = EMAIL_HOST, port: int = EMAIL_PORT):
        self.user = user
        self.password = password
        self.host = host
        self.port = port

    @classmethod
    def from_env(cls) -> "Mailer":
        return cls(user=EMAIL_USER, password=EMAIL_PASS)

    @property
    def enabled(self) -> bool:
        return bool(self.user and self.password)

    def build_booking_confirmation(self, booking: Dict[str, Any]) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = f'"Care.xyz" <{self.user}>'
        msg["To"] = str(booking["userEmail"])
        msg["Subject"] = f"Booking Confirmation - {booking.get('serviceName')}"
        msg.set_content("Your Care.xyz booking has been placed successfully.")
        msg.add_alternative(render_booking_invoice(booking), subtype="html")
        return msg

    def send_booking_confirmation(self, booking: Dict[str, Any]) -> bool:
        """Email the invoice to ``booking['userEmail']``. Never raises."""
        if not self.enabled:
            logger.debug("Email credentials not configured; skipping booking confirmation")
            return False
        if not booking.get("userEmail"):
            logger.warning("Booking has no userEmail; skipping booking confirmation")
            return False
        try:
            msg = self.build_booking_confirmation(booking)
            with smtplib.SMTP_SSL(self.host, self.port, timeout=10) as smtp:
                smtp.login(self.user, self.password)
                smtp.send_message(msg)
        except (smtplib.SMTPException, OSError, ValueError) as e:
            logger.error("Failed to send invoice email: %s", e)
            return False
        logger.info("Sent booking confirmation to %s", booking["userEmail"])
        return True
