import smtplib

import mailer as mailer_module
from mailer import Mailer, render_booking_invoice

BOOKING = {
    "userEmail": "jane@carexyz.com",
    "userName": "Jane <script>",
    "serviceName": "Elderly Service",
    "durationValue": 2,
    "durationType": "days",
    "area": "Gulshan",
    "city": "Dhaka",
    "district": "Dhaka",
    "division": "Dhaka",
    "address": "House 1, Road 2",
    "totalCost": 3000,
    "status": "Pending",
}


class FakeSMTP:
    sent = []

    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def login(self, user, password):
        self.user = user

    def send_message(self, msg):
        FakeSMTP.sent.append(msg)


def test_invoice_contains_booking_summary():
    html = render_booking_invoice(BOOKING)

    assert "Elderly Service" in html
    assert "2 days" in html
    assert "Gulshan, Dhaka, Dhaka, Dhaka" in html
    assert "৳3000" in html
    assert "Pending" in html


def test_invoice_escapes_client_values():
    html = render_booking_invoice(BOOKING)

    assert "<script>" not in html
    assert "Jane &lt;script&gt;" in html


def test_disabled_without_credentials():
    assert not Mailer().enabled
    assert not Mailer(user="care@carexyz.com").enabled
    assert Mailer().send_booking_confirmation(BOOKING) is False


def test_send_booking_confirmation(monkeypatch):
    FakeSMTP.sent = []
    monkeypatch.setattr(mailer_module.smtplib, "SMTP_SSL", FakeSMTP)

    assert Mailer(user="care@carexyz.com", password="secret").send_booking_confirmation(BOOKING) is True

    (msg,) = FakeSMTP.sent
    assert msg["To"] == "jane@carexyz.com"
    assert msg["Subject"] == "Booking Confirmation - Elderly Service"
    assert "care@carexyz.com" in msg["From"]


def test_smtp_failure_is_logged_not_raised(monkeypatch, caplog):
    def refuse(*args, **kwargs):
        raise smtplib.SMTPConnectError(421, b"try later")

    monkeypatch.setattr(mailer_module.smtplib, "SMTP_SSL", refuse)

    assert Mailer(user="care@carexyz.com", password="secret").send_booking_confirmation(BOOKING) is False
    assert "Failed to send invoice email" in caplog.text


def test_booking_without_recipient_is_skipped(monkeypatch):
    FakeSMTP.sent = []
    monkeypatch.setattr(mailer_module.smtplib, "SMTP_SSL", FakeSMTP)

    booking = {k: v for k, v in BOOKING.items() if k != "userEmail"}
    assert Mailer(user="care@carexyz.com", password="secret").send_booking_confirmation(booking) is False
    assert FakeSMTP.sent == []
