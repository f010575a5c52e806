"""Tests for the HTML bodies of portal emails."""

from decimal import Decimal

import pytest

from banking_portal.core.email import EmailNotifier, purpose_label


@pytest.fixture
def outbox(monkeypatch):
    notifier = EmailNotifier(api_key="test-key")
    sent = []

    async def capture(to_email, subject, html_body, text_body):
        sent.append({"to": to_email, "subject": subject, "html": html_body, "text": text_body})

    monkeypatch.setattr(notifier, "_send", capture)
    return notifier, sent


async def test_bill_payment_email_escapes_payee(outbox):
    notifier, sent = outbox

    await notifier.send_bill_payment_confirmation(
        "member@example.com", "Mate <b>Smith</b>", "<script>alert(1)</script>", Decimal("12.50"), "BP20250120000001"
    )

    body = sent[0]["html"]
    assert "<script>" not in body
    assert "&lt;script&gt;alert(1)&lt;/script&gt;" in body
    assert "Mate &lt;b&gt;Smith&lt;/b&gt;" in body
    assert "BP20250120000001" in body


async def test_external_account_email_escapes_institution(outbox):
    notifier, sent = outbox

    await notifier.send_external_account_notification(
        "member@example.com", "Mate Smith", 'Bank "<img src=x>"', Decimal("0.12"), Decimal("0.34")
    )

    body = sent[0]["html"]
    assert "<img src=x>" not in body
    assert "&lt;img src=x&gt;" in body
    assert "$0.12" in body and "$0.34" in body


async def test_without_api_key_nothing_is_sent(monkeypatch):
    notifier = EmailNotifier(api_key="")
    calls = []

    async def capture(*args):
        calls.append(args)

    monkeypatch.setattr(notifier, "_send", capture)
    await notifier.send_otp_notification("member@example.com", "123456", "Mate Smith", "login")
    await notifier.send_cheque_order_confirmation("member@example.com", "Mate Smith", "CO-2025-000001", 50, "standard")

    assert calls == []


def test_purpose_label():
    assert purpose_label("login") == "sign-in"
    assert purpose_label("bill_payment") == "bill payment"
