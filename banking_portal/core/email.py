import asyncio
import html
import logging
from datetime import datetime
from decimal import Decimal

import aiohttp
from .config import settings

logger = logging.getLogger(__name__)

_STYLE = """
    body { font-family: Arial, sans-serif; line-height: 1.6; color: #333; }
    .container { max-width: 600px; margin: 0 auto; padding: 20px; }
    .header { background: #0066CC; color: white; padding: 20px; text-align: center; }
    .content { background: #f9f9f9; padding: 30px; }
    .code { font-size: 32px; font-weight: bold; text-align: center; margin: 20px 0; padding: 15px; background: white; border: 2px solid #0066CC; border-radius: 8px; letter-spacing: 5px; font-family: 'Courier New', monospace; }
    .details { background: white; padding: 20px; margin: 20px 0; border-radius: 8px; }
    .footer { background: #333; color: white; padding: 20px; text-align: center; font-size: 12px; }
"""


class EmailDeliveryError(Exception):
    """Raised when the email provider rejects or fails a send."""


def purpose_label(purpose: str) -> str:
    """Human wording for a purpose tag: ``bill_payment`` -> ``bill payment``."""
    if purpose == "login":
        return "sign-in"
    return purpose.replace("_", " ")


def _wrap_html(title: str, greeting_name: str, body: str) -> str:
    return f"""
    <!DOCTYPE html>
    <html>
    <head>
        <meta charset="utf-8">
        <title>{title}</title>
        <style>{_STYLE}</style>
    </head>
    <body>
        <div class="container">
            <div class="header">
                <h1>{settings.BANK_NAME}</h1>
                <h2>{title}</h2>
            </div>
            <div class="content">
                <h2>Hello {html.escape(greeting_name)},</h2>
                {body}
                <p>If you have any questions, please contact us at {settings.SUPPORT_PHONE}.</p>
            </div>
            <div class="footer">
                <p>&copy; {datetime.now().year} {settings.BANK_NAME}. All rights reserved.</p>
                <p>This is an automated message. Please do not reply to this email.</p>
            </div>
        </div>
    </body>
    </html>
    """


class EmailNotifier:
    """Sends portal emails through the Brevo transactional API."""

    def __init__(self, api_key: str | None = None, api_url: str | None = None):
        self.api_key = settings.BREVO_API_KEY if api_key is None else api_key
        self.api_url = api_url or settings.BREVO_API_URL

    async def send_otp_notification(self, to_email: str, otp_code: str, name: str, purpose: str) -> None:
        """Send a verification code. Raises EmailDeliveryError on failure."""
        label = purpose_label(purpose)
        if not self.api_key:
            logger.warning("[DEV MODE] %s OTP for %s: %s", label, to_email, otp_code)
            return

        html_body = _wrap_html(
            "Verification Code",
            name,
            f"""
            <p>You have requested {label} verification. Please use the following 6-digit code to complete your request:</p>
            <div class="code">{otp_code}</div>
            <p><strong>This code will expire in {settings.OTP_EXPIRE_MINUTES} minutes.</strong></p>
            <p>If you did not request this verification, please contact us immediately.</p>
            <p>For your security, never share this code with anyone.</p>
            """,
        )
        text_body = f"""
Hello {name},

Your {label} verification code is: {otp_code}

This code will expire in {settings.OTP_EXPIRE_MINUTES} minutes.

If you did not request this, please contact us at {settings.SUPPORT_PHONE}.

---
{settings.EMAIL_FROM_NAME}
        """
        await self._send(to_email, f"{settings.BANK_NAME} - Verification Code", html_body, text_body)

    async def send_bill_payment_confirmation(
        self, to_email: str, name: str, payee_name: str, amount: Decimal, confirmation_number: str
    ) -> None:
        body = f"""
            <p>Your bill payment has been successfully processed.</p>
            <div class="details">
                <h3>Payment Details:</h3>
                <p><strong>Payee:</strong> {html.escape(payee_name)}</p>
                <p><strong>Amount:</strong> ${amount}</p>
                <p><strong>Confirmation Number:</strong> {confirmation_number}</p>
            </div>
        """
        text = f"Bill payment to {payee_name} for ${amount} processed. Confirmation number: {confirmation_number}"
        await self._deliver_or_log(to_email, f"Bill Payment Confirmation - {payee_name}", _wrap_html("Bill Payment Confirmation", name, body), text)

    async def send_cheque_order_confirmation(
        self, to_email: str, name: str, order_number: str, quantity: int, delivery_method: str
    ) -> None:
        body = f"""
            <p>Your cheque order has been successfully placed and is being processed.</p>
            <div class="details">
                <h3>Order Details:</h3>
                <p><strong>Order Number:</strong> {order_number}</p>
                <p><strong>Quantity:</strong> {quantity} cheques</p>
                <p><strong>Delivery Method:</strong> {html.escape(delivery_method)}</p>
            </div>
            <p>You will receive another email when your cheques have been shipped.</p>
        """
        text = f"Cheque order {order_number} ({quantity} cheques, {delivery_method}) is being processed."
        await self._deliver_or_log(to_email, f"Cheque Order Confirmation - {order_number}", _wrap_html("Cheque Order Confirmation", name, body), text)

    async def send_external_account_notification(
        self, to_email: str, name: str, institution_name: str, deposit_1: Decimal, deposit_2: Decimal
    ) -> None:
        body = f"""
            <p>We have initiated the verification process for your external account at {html.escape(institution_name)}.</p>
            <div class="details">
                <h3>Verification Details:</h3>
                <p>We will make two small deposits to your external account within 1-2 business days:</p>
                <p><strong>Deposit 1:</strong> ${deposit_1}</p>
                <p><strong>Deposit 2:</strong> ${deposit_2}</p>
            </div>
            <p>Once you see these deposits, log in to online banking and verify the amounts to complete the linking process.</p>
        """
        text = f"Verification deposits for {institution_name}: ${deposit_1} and ${deposit_2}."
        await self._deliver_or_log(to_email, f"External Account Verification - {institution_name}", _wrap_html("External Account Verification", name, body), text)

    async def _deliver_or_log(self, to_email: str, subject: str, html_body: str, text_body: str) -> None:
        if not self.api_key:
            logger.info("[DEV MODE] Skipping email to %s: %s", to_email, subject)
            return
        await self._send(to_email, subject, html_body, text_body)

    async def _send(self, to_email: str, subject: str, html_body: str, text_body: str) -> None:
        headers = {
            "api-key": self.api_key,
            "Content-Type": "application/json"
        }
        payload = {
            "sender": {
                "name": settings.EMAIL_FROM_NAME,
                "email": settings.EMAIL_FROM_ADDRESS
            },
            "to": [{"email": to_email}],
            "subject": subject,
            "htmlContent": html_body,
            "textContent": text_body
        }

        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(self.api_url, json=payload, headers=headers) as response:
                    result = await response.json(content_type=None)
                    if response.status != 201:
                        logger.error("Brevo rejected email to %s: status=%s", to_email, response.status)
                        raise EmailDeliveryError(f"Brevo API error: {response.status}")
                    logger.info("Email sent to %s, message_id=%s", to_email, (result or {}).get("messageId", "unknown"))
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error("Failed to send email to %s: %s", to_email, e)
            raise EmailDeliveryError(str(e)) from e
