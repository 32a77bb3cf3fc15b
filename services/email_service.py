"""Transactional email service."""

import html
import logging
from typing import Any

from clients.resend_client import ResendClient
from schemas.email import EmailData, SendEmailRequest
from schemas.events import InvoiceDetails

logger = logging.getLogger(__name__)


def _format_amount(amount: int | None, currency: str | None) -> str | None:
    if amount is None:
        return None
    code = (currency or "usd").upper()
    return f"{amount / 100:.2f} {code}"


class EmailService:
    """Sends transactional emails through Resend."""

    def __init__(self, client: ResendClient, default_from: str) -> None:
        self.client = client
        self.default_from = default_from

    async def send_email(self, request: SendEmailRequest) -> EmailData:
        """
        Send an email.

        Args:
            request: Recipients, subject, HTML body and optional headers

        Returns:
            The provider's record of the accepted email

        Raises:
            ConfigurationError: Email provider is not configured
            EmailDeliveryError: Provider rejected the email or was unreachable
        """
        payload: dict[str, Any] = {
            "from": request.from_ or self.default_from,
            "to": request.recipients,
            "subject": request.subject,
            "html": request.html,
        }
        if request.reply_to:
            payload["reply_to"] = request.reply_to
        if request.cc:
            payload["cc"] = request.cc
        if request.bcc:
            payload["bcc"] = request.bcc

        logger.info(f"Sending email to {len(payload['to'])} recipient(s): {request.subject!r}")
        data = await self.client.send(payload)
        logger.info(f"Email accepted by provider: {data['id']}")
        return EmailData.model_validate(data)

    async def send_payment_failed_notice(
        self,
        to: str,
        invoice: InvoiceDetails,
        full_name: str | None = None,
    ) -> EmailData:
        """Tell a subscriber their latest payment did not go through."""
        greeting = f"Hi {html.escape(full_name)}," if full_name else "Hi,"
        amount = _format_amount(invoice.amount_due, invoice.currency)

        paragraphs = [
            greeting,
            (
                f"We couldn't process your payment of {amount}."
                if amount
                else "We couldn't process your latest subscription payment."
            ),
        ]
        if invoice.next_payment_attempt:
            paragraphs.append(
                "We'll try again on "
                f"{invoice.next_payment_attempt.strftime('%B %d, %Y')}."
            )
        paragraphs.append(
            "Please update your payment method to keep your subscription active."
        )

        body = "".join(f"<p>{paragraph}</p>" for paragraph in paragraphs)
        if invoice.hosted_invoice_url:
            url = html.escape(invoice.hosted_invoice_url, quote=True)
            body += f'<p><a href="{url}">View invoice and update payment</a></p>'

        return await self.send_email(
            SendEmailRequest(
                to=to,
                subject="Action required: your payment failed",
                html=f"<h1>Payment failed</h1>{body}",
            )
        )
