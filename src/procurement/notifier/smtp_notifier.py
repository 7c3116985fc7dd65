"""SMTP notifier — sends the order document by email through aiosmtplib."""

import asyncio
import os
from email.message import EmailMessage
from email.utils import formataddr, formatdate

import aiosmtplib
import structlog

from procurement.fulfillment.order_graph import OrderGraph
from procurement.notifier.port import DeliveryError, Notifier
from procurement.notifier.templates import NewOrderEmailTemplate

logger = structlog.get_logger(__name__)


def _env_flag(name, default):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class SmtpNotifier(Notifier):
    def __init__(
        self,
        host: str | None = None,
        port: int | None = None,
        username: str | None = None,
        password: str | None = None,
        from_email: str | None = None,
        from_name: str | None = None,
        start_tls: bool | None = None,
        timeout: float = 30.0,
    ):
        self.host = host or os.environ.get("SMTP_HOST", "localhost")
        self.port = port or int(os.environ.get("SMTP_PORT", "587"))
        self.username = username or os.environ.get("SMTP_USER")
        self.password = password or os.environ.get("SMTP_PASSWORD")
        self.from_email = from_email or os.environ.get("SMTP_FROM_EMAIL", "orders@vendora.local")
        self.from_name = from_name or os.environ.get("SMTP_FROM_NAME", "Vendora Platform")
        self.start_tls = _env_flag("SMTP_START_TLS", True) if start_tls is None else start_tls
        self.timeout = timeout

    def build_message(self, recipients, subject, order, document, idempotency_key) -> EmailMessage:
        content = NewOrderEmailTemplate.render(order, subject)

        message = EmailMessage()
        message["From"] = formataddr((self.from_name, self.from_email))
        message["To"] = ", ".join(recipients)
        message["Subject"] = content["subject"]
        message["Date"] = formatdate(localtime=True)
        # Stable per job so receiving servers can drop duplicate deliveries
        message["Message-ID"] = f"<{idempotency_key}@{self.from_email.rpartition('@')[2] or 'localhost'}>"

        message.set_content(content["body"])
        message.add_alternative(content["html_body"], subtype="html")
        message.add_attachment(
            document,
            maintype="application",
            subtype="pdf",
            filename=content["attachment_name"],
        )
        return message

    def send(
        self,
        recipients: list[str],
        subject: str,
        order: OrderGraph,
        document_reference: str,
        document: bytes,
        idempotency_key: str,
    ) -> str:
        if not recipients:
            raise DeliveryError("No recipients for order notification")

        message = self.build_message(recipients, subject, order, document, idempotency_key)
        try:
            asyncio.run(
                aiosmtplib.send(
                    message,
                    hostname=self.host,
                    port=self.port,
                    username=self.username,
                    password=self.password,
                    start_tls=self.start_tls,
                    timeout=self.timeout,
                )
            )
        except aiosmtplib.SMTPException as exc:
            raise DeliveryError(f"SMTP delivery failed: {exc}") from exc
        except OSError as exc:
            raise DeliveryError(f"SMTP connection failed: {exc}") from exc

        logger.info(
            "Order email sent",
            order_number=order.order_number,
            recipients=recipients,
            message_id=message["Message-ID"],
        )
        return message["Message-ID"]
