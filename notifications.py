"""Contact-form emails and the queue that sends them.

Handlers enqueue ``EmailJob`` objects and return immediately. A single
asyncio worker, started with the application, drains the queue and hands
each job to SendGrid on a worker thread. Failures are logged and dropped;
the HTTP response never depends on them.
"""

import asyncio
import contextlib
import logging
from dataclasses import dataclass
from datetime import datetime
from html import escape
from typing import Any, Dict, List, Optional

import sendgrid
from sendgrid.helpers.mail import Email, HtmlContent, Mail, To

from config import get_settings

logger = logging.getLogger(__name__)

BRAND = "AMIZERO Real Estate"
CONTACT_PHONE = "+250 725 502 317"

_HEADER = """
<div style="background: linear-gradient(135deg, #667eea 0%, #764ba2 100%); padding: 20px; text-align: center;">
    <h1 style="color: white; margin: 0;">{brand}</h1>
    <p style="color: white; margin: 5px 0;">{subtitle}</p>
</div>
"""

ADMIN_ALERT_TEMPLATE = """
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
    {header}
    <div style="padding: 20px; background: #f8f9fa;">
        <h2 style="color: #2c3e50;">Contact Details</h2>
        <p><strong>Name:</strong> {name}</p>
        <p><strong>Email:</strong> {email}</p>
        <p><strong>Phone:</strong> {phone}</p>
        <p><strong>Service:</strong> {service}</p>
        <p><strong>Submitted:</strong> {submitted}</p>
        <h3 style="color: #2c3e50;">Message</h3>
        <div style="background: white; padding: 15px; border-left: 4px solid #3498db; margin: 10px 0;">
            {message}
        </div>
        <p style="margin-top: 20px; color: #7f8c8d; font-size: 0.9em;">Contact ID: {contact_id}</p>
    </div>
</div>
"""

CUSTOMER_REPLY_TEMPLATE = """
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
    {header}
    <div style="padding: 20px;">
        <h2 style="color: #2c3e50;">Dear {name},</h2>
        <p>Thank you for contacting {brand} Ltd. We have received your inquiry and will get back to you within 24 hours.</p>
        <h3 style="color: #2c3e50;">Your Message Summary:</h3>
        <div style="background: #f8f9fa; padding: 15px; border-radius: 5px; margin: 10px 0;">
            <p><strong>Service:</strong> {service}</p>
            <p><strong>Message:</strong> {message}</p>
        </div>
        <p>In the meantime, feel free to explore our services or contact us directly:</p>
        <ul>
            <li>Phone: {phone}</li>
            <li>Email: {reply_to}</li>
        </ul>
        <p style="margin-top: 30px;">Best regards,<br><strong>{brand} Team</strong></p>
    </div>
</div>
"""


@dataclass(frozen=True)
class EmailJob:
    kind: str
    to: str
    subject: str
    html: str


def admin_alert_email(contact: Dict[str, Any], contact_id: str) -> EmailJob:
    settings = get_settings()
    submitted = contact.get("timestamp") or datetime.now()
    html = ADMIN_ALERT_TEMPLATE.format(
        header=_HEADER.format(brand=BRAND, subtitle="New Contact Request"),
        name=escape(contact["name"]),
        email=escape(contact["email"]),
        phone=escape(contact.get("phone") or "Not provided"),
        service=escape(contact.get("service") or "General Inquiry"),
        submitted=escape(submitted.strftime("%Y-%m-%d %H:%M")),
        message=escape(contact["message"]),
        contact_id=escape(contact_id),
    )
    return EmailJob(
        kind="admin_alert",
        to=settings.admin_notify_email,
        subject=f"New Contact Request - {BRAND}",
        html=html,
    )


def customer_reply_email(contact: Dict[str, Any]) -> EmailJob:
    settings = get_settings()
    html = CUSTOMER_REPLY_TEMPLATE.format(
        header=_HEADER.format(brand=BRAND, subtitle="Thank You for Your Interest"),
        brand=BRAND,
        name=escape(contact["name"]),
        service=escape(contact.get("service") or "General Inquiry"),
        message=escape(contact["message"]),
        phone=CONTACT_PHONE,
        reply_to=escape(settings.admin_notify_email),
    )
    return EmailJob(
        kind="customer_reply",
        to=contact["email"],
        subject=f"Thank you for contacting {BRAND}",
        html=html,
    )


def contact_emails(contact: Dict[str, Any], contact_id: str) -> List[EmailJob]:
    return [admin_alert_email(contact, contact_id), customer_reply_email(contact)]


class EmailSender:
    """Synchronous SendGrid transport."""

    def send(self, job: EmailJob) -> bool:
        settings = get_settings()
        if not settings.sendgrid_api_key:
            logger.warning("SENDGRID_API_KEY not set; skipping %s email to %s", job.kind, job.to)
            return False

        mail = Mail(
            from_email=Email(settings.email_from, BRAND),
            to_emails=To(job.to),
            subject=job.subject,
            html_content=HtmlContent(job.html),
        )
        client = sendgrid.SendGridAPIClient(api_key=settings.sendgrid_api_key)
        response = client.send(mail)
        if response.status_code in (200, 201, 202):
            return True
        logger.error("SendGrid returned status %s: %s", response.status_code, response.body)
        return False


class NotificationDispatcher:
    def __init__(self, sender: Optional[EmailSender] = None, drain_timeout: float = 10.0):
        self.sender = sender or EmailSender()
        self.drain_timeout = drain_timeout
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._queue: Optional[asyncio.Queue] = None
        self._worker: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    async def start(self) -> None:
        if self.running:
            return
        self._loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue()
        self._worker = asyncio.create_task(self._run(), name="notification-dispatcher")
        logger.info("Notification dispatcher started")

    async def stop(self) -> None:
        if self._worker is None:
            return
        try:
            await asyncio.wait_for(self._queue.join(), timeout=self.drain_timeout)
        except asyncio.TimeoutError:
            logger.warning("Dropping %s unsent emails on shutdown", self._queue.qsize())
        self._worker.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._worker
        self._worker = None
        self._queue = None
        self._loop = None
        logger.info("Notification dispatcher stopped")

    def enqueue(self, job: EmailJob) -> bool:
        """Queue ``job`` without waiting for delivery. Safe from any thread."""
        if not self.running or self._loop is None or self._loop.is_closed():
            logger.error("Notification dispatcher not running; dropping %s email to %s", job.kind, job.to)
            return False

        try:
            current = asyncio.get_running_loop()
        except RuntimeError:
            current = None

        if current is self._loop:
            self._queue.put_nowait(job)
        else:
            self._loop.call_soon_threadsafe(self._queue.put_nowait, job)
        return True

    async def join(self) -> None:
        if self._queue is not None:
            await self._queue.join()

    async def _run(self) -> None:
        while True:
            job = await self._queue.get()
            try:
                sent = await asyncio.to_thread(self.sender.send, job)
                if sent:
                    logger.info("Sent %s email to %s", job.kind, job.to, extra={"job": job.kind})
            except Exception:
                logger.exception("Failed to send %s email to %s", job.kind, job.to, extra={"job": job.kind})
            finally:
                self._queue.task_done()


dispatcher = NotificationDispatcher()


def get_dispatcher() -> NotificationDispatcher:
    return dispatcher
