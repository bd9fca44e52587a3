import asyncio
import logging
from datetime import datetime, timezone

from notifications import EmailJob, NotificationDispatcher, contact_emails


class FlakySender:
    def __init__(self):
        self.sent = []

    def send(self, job):
        if job.to == "down@example.com":
            raise RuntimeError("smtp down")
        self.sent.append(job.to)
        return True


def _job(to):
    return EmailJob(kind="customer_reply", to=to, subject="Hi", html="<p>Hi</p>")


def test_failed_send_is_logged_and_queue_keeps_going(caplog):
    sender = FlakySender()
    dispatcher = NotificationDispatcher(sender=sender)

    async def scenario():
        await dispatcher.start()
        assert dispatcher.enqueue(_job("down@example.com"))
        assert dispatcher.enqueue(_job("ok@example.com"))
        await dispatcher.join()
        await dispatcher.stop()

    with caplog.at_level(logging.ERROR, logger="notifications"):
        asyncio.run(scenario())

    assert sender.sent == ["ok@example.com"]
    assert "Failed to send customer_reply email to down@example.com" in caplog.text
    assert not dispatcher.running


def test_enqueue_from_worker_thread():
    sender = FlakySender()
    dispatcher = NotificationDispatcher(sender=sender)

    async def scenario():
        await dispatcher.start()
        await asyncio.to_thread(dispatcher.enqueue, _job("thread@example.com"))
        await dispatcher.stop()

    asyncio.run(scenario())
    assert sender.sent == ["thread@example.com"]


def test_enqueue_without_running_worker_is_dropped(caplog):
    dispatcher = NotificationDispatcher(sender=FlakySender())
    with caplog.at_level(logging.ERROR, logger="notifications"):
        assert dispatcher.enqueue(_job("x@example.com")) is False
    assert "not running" in caplog.text


def test_contact_emails_escape_user_input():
    contact = {
        "name": "<Jean>",
        "email": "jean@example.com",
        "message": "a & b",
        "service": "Valuation",
        "timestamp": datetime(2026, 1, 2, 3, 4, tzinfo=timezone.utc),
    }
    alert, reply = contact_emails(contact, "abc123")
    assert alert.kind == "admin_alert"
    assert "&lt;Jean&gt;" in alert.html
    assert "a &amp; b" in alert.html
    assert "2026-01-02 03:04" in alert.html
    assert "abc123" in alert.html
    assert reply.to == "jean@example.com"
    assert "Dear &lt;Jean&gt;" in reply.html
