"""Notifier backends: best-effort delivery of a subject/body to an address."""

import logging
from abc import ABC, abstractmethod

import httpx

from parkpulse.config import settings

logger = logging.getLogger(__name__)


class Notifier(ABC):
    """Deliver one message. Implementations may raise; the dispatcher absorbs it."""

    @abstractmethod
    async def send(self, address: str, subject: str, body: str) -> None: ...


class LogNotifier(Notifier):
    """Simulated send: the message is only written to the log."""

    async def send(self, address: str, subject: str, body: str) -> None:
        logger.info("Notification sent to <%s>: %s", address, subject)
        logger.debug("Notification body for <%s>:\n%s", address, body)


class WebhookNotifier(Notifier):
    """POST each message as JSON to a mail relay or chat webhook."""

    def __init__(self, url: str, timeout: float = 5.0, sender: str = "ParkPulse") -> None:
        self.url = url
        self.timeout = timeout
        self.sender = sender

    async def send(self, address: str, subject: str, body: str) -> None:
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(
                self.url,
                json={"to": address, "from": self.sender, "subject": subject, "body": body},
            )
            response.raise_for_status()
        logger.info("Notification delivered to <%s> via webhook: %s", address, subject)


def build_notifier() -> Notifier:
    """Create the notifier selected by ``NOTIFIER_BACKEND``."""
    if settings.notifier_backend == "webhook":
        return WebhookNotifier(
            settings.notifier_webhook_url,
            timeout=settings.notifier_timeout_seconds,
            sender=settings.notifier_sender_name,
        )
    return LogNotifier()
