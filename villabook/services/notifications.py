import logging
import datetime
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional, Protocol

import requests

from ..config import Settings
from ..models import Booking
from ..templating import templates

logger = logging.getLogger(__name__)

SUBJECTS = {
    "booking_confirmed": "Your booking is confirmed",
    "booking_rejected": "Your booking request was declined",
    "booking_cancelled": "Your booking was cancelled",
}


@dataclass(frozen=True)
class NotificationEvent:
    recipient_address: Optional[str]
    template_kind: str
    booking_snapshot: dict = field(default_factory=dict)


def booking_snapshot(booking: Booking) -> dict[str, Any]:
    """Plain-data copy of a booking, safe to hand to sinks after the session is gone."""
    return {
        "id": booking.id,
        "kind": booking.kind.value,
        "status": booking.status.value,
        "guest_id": booking.guest_id,
        "guest_name": booking.guest_name,
        "guest_email": booking.guest_email,
        "resource_id": booking.resource_id,
        "configuration_id": booking.configuration_id,
        "start_date": booking.start_date.isoformat(),
        "end_date": booking.end_date.isoformat(),
        "nights": booking.nights,
        "total_price": str(booking.total_price) if booking.total_price is not None else None,
        "decision_note": booking.decision_note,
    }


class NotificationSink(Protocol):
    def send(self, event: NotificationEvent) -> None: ...


class LoggingSink:
    """Default sink: records what would have been sent."""

    def send(self, event: NotificationEvent) -> None:
        logger.info(
            "Notification %s for booking #%s -> %s",
            event.template_kind, event.booking_snapshot.get("id"), event.recipient_address,
        )


class MailgunSink:
    """Sends booking notifications through the Mailgun API."""

    def __init__(self, settings: Settings, session: Optional[requests.Session] = None):
        self.settings = settings
        self.http = session or requests.Session()

    @property
    def configured(self) -> bool:
        return bool(self.settings.MAILGUN_API_KEY and self.settings.MAILGUN_DOMAIN)

    def render(self, event: NotificationEvent) -> str:
        return templates.get_template(f"emails/{event.template_kind}.txt").render({
            "app_name": self.settings.APP_NAME,
            "booking": event.booking_snapshot,
            "current_year": datetime.datetime.now().year,
        })

    def send(self, event: NotificationEvent) -> None:
        if not self.configured:
            logger.warning("Mailgun API key or domain not configured. Skipping email.")
            return

        mailgun_url = f"https://api.mailgun.net/v3/{self.settings.MAILGUN_DOMAIN}/messages"
        data = {
            "from": f"{self.settings.APP_NAME} <{self.settings.MAIL_FROM}>",
            "to": [event.recipient_address],
            "subject": SUBJECTS.get(event.template_kind, self.settings.APP_NAME),
            "text": self.render(event),
        }
        response = self.http.post(mailgun_url, auth=("api", self.settings.MAILGUN_API_KEY), data=data, timeout=10)
        response.raise_for_status()
        logger.info("Notification %s sent to %s via Mailgun.", event.template_kind, event.recipient_address)


class NotificationDispatcher:
    """
    Fans committed booking events out to sinks. Best-effort: a sink that
    raises is logged and skipped; nothing propagates back to the caller.
    """

    def __init__(self, sinks: Iterable[NotificationSink], fallback_address: str = ""):
        self.sinks = list(sinks)
        self.fallback_address = fallback_address or None

    def publish(self, events: Iterable[NotificationEvent]) -> None:
        for event in events:
            recipient = event.recipient_address or self.fallback_address
            if not recipient:
                logger.debug("No recipient for %s on booking #%s", event.template_kind, event.booking_snapshot.get("id"))
                continue
            if recipient != event.recipient_address:
                event = NotificationEvent(recipient, event.template_kind, event.booking_snapshot)
            for sink in self.sinks:
                try:
                    sink.send(event)
                except Exception as exc:
                    logger.error(
                        "Notification %s for booking #%s failed in %s: %s",
                        event.template_kind, event.booking_snapshot.get("id"), sink.__class__.__name__, exc,
                    )


def build_dispatcher(settings: Settings) -> NotificationDispatcher:
    sinks: list[NotificationSink] = [LoggingSink()]
    mailgun = MailgunSink(settings)
    if mailgun.configured:
        sinks.append(mailgun)
    return NotificationDispatcher(sinks, fallback_address=settings.HOST_NOTIFICATION_EMAIL)
