from unittest.mock import Mock

from villabook.config import Settings
from villabook.services.notifications import (
    LoggingSink,
    MailgunSink,
    NotificationDispatcher,
    NotificationEvent,
    build_dispatcher,
)

from .conftest import FailingSink, RecordingSink

SNAPSHOT = {
    "id": 7,
    "kind": "guest",
    "status": "confirmed",
    "guest_name": "Asha",
    "start_date": "2024-06-01",
    "end_date": "2024-06-03",
    "nights": 2,
    "total_price": "4000.00",
    "decision_note": None,
}


def _settings(**overrides):
    s = Settings()
    s.APP_NAME = "VillaBook"
    s.MAIL_FROM = "bookings@villa.test"
    s.MAILGUN_API_KEY = ""
    s.MAILGUN_DOMAIN = ""
    s.HOST_NOTIFICATION_EMAIL = ""
    for key, value in overrides.items():
        setattr(s, key, value)
    return s


def test_dispatcher_keeps_going_after_a_sink_fails():
    failing, recording = FailingSink(), RecordingSink()
    dispatcher = NotificationDispatcher([failing, recording])
    dispatcher.publish([NotificationEvent("asha@example.com", "booking_confirmed", SNAPSHOT)])
    assert failing.calls == 1
    assert len(recording.events) == 1


def test_dispatcher_falls_back_to_host_address_or_skips():
    recording = RecordingSink()
    NotificationDispatcher([recording], fallback_address="host@villa.test").publish(
        [NotificationEvent(None, "booking_cancelled", SNAPSHOT)]
    )
    assert recording.events[0].recipient_address == "host@villa.test"

    silent = RecordingSink()
    NotificationDispatcher([silent]).publish([NotificationEvent(None, "booking_cancelled", SNAPSHOT)])
    assert silent.events == []


def test_mailgun_sink_skips_when_unconfigured():
    http = Mock()
    sink = MailgunSink(_settings(), session=http)
    assert not sink.configured
    sink.send(NotificationEvent("asha@example.com", "booking_confirmed", SNAPSHOT))
    http.post.assert_not_called()


def test_mailgun_sink_posts_rendered_message():
    http = Mock()
    sink = MailgunSink(_settings(MAILGUN_API_KEY="key-123", MAILGUN_DOMAIN="mg.villa.test"), session=http)
    sink.send(NotificationEvent("asha@example.com", "booking_confirmed", SNAPSHOT))

    args, kwargs = http.post.call_args
    assert args[0] == "https://api.mailgun.net/v3/mg.villa.test/messages"
    assert kwargs["auth"] == ("api", "key-123")
    assert kwargs["data"]["to"] == ["asha@example.com"]
    assert kwargs["data"]["subject"] == "Your booking is confirmed"
    assert "4,000.00" in kwargs["data"]["text"]
    assert "#7" in kwargs["data"]["text"]
    http.post.return_value.raise_for_status.assert_called_once()


def test_every_lifecycle_template_renders():
    sink = MailgunSink(_settings())
    for kind in ("booking_confirmed", "booking_rejected", "booking_cancelled"):
        text = sink.render(NotificationEvent("asha@example.com", kind, SNAPSHOT))
        assert "2024-06-01" in text


def test_build_dispatcher_adds_mailgun_only_when_configured():
    plain = build_dispatcher(_settings())
    assert [type(s) for s in plain.sinks] == [LoggingSink]

    mailing = build_dispatcher(_settings(MAILGUN_API_KEY="k", MAILGUN_DOMAIN="d", HOST_NOTIFICATION_EMAIL="host@villa.test"))
    assert [type(s) for s in mailing.sinks] == [LoggingSink, MailgunSink]
    assert mailing.fallback_address == "host@villa.test"
