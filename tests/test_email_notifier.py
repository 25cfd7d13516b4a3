from __future__ import annotations

import logging
from typing import List

import pytest

from errors import ConfigError
from mailer.mock_ses import MessageRejected, MockSESClient
from models.records import DeviceAboveThreshold
from services.email_notifier import EmailNotifier
from storage.parameter_store import MockParameterStore

EMAILS_PARAM = "/alerts/emails"


def _devices() -> List[DeviceAboveThreshold]:
    return [
        DeviceAboveThreshold(id="1", name="Kitchen Floor", measured_value=280, temperature_celsius=28.0),
        DeviceAboveThreshold(id="7", name="Hall <Floor>", measured_value=301, temperature_celsius=30.1),
    ]


def _notifier(emails: str | None, ses: MockSESClient) -> EmailNotifier:
    store = MockParameterStore()
    if emails is not None:
        store.put_parameter(EMAILS_PARAM, emails)
    return EmailNotifier(store, EMAILS_PARAM, ses)


class FlakySESClient(MockSESClient):
    def __init__(self, failing: set[str]) -> None:
        super().__init__()
        self.failing = failing
        self.attempts: List[str] = []

    def send_email(self, source, destination, reply_to, subject, text_body, html_body) -> str:
        self.attempts.append(destination[0])
        if destination[0] in self.failing:
            raise MessageRejected(f"Rejected {destination[0]}")
        return super().send_email(source, destination, reply_to, subject, text_body, html_body)


def test_sends_one_message_per_recipient_from_first_recipient() -> None:
    ses = MockSESClient()
    notifier = _notifier("anna@example.com, bob@example.com", ses)

    tally = notifier.send_notifications(_devices(), 27.0)

    assert (tally.success_count, tally.failure_count) == (2, 0)
    messages = ses.list_messages()
    assert sorted(message.destination[0] for message in messages) == [
        "anna@example.com",
        "bob@example.com",
    ]
    for message in messages:
        assert message.source == "anna@example.com"
        assert message.reply_to == ["anna@example.com"]
        assert message.subject == "Danfoss Temperature Warning: 27.0°C Threshold Exceeded"
        assert "  - Kitchen Floor (ID: 1): 28.0°C" in message.text_body
        assert "<li><strong>Kitchen Floor</strong>: 28.0°C</li>" in message.html_body
        assert "Hall &lt;Floor&gt;" in message.html_body


def test_sender_override_is_used_when_configured() -> None:
    ses = MockSESClient()
    store = MockParameterStore()
    store.put_parameter(EMAILS_PARAM, "anna@example.com")
    notifier = EmailNotifier(store, EMAILS_PARAM, ses, sender_email="alerts@example.com")

    notifier.send_notifications(_devices(), 27.0)

    assert ses.list_messages()[0].source == "alerts@example.com"


@pytest.mark.parametrize("emails", [None, "", " , ,"])
def test_empty_recipient_list_is_a_config_error(emails: str | None) -> None:
    ses = MockSESClient()
    notifier = _notifier(emails, ses)

    with pytest.raises(ConfigError):
        notifier.send_notifications(_devices(), 27.0)

    assert ses.list_messages() == []


def test_failed_recipient_does_not_stop_the_others(caplog) -> None:
    ses = FlakySESClient(failing={"second@example.com"})
    notifier = _notifier("first@example.com,second@example.com,third@example.com", ses)

    with caplog.at_level(logging.INFO):
        tally = notifier.send_notifications(_devices(), 27.0)

    assert ses.attempts == ["first@example.com", "second@example.com", "third@example.com"]
    assert (tally.success_count, tally.failure_count) == (2, 1)
    messages = [record.getMessage() for record in caplog.records]
    assert any("second@example.com" in message and "Rejected" in message for message in messages)
    assert any("Success: 2, Failed: 1" in message for message in messages)


def test_duplicate_recipients_are_not_deduplicated() -> None:
    ses = MockSESClient()
    notifier = _notifier("anna@example.com,anna@example.com", ses)

    tally = notifier.send_notifications(_devices(), 27.0)

    assert tally.success_count == 2
