"""Email alerts delivered through the SES-style transport."""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from errors import ConfigError
from mailer.mock_ses import MockSESClient
from models.records import DeliveryTally, DeviceAboveThreshold
from services.notifications import fan_out
from services.rendering import render_alert
from storage.parameter_store import (
    MockParameterStore,
    parse_comma_separated_list,
    read_required_parameter,
)

logger = logging.getLogger(__name__)


class EmailNotifier:
    """Sends one email per configured recipient."""

    channel = "email"

    def __init__(
        self,
        store: MockParameterStore,
        emails_param: str,
        ses: MockSESClient,
        sender_email: Optional[str] = None,
    ) -> None:
        self.store = store
        self.emails_param = emails_param
        self.ses = ses
        self.sender_email = sender_email

    def get_recipients(self) -> List[str]:
        value = read_required_parameter(self.store, self.emails_param, with_decryption=True)
        return parse_comma_separated_list(value)

    def send_notifications(
        self,
        devices_above_threshold: Sequence[DeviceAboveThreshold],
        threshold_celsius: float,
    ) -> DeliveryTally:
        recipients = self.get_recipients()
        if not recipients:
            raise ConfigError("No notification emails configured")

        # SES only accepts verified senders; the first recipient is the verified one.
        sender = self.sender_email or recipients[0]
        logger.info(
            "Preparing email notifications from %s to %d recipient(s) for %d device(s)",
            sender,
            len(recipients),
            len(devices_above_threshold),
            extra={"channel": self.channel},
        )

        subject = render_alert("email_subject.txt.j2", devices_above_threshold, threshold_celsius).strip()
        text_body = render_alert("email_body.txt.j2", devices_above_threshold, threshold_celsius)
        html_body = render_alert("email_body.html.j2", devices_above_threshold, threshold_celsius)

        def deliver(recipient: str) -> str:
            return self.ses.send_email(
                source=sender,
                destination=[recipient],
                reply_to=[sender],
                subject=subject,
                text_body=text_body,
                html_body=html_body,
            )

        return fan_out(self.channel, recipients, deliver)
