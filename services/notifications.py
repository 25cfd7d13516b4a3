"""Fan-out of a single notification to many recipients."""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Optional, Protocol, Sequence

from errors import DeliveryFailure
from models.records import DeliveryTally, DeviceAboveThreshold

logger = logging.getLogger(__name__)


class NotificationChannel(Protocol):
    channel: str

    def send_notifications(
        self,
        devices_above_threshold: Sequence[DeviceAboveThreshold],
        threshold_celsius: float,
    ) -> DeliveryTally:
        ...


def fan_out(
    channel: str,
    recipients: Iterable[str],
    deliver: Callable[[str], Optional[object]],
) -> DeliveryTally:
    """Call ``deliver`` once per recipient, tallying failures instead of raising them."""
    tally = DeliveryTally(channel=channel)

    for recipient in recipients:
        try:
            message_id = deliver(recipient)
        except Exception as exc:  # noqa: BLE001 - one recipient must not block the rest
            tally.failure_count += 1
            logger.error(
                "Failed to send %s notification to %s: %s",
                channel,
                recipient,
                exc,
                extra={"channel": channel, "recipient": recipient},
            )
            remediation = exc.remediation if isinstance(exc, DeliveryFailure) else None
            if remediation:
                logger.error(
                    "Solution: %s", remediation, extra={"channel": channel, "recipient": recipient}
                )
            continue

        tally.success_count += 1
        logger.info(
            "Sent %s notification to %s",
            channel,
            recipient,
            extra={"channel": channel, "recipient": recipient, "message_id": message_id},
        )

    logger.info(
        "%s sending completed. Success: %d, Failed: %d",
        channel.capitalize(),
        tally.success_count,
        tally.failure_count,
        extra={
            "channel": channel,
            "success_count": tally.success_count,
            "failure_count": tally.failure_count,
        },
    )
    return tally
