"""Scheduled temperature check: fetch, evaluate, notify."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

import httpx

from clients.registry import DeviceRegistryClient
from mailer.mock_ses import MockSESClient
from models.records import CheckSummary
from services.email_notifier import EmailNotifier
from services.evaluator import ThresholdEvaluator, to_celsius
from services.notifications import NotificationChannel
from services.telegram_notifier import TelegramNotifier
from settings import AlertSettings, Settings
from storage.parameter_store import MockParameterStore

logger = logging.getLogger(__name__)


class AlertService:
    """Coordinates the registry, the evaluator, and the notification channels."""

    def __init__(
        self,
        registry: DeviceRegistryClient,
        evaluator: ThresholdEvaluator,
        channels: Sequence[NotificationChannel],
        threshold: int,
        exclude_name_pattern: Optional[str] = None,
    ) -> None:
        self.registry = registry
        self.evaluator = evaluator
        self.channels = list(channels)
        self.threshold = threshold
        self.exclude_name_pattern = exclude_name_pattern

    def run(self) -> CheckSummary:
        """Run one check; delivery problems are logged, registry problems raise."""
        all_devices = self.registry.get_devices()
        if self.exclude_name_pattern:
            devices = self.registry.filter_devices(all_devices, self.exclude_name_pattern)
        else:
            devices = all_devices
        logger.info(
            "Total devices: %d, checking %d device(s) (excluding %r)",
            len(all_devices),
            len(devices),
            self.exclude_name_pattern,
        )

        above = self.evaluator.check_temperatures(devices, self.threshold)
        summary = CheckSummary(
            total_devices=len(all_devices),
            devices_checked=len(devices),
            devices_above_threshold=len(above),
        )

        if not above:
            logger.info("Temperature check completed. All devices are within safe range.")
            return summary

        logger.info("Found %d device(s) above threshold. Sending notifications...", len(above))
        threshold_celsius = to_celsius(self.threshold)
        for channel in self.channels:
            try:
                summary.deliveries.append(channel.send_notifications(above, threshold_celsius))
            except Exception as exc:  # noqa: BLE001 - a failing channel must not skip the next
                summary.failed_channels.append(channel.channel)
                logger.error(
                    "Failed to send %s notifications: %s",
                    channel.channel,
                    exc,
                    extra={"channel": channel.channel},
                )

        return summary


def build_alert_service(
    settings: Settings,
    alert_settings: AlertSettings,
    store: MockParameterStore,
    http: httpx.Client,
    ses: MockSESClient,
) -> AlertService:
    """Factory that wires the check with the configured collaborators."""
    registry = DeviceRegistryClient(
        store,
        alert_settings.access_token_param,
        http,
        base_url=settings.registry_base_url,
        timeout=settings.http_timeout,
    )
    channels = [
        EmailNotifier(
            store,
            alert_settings.notification_emails_param,
            ses,
            sender_email=alert_settings.sender_email,
        ),
        TelegramNotifier(
            store,
            alert_settings.telegram_bot_token_param,
            alert_settings.telegram_chat_ids_param,
            http,
            base_url=settings.telegram_api_base_url,
            timeout=settings.http_timeout,
        ),
    ]
    return AlertService(
        registry=registry,
        evaluator=ThresholdEvaluator(),
        channels=channels,
        threshold=alert_settings.temperature_threshold,
        exclude_name_pattern=alert_settings.exclude_name_pattern,
    )
