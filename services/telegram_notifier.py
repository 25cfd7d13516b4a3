"""Telegram alerts sent to every configured chat."""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

import httpx

from clients.telegram import DEFAULT_BASE_URL, TelegramBotClient
from errors import DeliveryFailure
from models.records import DeliveryTally, DeviceAboveThreshold
from services.notifications import fan_out
from services.rendering import render_alert
from storage.parameter_store import (
    MockParameterStore,
    parse_comma_separated_list,
    read_parameter,
)

logger = logging.getLogger(__name__)

# Upstream error text returned when the user never opened a chat with the bot.
CHAT_NOT_FOUND = "chat not found"


class TelegramNotifier:
    """Best-effort channel: missing chat ids or bot token skip delivery."""

    channel = "telegram"

    def __init__(
        self,
        store: MockParameterStore,
        bot_token_param: str,
        chat_ids_param: str,
        http: httpx.Client,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
    ) -> None:
        self.store = store
        self.bot_token_param = bot_token_param
        self.chat_ids_param = chat_ids_param
        self._http = http
        self.base_url = base_url
        self.timeout = timeout

    def get_chat_ids(self) -> List[str]:
        return parse_comma_separated_list(
            read_parameter(self.store, self.chat_ids_param, with_decryption=True)
        )

    def send_notifications(
        self,
        devices_above_threshold: Sequence[DeviceAboveThreshold],
        threshold_celsius: float,
    ) -> DeliveryTally:
        chat_ids = self.get_chat_ids()
        if not chat_ids:
            logger.info("Telegram notifications not configured (missing chat IDs)")
            return DeliveryTally(channel=self.channel)

        bot_token = read_parameter(self.store, self.bot_token_param, with_decryption=True)
        if not bot_token:
            logger.info("Telegram notifications not configured (missing bot token)")
            return DeliveryTally(channel=self.channel)

        logger.info("Sending Telegram notifications to %d recipient(s)", len(chat_ids))
        client = TelegramBotClient(bot_token, self._http, base_url=self.base_url, timeout=self.timeout)
        message = render_alert("telegram_alert.md.j2", devices_above_threshold, threshold_celsius)

        return fan_out(
            self.channel, chat_ids, lambda chat_id: self._send_to_chat(client, chat_id, message)
        )

    @staticmethod
    def _send_to_chat(client: TelegramBotClient, chat_id: str, message: str) -> Optional[int]:
        try:
            chat_number = int(chat_id)
        except ValueError as exc:
            raise DeliveryFailure(
                f"Invalid Chat ID: {chat_id}. Chat ID must be a number."
            ) from exc

        try:
            return client.send_message(chat_number, message)
        except DeliveryFailure as exc:
            if CHAT_NOT_FOUND in str(exc):
                raise DeliveryFailure(
                    f"Chat not found. User {chat_id} must start a conversation with the bot first "
                    "by sending /start command.",
                    remediation=(
                        f"User with Chat ID {chat_id} should open Telegram, find the bot, "
                        "and send /start command"
                    ),
                ) from exc
            raise
