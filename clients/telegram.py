"""Minimal Telegram Bot API client."""

from __future__ import annotations

from typing import Optional

import httpx
from pydantic import ValidationError

from errors import DeliveryFailure
from models.telegram import ReplyKeyboardMarkup, TelegramResponse

DEFAULT_BASE_URL = "https://api.telegram.org"


class TelegramBotClient:

    def __init__(
        self,
        bot_token: str,
        http: httpx.Client,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
    ) -> None:
        self._http = http
        self._api_url = f"{base_url.rstrip('/')}/bot{bot_token}"
        self.timeout = timeout

    def close(self) -> None:
        self._http.close()

    def send_message(
        self,
        chat_id: int,
        text: str,
        reply_markup: Optional[ReplyKeyboardMarkup] = None,
        parse_mode: str = "Markdown",
    ) -> Optional[int]:
        """Send ``text`` to ``chat_id`` and return the Telegram message id."""
        payload: dict = {"chat_id": chat_id, "text": text, "parse_mode": parse_mode}
        if reply_markup is not None:
            payload["reply_markup"] = reply_markup.model_dump()

        try:
            response = self._http.post(
                f"{self._api_url}/sendMessage", json=payload, timeout=self.timeout
            )
        except httpx.HTTPError as exc:
            # str(exc) can include the request URL, which embeds the bot token.
            raise DeliveryFailure(f"Telegram request failed: {type(exc).__name__}") from exc

        if not response.is_success:
            raise DeliveryFailure(
                f"Telegram API error: {response.status_code} - {response.text}"
            )

        try:
            result = TelegramResponse.model_validate_json(response.content)
        except ValidationError as exc:
            raise DeliveryFailure("Telegram API returned an unexpected payload") from exc
        if not result.ok:
            raise DeliveryFailure(
                f"Telegram API returned error: {result.description or 'Unknown error'}"
            )
        return result.result.message_id if result.result else None
