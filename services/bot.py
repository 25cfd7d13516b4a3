"""Interactive Telegram bot answering temperature queries."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from functools import lru_cache
from typing import Callable, List, Optional, Sequence, Tuple

import httpx

from clients.registry import DeviceRegistryClient
from clients.telegram import TelegramBotClient
from errors import DeliveryFailure, FloorAlertsError
from models.devices import Device
from models.telegram import KeyboardButton, ReplyKeyboardMarkup, TelegramUpdate
from services.evaluator import FLOOR_STATUS_CODE, ROOM_STATUS_CODE, read_status_value, to_celsius
from settings import get_bot_settings, get_settings
from storage.parameter_store import build_default_parameter_store, read_required_parameter

logger = logging.getLogger(__name__)

FLOOR_BUTTON = "🌡️ Показати температуру підлоги"
ROOM_BUTTON = "🏠 Показати температуру в кімнатах"

WELCOME_MESSAGE = (
    "🌡️ *Danfoss Floor Temperature Bot*\n\n"
    "Вітаю! Я можу допомогти перевірити поточну температуру підлоги у вашому будинку.\n\n"
    "Виберіть дію з меню нижче."
)
UNKNOWN_COMMAND_MESSAGE = (
    "❓ Невідома команда. Використовуйте /start для перегляду доступних опцій."
)
MAIN_MENU_MESSAGE = "Виберіть дію:"
NO_DATA_MESSAGE = "❌ Дані про температуру недоступні."

_ROOM_SUFFIX = re.compile(r"\s*(Sensor|Floor|Thermostat|Device).*$", re.IGNORECASE)
_ROOM_EMOJIS = (
    ("вітальня", "🛋️"),
    ("спальня", "🛏️"),
    ("кухня", "🍳"),
    ("ванна кімната", "🚿"),
)
_DEFAULT_EMOJI = "🏠"


@dataclass(frozen=True)
class ReportKind:
    status_code: str
    loading_message: str
    header: str
    error_message: str


FLOOR_REPORT = ReportKind(
    status_code=FLOOR_STATUS_CODE,
    loading_message="⏳ Отримую дані про температуру підлоги...",
    header="🌡️ *Поточна температура підлоги*",
    error_message="❌ Помилка отримання температури підлоги",
)
ROOM_REPORT = ReportKind(
    status_code=ROOM_STATUS_CODE,
    loading_message="⏳ Отримую дані про температуру в кімнатах...",
    header="🏠 *Температура в кімнатах*",
    error_message="❌ Помилка отримання температури в кімнатах",
)


def build_menu_keyboard() -> ReplyKeyboardMarkup:
    return ReplyKeyboardMarkup(
        keyboard=[[KeyboardButton(text=FLOOR_BUTTON)], [KeyboardButton(text=ROOM_BUTTON)]],
    )


def collect_temperatures(devices: Sequence[Device], status_code: str) -> List[Tuple[str, float]]:
    """Return ``(name, celsius)`` for every device reporting ``status_code``."""
    readings: List[Tuple[str, float]] = []
    for device in devices:
        value = read_status_value(device, status_code)
        if value is not None:
            readings.append((device.name, to_celsius(value)))
    return readings


def extract_room_name(device_name: str) -> str:
    cleaned = _ROOM_SUFFIX.sub("", device_name).strip()
    return cleaned if len(cleaned) >= 2 else device_name


def room_emoji(room_name: str) -> str:
    lowered = room_name.lower()
    for keyword, emoji in _ROOM_EMOJIS:
        if keyword in lowered:
            return emoji
    return _DEFAULT_EMOJI


def format_temperature_report(
    readings: Sequence[Tuple[str, float]], header: str, now: datetime
) -> str:
    if not readings:
        return NO_DATA_MESSAGE

    lines = [f"{header}\n"]
    for name, temperature in sorted(readings, key=lambda item: item[0]):
        emoji = room_emoji(extract_room_name(name))
        lines.append(f"{emoji} *{name}*: {temperature:.1f}°C")
    lines.append(f"\n_Оновлено: {now:%d.%m.%Y %H:%M}_")
    return "\n".join(lines)


class BotService:
    """Routes webhook updates to replies."""

    def __init__(
        self,
        client: TelegramBotClient,
        registry: DeviceRegistryClient,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.client = client
        self.registry = registry
        self._clock = clock

    def handle_update(self, update: TelegramUpdate) -> None:
        if update.message is None:
            return

        chat_id = update.message.chat.id
        text = update.message.text or ""
        if text.startswith("/start"):
            self.handle_start(chat_id)
        elif text == FLOOR_BUTTON:
            self.handle_temperature_query(chat_id, FLOOR_REPORT)
        elif text == ROOM_BUTTON:
            self.handle_temperature_query(chat_id, ROOM_REPORT)
        elif text.startswith("/"):
            self.handle_unknown_command(chat_id)
        else:
            self.show_main_menu(chat_id)

    def handle_start(self, chat_id: int) -> bool:
        return self._reply(chat_id, WELCOME_MESSAGE, build_menu_keyboard())

    def handle_unknown_command(self, chat_id: int) -> bool:
        return self._reply(chat_id, UNKNOWN_COMMAND_MESSAGE)

    def show_main_menu(self, chat_id: int) -> bool:
        return self._reply(chat_id, MAIN_MENU_MESSAGE, build_menu_keyboard())

    def handle_temperature_query(self, chat_id: int, kind: ReportKind) -> bool:
        self._reply(chat_id, kind.loading_message)
        try:
            devices = self.registry.get_devices()
        except FloorAlertsError as exc:
            logger.error("Error fetching temperatures: %s", exc, extra={"chat_id": chat_id})
            self._reply(
                chat_id,
                f"{kind.error_message}: {exc}\n\nБудь ласка, спробуйте пізніше.",
                build_menu_keyboard(),
            )
            return False

        readings = collect_temperatures(devices, kind.status_code)
        message = format_temperature_report(readings, kind.header, self._clock())
        return self._reply(chat_id, message, build_menu_keyboard())

    def _reply(
        self, chat_id: int, text: str, reply_markup: Optional[ReplyKeyboardMarkup] = None
    ) -> bool:
        try:
            self.client.send_message(chat_id, text, reply_markup=reply_markup)
        except DeliveryFailure as exc:
            logger.error("Failed to send message: %s", exc, extra={"chat_id": chat_id})
            return False
        return True

    def close(self) -> None:
        self.client.close()


@lru_cache
def build_default_bot_service() -> BotService:
    """Factory that wires the bot with default collaborators."""
    settings = get_settings()
    bot_settings = get_bot_settings()
    store = build_default_parameter_store()
    bot_token = read_required_parameter(store, bot_settings.telegram_bot_token_param)

    http = httpx.Client(timeout=settings.http_timeout)
    client = TelegramBotClient(
        bot_token, http, base_url=settings.telegram_api_base_url, timeout=settings.http_timeout
    )
    registry = DeviceRegistryClient(
        store,
        bot_settings.access_token_param,
        http,
        base_url=settings.registry_base_url,
        timeout=settings.http_timeout,
    )
    return BotService(client=client, registry=registry)


def shutdown_default_bot_service() -> None:
    """Close the cached bot's HTTP client, if one was built, and drop it."""
    if build_default_bot_service.cache_info().currsize:
        build_default_bot_service().close()
    build_default_bot_service.cache_clear()
