from __future__ import annotations

import json
import logging
from typing import Callable, List

import httpx
import pytest

from clients.telegram import TelegramBotClient
from errors import DeliveryFailure
from models.records import DeviceAboveThreshold
from services.telegram_notifier import TelegramNotifier
from storage.parameter_store import MockParameterStore, ParameterType

BOT_TOKEN_PARAM = "/telegram/bot_token"
CHAT_IDS_PARAM = "/telegram/chat_ids"


def _devices() -> List[DeviceAboveThreshold]:
    return [DeviceAboveThreshold(id="1", name="Kitchen Floor", measured_value=280, temperature_celsius=28.0)]


def _notifier(
    handler: Callable[[httpx.Request], httpx.Response],
    chat_ids: str | None = "111,222",
    bot_token: str | None = "123:ABC",
) -> TelegramNotifier:
    store = MockParameterStore()
    if chat_ids is not None:
        store.put_parameter(CHAT_IDS_PARAM, chat_ids)
    if bot_token is not None:
        store.put_parameter(BOT_TOKEN_PARAM, bot_token, type=ParameterType.secure_string)
    http = httpx.Client(transport=httpx.MockTransport(handler))
    return TelegramNotifier(store, BOT_TOKEN_PARAM, CHAT_IDS_PARAM, http, base_url="https://telegram.test")


def _ok(message_id: int = 1) -> httpx.Response:
    return httpx.Response(200, json={"ok": True, "result": {"message_id": message_id}})


def test_sends_rendered_alert_to_every_chat() -> None:
    requests: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return _ok(len(requests))

    tally = _notifier(handler).send_notifications(_devices(), 27.0)

    assert (tally.success_count, tally.failure_count) == (2, 0)
    assert [str(request.url) for request in requests] == [
        "https://telegram.test/bot123:ABC/sendMessage",
        "https://telegram.test/bot123:ABC/sendMessage",
    ]
    payloads = [json.loads(request.content) for request in requests]
    assert [payload["chat_id"] for payload in payloads] == [111, 222]
    assert payloads[0]["parse_mode"] == "Markdown"
    assert "Floor temperature exceeded 27.0°C threshold." in payloads[0]["text"]
    assert "• Kitchen Floor: 28.0°C" in payloads[0]["text"]


def test_invalid_chat_id_is_never_sent() -> None:
    requests: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return _ok()

    tally = _notifier(handler, chat_ids="abc,111").send_notifications(_devices(), 27.0)

    assert (tally.success_count, tally.failure_count) == (1, 1)
    assert [json.loads(request.content)["chat_id"] for request in requests] == [111]


def test_chat_not_found_logs_remediation(caplog) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if json.loads(request.content)["chat_id"] == 111:
            return httpx.Response(
                200, json={"ok": False, "description": "Bad Request: chat not found"}
            )
        return _ok()

    with caplog.at_level(logging.INFO):
        tally = _notifier(handler).send_notifications(_devices(), 27.0)

    assert (tally.success_count, tally.failure_count) == (1, 1)
    messages = [record.getMessage() for record in caplog.records]
    assert any("User 111 must start a conversation with the bot" in message for message in messages)
    assert any(
        message.startswith("Solution: User with Chat ID 111 should open Telegram")
        for message in messages
    )


def test_http_error_counts_as_failure_without_leaking_token(caplog) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, text="Bad Gateway")

    with caplog.at_level(logging.INFO):
        tally = _notifier(handler, chat_ids="111").send_notifications(_devices(), 27.0)

    assert (tally.success_count, tally.failure_count) == (0, 1)
    messages = [record.getMessage() for record in caplog.records]
    assert any("Telegram API error: 502" in message for message in messages)
    service_messages = [
        record.getMessage() for record in caplog.records if record.name.startswith("services.")
    ]
    assert not any("123:ABC" in message for message in service_messages)


def test_chat_not_found_bad_request_logs_remediation(caplog) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            400, json={"ok": False, "error_code": 400, "description": "Bad Request: chat not found"}
        )

    with caplog.at_level(logging.INFO):
        tally = _notifier(handler, chat_ids="333").send_notifications(_devices(), 27.0)

    assert (tally.success_count, tally.failure_count) == (0, 1)
    messages = [record.getMessage() for record in caplog.records]
    assert any("User 333 must start a conversation with the bot" in message for message in messages)
    assert (
        "Solution: User with Chat ID 333 should open Telegram, find the bot, and send /start command"
        in messages
    )


@pytest.mark.parametrize(
    ("chat_ids", "bot_token"),
    [(None, "123:ABC"), ("", "123:ABC"), ("111", None)],
)
def test_unconfigured_channel_is_skipped(chat_ids: str | None, bot_token: str | None) -> None:
    def handler(request: httpx.Request) -> httpx.Response:  # pragma: no cover - never reached
        raise AssertionError("Telegram must not be called when unconfigured")

    tally = _notifier(handler, chat_ids=chat_ids, bot_token=bot_token).send_notifications(
        _devices(), 27.0
    )

    assert tally.attempted == 0


def test_client_hides_token_on_transport_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    http = httpx.Client(transport=httpx.MockTransport(handler))
    client = TelegramBotClient("123:SECRET", http, base_url="https://telegram.test")

    with pytest.raises(DeliveryFailure) as excinfo:
        client.send_message(111, "hi")

    assert "SECRET" not in str(excinfo.value)
    assert "ConnectError" in str(excinfo.value)
