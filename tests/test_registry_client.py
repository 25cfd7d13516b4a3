from __future__ import annotations

import json
from typing import Callable, List

import httpx
import pytest

from clients.registry import DeviceRegistryClient
from errors import AuthError, RegistryError, TokenExpiredError
from storage.parameter_store import MockParameterStore, ParameterType

TOKEN_PARAM = "/danfoss/access_token"


def _store(token_value: str | None = '{"access_token": "secret-token"}') -> MockParameterStore:
    store = MockParameterStore()
    if token_value is not None:
        store.put_parameter(TOKEN_PARAM, token_value, type=ParameterType.secure_string)
    return store


def _client(
    store: MockParameterStore,
    handler: Callable[[httpx.Request], httpx.Response],
) -> DeviceRegistryClient:
    http = httpx.Client(transport=httpx.MockTransport(handler))
    return DeviceRegistryClient(store, TOKEN_PARAM, http, base_url="https://registry.test")


def _devices_payload() -> dict:
    return {
        "result": [
            {"id": "1", "name": "Kitchen Floor", "status": [{"code": "MeasuredValue", "value": 280}]},
            {"id": "2", "name": "Ванна кімната Sensor", "status": [{"code": "MeasuredValue", "value": 300}]},
            {"id": "3", "name": "Bedroom", "status": []},
        ],
        "t": 1700000000,
    }


def test_get_devices_sends_bearer_token() -> None:
    requests: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json=_devices_payload())

    devices = _client(_store(), handler).get_devices()

    assert [device.id for device in devices] == ["1", "2", "3"]
    assert requests[0].url == "https://registry.test/ally/devices"
    assert requests[0].headers["authorization"] == "Bearer secret-token"
    assert requests[0].headers["accept"] == "application/json"


def test_exclude_pattern_filters_by_substring() -> None:
    client = _client(_store(), lambda request: httpx.Response(200, json=_devices_payload()))

    devices = client.get_devices("Ванна кімната")

    assert [device.name for device in devices] == ["Kitchen Floor", "Bedroom"]
    assert devices[0].status[0].value == 280


def test_exclude_pattern_is_literal_not_regex() -> None:
    payload = {"result": [{"id": "1", "name": "Room (A)"}, {"id": "2", "name": "Room A"}]}
    client = _client(_store(), lambda request: httpx.Response(200, json=payload))

    devices = client.get_devices("(A)")

    assert [device.id for device in devices] == ["2"]


def test_missing_result_defaults_to_empty_list() -> None:
    client = _client(_store(), lambda request: httpx.Response(200, json={"t": 1}))

    assert client.get_devices() == []


def test_unauthorized_raises_token_expired() -> None:
    client = _client(_store(), lambda request: httpx.Response(401, text="expired"))

    with pytest.raises(TokenExpiredError):
        client.get_devices()


def test_other_http_errors_raise_registry_error_with_details() -> None:
    client = _client(_store(), lambda request: httpx.Response(503, text="maintenance"))

    with pytest.raises(RegistryError) as excinfo:
        client.get_devices()

    assert excinfo.value.status_code == 503
    assert excinfo.value.body == "maintenance"


def test_malformed_payload_raises_registry_error() -> None:
    client = _client(_store(), lambda request: httpx.Response(200, json={"result": [{"name": "no id"}]}))

    with pytest.raises(RegistryError):
        client.get_devices()


def test_timeout_raises_registry_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(RegistryError) as excinfo:
        _client(_store(), handler).get_devices()

    assert excinfo.value.status_code is None


@pytest.mark.parametrize(
    "token_value",
    [None, "not-json", json.dumps({"token_expires_at": 1}), json.dumps({"access_token": ""})],
)
def test_missing_or_malformed_token_raises_auth_error(token_value: str | None) -> None:
    def handler(request: httpx.Request) -> httpx.Response:  # pragma: no cover - never reached
        raise AssertionError("Registry must not be called without a token")

    with pytest.raises(AuthError):
        _client(_store(token_value), handler).get_devices()


def test_fractional_token_expiry_is_accepted() -> None:
    token_value = json.dumps({"access_token": "tok", "token_expires_at": 1700000000.5})
    client = _client(_store(token_value), lambda request: httpx.Response(200, json={"result": []}))

    assert client.get_devices() == []
