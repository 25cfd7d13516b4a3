"""Client for the Danfoss Ally device registry."""

from __future__ import annotations

import logging
from typing import List, Optional

import httpx
from pydantic import ValidationError

from errors import AuthError, RegistryError, TokenExpiredError
from models.devices import Device, DevicesResponse
from models.secrets import AccessTokenSecret
from storage.parameter_store import MockParameterStore, read_parameter

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.danfoss.com"
DEVICES_PATH = "/ally/devices"


class DeviceRegistryClient:
    """Reads the bearer token from the parameter store and fetches devices."""

    def __init__(
        self,
        store: MockParameterStore,
        access_token_param: str,
        http: httpx.Client,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
    ) -> None:
        self.store = store
        self.access_token_param = access_token_param
        self._http = http
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def get_access_token(self) -> str:
        raw = read_parameter(self.store, self.access_token_param, with_decryption=True)
        if raw is None:
            raise AuthError(f"Access token parameter {self.access_token_param} is missing")
        try:
            secret = AccessTokenSecret.model_validate_json(raw)
        except ValidationError as exc:
            raise AuthError(
                f"Access token parameter {self.access_token_param} is not JSON or has no access_token"
            ) from exc
        return secret.access_token

    def get_devices(self, exclude_name_pattern: Optional[str] = None) -> List[Device]:
        devices = self.get_devices_with_token(self.get_access_token())
        if exclude_name_pattern:
            return self.filter_devices(devices, exclude_name_pattern)
        return devices

    def get_devices_with_token(self, access_token: str) -> List[Device]:
        headers = {
            "accept": "application/json",
            "authorization": f"Bearer {access_token}",
        }
        try:
            response = self._http.get(
                f"{self.base_url}{DEVICES_PATH}", headers=headers, timeout=self.timeout
            )
        except httpx.HTTPError as exc:
            raise RegistryError(f"Failed to get devices: {exc}") from exc

        if response.status_code == 401:
            raise TokenExpiredError(
                "Unauthorized - access token may be expired. Check token rotation."
            )
        if not response.is_success:
            logger.error(
                "Device registry request failed",
                extra={"status_code": response.status_code},
            )
            raise RegistryError(
                f"Failed to get devices: {response.status_code} - {response.text}",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            payload = DevicesResponse.model_validate_json(response.content)
        except ValidationError as exc:
            raise RegistryError(
                "Unexpected device registry payload",
                status_code=response.status_code,
                body=response.text,
            ) from exc
        logger.debug("Fetched %d device(s) from registry", len(payload.result))
        return payload.result

    @staticmethod
    def filter_devices(devices: List[Device], exclude_name_pattern: str) -> List[Device]:
        return [device for device in devices if exclude_name_pattern not in device.name]
