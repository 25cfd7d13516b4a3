"""OAuth2 client-credentials rotation of the registry bearer token."""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

import httpx
from pydantic import ValidationError

from errors import AuthError, RotationError
from models.records import RotationResult, TokenState
from models.secrets import AccessTokenSecret, Credentials, TokenResponse
from settings import RotationSettings, Settings
from storage.parameter_store import (
    MockParameterStore,
    ParameterType,
    read_parameter,
    read_required_parameter,
)

logger = logging.getLogger(__name__)

# Fixed validity window; the endpoint's ``expires_in`` is not consulted.
TOKEN_LIFETIME_SECONDS = 60 * 60


class TokenRotator:
    """Unconditionally exchanges client credentials for a fresh bearer token."""

    def __init__(
        self,
        store: MockParameterStore,
        credentials_param: str,
        access_token_param: str,
        http: httpx.Client,
        timeout: float = 30.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store
        self.credentials_param = credentials_param
        self.access_token_param = access_token_param
        self._http = http
        self.timeout = timeout
        self._clock = clock

    def load_credentials(self) -> Credentials:
        raw = read_required_parameter(self.store, self.credentials_param, with_decryption=True)
        try:
            return Credentials.model_validate_json(raw)
        except ValidationError as exc:
            raise AuthError(f"Credentials parameter {self.credentials_param} is malformed") from exc

    def request_access_token(self, credentials: Credentials) -> str:
        try:
            response = self._http.post(
                credentials.token_url,
                data={"grant_type": "client_credentials"},
                auth=(credentials.client_id, credentials.client_secret),
                timeout=self.timeout,
            )
        except httpx.HTTPError as exc:
            raise RotationError(f"Failed to get access token: {exc}") from exc

        if not response.is_success:
            raise RotationError(
                f"Failed to get access token: {response.status_code} - {response.text}"
            )

        try:
            token = TokenResponse.model_validate_json(response.content)
        except ValidationError as exc:
            raise RotationError(f"No access_token in response: {response.text}") from exc
        return token.access_token

    def rotate(self) -> RotationResult:
        credentials = self.load_credentials()
        access_token = self.request_access_token(credentials)

        expires_at = int(self._clock()) + TOKEN_LIFETIME_SECONDS
        secret = AccessTokenSecret(access_token=access_token, token_expires_at=expires_at)
        self.store.put_parameter(
            self.access_token_param,
            secret.model_dump_json(),
            type=ParameterType.secure_string,
            overwrite=True,
        )
        logger.info(
            "Successfully rotated access token",
            extra={"param_name": self.access_token_param, "expires_at": expires_at},
        )
        return RotationResult(expires_at=expires_at)


def inspect_token_state(
    store: MockParameterStore, access_token_param: str, now: Optional[float] = None
) -> TokenState:
    raw = read_parameter(store, access_token_param, with_decryption=True)
    if raw is None:
        return TokenState.expired_or_absent
    try:
        secret = AccessTokenSecret.model_validate_json(raw)
    except ValidationError:
        return TokenState.expired_or_absent

    current = time.time() if now is None else now
    if secret.token_expires_at is not None and secret.token_expires_at <= current:
        return TokenState.expired_or_absent
    return TokenState.valid


def build_token_rotator(
    settings: Settings,
    rotation_settings: RotationSettings,
    store: MockParameterStore,
    http: httpx.Client,
) -> TokenRotator:
    return TokenRotator(
        store,
        rotation_settings.credentials_param,
        rotation_settings.access_token_param,
        http,
        timeout=settings.http_timeout,
    )
