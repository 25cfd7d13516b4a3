from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from errors import ConfigError


_REGISTRY_URL_ENV = "DANFOSS_API_BASE_URL"
_TELEGRAM_URL_ENV = "TELEGRAM_API_BASE_URL"
_PARAMETER_STORE_PATH_ENV = "PARAMETER_STORE_PATH"
_OUTBOX_PATH_ENV = "EMAIL_OUTBOX_PATH"
_HTTP_TIMEOUT_ENV = "HTTP_TIMEOUT_SECONDS"
_LOG_LEVEL_ENV = "LOG_LEVEL"

_ACCESS_TOKEN_PARAM_ENV = "ACCESS_TOKEN_PARAM_NAME"
_CREDENTIALS_PARAM_ENV = "CREDENTIALS_PARAM_NAME"
_THRESHOLD_ENV = "TEMPERATURE_THRESHOLD"
_EMAILS_PARAM_ENV = "NOTIFICATION_EMAILS_PARAM_NAME"
_BOT_TOKEN_PARAM_ENV = "TELEGRAM_BOT_TOKEN_PARAM_NAME"
_CHAT_IDS_PARAM_ENV = "TELEGRAM_CHAT_IDS_PARAM_NAME"
_EXCLUDE_PATTERN_ENV = "EXCLUDE_NAME_PATTERN"
_SENDER_EMAIL_ENV = "SENDER_EMAIL"

DEFAULT_EXCLUDE_PATTERN = "Ванна кімната"


@dataclass(frozen=True)
class Settings:
    registry_base_url: str
    telegram_api_base_url: str
    parameter_store_path: Optional[str]
    email_outbox_path: Optional[str]
    http_timeout: float
    log_level: str


@dataclass(frozen=True)
class AlertSettings:
    access_token_param: str
    temperature_threshold: int
    notification_emails_param: str
    telegram_bot_token_param: str
    telegram_chat_ids_param: str
    exclude_name_pattern: str
    sender_email: Optional[str]


@dataclass(frozen=True)
class RotationSettings:
    credentials_param: str
    access_token_param: str


@dataclass(frozen=True)
class BotSettings:
    telegram_bot_token_param: str
    access_token_param: str


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_optional_env(name: str, default: Optional[str]) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or None


def _read_required_env(name: str) -> str:
    value = (os.getenv(name) or "").strip()
    if not value:
        raise ConfigError(f"Required environment variable {name} is not defined")
    return value


def _read_timeout(default: float) -> float:
    value = os.getenv(_HTTP_TIMEOUT_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_threshold() -> int:
    raw = _read_required_env(_THRESHOLD_ENV)
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigError(
            f"{_THRESHOLD_ENV} must be an integer in tenths of a degree, got {raw!r}"
        ) from exc


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        registry_base_url=_read_str_env(_REGISTRY_URL_ENV, "https://api.danfoss.com").rstrip("/"),
        telegram_api_base_url=_read_str_env(_TELEGRAM_URL_ENV, "https://api.telegram.org").rstrip("/"),
        parameter_store_path=_read_optional_env(_PARAMETER_STORE_PATH_ENV, "./tmp/parameters.json"),
        email_outbox_path=_read_optional_env(_OUTBOX_PATH_ENV, "./tmp/outbox"),
        http_timeout=_read_timeout(30.0),
        log_level=_read_log_level("INFO"),
    )


@lru_cache
def get_alert_settings() -> AlertSettings:
    """Settings for the scheduled temperature check; every pointer is required."""
    return AlertSettings(
        access_token_param=_read_required_env(_ACCESS_TOKEN_PARAM_ENV),
        temperature_threshold=_read_threshold(),
        notification_emails_param=_read_required_env(_EMAILS_PARAM_ENV),
        telegram_bot_token_param=_read_required_env(_BOT_TOKEN_PARAM_ENV),
        telegram_chat_ids_param=_read_required_env(_CHAT_IDS_PARAM_ENV),
        exclude_name_pattern=_read_str_env(_EXCLUDE_PATTERN_ENV, DEFAULT_EXCLUDE_PATTERN),
        sender_email=_read_optional_env(_SENDER_EMAIL_ENV, None),
    )


@lru_cache
def get_rotation_settings() -> RotationSettings:
    return RotationSettings(
        credentials_param=_read_required_env(_CREDENTIALS_PARAM_ENV),
        access_token_param=_read_required_env(_ACCESS_TOKEN_PARAM_ENV),
    )


@lru_cache
def get_bot_settings() -> BotSettings:
    return BotSettings(
        telegram_bot_token_param=_read_required_env(_BOT_TOKEN_PARAM_ENV),
        access_token_param=_read_required_env(_ACCESS_TOKEN_PARAM_ENV),
    )


def get_access_token_param() -> str:
    return _read_required_env(_ACCESS_TOKEN_PARAM_ENV)
