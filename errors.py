"""Exception hierarchy shared by the alerting services."""

from __future__ import annotations

from typing import Optional


class FloorAlertsError(Exception):
    """Base exception for the floor heating alerting service."""


class ConfigError(FloorAlertsError):
    """Required configuration is missing or invalid."""


class AuthError(FloorAlertsError):
    """A stored credential is missing or malformed."""


class TokenExpiredError(FloorAlertsError):
    """The device registry rejected the bearer token (HTTP 401)."""


class RegistryError(FloorAlertsError):
    """The device registry failed or returned an unexpected payload."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class RotationError(FloorAlertsError):
    """The client-credentials token exchange failed."""


class DeliveryFailure(FloorAlertsError):
    """A single notification could not be delivered to one recipient."""

    def __init__(self, message: str, remediation: Optional[str] = None) -> None:
        super().__init__(message)
        self.remediation = remediation
