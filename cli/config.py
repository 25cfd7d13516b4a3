from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from settings import get_settings


@dataclass(frozen=True)
class CLIConfig:
    parameter_store_path: Optional[str]
    email_outbox_path: Optional[str]
    http_timeout: float


def load_config(
    store_path: Optional[str] = None,
    outbox_path: Optional[str] = None,
    timeout: Optional[float] = None,
) -> CLIConfig:
    """Merge command-line overrides on top of the environment settings."""
    settings = get_settings()
    if timeout is None or timeout <= 0:
        timeout = settings.http_timeout
    return CLIConfig(
        parameter_store_path=store_path or settings.parameter_store_path,
        email_outbox_path=outbox_path or settings.email_outbox_path,
        http_timeout=timeout,
    )
