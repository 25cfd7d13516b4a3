"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

from pydantic import BaseModel, Field


class WebhookAck(BaseModel):
    """Acknowledgement returned to Telegram after an update is handled."""

    ok: bool = Field(True, description="Whether the update was processed.")


class HealthStatus(BaseModel):
    status: str = "ok"
    detail: str | None = None
