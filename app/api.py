"""HTTP route definitions for the service."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status

from app.schemas import HealthStatus, WebhookAck
from errors import FloorAlertsError
from models.telegram import TelegramUpdate
from services.bot import build_default_bot_service

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/telegram/webhook",
    response_model=WebhookAck,
    summary="Handle an incoming Telegram update.",
)
def telegram_webhook(update: TelegramUpdate) -> WebhookAck:
    try:
        bot = build_default_bot_service()
        bot.handle_update(update)
    except FloorAlertsError as exc:
        logger.error("Error processing webhook: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(exc),
        ) from exc
    return WebhookAck(ok=True)


@router.get(
    "/health",
    response_model=HealthStatus,
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> HealthStatus:
    return HealthStatus()


@router.get(
    "/",
    response_model=HealthStatus,
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> HealthStatus:
    return HealthStatus(detail="See /health for service status.")
