from __future__ import annotations
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from app.api import router
from logging_config import configure_logging
from services.bot import shutdown_default_bot_service


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    try:
        yield
    finally:
        shutdown_default_bot_service()


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(
        title="Floor Heating Alerts",
        description="Telegram webhook for on-demand Danfoss floor and room temperature reports.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.include_router(router)
    return app

app = create_app()
