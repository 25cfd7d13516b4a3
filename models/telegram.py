"""Subset of the Telegram Bot API objects used by the notifier and the bot."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


class TelegramUser(BaseModel):
    id: int
    is_bot: bool = False
    first_name: str = ""
    username: Optional[str] = None


class TelegramChat(BaseModel):
    id: int
    type: str = "private"
    first_name: Optional[str] = None
    username: Optional[str] = None


class TelegramMessage(BaseModel):
    message_id: int
    chat: TelegramChat
    from_: Optional[TelegramUser] = Field(default=None, alias="from")
    text: Optional[str] = None
    date: int = 0


class TelegramUpdate(BaseModel):
    """Incoming webhook payload."""

    update_id: int
    message: Optional[TelegramMessage] = None


class KeyboardButton(BaseModel):
    text: str


class ReplyKeyboardMarkup(BaseModel):
    keyboard: List[List[KeyboardButton]]
    resize_keyboard: bool = True
    one_time_keyboard: bool = False


class SentMessage(BaseModel):
    message_id: int


class TelegramResponse(BaseModel):
    """Envelope returned by every Bot API method."""

    ok: bool
    result: Optional[SentMessage] = None
    description: Optional[str] = None
