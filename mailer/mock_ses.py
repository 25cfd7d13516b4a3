from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from threading import Lock
from typing import Dict, Iterable, List, Optional, Set
from uuid import uuid4

from pydantic import BaseModel

from settings import get_settings


class OutboundEmail(BaseModel):
    message_id: str
    source: str
    reply_to: List[str]
    destination: List[str]
    subject: str
    text_body: str
    html_body: str


class MessageRejected(Exception):
    """Raised when the transport refuses to send a message."""


class MockSESClient:
    """SES-like transport that records every message instead of sending it."""

    def __init__(
        self,
        root_path: Optional[Path] = None,
        verified_identities: Optional[Iterable[str]] = None,
    ) -> None:
        self.root_path = root_path
        self._verified: Optional[Set[str]] = (
            set(verified_identities) if verified_identities is not None else None
        )
        self._messages: Dict[str, OutboundEmail] = {}
        self._lock = Lock()
        if root_path:
            root_path.mkdir(parents=True, exist_ok=True)

    def send_email(
        self,
        source: str,
        destination: List[str],
        reply_to: List[str],
        subject: str,
        text_body: str,
        html_body: str,
    ) -> str:
        """Record the message and return its generated ``MessageId``."""
        if self._verified is not None and source not in self._verified:
            raise MessageRejected(f"Email address is not verified: {source}")
        if not destination:
            raise MessageRejected("Missing final destination.")

        message = OutboundEmail(
            message_id=str(uuid4()),
            source=source,
            reply_to=list(reply_to),
            destination=list(destination),
            subject=subject,
            text_body=text_body,
            html_body=html_body,
        )
        with self._lock:
            self._messages[message.message_id] = message
            if self.root_path:
                path = self.root_path / f"{message.message_id}.json"
                path.write_text(
                    json.dumps(message.model_dump(mode="json"), indent=2, ensure_ascii=False),
                    encoding="utf-8",
                )
        return message.message_id

    def list_messages(self) -> List[OutboundEmail]:
        with self._lock:
            return [message.model_copy(deep=True) for message in self._messages.values()]


@lru_cache
def build_default_ses_client(root_path: Optional[str] = None) -> MockSESClient:
    settings = get_settings()
    outbox = settings.email_outbox_path if root_path is None else root_path
    path = Path(outbox) if outbox else None
    return MockSESClient(root_path=path)
