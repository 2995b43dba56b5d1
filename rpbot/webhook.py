from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Dict, Optional

import aiohttp

from .config import WebhookConfig
from .errors import NotificationError

SUCCESS_COLOR = 0x00FF00
FAILURE_COLOR = 0xFF0000


@dataclass(slots=True)
class SetupNotification:
    server_id: int
    mode: str
    token: str
    succeeded: bool
    message: str


class WebhookNotifier:
    """Posts setup outcomes to an operator webhook."""

    def __init__(self, config: WebhookConfig) -> None:
        self._config = config
        self._session: Optional[aiohttp.ClientSession] = None

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=30)
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self._session

    def build_payload(self, payload: SetupNotification) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "embeds": [
                {
                    "title": "Server setup " + ("succeeded" if payload.succeeded else "failed"),
                    "description": payload.message,
                    "color": SUCCESS_COLOR if payload.succeeded else FAILURE_COLOR,
                    "fields": [
                        {"name": "Server", "value": str(payload.server_id), "inline": True},
                        {"name": "Mode", "value": payload.mode, "inline": True},
                        {"name": "Outcome", "value": payload.token},
                    ],
                }
            ],
        }
        if self._config.username:
            data["username"] = self._config.username
        return data

    async def notify(self, payload: SetupNotification) -> None:
        if not self._config.enabled or not self._config.url:
            return

        session = await self._ensure_session()
        try:
            async with session.post(self._config.url, json=self.build_payload(payload)) as response:
                if response.status >= 400:
                    body = await response.text()
                    raise NotificationError(
                        f"Webhook responded with status {response.status}: {body}",
                        status=response.status,
                    )
        except asyncio.TimeoutError as exc:
            raise NotificationError("Webhook request timed out") from exc
        except aiohttp.ClientError as exc:
            raise NotificationError(f"Webhook request failed: {exc}") from exc

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()
