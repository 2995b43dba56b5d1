from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .confirmation import CONFIRMATION_TIMEOUT


@dataclass(slots=True)
class WebhookConfig:
    """Configuration for optional setup notifications."""

    enabled: bool
    url: Optional[str] = None
    username: Optional[str] = None


@dataclass(slots=True)
class BotConfig:
    """Aggregate configuration for a bot process."""

    token: str
    mongo_url: str = "mongodb://localhost:27017"
    mongo_database: str = "rpbot"
    locale_file: Optional[Path] = None
    confirmation_timeout: float = CONFIRMATION_TIMEOUT
    log_level: str = "INFO"
    webhook: Optional[WebhookConfig] = None
