from __future__ import annotations

import getpass
import logging
import os
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

from .confirmation import CONFIRMATION_TIMEOUT
from .config import BotConfig, WebhookConfig
from .errors import ConfigurationError

LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _prompt_token() -> str:
    print("DISCORD_TOKEN is not set. The token is only kept in memory for this session.")
    return getpass.getpass("Enter the bot token: ").strip()


def _parse_timeout(raw: Optional[str]) -> float:
    if not raw:
        return CONFIRMATION_TIMEOUT
    try:
        timeout = float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"RPBOT_CONFIRM_TIMEOUT must be a number, got '{raw}'.") from exc
    if timeout <= 0:
        raise ConfigurationError("RPBOT_CONFIRM_TIMEOUT must be positive.")
    return timeout


def _parse_log_level(raw: Optional[str]) -> str:
    level = (raw or "INFO").strip().upper()
    if level not in LOG_LEVELS:
        raise ConfigurationError(
            f"RPBOT_LOG_LEVEL must be one of {', '.join(sorted(LOG_LEVELS))}, got '{raw}'."
        )
    return level


def _parse_mongo_url(raw: Optional[str]) -> str:
    url = (raw or "").strip() or "mongodb://localhost:27017"
    if not url.startswith(("mongodb://", "mongodb+srv://")):
        raise ConfigurationError("RPBOT_MONGO_URL must be a mongodb:// or mongodb+srv:// URL.")
    return url


def _webhook_configuration(environ: Mapping[str, str]) -> Optional[WebhookConfig]:
    url = environ.get("RPBOT_WEBHOOK_URL", "").strip()
    if not url:
        return None
    if not url.startswith(("http://", "https://")):
        raise ConfigurationError("RPBOT_WEBHOOK_URL must be an http(s) URL.")
    username = environ.get("RPBOT_WEBHOOK_USERNAME", "").strip()
    return WebhookConfig(enabled=True, url=url, username=username or None)


def collect_bot_configuration(
    environ: Optional[Mapping[str, str]] = None, *, interactive: bool = True
) -> BotConfig:
    """Build the bot configuration from the environment (and ``.env``)."""
    if environ is None:
        load_dotenv()
        environ = os.environ

    token = environ.get("DISCORD_TOKEN", "").strip()
    if not token and interactive:
        token = _prompt_token()
    if not token:
        raise ConfigurationError("A Discord bot token is required (DISCORD_TOKEN).")

    locale_file = environ.get("RPBOT_LOCALE_FILE", "").strip()
    config = BotConfig(
        token=token,
        mongo_url=_parse_mongo_url(environ.get("RPBOT_MONGO_URL")),
        mongo_database=environ.get("RPBOT_MONGO_DATABASE", "").strip() or "rpbot",
        locale_file=Path(locale_file) if locale_file else None,
        confirmation_timeout=_parse_timeout(environ.get("RPBOT_CONFIRM_TIMEOUT")),
        log_level=_parse_log_level(environ.get("RPBOT_LOG_LEVEL")),
        webhook=_webhook_configuration(environ),
    )
    logging.getLogger(__name__).debug(f"Configuration loaded, database {config.mongo_database}")
    return config
