from __future__ import annotations

import asyncio
import logging

import discord

from rpbot import MongoStore, collect_bot_configuration
from rpbot.bot import RPBotClient
from rpbot.errors import ConfigurationError, RPBotError
from rpbot.translation import Translator
from rpbot.webhook import WebhookNotifier

logger = logging.getLogger("rpbot")


async def _async_main() -> None:
    try:
        config = collect_bot_configuration()
    except ConfigurationError as exc:
        logger.error(str(exc))
        return

    logging.getLogger().setLevel(config.log_level)
    logger.info("Starting role-play server bot...")

    try:
        translate = Translator.from_file(config.locale_file) if config.locale_file else Translator()
    except ConfigurationError as exc:
        logger.error(str(exc))
        return

    store = MongoStore.connect(config.mongo_url, config.mongo_database)
    webhook_notifier = WebhookNotifier(config.webhook) if config.webhook else None
    client = RPBotClient(config, store, store, translate, webhook_notifier)

    try:
        await store.ensure_indexes()
        async with client:
            await client.start(config.token)
    except RPBotError as exc:
        logger.error(str(exc))
    except discord.LoginFailure:
        logger.error("Failed to authenticate with Discord. Please verify your token.")
    finally:
        if webhook_notifier:
            await webhook_notifier.close()
        await store.close()


def main() -> None:
    discord.utils.setup_logging()
    try:
        asyncio.run(_async_main())
    except KeyboardInterrupt:
        print("\nBot stopped by user.")


if __name__ == "__main__":
    main()
