"""Tests for the Discord-facing reply, confirmation prompt and webhook payload."""

from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

from rpbot.config import WebhookConfig
from rpbot.confirmation import (
    ConfirmationChoice,
    InteractionConfirmationGate,
    OverwriteConfirmationView,
)
from rpbot.errors import ConfirmationUnavailable, NotificationError
from rpbot.reply import build_reply_embed, send_reply
from rpbot.translation import Translator
from rpbot.webhook import SetupNotification, WebhookNotifier


def _interaction(user_id=1, channel_id=2):
    interaction = MagicMock()
    interaction.user.id = user_id
    interaction.channel_id = channel_id
    interaction.guild_id = 99
    interaction.response.send_message = AsyncMock()
    interaction.response.defer = AsyncMock()
    interaction.followup.send = AsyncMock()
    return interaction


class TestReply:

    def test_success_embed(self):
        embed = build_reply_embed("setup__setup_success_message", True, Translator())

        assert embed.title == "Setup complete"
        assert embed.description == "The server has been set up."
        assert embed.footer.text == "setup__setup_success_message"
        assert embed.color.value == 0x00FF00

    def test_failure_embed(self):
        embed = build_reply_embed("setup__reorder_went_wrong", False, Translator())

        assert embed.title == "Setup failed"
        assert embed.color.value == 0xFF0000

    @pytest.mark.asyncio
    async def test_send_failure_is_reported(self):
        interaction = _interaction()
        interaction.followup.send.side_effect = discord.HTTPException(
            MagicMock(status=500, reason="boom"), "boom"
        )

        assert not await send_reply(interaction, "setup_server__failed", False, Translator())


class TestOverwriteConfirmationView:

    @pytest.mark.asyncio
    async def test_invoking_member_may_answer(self):
        view = OverwriteConfirmationView(1, 2, Translator(), timeout=5)

        assert await view.interaction_check(_interaction(1, 2))

    @pytest.mark.asyncio
    @pytest.mark.parametrize("user_id, channel_id", [(3, 2), (1, 3)])
    async def test_other_member_or_channel_is_ignored(self, user_id, channel_id):
        view = OverwriteConfirmationView(1, 2, Translator(), timeout=5)
        interaction = _interaction(user_id, channel_id)

        assert not await view.interaction_check(interaction)
        interaction.response.send_message.assert_awaited_once()
        assert view.choice is None

    @pytest.mark.asyncio
    async def test_continue_button_records_choice_and_stops(self):
        view = OverwriteConfirmationView(1, 2, Translator(), timeout=5)

        await view._on_continue(_interaction())

        assert view.choice is ConfirmationChoice.CONTINUE
        assert view.is_finished()

    @pytest.mark.asyncio
    async def test_buttons_are_labelled(self):
        view = OverwriteConfirmationView(1, 2, Translator(), timeout=5)

        assert [item.label for item in view.children] == ["Cancel", "Continue"]


class TestInteractionConfirmationGate:

    @pytest.mark.asyncio
    async def test_timeout_deletes_prompt(self, monkeypatch):
        async def expire(view):
            return True

        monkeypatch.setattr(OverwriteConfirmationView, "wait", expire)
        interaction = _interaction()
        prompt = MagicMock()
        prompt.delete = AsyncMock()
        interaction.followup.send.return_value = prompt

        choice = await InteractionConfirmationGate(interaction, Translator()).ask(1, 2, 5)

        assert choice is ConfirmationChoice.TIMEOUT
        prompt.delete.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_answer_is_returned(self, monkeypatch):
        async def answer(view):
            view.choice = ConfirmationChoice.CANCEL
            return False

        monkeypatch.setattr(OverwriteConfirmationView, "wait", answer)
        interaction = _interaction()
        interaction.followup.send.return_value = MagicMock(delete=AsyncMock())

        choice = await InteractionConfirmationGate(interaction, Translator()).ask(1, 2, 5)

        assert choice is ConfirmationChoice.CANCEL

    @pytest.mark.asyncio
    async def test_prompt_that_cannot_be_posted(self):
        interaction = _interaction()
        interaction.followup.send.side_effect = discord.HTTPException(
            MagicMock(status=403, reason="Forbidden"), "Missing Access"
        )

        with pytest.raises(ConfirmationUnavailable) as excinfo:
            await InteractionConfirmationGate(interaction, Translator()).ask(1, 2, 5)

        assert excinfo.value.token == "setup__confirmation_unavailable"


class TestWebhookNotifier:

    def _notification(self, succeeded=True):
        return SetupNotification(
            server_id=42, mode="full", token="setup__setup_success_message",
            succeeded=succeeded, message="The server has been set up.",
        )

    def test_payload(self):
        notifier = WebhookNotifier(WebhookConfig(enabled=True, url="https://x", username="Log"))

        payload = notifier.build_payload(self._notification())

        assert payload["username"] == "Log"
        (embed,) = payload["embeds"]
        assert embed["title"] == "Server setup succeeded"
        assert {"name": "Server", "value": "42", "inline": True} in embed["fields"]

    @pytest.mark.asyncio
    async def test_disabled_webhook_does_not_post(self):
        notifier = WebhookNotifier(WebhookConfig(enabled=False))

        await notifier.notify(self._notification(succeeded=False))

        assert notifier._session is None

    @pytest.mark.asyncio
    async def test_error_status_raises_notification_error(self):
        notifier = WebhookNotifier(WebhookConfig(enabled=True, url="https://x"))
        response = MagicMock(status=500)
        response.text = AsyncMock(return_value="upstream down")
        session = MagicMock(closed=False)
        session.post.return_value.__aenter__.return_value = response
        notifier._session = session

        with pytest.raises(NotificationError) as excinfo:
            await notifier.notify(self._notification())

        assert excinfo.value.status == 500
        assert "upstream down" in str(excinfo.value)
