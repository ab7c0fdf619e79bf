"""Tests for the py-cord implementation of the moderation host."""

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import discord
import pytest

from nailongwatch.bot.discord_host import MUTE_REASON, DiscordModerationHost
from nailongwatch.datatypes.message_datatypes import IncomingMessage


def http_error(cls, status):
    return cls(MagicMock(status=status, reason="error"), "error")


@pytest.fixture
def raw_message():
    raw = MagicMock()
    raw.reply = AsyncMock()
    raw.delete = AsyncMock()
    raw.channel.send = AsyncMock()
    return raw


@pytest.fixture
def incoming(raw_message):
    return IncomingMessage(message_id=5, group_id=100, user_id=7, text="", raw=raw_message)


class TestReplies:

    @pytest.mark.asyncio
    async def test_quoted_reply(self, incoming, raw_message):
        await DiscordModerationHost(MagicMock()).reply(incoming, "hi", quote=True)

        raw_message.reply.assert_awaited_once_with("hi", mention_author=False)
        raw_message.channel.send.assert_not_called()

    @pytest.mark.asyncio
    async def test_plain_reply_goes_to_channel(self, incoming, raw_message):
        await DiscordModerationHost(MagicMock()).reply(incoming, "hi")

        raw_message.channel.send.assert_awaited_once_with("hi")

    @pytest.mark.asyncio
    async def test_reply_errors_are_logged(self, incoming, raw_message):
        raw_message.channel.send.side_effect = http_error(discord.HTTPException, 500)

        await DiscordModerationHost(MagicMock()).reply(incoming, "hi")

    @pytest.mark.asyncio
    async def test_reply_with_attachments(self, incoming, raw_message, tmp_path):
        image = tmp_path / "1-output.png"
        image.write_bytes(b"png")

        with patch("nailongwatch.bot.discord_host.discord.File") as mock_file:
            await DiscordModerationHost(MagicMock()).reply_with_attachments(incoming, "text", [image])

        mock_file.assert_called_once_with(str(image), filename="1-output.png")
        raw_message.reply.assert_awaited_once_with("text", files=[mock_file.return_value], mention_author=False)

    @pytest.mark.asyncio
    async def test_message_without_discord_object(self):
        message = IncomingMessage(message_id=1, group_id=1, user_id=1)

        with pytest.raises(ValueError):
            await DiscordModerationHost(MagicMock()).reply(message, "hi")


class TestDeleteMessage:

    @pytest.mark.asyncio
    async def test_delete(self, incoming, raw_message):
        await DiscordModerationHost(MagicMock()).delete_message(incoming)

        raw_message.delete.assert_awaited_once()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [
        http_error(discord.NotFound, 404),
        http_error(discord.Forbidden, 403),
        http_error(discord.HTTPException, 500),
    ])
    async def test_delete_errors_are_swallowed(self, incoming, raw_message, error):
        raw_message.delete.side_effect = error

        await DiscordModerationHost(MagicMock()).delete_message(incoming)


class TestMuteUser:

    @pytest.mark.asyncio
    async def test_times_out_cached_member(self):
        member = MagicMock()
        member.timeout = AsyncMock()
        guild = MagicMock()
        guild.get_member.return_value = member
        bot = MagicMock()
        bot.get_guild.return_value = guild

        await DiscordModerationHost(bot).mute_user(100, 7, 60)

        bot.get_guild.assert_called_once_with(100)
        guild.get_member.assert_called_once_with(7)
        until = member.timeout.await_args.args[0]
        assert 55 <= (until - discord.utils.utcnow()).total_seconds() <= 60
        assert member.timeout.await_args.kwargs["reason"] == MUTE_REASON

    @pytest.mark.asyncio
    async def test_fetches_uncached_member(self):
        member = MagicMock()
        member.timeout = AsyncMock()
        guild = MagicMock()
        guild.get_member.return_value = None
        guild.fetch_member = AsyncMock(return_value=member)
        bot = MagicMock()
        bot.get_guild.return_value = guild

        await DiscordModerationHost(bot).mute_user(100, 7, 60)

        guild.fetch_member.assert_awaited_once_with(7)
        member.timeout.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_unknown_guild(self):
        bot = MagicMock()
        bot.get_guild.return_value = None

        await DiscordModerationHost(bot).mute_user(100, 7, 60)

    @pytest.mark.asyncio
    async def test_missing_permission_is_logged(self):
        member = MagicMock()
        member.timeout = AsyncMock(side_effect=http_error(discord.Forbidden, 403))
        guild = MagicMock()
        guild.get_member.return_value = member
        bot = MagicMock()
        bot.get_guild.return_value = guild

        await DiscordModerationHost(bot).mute_user(100, 7, 60)

        member.timeout.assert_awaited_once()
