"""
Discord implementation of :class:`ModerationHost`.

Discord errors are logged and swallowed here so a failed reply or timeout
never aborts the rest of a moderation run.
"""

import datetime
from pathlib import Path
from typing import Sequence

import discord

from nailongwatch.datatypes.message_datatypes import IncomingMessage
from nailongwatch.util.logger import get_logger

logger = get_logger("discord_host")

MUTE_REASON = "NailongWatch: repeated nailong images"


class DiscordModerationHost:
    """Sends replies, deletes messages and applies timeouts through py-cord."""

    def __init__(self, bot: discord.Bot) -> None:
        self.bot = bot

    @staticmethod
    def _discord_message(message: IncomingMessage) -> discord.Message:
        if message.raw is None:
            raise ValueError(f"message {message.message_id} has no Discord message attached")
        return message.raw

    async def reply(self, message: IncomingMessage, text: str, *, quote: bool = False) -> None:
        target = self._discord_message(message)
        try:
            if quote:
                await target.reply(text, mention_author=False)
            else:
                await target.channel.send(text)
        except discord.HTTPException as exc:
            logger.error("[DISCORD HOST] Failed to reply to message %s: %s", message.message_id, exc)

    async def reply_with_attachments(self, message: IncomingMessage, text: str, image_paths: Sequence[Path]) -> None:
        target = self._discord_message(message)
        try:
            files = [discord.File(str(path), filename=path.name) for path in image_paths]
            await target.reply(text, files=files, mention_author=False)
        except (discord.HTTPException, OSError) as exc:
            logger.error("[DISCORD HOST] Failed to send annotated images for message %s: %s", message.message_id, exc)

    async def delete_message(self, message: IncomingMessage) -> None:
        target = self._discord_message(message)
        try:
            await target.delete()
        except discord.NotFound:
            logger.debug("[DISCORD HOST] Message %s already deleted", message.message_id)
        except discord.Forbidden:
            logger.warning("[DISCORD HOST] No permission to delete message %s", message.message_id)
        except discord.HTTPException as exc:
            logger.error("[DISCORD HOST] Error deleting message %s: %s", message.message_id, exc)

    async def mute_user(self, group_id: int, user_id: int, duration_seconds: int) -> None:
        guild = self.bot.get_guild(group_id)
        if guild is None:
            logger.warning("[DISCORD HOST] Cannot mute %s: guild %s not cached", user_id, group_id)
            return

        until = discord.utils.utcnow() + datetime.timedelta(seconds=duration_seconds)
        try:
            member = guild.get_member(user_id) or await guild.fetch_member(user_id)
            await member.timeout(until, reason=MUTE_REASON)
            logger.info("[DISCORD HOST] Timed out %s in guild %s for %ss", user_id, group_id, duration_seconds)
        except discord.Forbidden:
            logger.warning("[DISCORD HOST] No permission to time out %s in guild %s", user_id, group_id)
        except discord.HTTPException as exc:
            logger.error("[DISCORD HOST] Failed to time out %s in guild %s: %s", user_id, group_id, exc)
