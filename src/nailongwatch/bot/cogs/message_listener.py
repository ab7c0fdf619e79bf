"""Message listener Cog for NailongWatch.

Translates Discord ``on_message`` events into :class:`IncomingMessage`
values and hands them to the mode dispatcher. py-cord runs every listener
invocation as its own task, so messages are handled concurrently.
"""

from typing import Union

import discord
from discord.ext import commands

from nailongwatch.bot.discord_host import DiscordModerationHost
from nailongwatch.datatypes.message_datatypes import IncomingMessage
from nailongwatch.runtime import NailongRuntime
from nailongwatch.util.image_utils import is_image_attachment
from nailongwatch.util.logger import get_logger

logger = get_logger("message_listener_cog")


def has_elevated_permissions(member: Union[discord.User, discord.Member]) -> bool:
    """True for members with administrator, manage guild or moderate members."""
    if not isinstance(member, discord.Member):
        return False

    perms = member.guild_permissions
    return any(getattr(perms, attr, False) for attr in ("administrator", "manage_guild", "moderate_members"))


def to_incoming_message(message: discord.Message) -> IncomingMessage:
    """Build the host-neutral view of a Discord message."""
    return IncomingMessage(
        message_id=message.id,
        group_id=message.guild.id if message.guild else None,
        user_id=message.author.id,
        text=message.content or "",
        image_urls=[att.url for att in message.attachments if is_image_attachment(att)],
        is_admin=has_elevated_permissions(message.author),
        raw=message,
    )


class MessageListenerCog(commands.Cog):
    """Cog feeding guild messages into the detection and moderation pipeline."""

    def __init__(self, discord_bot_instance, runtime: NailongRuntime):
        self.bot = discord_bot_instance
        self.runtime = runtime
        self.host = DiscordModerationHost(discord_bot_instance)
        logger.info("Message listener cog loaded")

    @commands.Cog.listener(name="on_message")
    async def on_message(self, message: discord.Message):
        """Dispatch guild messages from humans; DMs and bots are ignored."""
        if message.guild is None or message.author.bot:
            return

        incoming = to_incoming_message(message)
        if not incoming.command_text and not incoming.has_images:
            return

        try:
            await self.runtime.dispatcher.dispatch(incoming, self.host)
        except Exception as exc:
            logger.error("Error handling message %s: %s", message.id, exc, exc_info=True)


def setup(discord_bot_instance, runtime: NailongRuntime):
    """Register the MessageListenerCog with the bot."""
    discord_bot_instance.add_cog(MessageListenerCog(discord_bot_instance, runtime))
