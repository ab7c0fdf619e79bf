"""
Routes each incoming message to the right handler.

- admin ``start``/``stop`` commands toggle the group whitelist
- the "my times" command reports the caller's counters
- the on-demand command with images runs an annotated inspection, whatever
  the whitelist says, and never reaches auto moderation
- any other image-bearing message in a whitelisted group is auto moderated
"""

from __future__ import annotations

from typing import Awaitable, Callable, List

from PIL import Image

from nailongwatch.configuration.settings import ModerationSettings
from nailongwatch.datatypes.message_datatypes import IncomingMessage
from nailongwatch.errors import InvalidImage, TransportFailure
from nailongwatch.moderation.host import ModerationHost
from nailongwatch.moderation.inspection import InspectionService
from nailongwatch.moderation.moderation_engine import ModerationEngine
from nailongwatch.moderation.moderation_records import ModerationRecordStore
from nailongwatch.moderation.whitelist import GroupWhitelist
from nailongwatch.util.image_utils import decode_image_bytes, fetch_image
from nailongwatch.util.logger import get_logger

logger = get_logger("dispatcher")

NO_RECORD_MSG = "你还没有发送过奶龙哦~"

ImageFetcher = Callable[[str], Awaitable[bytes]]


def format_times_report(group_times: int, total_times: int) -> str:
    return f"你在本群发送奶龙的次数为: {group_times}\n你的总发送次数为: {total_times}"


class ModeDispatcher:
    """Entry point for every message the host hands to NailongWatch."""

    def __init__(
        self,
        settings: ModerationSettings,
        whitelist: GroupWhitelist,
        records: ModerationRecordStore,
        inspection: InspectionService,
        moderation: ModerationEngine,
        fetch: ImageFetcher = fetch_image,
    ) -> None:
        self.settings = settings
        self.whitelist = whitelist
        self.records = records
        self.inspection = inspection
        self.moderation = moderation
        self.fetch = fetch

    async def dispatch(self, message: IncomingMessage, host: ModerationHost) -> None:
        if message.group_id is None:
            return

        text = message.command_text
        settings = self.settings

        if text in (settings.start_cmd, settings.stop_cmd):
            await self._toggle_whitelist(message, host)
        elif text == settings.my_times_cmd:
            await self._report_times(message, host)

        if not message.has_images:
            return

        if text == settings.reply_output_img_cmd:
            images = await self.load_images(message)
            if images:
                await self.inspection.inspect(message, images, host)
            return

        if not await self.whitelist.is_enabled(message.group_id):
            return

        images = await self.load_images(message)
        if images:
            await self.moderation.moderate(message, images, host)

    async def load_images(self, message: IncomingMessage) -> List[Image.Image]:
        """Download and decode every image; failures are logged and skipped."""
        images: List[Image.Image] = []
        for url in message.image_urls:
            try:
                data = await self.fetch(url)
                images.append(decode_image_bytes(data))
            except (TransportFailure, InvalidImage) as exc:
                logger.error("[DISPATCHER] Dropping image %s: %s", url, exc)

        if not images:
            logger.info("[DISPATCHER] No usable images in message %s", message.message_id)
        return images

    async def _toggle_whitelist(self, message: IncomingMessage, host: ModerationHost) -> None:
        if not message.is_admin or message.group_id is None:
            logger.debug("[DISPATCHER] Ignoring whitelist command from non-admin %s", message.user_id)
            return

        enable = message.command_text == self.settings.start_cmd
        await self.whitelist.set_enabled(message.group_id, enable)
        await host.reply(message, self.settings.start_msg if enable else self.settings.stop_msg)

    async def _report_times(self, message: IncomingMessage, host: ModerationHost) -> None:
        record = await self.records.get(message.user_id)
        if record is None or message.group_id is None:
            await host.reply(message, NO_RECORD_MSG)
            return
        await host.reply(message, format_times_report(record.group_times(message.group_id), record.total_times))
