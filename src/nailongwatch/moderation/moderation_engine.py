"""
Silent auto moderation for whitelisted groups.

Images are run through detection without compositing. A qualifying image
records a trigger for its author; a second trigger inside the cooldown window
also times the author out.
"""

from __future__ import annotations

import asyncio
import time
from typing import Callable, Sequence

from PIL import Image

from nailongwatch.configuration.settings import ModerationSettings
from nailongwatch.datatypes.message_datatypes import IncomingMessage
from nailongwatch.detection.detector import NailongDetector, positive_confidence
from nailongwatch.errors import InferenceFailure, InvalidImage
from nailongwatch.moderation.host import ModerationHost
from nailongwatch.moderation.moderation_records import ModerationRecordStore, TriggerOutcome
from nailongwatch.util.logger import get_logger

logger = get_logger("moderation_engine")


def similarity_line(confidence: float) -> str:
    return f"相似度：{confidence:.2f}"


class ModerationEngine:
    """
    Turns detection results into enforcement for one message at a time.

    Attributes:
        detector: Shared detection pipeline.
        records: Per-user offence table.
        settings: Trigger threshold, cooldown, timeout length and reply texts.
        clock: Returns the current unix time in seconds.
    """

    def __init__(
        self,
        detector: NailongDetector,
        records: ModerationRecordStore,
        settings: ModerationSettings,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.detector = detector
        self.records = records
        self.settings = settings
        self.clock = clock

    async def _qualifying_confidences(self, images: Sequence[Image.Image]) -> list[float]:
        confidences: list[float] = []
        for index, image in enumerate(images, start=1):
            try:
                detections = await self.detector.detect(image)
            except (InvalidImage, InferenceFailure) as exc:
                logger.error("[AUTO MODERATION] Skipping image %d: %s", index, exc)
                continue

            confidence = positive_confidence(detections)
            logger.info("[AUTO MODERATION] Image %d nailong confidence %.3f", index, confidence)
            if confidence >= self.settings.trigger:
                confidences.append(confidence)
        return confidences

    async def moderate(
        self,
        message: IncomingMessage,
        images: Sequence[Image.Image],
        host: ModerationHost,
    ) -> TriggerOutcome | None:
        """
        Enforce moderation for a message's images.

        Returns:
            TriggerOutcome | None: The recorded trigger, or ``None`` when no
            image qualified (nothing is sent in that case).
        """
        if message.group_id is None:
            return None

        confidences = await self._qualifying_confidences(images)
        if not confidences:
            return None

        settings = self.settings
        outcome = await self.records.record_trigger(
            message.user_id,
            message.group_id,
            now=int(self.clock()),
            cooldown=settings.ban_cooldown,
        )

        if outcome.escalate:
            logger.info(
                "[AUTO MODERATION] User %s repeated within %ss in group %s; muting for %ss",
                message.user_id,
                outcome.elapsed,
                message.group_id,
                settings.ban_duration,
            )
            await host.mute_user(message.group_id, message.user_id, settings.ban_duration)
            await host.reply(message, settings.ban_msg)

        lines = [settings.reply_msg]
        if settings.is_reply_trigger:
            lines.extend(similarity_line(confidence) for confidence in confidences)
        await host.reply(message, "\n".join(lines), quote=True)

        # Let the reply land before its target disappears
        await asyncio.sleep(settings.delete_delay_seconds)
        if settings.is_delete_message:
            await host.delete_message(message)

        return outcome
