"""On-demand check: reply with annotated images for every qualifying picture."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Sequence

from PIL import Image

from nailongwatch.artifacts.artifact_manager import ArtifactManager
from nailongwatch.configuration.settings import ModerationSettings
from nailongwatch.datatypes.message_datatypes import IncomingMessage
from nailongwatch.detection.detector import NailongDetector
from nailongwatch.errors import ArtifactIOFailure, InferenceFailure, InvalidImage
from nailongwatch.moderation.host import ModerationHost
from nailongwatch.moderation.moderation_engine import similarity_line
from nailongwatch.util.logger import get_logger

logger = get_logger("inspection")


class InspectionService:
    """Annotates images on request. Never reads or writes moderation records."""

    def __init__(
        self,
        detector: NailongDetector,
        artifacts: ArtifactManager,
        settings: ModerationSettings,
    ) -> None:
        self.detector = detector
        self.artifacts = artifacts
        self.settings = settings

    async def inspect(
        self,
        message: IncomingMessage,
        images: Sequence[Image.Image],
        host: ModerationHost,
    ) -> list[Path]:
        """
        Detect, composite and reply with the annotated images.

        Returns the artifact paths that were attached. They are already
        deleted by the time this coroutine returns.
        """
        settings = self.settings
        run = self.artifacts.new_run()
        lines = [settings.reply_msg]
        attachments: list[Path] = []

        for index, image in enumerate(images, start=1):
            try:
                composite, confidence = await self.detector.annotate(image)
            except (InvalidImage, InferenceFailure) as exc:
                logger.error("[INSPECTION] Skipping image %d: %s", index, exc)
                continue

            logger.info("[INSPECTION] Image %d nailong confidence %.3f", index, confidence)
            if confidence < settings.trigger:
                continue

            try:
                attachments.append(await run.write(composite, index))
            except ArtifactIOFailure as exc:
                logger.error("[INSPECTION] %s", exc)
                continue
            if settings.is_reply_trigger:
                lines.append(similarity_line(confidence))

        if not attachments:
            run.discard()
            return []

        try:
            await host.reply_with_attachments(message, "\n".join(lines), attachments)
            await asyncio.sleep(settings.delete_delay_seconds)
            if settings.is_delete_message:
                await host.delete_message(message)
        finally:
            await run.release()

        return attachments
