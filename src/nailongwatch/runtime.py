"""
Process-wide object graph.

Everything a handling unit needs (detector, whitelist, records, artifact
manager, dispatcher) is built once here and passed explicitly to the Discord
cog. :meth:`NailongRuntime.shutdown` flushes persisted state and sweeps the
temporary directory.
"""

from __future__ import annotations

from pathlib import Path

from nailongwatch.artifacts.artifact_manager import ArtifactManager
from nailongwatch.configuration.app_configuration import AppConfig
from nailongwatch.detection.detector import NailongDetector
from nailongwatch.detection.inference import InferenceEngine, OnnxInferenceEngine
from nailongwatch.errors import PersistenceFailure
from nailongwatch.moderation.dispatcher import ImageFetcher, ModeDispatcher
from nailongwatch.moderation.inspection import InspectionService
from nailongwatch.moderation.moderation_engine import ModerationEngine
from nailongwatch.moderation.moderation_records import ModerationRecordStore
from nailongwatch.moderation.whitelist import GroupWhitelist
from nailongwatch.util.image_utils import fetch_image
from nailongwatch.util.logger import get_logger

logger = get_logger("runtime")

WHITELIST_FILE = "whitelist.json"
RECORDS_FILE = "user_info.json"


class NailongRuntime:
    """Holds the shared services for the lifetime of the process."""

    def __init__(
        self,
        config: AppConfig,
        engine: InferenceEngine,
        whitelist: GroupWhitelist,
        records: ModerationRecordStore,
        fetch: ImageFetcher = fetch_image,
    ) -> None:
        self.config = config
        self.whitelist = whitelist
        self.records = records

        moderation_settings = config.moderation_settings
        self.detector = NailongDetector(engine, config.detection_settings)
        self.artifacts = ArtifactManager(config.tmp_dir, moderation_settings.artifact_grace_seconds)
        self.dispatcher = ModeDispatcher(
            settings=moderation_settings,
            whitelist=whitelist,
            records=records,
            inspection=InspectionService(self.detector, self.artifacts, moderation_settings),
            moderation=ModerationEngine(self.detector, records, moderation_settings),
            fetch=fetch,
        )

    @property
    def whitelist_path(self) -> Path:
        return self.config.data_dir / WHITELIST_FILE

    @property
    def records_path(self) -> Path:
        return self.config.data_dir / RECORDS_FILE

    @classmethod
    def create(cls, config: AppConfig, engine: InferenceEngine | None = None) -> "NailongRuntime":
        """
        Load persisted state and the model.

        Raises:
            PersistenceFailure: If the whitelist or records cannot be loaded.
            InferenceFailure: If the model cannot be loaded.
        """
        data_dir = config.data_dir
        whitelist = GroupWhitelist.load(data_dir / WHITELIST_FILE)
        records = ModerationRecordStore.load(data_dir / RECORDS_FILE)

        if engine is None:
            engine = OnnxInferenceEngine.from_settings(config.detection_settings)
            logger.info("[RUNTIME] Model loaded")

        return cls(config, engine, whitelist, records)

    async def shutdown(self) -> None:
        """
        Flush the whitelist and records, then sweep temporary files.

        Both saves are attempted and the sweep always runs; the first
        persistence error is re-raised afterwards.
        """
        failure: PersistenceFailure | None = None

        for label, save, path in (
            ("whitelist", self.whitelist.save, self.whitelist_path),
            ("moderation records", self.records.save, self.records_path),
        ):
            try:
                save(path)
            except PersistenceFailure as exc:
                logger.critical("[RUNTIME] Failed to save %s: %s", label, exc)
                failure = failure or exc

        await self.artifacts.sweep_async(self.config.shutdown_sweep_timeout)

        if failure is not None:
            raise failure
        logger.info("[RUNTIME] Shutdown complete")
