"""
Lifecycle of the annotated images written for on-demand checks.

Each handling unit owns an :class:`ArtifactRun`. Files are deleted either by
the run (after the reply went out and a grace period passed, or immediately
when nothing qualified) or by :meth:`ArtifactManager.sweep` at shutdown.
Both paths may hit the same file, so deletion tolerates files that are
already gone.
"""

from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Iterable, List

from PIL import Image

from nailongwatch.errors import ArtifactIOFailure
from nailongwatch.util.image_utils import save_png
from nailongwatch.util.logger import get_logger

logger = get_logger("artifact_manager")

ARTIFACT_TIMESTAMP_FORMAT = "%Y-%m-%d-%H-%M-%S"
DEFAULT_GRACE_SECONDS = 10.0


@dataclass(frozen=True, slots=True)
class TemporaryArtifact:
    path: Path
    created_at: datetime


def delete_paths(paths: Iterable[Path]) -> int:
    """Best-effort unlink; failures are logged and never raised. Returns the count removed."""
    removed = 0
    for path in paths:
        try:
            path.unlink()
            removed += 1
        except FileNotFoundError:
            logger.warning("[ARTIFACTS] %s was already removed", path)
        except OSError as exc:
            logger.error("[ARTIFACTS] Failed to delete %s: %s", path, exc)
    return removed


class ArtifactRun:
    """
    Temporary files produced while handling one message.

    File names carry a random run id, so two runs started in the same second
    never write to or delete each other's files.
    """

    def __init__(self, tmp_dir: Path, grace_seconds: float = DEFAULT_GRACE_SECONDS) -> None:
        self.tmp_dir = tmp_dir
        self.run_id = uuid.uuid4().hex[:8]
        self.grace_seconds = grace_seconds
        self.artifacts: List[TemporaryArtifact] = []

    @property
    def paths(self) -> List[Path]:
        return [artifact.path for artifact in self.artifacts]

    def allocate(self, index: int) -> Path:
        """Reserve and track a timestamped path for the ``index``-th image of the run."""
        now = datetime.now()
        path = self.tmp_dir / f"{now.strftime(ARTIFACT_TIMESTAMP_FORMAT)}-{self.run_id}-{index}-output.png"
        self.artifacts.append(TemporaryArtifact(path=path, created_at=now))
        return path

    async def write(self, image: Image.Image, index: int) -> Path:
        """
        Save ``image`` as a tracked PNG artifact.

        Raises:
            ArtifactIOFailure: If the file cannot be written.
        """
        path = self.allocate(index)
        try:
            await asyncio.to_thread(save_png, image, path)
        except (OSError, ValueError) as exc:
            raise ArtifactIOFailure(f"failed to write {path}: {exc}") from exc
        logger.debug("[ARTIFACTS] Wrote %s", path)
        return path

    def discard(self) -> None:
        """Delete every tracked path now, without a grace period."""
        artifacts, self.artifacts = self.artifacts, []
        # Allocated paths may never have been written
        delete_paths(a.path for a in artifacts if a.path.exists())

    async def release(self) -> None:
        """Wait out the grace period so the host can finish uploading, then delete."""
        if not self.artifacts:
            return
        await asyncio.sleep(self.grace_seconds)
        artifacts, self.artifacts = self.artifacts, []
        removed = delete_paths(a.path for a in artifacts)
        logger.debug("[ARTIFACTS] Released %d artifact(s)", removed)


class ArtifactManager:
    """Owns the temporary directory and hands out per-message runs."""

    def __init__(self, tmp_dir: Path, grace_seconds: float = DEFAULT_GRACE_SECONDS) -> None:
        self.tmp_dir = tmp_dir
        self.grace_seconds = grace_seconds

    def new_run(self) -> ArtifactRun:
        return ArtifactRun(self.tmp_dir, self.grace_seconds)

    def sweep(self) -> int:
        """
        Delete every regular file in the temporary directory, tracked or not.

        Used at shutdown. Individual failures are logged and skipped.
        """
        if not self.tmp_dir.is_dir():
            return 0
        try:
            files = [entry for entry in self.tmp_dir.iterdir() if entry.is_file()]
        except OSError as exc:
            logger.error("[ARTIFACTS] Cannot list %s: %s", self.tmp_dir, exc)
            return 0
        removed = delete_paths(files)
        logger.info("[ARTIFACTS] Shutdown sweep removed %d file(s) from %s", removed, self.tmp_dir)
        return removed

    async def sweep_async(self, timeout: float) -> int:
        """Run :meth:`sweep` off the event loop, giving up after ``timeout`` seconds."""
        try:
            return await asyncio.wait_for(asyncio.to_thread(self.sweep), timeout)
        except asyncio.TimeoutError:
            logger.error("[ARTIFACTS] Shutdown sweep of %s timed out after %.1fs", self.tmp_dir, timeout)
            return 0
