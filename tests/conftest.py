"""
Pytest configuration and fixtures for NailongWatch tests.
"""

import sys
from pathlib import Path

import numpy as np
import pytest

# Add src directory to path so imports work
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from nailongwatch.configuration.settings import ModerationSettings  # noqa: E402
from nailongwatch.datatypes.message_datatypes import IncomingMessage  # noqa: E402


class StaticEngine:
    """Inference engine returning the same candidate rows for every call."""

    def __init__(self, rows):
        # Single-class rows: cx, cy, w, h, score
        self.rows = np.asarray(rows, dtype=np.float32).reshape(-1, 5)
        self.calls = 0

    def infer(self, tensor):
        self.calls += 1
        assert tensor.shape == (1, 3, 640, 640)
        return self.rows


class RecordingHost:
    """ModerationHost that records every side effect instead of performing it."""

    def __init__(self):
        self.calls = []

    async def reply(self, message, text, *, quote=False):
        self.calls.append(("reply", text, quote))

    async def reply_with_attachments(self, message, text, image_paths):
        paths = list(image_paths)
        self.calls.append(("attach", text, paths, [p.exists() for p in paths]))

    async def delete_message(self, message):
        self.calls.append(("delete", message.message_id))

    async def mute_user(self, group_id, user_id, duration_seconds):
        self.calls.append(("mute", group_id, user_id, duration_seconds))

    def of(self, kind):
        return [call for call in self.calls if call[0] == kind]


@pytest.fixture()
def static_engine():
    return StaticEngine


@pytest.fixture()
def host():
    return RecordingHost()


@pytest.fixture()
def fast_settings():
    """Moderation settings with no delays so tests never sleep."""
    return ModerationSettings({"delete_delay_seconds": 0, "artifact_grace_seconds": 0})


@pytest.fixture()
def make_message():
    def _make(text="", image_urls=None, group_id=100, user_id=7, is_admin=False, message_id=1):
        return IncomingMessage(
            message_id=message_id,
            group_id=group_id,
            user_id=user_id,
            text=text,
            image_urls=list(image_urls or []),
            is_admin=is_admin,
        )

    return _make
