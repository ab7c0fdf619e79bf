from __future__ import annotations

from pathlib import Path
from typing import Protocol, Sequence

from nailongwatch.datatypes.message_datatypes import IncomingMessage


class ModerationHost(Protocol):
    """Side effects the moderation core asks of the chat host.

    Implementations handle their own transport errors (logging them); the
    core never inspects a return value.
    """

    async def reply(self, message: IncomingMessage, text: str, *, quote: bool = False) -> None:
        ...

    async def reply_with_attachments(
        self,
        message: IncomingMessage,
        text: str,
        image_paths: Sequence[Path],
    ) -> None:
        ...

    async def delete_message(self, message: IncomingMessage) -> None:
        ...

    async def mute_user(self, group_id: int, user_id: int, duration_seconds: int) -> None:
        ...
