from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(slots=True)
class IncomingMessage:
    """Host-neutral view of a chat message that may carry images.

    Attributes:
        message_id: Host identifier of the message.
        group_id: Server (guild) id, or ``None`` for direct messages.
        user_id: Author id.
        text: Raw text content.
        image_urls: URLs of image attachments, in posting order.
        is_admin: Whether the author may toggle auto moderation.
        raw: The host's own message object, used only by the host adapter.
    """

    message_id: int
    group_id: int | None
    user_id: int
    text: str = ""
    image_urls: list[str] = field(default_factory=list)
    is_admin: bool = False
    raw: Any = None

    @property
    def command_text(self) -> str:
        """Text with surrounding whitespace removed, used for command matching."""
        return self.text.strip()

    @property
    def has_images(self) -> bool:
        return bool(self.image_urls)
