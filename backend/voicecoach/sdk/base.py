from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Optional, Protocol

if TYPE_CHECKING:
    from voicecoach.session.config import SessionConfig


@dataclass
class SDKEventHandlers:
    on_connect: Callable[[], None]
    on_disconnect: Callable[[], None]
    on_error: Callable[[str], None]
    on_message: Callable[[Any], None]
    on_speaking: Callable[[bool], None]


class VoiceSDK(Protocol):
    # None when the SDK exposes no speaking flag
    is_speaking: Optional[bool]

    async def start_session(self, config: "SessionConfig", handlers: SDKEventHandlers) -> None:
        ...

    async def end_session(self) -> None:
        ...
