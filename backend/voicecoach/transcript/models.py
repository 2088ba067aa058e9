from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Optional


SPEAKER_USER = "user"
SPEAKER_AI = "ai"


@dataclass
class TranscriptSegment:
    """
    One entry of the canonical transcript.
    Tentative (final=False) entries are replaced in place once finalized.
    """
    t: int = 0  # unix_ms
    speaker: str = SPEAKER_USER  # user | ai
    text: str = ""
    final: bool = True
    id: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)


class EventKind(str, Enum):
    USER_TRANSCRIPT = "user_transcript"
    TENTATIVE_AGENT_RESPONSE = "tentative_agent_response"
    FINAL_AGENT_RESPONSE = "final_agent_response"
    INTERRUPTION = "interruption"
    UNRECOGNIZED = "unrecognized"


@dataclass
class ClassifiedEvent:
    """
    Normalized form of one inbound SDK message.
    Only this shape reaches the reconciler.
    """
    kind: EventKind = EventKind.UNRECOGNIZED
    text: str = ""
    final: bool = True
    raw: Any = field(default=None, repr=False)


@dataclass
class IngestResult:
    kind: EventKind
    segment: Optional[TranscriptSegment] = None
    index: int = -1
    replaced: bool = False
    latency_ms: Optional[int] = None

    @property
    def accepted(self) -> bool:
        return self.kind is not EventKind.UNRECOGNIZED
