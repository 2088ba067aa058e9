import dataclasses
import logging
import time
from typing import Any, Callable, Optional

from voicecoach.metrics.aggregator import MetricsAggregator

from .classifier import classify_event
from .models import (
    SPEAKER_AI,
    SPEAKER_USER,
    ClassifiedEvent,
    EventKind,
    IngestResult,
    TranscriptSegment,
)

logger = logging.getLogger("transcript_reconciler")

TranscriptSubscriber = Callable[[list[TranscriptSegment]], None]


def _unix_ms() -> int:
    return int(time.time() * 1000)


class TranscriptReconciler:
    """
    Deterministic transcript reconciler.
    Append/replace only. Never reorders.
    At most one tentative segment per speaker.
    """

    def __init__(
        self,
        aggregator: Optional[MetricsAggregator] = None,
        clock: Optional[Callable[[], int]] = None,
    ):
        self._aggregator = aggregator
        self._clock = clock or _unix_ms
        self._subscribers: list[TranscriptSubscriber] = []
        self.reset()

    def reset(self):
        self._segments: list[TranscriptSegment] = []
        self._next_ref = 1
        self._last_appended_ts = 0

    def subscribe(self, callback: TranscriptSubscriber):
        self._subscribers.append(callback)

    # -------------------------
    # INPUT API (FROM SDK)
    # -------------------------

    def ingest(self, raw_event: Any, timestamp: Optional[int] = None) -> IngestResult:
        event = raw_event if isinstance(raw_event, ClassifiedEvent) else classify_event(raw_event)
        if event.kind is EventKind.UNRECOGNIZED:
            logger.debug("UNRECOGNIZED event dropped")
            return IngestResult(kind=event.kind)

        ts = int(self._clock() if timestamp is None else timestamp)

        if event.kind is EventKind.INTERRUPTION:
            result = IngestResult(kind=event.kind)
        elif event.kind is EventKind.USER_TRANSCRIPT:
            result = self._upsert(event.kind, SPEAKER_USER, event.text, ts, event.final)
        elif event.kind is EventKind.TENTATIVE_AGENT_RESPONSE:
            result = self._upsert(event.kind, SPEAKER_AI, event.text, ts, False)
        else:
            result = self._upsert(event.kind, SPEAKER_AI, event.text, ts, True)
            result.latency_ms = self._record_latency(ts)

        self._notify()
        return result

    def _tentative_index(self, speaker: str) -> int:
        for index in range(len(self._segments) - 1, -1, -1):
            segment = self._segments[index]
            if segment.speaker == speaker and not segment.final:
                return index
        return -1

    def _upsert(self, kind: EventKind, speaker: str, text: str, ts: int, final: bool) -> IngestResult:
        index = self._tentative_index(speaker)
        if index >= 0:
            segment = TranscriptSegment(
                t=ts,
                speaker=speaker,
                text=text,
                final=final,
                id=self._segments[index].id,
            )
            self._segments[index] = segment
            return IngestResult(kind=kind, segment=segment, index=index, replaced=True)

        ts = max(ts, self._last_appended_ts)
        segment = TranscriptSegment(
            t=ts,
            speaker=speaker,
            text=text,
            final=final,
            id=f"t{self._next_ref}",
        )
        self._next_ref += 1
        self._last_appended_ts = ts
        self._segments.append(segment)
        return IngestResult(kind=kind, segment=segment, index=len(self._segments) - 1)

    def _record_latency(self, agent_ts: int) -> Optional[int]:
        last_user = self.last_final(SPEAKER_USER)
        if last_user is None:
            return None
        latency = agent_ts - last_user.t
        if self._aggregator is not None:
            self._aggregator.record_latency(latency)
        return latency

    def _notify(self):
        if not self._subscribers:
            return
        snapshot = self.snapshot()
        for callback in self._subscribers:
            try:
                callback(snapshot)
            except Exception:
                logger.exception("Transcript subscriber failed")

    # -------------------------
    # READ API
    # -------------------------

    def last_final(self, speaker: str) -> Optional[TranscriptSegment]:
        for segment in reversed(self._segments):
            if segment.speaker == speaker and segment.final:
                return segment
        return None

    def snapshot(self) -> list[TranscriptSegment]:
        return [dataclasses.replace(segment) for segment in self._segments]

    def __len__(self) -> int:
        return len(self._segments)
