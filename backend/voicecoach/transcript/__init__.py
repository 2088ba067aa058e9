from voicecoach.transcript.classifier import classify_event
from voicecoach.transcript.models import (
    ClassifiedEvent,
    EventKind,
    IngestResult,
    TranscriptSegment,
)
from voicecoach.transcript.reconciler import TranscriptReconciler

__all__ = [
    "ClassifiedEvent",
    "EventKind",
    "IngestResult",
    "TranscriptReconciler",
    "TranscriptSegment",
    "classify_event",
]
