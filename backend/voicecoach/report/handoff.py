from __future__ import annotations

from typing import Iterable, Optional

from voicecoach.schemas import ReportRequest, RunMetricsPayload, TranscriptLine
from voicecoach.session.lifecycle import SessionResult
from voicecoach.transcript.models import SPEAKER_AI, SPEAKER_USER, TranscriptSegment

ROLE_LABELS = {SPEAKER_USER: "User", SPEAKER_AI: "AI"}


def final_segments(segments: Iterable[TranscriptSegment]) -> list[TranscriptSegment]:
    """Final segments only, in transcript order. Tentative text never reaches the report."""
    return [segment for segment in segments if segment.final and segment.text.strip()]


def format_transcript(segments: Iterable[TranscriptSegment]) -> str:
    return "\n".join(
        f"{ROLE_LABELS.get(segment.speaker, segment.speaker)}: {segment.text.strip()}"
        for segment in final_segments(segments)
    )


def build_report_request(result: SessionResult, scenario: Optional[dict] = None) -> ReportRequest:
    finals = final_segments(result.transcript)
    lines = [
        TranscriptLine(
            id=segment.id or f"t{index}",
            t=segment.t,
            speaker=segment.speaker,
            role=ROLE_LABELS.get(segment.speaker, segment.speaker),
            text=segment.text.strip(),
        )
        for index, segment in enumerate(finals, start=1)
    ]
    return ReportRequest(
        transcript=lines,
        metrics=RunMetricsPayload(**result.final_metrics.to_dict()),
        transcript_text=format_transcript(finals),
        scenario=dict(scenario) if scenario else None,
    )
