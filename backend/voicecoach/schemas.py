from typing import Literal

from pydantic import BaseModel, Field


class TranscriptLine(BaseModel):
    id: str
    t: int
    speaker: Literal["user", "ai"]
    role: str
    text: str


class RunMetricsPayload(BaseModel):
    duration_sec: int = 0
    wpm_avg: int = 0
    fillers: int = 0
    silence_pct: float = 0.0
    interruptions: int = 0
    latency_avg_ms: int = 0


class ReportRequest(BaseModel):
    transcript: list[TranscriptLine] = Field(default_factory=list)
    metrics: RunMetricsPayload = Field(default_factory=RunMetricsPayload)
    transcript_text: str = ""
    scenario: dict | None = None
