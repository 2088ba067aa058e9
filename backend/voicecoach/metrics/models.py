from dataclasses import asdict, dataclass


@dataclass(frozen=True)
class RunMetrics:
    duration_sec: int = 0
    wpm_avg: int = 0
    fillers: int = 0
    silence_pct: float = 0.0
    interruptions: int = 0
    latency_avg_ms: int = 0

    def to_dict(self) -> dict:
        return asdict(self)
