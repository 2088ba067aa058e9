import math
import string
import time
from typing import Callable, Optional

from .models import RunMetrics
from . import rules


def _unix_ms() -> int:
    return int(time.time() * 1000)


def _round_half_up(value: float, digits: int = 0) -> float:
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def _normalize_token(token: str) -> str:
    return token.lower().rstrip(string.punctuation)


def count_fillers(tokens: list[str]) -> int:
    normalized = [_normalize_token(t) for t in tokens]
    count = 0
    i = 0
    while i < len(normalized):
        pair = tuple(normalized[i:i + 2])
        if len(pair) == 2 and pair in rules.FILLER_PHRASES:
            count += 1
            i += 2
            continue
        if normalized[i] in rules.FILLER_WORDS:
            count += 1
        i += 1
    return count


class MetricsAggregator:
    """
    Running speech counters for ONE session.
    Snapshots are derived on demand and never mutate the counters.
    """

    def __init__(self, clock: Optional[Callable[[], int]] = None):
        self._clock = clock or _unix_ms
        self.reset()

    def reset(self):
        self.started_at: Optional[int] = None
        self.word_count = 0
        self.filler_count = 0
        self.latency_samples: list[int] = []
        self.total_silence_ms = 0
        self.interruption_count = 0
        self._last_final_ts: Optional[int] = None

    def start(self, now: Optional[int] = None):
        if self.started_at is None:
            self.started_at = int(self._clock() if now is None else now)

    @property
    def started(self) -> bool:
        return self.started_at is not None

    # -------------------------
    # COUNTERS
    # -------------------------

    def record_user_utterance(self, text: str):
        tokens = [t for t in str(text or "").split() if t]
        self.word_count += len(tokens)
        self.filler_count += count_fillers(tokens)

    def record_latency(self, latency_ms: int):
        self.latency_samples.append(int(latency_ms))

    def record_interruption(self):
        self.interruption_count += 1

    def record_final_segment(self, ts: int, text: str = ""):
        """
        Accumulate silence from the gap since the previous final segment,
        minus the time the new segment plausibly took to say.
        """
        if self._last_final_ts is not None:
            gap = int(ts) - self._last_final_ts
            spoken_ms = len(str(text or "").split()) * 60000 / rules.ASSUMED_SPEAKING_WPM
            if gap > rules.NORMAL_SILENCE_MAX_MS:
                self.total_silence_ms += max(0, int(gap - spoken_ms))
        self._last_final_ts = int(ts)

    # -------------------------
    # SNAPSHOT
    # -------------------------

    def recompute_snapshot(self, now: Optional[int] = None) -> RunMetrics:
        if self.started_at is None:
            duration_sec = 0
        else:
            now_ms = int(self._clock() if now is None else now)
            duration_sec = max(0, (now_ms - self.started_at) // 1000)

        duration_min = duration_sec / 60
        wpm_avg = int(_round_half_up(self.word_count / duration_min)) if duration_min > 0 else 0

        latency_avg_ms = 0
        if self.latency_samples:
            latency_avg_ms = int(_round_half_up(sum(self.latency_samples) / len(self.latency_samples)))

        silence_pct = 0.0
        if duration_sec > 0:
            silence_pct = min(self.total_silence_ms / (duration_sec * 1000) * 100, rules.SILENCE_PCT_MAX)
            silence_pct = _round_half_up(max(0.0, silence_pct), 1)

        return RunMetrics(
            duration_sec=int(duration_sec),
            wpm_avg=wpm_avg,
            fillers=self.filler_count,
            silence_pct=silence_pct,
            interruptions=self.interruption_count,
            latency_avg_ms=latency_avg_ms,
        )
