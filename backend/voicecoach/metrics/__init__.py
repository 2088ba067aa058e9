from voicecoach.metrics.aggregator import MetricsAggregator, count_fillers
from voicecoach.metrics.models import RunMetrics

__all__ = ["MetricsAggregator", "RunMetrics", "count_fillers"]
