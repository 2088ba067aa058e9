from voicecoach.metrics.aggregator import MetricsAggregator, count_fillers


def test_filler_detection_example():
    aggregator = MetricsAggregator(clock=lambda: 0)
    aggregator.record_user_utterance("I think, um, we could, like, try.")
    assert aggregator.word_count == 7
    assert aggregator.filler_count == 2


def test_you_know_counts_as_one_filler():
    assert count_fillers("you know, it was, uh, fine".split()) == 2
    assert count_fillers("Well actually SO".split()) == 3
    assert count_fillers("unlike umbrella".split()) == 0


def test_empty_tokens_dropped():
    aggregator = MetricsAggregator(clock=lambda: 0)
    aggregator.record_user_utterance("   ")
    aggregator.record_user_utterance("one\t two\n\nthree ")
    assert aggregator.word_count == 3


def test_wpm_for_sixty_seconds_and_zero_duration():
    aggregator = MetricsAggregator(clock=lambda: 0)
    aggregator.start(now=0)
    aggregator.record_user_utterance(" ".join(["word"] * 120))

    assert aggregator.recompute_snapshot(now=60_000).wpm_avg == 120
    assert aggregator.recompute_snapshot(now=0).wpm_avg == 0
    assert aggregator.recompute_snapshot(now=999).duration_sec == 0


def test_duration_is_floored():
    aggregator = MetricsAggregator(clock=lambda: 0)
    aggregator.start(now=1_000)
    assert aggregator.recompute_snapshot(now=2_999).duration_sec == 1


def test_not_started_reports_zero_duration():
    aggregator = MetricsAggregator(clock=lambda: 10_000)
    aggregator.record_user_utterance("hello there")
    metrics = aggregator.recompute_snapshot()
    assert metrics.duration_sec == 0
    assert metrics.wpm_avg == 0


def test_latency_average_rounds_half_up():
    aggregator = MetricsAggregator(clock=lambda: 0)
    aggregator.record_latency(1)
    aggregator.record_latency(2)
    assert aggregator.recompute_snapshot().latency_avg_ms == 2


def test_silence_from_gaps_between_final_segments():
    aggregator = MetricsAggregator(clock=lambda: 0)
    aggregator.start(now=0)
    aggregator.record_final_segment(0, "hi")
    aggregator.record_final_segment(5_000, "one two")
    aggregator.record_final_segment(5_500, "short gap")

    assert aggregator.total_silence_ms == 4_200
    assert aggregator.recompute_snapshot(now=10_000).silence_pct == 42.0


def test_silence_pct_is_clamped():
    aggregator = MetricsAggregator(clock=lambda: 0)
    aggregator.start(now=0)
    aggregator.total_silence_ms = 50_000
    assert aggregator.recompute_snapshot(now=2_000).silence_pct == 100.0


def test_recompute_is_side_effect_free():
    clock_now = [30_000]
    aggregator = MetricsAggregator(clock=lambda: clock_now[0])
    aggregator.start(now=0)
    aggregator.record_user_utterance("um hello")
    aggregator.record_latency(300)
    aggregator.record_interruption()

    first = aggregator.recompute_snapshot()
    second = aggregator.recompute_snapshot()
    assert first == second
    assert first.interruptions == 1
    assert first.fillers == 1
    assert aggregator.word_count == 2
    assert aggregator.latency_samples == [300]


def test_reset_clears_accumulators():
    aggregator = MetricsAggregator(clock=lambda: 0)
    aggregator.start(now=0)
    aggregator.record_user_utterance("uh yes")
    aggregator.record_latency(10)
    aggregator.reset()

    assert aggregator.started is False
    assert aggregator.word_count == 0
    assert aggregator.filler_count == 0
    assert aggregator.latency_samples == []
    assert aggregator.recompute_snapshot().latency_avg_ms == 0
