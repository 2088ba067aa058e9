import random

from voicecoach.metrics.aggregator import MetricsAggregator
from voicecoach.transcript.models import EventKind
from voicecoach.transcript.reconciler import TranscriptReconciler


def _user(text, **extra):
    return {"source": "user", "message": text, **extra}


def _tentative(text):
    return {"type": "internal_tentative_agent_response", "text": text}


def _final(text):
    return {"type": "agent_response", "text": text}


def test_tentative_then_final_replaces_in_place():
    reconciler = TranscriptReconciler()
    reconciler.ingest(_user("hi"), timestamp=0)
    reconciler.ingest(_tentative("Hel"), timestamp=10)
    reconciler.ingest(_tentative("Hello th"), timestamp=20)
    result = reconciler.ingest(_final("Hello there"), timestamp=30)

    segments = reconciler.snapshot()
    assert len(segments) == 2
    assert result.replaced is True
    assert result.index == 1
    assert segments[1].speaker == "ai"
    assert segments[1].final is True
    assert segments[1].text == "Hello there"
    assert segments[1].t == 30
    assert segments[1].id == "t2"


def test_final_agent_without_tentative_appends():
    reconciler = TranscriptReconciler()
    result = reconciler.ingest(_final("Welcome"), timestamp=5)
    assert result.replaced is False
    assert [s.text for s in reconciler.snapshot()] == ["Welcome"]


def test_user_tentative_replaced_by_final_user():
    reconciler = TranscriptReconciler()
    reconciler.ingest(_user({"text": "I was", "final": False}), timestamp=0)
    reconciler.ingest(_user("I was going to ask"), timestamp=40)

    segments = reconciler.snapshot()
    assert len(segments) == 1
    assert segments[0].final is True
    assert segments[0].text == "I was going to ask"


def test_latency_recorded_against_last_final_user():
    aggregator = MetricsAggregator(clock=lambda: 0)
    reconciler = TranscriptReconciler(aggregator=aggregator)
    reconciler.ingest(_user("hi"), timestamp=0)
    result = reconciler.ingest(_final("hello"), timestamp=50)

    assert result.latency_ms == 50
    assert aggregator.latency_samples == [50]
    assert aggregator.recompute_snapshot().latency_avg_ms == 50


def test_no_latency_before_first_final_user():
    aggregator = MetricsAggregator(clock=lambda: 0)
    reconciler = TranscriptReconciler(aggregator=aggregator)
    reconciler.ingest(_final("Welcome to the session"), timestamp=0)
    reconciler.ingest(_user({"text": "ok so", "final": False}), timestamp=10)
    reconciler.ingest(_final("Take your time"), timestamp=20)

    assert aggregator.latency_samples == []


def test_subscribers_get_full_copy_on_every_recognized_ingest():
    reconciler = TranscriptReconciler()
    seen = []
    reconciler.subscribe(seen.append)

    reconciler.ingest(_user("hi"), timestamp=0)
    reconciler.ingest({"type": "interruption"}, timestamp=1)
    reconciler.ingest({"type": "ping"}, timestamp=2)
    reconciler.ingest(_tentative("Hey"), timestamp=3)

    assert len(seen) == 3
    assert [len(batch) for batch in seen] == [1, 1, 2]

    seen[-1][0].text = "mutated"
    assert reconciler.snapshot()[0].text == "hi"


def test_unrecognized_event_does_not_mutate():
    reconciler = TranscriptReconciler()
    result = reconciler.ingest({"type": "audio", "audio_event": {}}, timestamp=0)
    assert result.kind is EventKind.UNRECOGNIZED
    assert result.accepted is False
    assert len(reconciler) == 0


def test_appended_timestamps_never_decrease():
    reconciler = TranscriptReconciler()
    reconciler.ingest(_user("first"), timestamp=100)
    reconciler.ingest(_final("second"), timestamp=50)
    segments = reconciler.snapshot()
    assert [s.t for s in segments] == [100, 100]


def test_random_sequences_keep_one_tentative_per_speaker():
    rng = random.Random(1234)
    makers = [
        lambda i: _user(f"user words {i}"),
        lambda i: _user({"text": f"user partial {i}", "final": False}),
        lambda i: _tentative(f"agent partial {i}"),
        lambda i: _final(f"agent final {i}"),
        lambda i: {"type": "interruption"},
        lambda i: {"type": "unknown_kind", "text": "noise"},
        lambda i: {"source": "ai", "message": ""},
    ]

    for _ in range(200):
        reconciler = TranscriptReconciler(aggregator=MetricsAggregator(clock=lambda: 0))
        previous_ids: list[str] = []
        ts = 0
        for i in range(40):
            ts += rng.randint(0, 500)
            reconciler.ingest(rng.choice(makers)(i), timestamp=ts)
            segments = reconciler.snapshot()

            for speaker in ("user", "ai"):
                assert sum(1 for s in segments if s.speaker == speaker and not s.final) <= 1

            ids = [s.id for s in segments]
            assert ids[: len(previous_ids)] == previous_ids
            assert len(set(ids)) == len(ids)
            previous_ids = ids
