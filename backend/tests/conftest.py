import asyncio
import sys
from pathlib import Path

import pytest


ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from voicecoach.phase.state import Phase  # noqa: E402
from voicecoach.resources.gate import ResourceGate, SharedAudioOutput  # noqa: E402
from voicecoach.session.config import SessionConfig  # noqa: E402
from voicecoach.session.lifecycle import SessionLifecycleManager  # noqa: E402


@pytest.fixture(autouse=True)
def _test_env(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("ELEVENLABS_API_KEY", "")
    monkeypatch.setenv("CONVAI_AGENT_ID", "agent-test")


class FakeClock:
    def __init__(self, now: int = 0):
        self.now = now

    def __call__(self) -> int:
        return self.now


class FakeCaptureHandle:
    def __init__(self):
        self.closed = False

    def close(self):
        self.closed = True


class FakeMicrophone:
    def __init__(self, deny: bool = False):
        self.deny = deny
        self.calls = 0
        self.handles: list[FakeCaptureHandle] = []

    async def open_capture(self):
        self.calls += 1
        if self.deny:
            raise OSError("NotAllowedError: permission denied")
        handle = FakeCaptureHandle()
        self.handles.append(handle)
        return handle


class FakeAudioOutput:
    def __init__(self, blocked: bool = False):
        self.blocked = blocked
        self.calls = 0

    async def resume(self):
        self.calls += 1
        if self.blocked:
            raise RuntimeError("NotAllowedError: play() failed")
        return object()


class FakeSDK:
    def __init__(
        self,
        is_speaking=None,
        fail_start: bool = False,
        fail_end: bool = False,
        emit_connect: bool = True,
        hold_start: bool = False,
    ):
        self.is_speaking = is_speaking
        self.fail_start = fail_start
        self.fail_end = fail_end
        self.emit_connect = emit_connect
        self.handlers = None
        self.configs = []
        self.start_calls = 0
        self.end_calls = 0
        self.muted_calls = []
        self.entered = asyncio.Event()
        self.release = asyncio.Event()
        if not hold_start:
            self.release.set()

    async def start_session(self, config, handlers):
        self.start_calls += 1
        self.configs.append(config)
        self.handlers = handlers
        self.entered.set()
        await self.release.wait()
        if self.fail_start:
            raise RuntimeError("websocket handshake failed")
        if self.emit_connect:
            handlers.on_connect()

    async def end_session(self):
        self.end_calls += 1
        if self.fail_end:
            raise RuntimeError("teardown failed")
        if self.handlers is not None:
            self.handlers.on_disconnect()

    def set_muted(self, muted: bool):
        self.muted_calls.append(muted)

    def emit(self, message):
        self.handlers.on_message(message)


class Recorder:
    def __init__(self):
        self.transcripts = []
        self.metrics = []
        self.errors = []
        self.phases = []

    def on_transcript_update(self, segments):
        self.transcripts.append(segments)

    def on_metrics_update(self, metrics):
        self.metrics.append(metrics)

    def on_error(self, message):
        self.errors.append(message)

    def on_phase_change(self, phase: Phase):
        self.phases.append(phase)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()


@pytest.fixture
def session_config() -> SessionConfig:
    return SessionConfig(agent_id="agent-test", voice_id="voice-test", dynamic_variables={"user_name": "Ana"})


@pytest.fixture
def make_manager(recorder: Recorder, clock: FakeClock):
    def _make(sdk=None, microphone=None, audio_output=None, debounce_sec: float = 0.05):
        gate = ResourceGate(
            microphone=microphone or FakeMicrophone(),
            audio_output=audio_output or FakeAudioOutput(),
            shared_output=SharedAudioOutput(),
        )
        return SessionLifecycleManager(
            sdk=sdk or FakeSDK(),
            on_transcript_update=recorder.on_transcript_update,
            on_metrics_update=recorder.on_metrics_update,
            on_error=recorder.on_error,
            on_phase_change=recorder.on_phase_change,
            gate=gate,
            clock=clock,
            debounce_sec=debounce_sec,
        )

    return _make
