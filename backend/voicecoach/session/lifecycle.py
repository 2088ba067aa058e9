import asyncio
import inspect
import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from core.config import AGENT_SPEAK_DEBOUNCE_MS
from core.logger import log_event
from voicecoach.errors import (
    EndFailure,
    SDKConnectionError,
    SessionError,
    StartFailure,
)
from voicecoach.metrics.aggregator import MetricsAggregator
from voicecoach.metrics.models import RunMetrics
from voicecoach.phase.machine import PhaseStateMachine
from voicecoach.phase.state import ERRORABLE_PHASES, Phase
from voicecoach.resources.gate import ResourceGate
from voicecoach.sdk.base import SDKEventHandlers, VoiceSDK
from voicecoach.session.config import SessionConfig
from voicecoach.transcript.models import EventKind, TranscriptSegment
from voicecoach.transcript.reconciler import TranscriptReconciler

logging.basicConfig(
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
    level=logging.INFO,
)

logger = logging.getLogger("session_lifecycle")


@dataclass
class SessionResult:
    transcript: list[TranscriptSegment] = field(default_factory=list)
    final_metrics: RunMetrics = field(default_factory=RunMetrics)

    def to_dict(self) -> dict:
        return {
            "transcript": [segment.to_dict() for segment in self.transcript],
            "finalMetrics": self.final_metrics.to_dict(),
        }


class SessionLifecycleManager:
    """
    Owns one reconciler, aggregator and phase machine and drives them from
    SDK callbacks. One active session at a time.
    """

    def __init__(
        self,
        sdk: VoiceSDK,
        on_transcript_update: Callable[[list[TranscriptSegment]], None],
        on_metrics_update: Callable[[RunMetrics], None],
        on_error: Callable[[str], None],
        on_phase_change: Optional[Callable[[Phase], None]] = None,
        gate: Optional[ResourceGate] = None,
        clock: Optional[Callable[[], int]] = None,
        debounce_sec: float = AGENT_SPEAK_DEBOUNCE_MS / 1000,
    ):
        self.sdk = sdk
        self.gate = gate or ResourceGate()
        self._on_transcript_update = on_transcript_update
        self._on_metrics_update = on_metrics_update
        self._on_error = on_error

        self.aggregator = MetricsAggregator(clock=clock)
        self.reconciler = TranscriptReconciler(aggregator=self.aggregator, clock=clock)
        self.reconciler.subscribe(self._emit_transcript)
        self.phase_machine = PhaseStateMachine(debounce_sec=debounce_sec, on_change=on_phase_change)

        self.session_id: Optional[str] = None
        self.is_muted = False
        self.tasks: list[asyncio.Task] = []
        self._start_in_flight = False
        self._connect_settled: Optional[asyncio.Event] = None
        # True between a successful start and its teardown.
        self._session_open = False

        self.handlers = SDKEventHandlers(
            on_connect=self._handle_connect,
            on_disconnect=self._handle_disconnect,
            on_error=self._handle_error,
            on_message=self._handle_message,
            on_speaking=self._handle_speaking,
        )

    # -------------------------
    # STATE
    # -------------------------

    @property
    def phase(self) -> Phase:
        return self.phase_machine.phase

    @property
    def is_connected(self) -> bool:
        return self.phase_machine.connected

    @property
    def has_permission(self) -> bool:
        return self.gate.has_permission

    @property
    def is_live(self) -> bool:
        return self.is_connected or self.phase in ERRORABLE_PHASES

    def _reset(self):
        self.reconciler.reset()
        self.aggregator.reset()
        self.phase_machine.reset()
        self.is_muted = False

    async def _release_sdk(self, reason: str):
        try:
            await self.sdk.end_session()
        except Exception as exc:
            logger.warning(f"SDK release failed | reason={reason} | error={exc}")
        else:
            logger.info(f"SDK connection released | reason={reason}")

    # -------------------------
    # CALLER API
    # -------------------------

    async def start_session(self, config: SessionConfig) -> bool:
        if self._start_in_flight:
            logger.warning("start_session ignored: another start is in flight")
            return False
        if self.is_live:
            logger.warning(f"start_session ignored: session {self.session_id} is {self.phase.value}")
            return False

        self._start_in_flight = True
        settled = asyncio.Event()
        self._connect_settled = settled
        try:
            if self._session_open:
                # Previous session was never torn down.
                await self._release_sdk("restart")
            self._session_open = False
            self.session_id = None

            try:
                await self.gate.clear()
            except SessionError as exc:
                self._report(exc)
                return False

            self._reset()
            self.session_id = str(uuid.uuid4())
            self.phase_machine.begin_connecting()
            log_event(
                "session",
                "connecting",
                self.session_id,
                agent_id=config.agent_id,
                voice_id=config.voice_id,
                dynamic_variables=config.dynamic_variables,
            )

            try:
                await self.sdk.start_session(config, self.handlers)
            except Exception as exc:
                logger.error(f"Failed to start voice session: {exc}")
                self.phase_machine.fail("start_failure")
                await self._release_sdk("start_failure")
                self._report(StartFailure())
                return False

            if self.phase_machine.is_terminal:
                await self._release_sdk("error_during_start")
                return False

            self._session_open = True
            self.aggregator.start()
            self.phase_machine.on_session_started()
            log_event("session", "started", self.session_id)
            return True
        finally:
            self._start_in_flight = False
            settled.set()

    async def end_session(self) -> Optional[SessionResult]:
        if self._start_in_flight and self._connect_settled is not None:
            logger.info("end_session waiting for pending connect to settle")
            await self._connect_settled.wait()

        if not self._session_open:
            logger.info("end_session skipped teardown: no open session")
            return None

        teardown_error: Optional[BaseException] = None
        try:
            await self.sdk.end_session()
        except Exception as exc:
            teardown_error = exc
        else:
            self._session_open = False

        final_metrics = self.aggregator.recompute_snapshot()
        self._emit_metrics(final_metrics)

        if teardown_error is not None:
            logger.error(f"Failed to end voice session: {teardown_error}")
            self.phase_machine.fail("end_failure")
            self._report(EndFailure())
            return None

        self.phase_machine.end()
        result = SessionResult(transcript=self.reconciler.snapshot(), final_metrics=final_metrics)
        log_event(
            "session",
            "ended",
            self.session_id,
            segments=len(result.transcript),
            metrics=final_metrics.to_dict(),
        )
        return result

    def toggle_mute(self) -> None:
        if not self.is_connected:
            return

        self.is_muted = not self.is_muted
        logger.info("Muted" if self.is_muted else "Unmuted")

        set_muted = getattr(self.sdk, "set_muted", None)
        if callable(set_muted):
            outcome = set_muted(self.is_muted)
            if inspect.isawaitable(outcome):
                self.create_task(outcome)

    def create_task(self, coro):
        task = asyncio.ensure_future(coro)
        self.tasks.append(task)
        return task

    async def close(self):
        self.phase_machine.cancel_debounce()
        for task in self.tasks:
            task.cancel()
        await asyncio.gather(*self.tasks, return_exceptions=True)
        self.tasks.clear()

    # -------------------------
    # SDK CALLBACKS
    # -------------------------

    def _speaking_flag_available(self) -> bool:
        return getattr(self.sdk, "is_speaking", None) is not None

    def _handle_connect(self):
        self.aggregator.start()
        self.phase_machine.on_connect()
        log_event("sdk", "connect", self.session_id)

    def _handle_disconnect(self):
        self.phase_machine.on_disconnect()
        log_event("sdk", "disconnect", self.session_id)

    def _handle_error(self, message: Any):
        text = str(message or "").strip() or SDKConnectionError.user_message
        self.phase_machine.on_error()
        self._report(SDKConnectionError(text))

    def _handle_speaking(self, is_speaking: Any):
        self.phase_machine.on_speaking(bool(is_speaking))

    def _handle_message(self, raw: Any):
        if self.phase is Phase.ENDED:
            logger.debug("Message after end_session dropped")
            return

        result = self.reconciler.ingest(raw)
        if not result.accepted:
            return

        if result.kind is EventKind.USER_TRANSCRIPT:
            self.phase_machine.on_user_transcript()
            if result.segment.final:
                self.aggregator.record_user_utterance(result.segment.text)
                self.aggregator.record_final_segment(result.segment.t, result.segment.text)
                self._emit_metrics()
        elif result.kind is EventKind.TENTATIVE_AGENT_RESPONSE:
            self.phase_machine.on_agent_response(self._speaking_flag_available())
        elif result.kind is EventKind.FINAL_AGENT_RESPONSE:
            self.aggregator.record_final_segment(result.segment.t, result.segment.text)
            self._emit_metrics()
            self.phase_machine.on_agent_response(self._speaking_flag_available())
        elif result.kind is EventKind.INTERRUPTION:
            self.aggregator.record_interruption()
            self._emit_metrics()

    # -------------------------
    # OUTBOUND
    # -------------------------

    def _emit_transcript(self, segments: list[TranscriptSegment]):
        try:
            self._on_transcript_update(segments)
        except Exception:
            logger.exception("on_transcript_update failed")

    def _emit_metrics(self, metrics: Optional[RunMetrics] = None):
        snapshot = metrics or self.aggregator.recompute_snapshot()
        try:
            self._on_metrics_update(snapshot)
        except Exception:
            logger.exception("on_metrics_update failed")

    def _report(self, error: SessionError):
        log_event("session", "error", self.session_id, kind=type(error).__name__, message=error.message)
        try:
            self._on_error(error.message)
        except Exception:
            logger.exception("on_error failed")
