import asyncio
import logging
from typing import Callable, Optional

from core.config import AGENT_SPEAK_DEBOUNCE_MS

from .state import ERRORABLE_PHASES, TERMINAL_PHASES, Phase

logging.basicConfig(
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
    level=logging.INFO,
)

logger = logging.getLogger("phase")


class PhaseStateMachine:
    """
    Turn-taking state for one session.

    When the SDK exposes no speaking flag, the end of an agent turn is
    inferred by a debounce: ``debounce_sec`` after the last agent event the
    phase falls back to listening (or idle when disconnected).
    """

    def __init__(
        self,
        debounce_sec: float = AGENT_SPEAK_DEBOUNCE_MS / 1000,
        on_change: Optional[Callable[[Phase], None]] = None,
    ):
        self.debounce_sec = max(0.0, float(debounce_sec))
        self._on_change = on_change
        self._debounce_handle: Optional[asyncio.TimerHandle] = None
        self.reset()

    def reset(self):
        self.cancel_debounce()
        self.phase = Phase.IDLE
        self.connected = False
        self.speaking_flag_seen = False
        self.history: list[Phase] = [Phase.IDLE]

    @property
    def is_terminal(self) -> bool:
        return self.phase in TERMINAL_PHASES

    @property
    def debounce_pending(self) -> bool:
        return self._debounce_handle is not None

    def _transition(self, new_phase: Phase, reason: str):
        old_phase = self.phase
        if old_phase is Phase.AGENT_SPEAKING and new_phase is not Phase.AGENT_SPEAKING:
            self.cancel_debounce()
        if old_phase is new_phase:
            return

        logger.info(f"[PHASE] Transition {old_phase.value} → {new_phase.value} | reason={reason}")
        self.phase = new_phase
        self.history.append(new_phase)

        if self._on_change is not None:
            try:
                self._on_change(new_phase)
            except Exception:
                logger.exception("Phase subscriber failed")

    # -------------------------
    # LIFECYCLE SIGNALS
    # -------------------------

    def begin_connecting(self):
        self._transition(Phase.CONNECTING, "start_session")

    def on_connect(self):
        self.connected = True
        if self.phase is Phase.CONNECTING:
            self._transition(Phase.CONNECTED, "sdk_connect")

    def on_session_started(self):
        self.connected = True
        if not self.is_terminal:
            self._transition(Phase.LISTENING, "start_session_resolved")

    def on_disconnect(self):
        self.connected = False
        if not self.is_terminal:
            self._transition(Phase.IDLE, "sdk_disconnect")

    def on_error(self):
        self.connected = False
        if self.phase in ERRORABLE_PHASES:
            self._transition(Phase.ERROR, "sdk_error")

    def fail(self, reason: str):
        self.connected = False
        self.cancel_debounce()
        self._transition(Phase.ERROR, reason)

    def end(self):
        self.connected = False
        self.cancel_debounce()
        self._transition(Phase.ENDED, "end_session")

    # -------------------------
    # TURN-TAKING SIGNALS
    # -------------------------

    def on_speaking(self, is_speaking: bool):
        self.speaking_flag_seen = True
        self.cancel_debounce()
        if self.is_terminal:
            return
        if is_speaking:
            self._transition(Phase.AGENT_SPEAKING, "speaking_flag")
        elif self.connected:
            self._transition(Phase.LISTENING, "speaking_flag")

    def on_user_transcript(self):
        if self.is_terminal:
            return
        self._transition(Phase.LISTENING, "user_transcript")

    def on_agent_response(self, speaking_flag_available: bool = False):
        if self.is_terminal:
            return
        self._transition(Phase.AGENT_SPEAKING, "agent_response")
        if not (speaking_flag_available or self.speaking_flag_seen):
            self._schedule_debounce()

    # -------------------------
    # DEBOUNCE
    # -------------------------

    def _schedule_debounce(self):
        self.cancel_debounce()
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("No running event loop; agent turn debounce not scheduled")
            return
        self._debounce_handle = loop.call_later(self.debounce_sec, self._on_debounce_elapsed)

    def cancel_debounce(self):
        if self._debounce_handle is not None:
            self._debounce_handle.cancel()
            self._debounce_handle = None

    def _on_debounce_elapsed(self):
        self._debounce_handle = None
        if self.phase is not Phase.AGENT_SPEAKING:
            return
        self._transition(Phase.LISTENING if self.connected else Phase.IDLE, "agent_debounce")
