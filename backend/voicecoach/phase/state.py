# backend/voicecoach/phase/state.py

from enum import Enum

class Phase(str, Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    AGENT_SPEAKING = "agent_speaking"
    LISTENING = "listening"
    ENDED = "ended"
    ERROR = "error"


TERMINAL_PHASES = {Phase.ENDED, Phase.ERROR}
ERRORABLE_PHASES = {Phase.CONNECTING, Phase.CONNECTED, Phase.LISTENING, Phase.AGENT_SPEAKING}
