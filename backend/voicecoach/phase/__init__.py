from voicecoach.phase.machine import PhaseStateMachine
from voicecoach.phase.state import Phase

__all__ = ["Phase", "PhaseStateMachine"]
