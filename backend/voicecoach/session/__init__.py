from voicecoach.session.config import SessionConfig, build_session_config
from voicecoach.session.lifecycle import SessionLifecycleManager, SessionResult

__all__ = ["SessionConfig", "SessionLifecycleManager", "SessionResult", "build_session_config"]
