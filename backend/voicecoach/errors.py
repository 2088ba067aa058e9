from __future__ import annotations


class SessionError(Exception):
    """Base class for failures surfaced to the host through ``on_error``."""

    user_message = "Voice conversation error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.user_message)
        self.message = str(message or self.user_message)


class PermissionDenied(SessionError):
    user_message = "Microphone permission is required for voice conversations"


class AutoplayBlocked(SessionError):
    user_message = "Please enable audio autoplay in your browser settings"


class SDKConnectionError(SessionError):
    user_message = "Connection error"


class StartFailure(SessionError):
    user_message = "Failed to start voice conversation"


class EndFailure(SessionError):
    user_message = "Failed to end voice conversation"
