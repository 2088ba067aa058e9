from voicecoach.sdk.base import SDKEventHandlers, VoiceSDK
from voicecoach.sdk.convai_ws import ConvaiWebSocketClient

__all__ = ["ConvaiWebSocketClient", "SDKEventHandlers", "VoiceSDK"]
