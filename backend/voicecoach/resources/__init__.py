from voicecoach.resources.gate import (
    PyAudioMicrophone,
    PyAudioOutput,
    ResourceGate,
    SharedAudioOutput,
    shared_audio_output,
)

__all__ = [
    "PyAudioMicrophone",
    "PyAudioOutput",
    "ResourceGate",
    "SharedAudioOutput",
    "shared_audio_output",
]
