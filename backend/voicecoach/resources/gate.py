"""
Resource gate
=============
Checks the two local resources a voice session needs before the SDK is
contacted: microphone permission and a playable audio output.

The audio output context is the one piece of state shared across sessions:
it is created lazily, once per process, and reused by every gate.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Optional, Protocol

from voicecoach.errors import AutoplayBlocked, PermissionDenied

logger = logging.getLogger("resource_gate")

SAMPLE_RATE = 16000
CHUNK_SIZE = 512
CHANNELS = 1


class MicrophoneBackend(Protocol):
    async def open_capture(self) -> Any:
        ...


class AudioOutputBackend(Protocol):
    async def resume(self) -> Any:
        ...


# ── PyAudio backends ─────────────────────────────────────────────────────────

class _PyAudioCapture:
    def __init__(self, pa, stream):
        self._pa = pa
        self._stream = stream

    def close(self):
        try:
            self._stream.stop_stream()
            self._stream.close()
        finally:
            self._pa.terminate()


class PyAudioMicrophone:
    """Opens the default input device once so the OS shows its permission prompt."""

    async def open_capture(self) -> _PyAudioCapture:
        return await asyncio.to_thread(self._open)

    def _open(self) -> _PyAudioCapture:
        import pyaudio
        pa = pyaudio.PyAudio()
        try:
            stream = pa.open(
                format=pyaudio.paInt16,
                channels=CHANNELS,
                rate=SAMPLE_RATE,
                input=True,
                frames_per_buffer=CHUNK_SIZE,
            )
        except Exception:
            pa.terminate()
            raise
        return _PyAudioCapture(pa, stream)


class PyAudioOutput:
    """Creates the PyAudio instance used for playback and checks an output device exists."""

    async def resume(self):
        return await asyncio.to_thread(self._create)

    def _create(self):
        import pyaudio
        pa = pyaudio.PyAudio()
        try:
            pa.get_default_output_device_info()
        except Exception:
            pa.terminate()
            raise
        return pa


# ── Shared output context ────────────────────────────────────────────────────

class SharedAudioOutput:
    def __init__(self):
        self._context: Any = None
        self._lock = asyncio.Lock()

    @property
    def ready(self) -> bool:
        return self._context is not None

    async def ensure(self, backend: AudioOutputBackend) -> Any:
        async with self._lock:
            if self._context is not None:
                return self._context
            self._context = await backend.resume()
            if self._context is None:
                self._context = True
            logger.info("Audio output context initialized")
            return self._context


shared_audio_output = SharedAudioOutput()


# ── Gate ─────────────────────────────────────────────────────────────────────

class ResourceGate:

    def __init__(
        self,
        microphone: Optional[MicrophoneBackend] = None,
        audio_output: Optional[AudioOutputBackend] = None,
        shared_output: Optional[SharedAudioOutput] = None,
    ):
        self._microphone = microphone or PyAudioMicrophone()
        self._audio_output = audio_output or PyAudioOutput()
        self._shared_output = shared_output or shared_audio_output
        self.has_permission = False

    async def acquire_microphone(self) -> None:
        if self.has_permission:
            return

        try:
            handle = await self._microphone.open_capture()
            close_fn = getattr(handle, "close", None)
            if callable(close_fn):
                result = close_fn()
                if inspect.isawaitable(result):
                    await result
        except PermissionDenied:
            self.has_permission = False
            raise
        except Exception as exc:
            logger.error(f"Microphone permission denied: {exc}")
            self.has_permission = False
            raise PermissionDenied() from exc

        self.has_permission = True

    async def ensure_audio_output_ready(self) -> None:
        try:
            await self._shared_output.ensure(self._audio_output)
        except AutoplayBlocked:
            raise
        except Exception as exc:
            logger.error(f"Audio output blocked: {exc}")
            raise AutoplayBlocked() from exc

    async def clear(self) -> None:
        await self.acquire_microphone()
        await self.ensure_audio_output_ready()
