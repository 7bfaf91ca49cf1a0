from __future__ import annotations

import logging
from typing import Any, Callable, Optional, Protocol

LOGGER = logging.getLogger(__name__)

DEFAULT_SAMPLE_RATE = 24000
DEFAULT_BLOCK_SIZE = 4096


class AudioDeviceError(RuntimeError):
    """Raised when the microphone or speaker cannot be acquired."""


class AudioDevice(Protocol):
    def start(self, on_chunk: Callable[[bytes], None]) -> None:
        """Begin capturing PCM16 mono chunks and hand each to ``on_chunk``."""

    def play(self, chunk: bytes) -> None:
        """Queue a PCM16 mono chunk for playback."""

    def close(self) -> None:
        """Stop capture and playback and release the device handles."""


class SoundDeviceAudio:
    """Microphone capture and speaker playback through ``sounddevice``."""

    def __init__(self, *, sample_rate: int = DEFAULT_SAMPLE_RATE, block_size: int = DEFAULT_BLOCK_SIZE) -> None:
        self.sample_rate = sample_rate
        self.block_size = block_size
        self._input: Any = None
        self._output: Any = None

    def start(self, on_chunk: Callable[[bytes], None]) -> None:
        try:
            import sounddevice as sd  # type: ignore[import-untyped]
        except Exception as exc:  # noqa: BLE001
            raise AudioDeviceError("sounddevice is not installed or has no PortAudio backend.") from exc

        def _capture(indata: Any, frames: int, time_info: Any, status: Any) -> None:
            if status:
                LOGGER.debug("Microphone status: %s", status)
            on_chunk(bytes(indata))

        try:
            self._output = sd.RawOutputStream(samplerate=self.sample_rate, channels=1, dtype="int16")
            self._input = sd.RawInputStream(
                samplerate=self.sample_rate,
                channels=1,
                dtype="int16",
                blocksize=self.block_size,
                callback=_capture,
            )
            self._output.start()
            self._input.start()
        except Exception as exc:  # noqa: BLE001
            self.close()
            raise AudioDeviceError(f"Audio device unavailable: {exc}") from exc

    def play(self, chunk: bytes) -> None:
        output: Optional[Any] = self._output
        if output is None or not chunk:
            return
        output.write(chunk)

    def close(self) -> None:
        for stream in (self._input, self._output):
            if stream is None:
                continue
            try:
                stream.stop()
                stream.close()
            except Exception as exc:  # noqa: BLE001
                LOGGER.debug("Ignoring audio close failure: %s", exc)
        self._input = None
        self._output = None


__all__ = ["AudioDevice", "AudioDeviceError", "DEFAULT_SAMPLE_RATE", "SoundDeviceAudio"]
