from __future__ import annotations

import logging
import os
import queue
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from typing import TYPE_CHECKING, Callable, Mapping, Optional

from mission_ledger.voice.audio import DEFAULT_SAMPLE_RATE, AudioDevice
from mission_ledger.voice.events import (
    AudioChunkEvent,
    CommitEvent,
    SessionErrorEvent,
    SessionEvent,
    TranscriptEvent,
    TurnCompleteEvent,
    UpdateFieldEvent,
)
from mission_ledger.voice.realtime import VoiceLink

if TYPE_CHECKING:
    from mission_ledger.form import TaskForm
    from mission_ledger.models import Task
    from mission_ledger.task_store import TaskStore

LOGGER = logging.getLogger(__name__)


class VoiceSessionState(StrEnum):
    IDLE = "idle"
    ACTIVE = "active"


@dataclass
class VoiceSessionConfig:
    sample_rate: int = DEFAULT_SAMPLE_RATE
    assistant_name: str = "Ria"
    pump_interval_seconds: float = 1.0

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> VoiceSessionConfig:
        env_map = env if env is not None else os.environ
        return cls(
            sample_rate=int(env_map.get("VOICE_SAMPLE_RATE", str(DEFAULT_SAMPLE_RATE))),
            assistant_name=env_map.get("VOICE_ASSISTANT_NAME", "Ria"),
            pump_interval_seconds=float(env_map.get("VOICE_PUMP_INTERVAL_SECONDS", "1")),
        )


class VoiceSession:
    """Hands-free mission entry through a live audio link.

    The link and the audio device run on their own threads and only enqueue
    events. :meth:`pump` drains the queue on the script thread, which is the
    only place the form and the store are touched.
    """

    def __init__(
        self,
        store: TaskStore,
        form: TaskForm,
        *,
        link_factory: Callable[[], VoiceLink],
        audio_factory: Callable[[], AudioDevice],
        on_memory: Optional[Callable[[list[str]], None]] = None,
        config: Optional[VoiceSessionConfig] = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.store = store
        self.form = form
        self.link_factory = link_factory
        self.audio_factory = audio_factory
        self.on_memory = on_memory
        self.config = config or VoiceSessionConfig()
        self.clock = clock
        self.state = VoiceSessionState.IDLE
        self.last_error: Optional[str] = None
        self._events: queue.Queue[SessionEvent] = queue.Queue()
        self._link: Optional[VoiceLink] = None
        self._audio: Optional[AudioDevice] = None
        self._user_text: list[str] = []
        self._assistant_text: list[str] = []

    @property
    def is_active(self) -> bool:
        return self.state is VoiceSessionState.ACTIVE

    def open(self) -> bool:
        """Acquire the microphone and the link; any failure leaves the session idle."""

        if self.is_active:
            return True
        if not self.form.begin_voice():
            LOGGER.info("Voice session refused: the entry form is busy.")
            self.last_error = "form_busy"
            return False

        self.last_error = None
        try:
            self._link = self.link_factory()
            self._audio = self.audio_factory()
            self._link.connect(self._enqueue)
            self._audio.start(self._link.send_audio)
        except Exception as exc:  # noqa: BLE001
            LOGGER.warning("Voice session could not start: %s", exc)
            self.last_error = str(exc) or exc.__class__.__name__
            self._release()
            self.form.cancel()
            return False

        self.state = VoiceSessionState.ACTIVE
        LOGGER.info("Voice session active.")
        return True

    def close(self) -> None:
        self._release()
        if self.form.is_read_only:
            self.form.cancel()
        if self.state is VoiceSessionState.ACTIVE:
            LOGGER.info("Voice session closed.")
        self.state = VoiceSessionState.IDLE

    def _release(self) -> None:
        audio, self._audio = self._audio, None
        link, self._link = self._link, None
        if audio is not None:
            audio.close()
        if link is not None:
            link.close()
        self._user_text.clear()
        self._assistant_text.clear()
        while True:
            try:
                self._events.get_nowait()
            except queue.Empty:
                break

    def _enqueue(self, event: SessionEvent) -> None:
        if isinstance(event, AudioChunkEvent):
            audio = self._audio
            if audio is not None:
                audio.play(event.data)
            return
        self._events.put(event)

    def pump(self) -> list[Task]:
        """Apply queued events and return the missions saved during this call."""

        saved: list[Task] = []
        while self.is_active:
            try:
                event = self._events.get_nowait()
            except queue.Empty:
                break
            task = self.handle_event(event)
            if task is not None:
                saved.append(task)
        return saved

    def handle_event(self, event: SessionEvent) -> Optional[Task]:
        if isinstance(event, UpdateFieldEvent):
            self.form.apply_voice_update(event)
        elif isinstance(event, CommitEvent):
            return self.form.commit(self.store)
        elif isinstance(event, TranscriptEvent):
            target = self._user_text if event.role == "user" else self._assistant_text
            target.append(event.text)
        elif isinstance(event, TurnCompleteEvent):
            self._flush_transcripts()
        elif isinstance(event, SessionErrorEvent):
            LOGGER.warning("Voice session error: %s", event.message)
            self.last_error = event.message
            self.close()
        elif isinstance(event, AudioChunkEvent) and self._audio is not None:
            self._audio.play(event.data)
        return None

    def _flush_transcripts(self) -> None:
        user_said = " ".join(part.strip() for part in self._user_text if part.strip())
        assistant_said = "".join(self._assistant_text).strip()
        self._user_text.clear()
        self._assistant_text.clear()

        entries: list[str] = []
        if user_said:
            entries.append(f"[{self.clock().strftime('%H:%M:%S')}] User: {user_said}")
        if assistant_said:
            entries.append(f"{self.config.assistant_name}: {assistant_said}")
        if entries and self.on_memory is not None:
            self.on_memory(entries)


__all__ = ["VoiceSession", "VoiceSessionConfig", "VoiceSessionState"]
