"""Live audio link to the OpenAI Realtime API.

The link runs its own reader thread. It never touches Streamlit state: every
server event is translated into a :data:`SessionEvent` and handed to the
``on_event`` callback, which the voice session queues for the script thread.
"""

from __future__ import annotations

import base64
import json
import logging
import threading
from typing import Any, Callable, Optional, Protocol

from openai import OpenAI

from mission_ledger.i18n import LanguageCode
from mission_ledger.voice.events import (
    TOOL_DECLARATIONS,
    AudioChunkEvent,
    SessionErrorEvent,
    SessionEvent,
    ToolCallError,
    TranscriptEvent,
    TurnCompleteEvent,
    parse_tool_call,
)

LOGGER = logging.getLogger(__name__)

DEFAULT_VOICE = "coral"
TRANSCRIPTION_MODEL = "whisper-1"

_AUDIO_DELTA_EVENTS = {"response.audio.delta", "response.output_audio.delta"}
_TRANSCRIPT_DELTA_EVENTS = {"response.audio_transcript.delta", "response.output_audio_transcript.delta"}


def build_instructions(language: LanguageCode, assistant_name: str = "Ria") -> str:
    return (
        f"You are {assistant_name}, a warm mission-control assistant for a personal to-do ledger. "
        "Greet the user first. Collect one mission at a time: the objective, then the mode "
        "(Routine or 5x Speed), the priority (Regular, Important or Urgent), the time, the date "
        "and whether an alarm should ring. Call update_task_field as soon as each detail is known. "
        "Read the mission back, and once the user confirms, call launch_mission and offer to log another. "
        f"Speak in {language}. Keep replies short."
    )


class VoiceLink(Protocol):
    def connect(self, on_event: Callable[[SessionEvent], None]) -> None:
        """Open the link and begin delivering events to ``on_event``."""

    def send_audio(self, chunk: bytes) -> None:
        """Forward one PCM16 chunk captured from the microphone."""

    def close(self) -> None:
        """Tear the link down; no events are delivered afterwards."""


def translate_server_event(event: Any) -> list[SessionEvent]:
    """Map one Realtime server event onto zero or more session events."""

    event_type = getattr(event, "type", None)
    if event_type in _AUDIO_DELTA_EVENTS:
        delta = getattr(event, "delta", "") or ""
        return [AudioChunkEvent(data=base64.b64decode(delta))] if delta else []
    if event_type in _TRANSCRIPT_DELTA_EVENTS:
        delta = getattr(event, "delta", "") or ""
        return [TranscriptEvent(role="assistant", text=delta)] if delta else []
    if event_type == "conversation.item.input_audio_transcription.completed":
        transcript = getattr(event, "transcript", "") or ""
        return [TranscriptEvent(role="user", text=transcript)] if transcript else []
    if event_type == "response.output_item.done":
        item = getattr(event, "item", None)
        if getattr(item, "type", None) != "function_call":
            return []
        try:
            return [parse_tool_call(getattr(item, "name", "") or "", getattr(item, "arguments", None))]
        except ToolCallError as exc:
            LOGGER.warning("Dropping assistant tool call: %s", exc)
            return []
    if event_type == "response.done":
        return [TurnCompleteEvent()]
    if event_type == "error":
        error = getattr(event, "error", None)
        return [SessionErrorEvent(message=getattr(error, "message", None) or "Realtime session error.")]
    return []


def _function_call_id(event: Any) -> Optional[str]:
    if getattr(event, "type", None) != "response.output_item.done":
        return None
    item = getattr(event, "item", None)
    if getattr(item, "type", None) != "function_call":
        return None
    return getattr(item, "call_id", None)


class OpenAIRealtimeLink:
    """Realtime websocket session carrying microphone audio and tool calls."""

    def __init__(
        self,
        client: OpenAI,
        *,
        model: str,
        language: LanguageCode,
        voice: str = DEFAULT_VOICE,
        assistant_name: str = "Ria",
    ) -> None:
        self._client = client
        self.model = model
        self.language = language
        self.voice = voice
        self.assistant_name = assistant_name
        self._manager: Any = None
        self._connection: Any = None
        self._reader: Optional[threading.Thread] = None
        self._closing = threading.Event()
        self._pending_outputs: list[str] = []
        self._lock = threading.Lock()

    def connect(self, on_event: Callable[[SessionEvent], None]) -> None:
        self._closing.clear()
        self._manager = self._client.beta.realtime.connect(model=self.model)
        self._connection = self._manager.enter()
        self._connection.session.update(
            session={
                "modalities": ["audio", "text"],
                "instructions": build_instructions(self.language, self.assistant_name),
                "voice": self.voice,
                "input_audio_format": "pcm16",
                "output_audio_format": "pcm16",
                "input_audio_transcription": {"model": TRANSCRIPTION_MODEL},
                "turn_detection": {"type": "server_vad"},
                "tools": TOOL_DECLARATIONS,
                "tool_choice": "auto",
            }
        )
        # The assistant speaks first.
        self._connection.response.create()

        self._reader = threading.Thread(target=self._read_loop, args=(on_event,), name="voice-link", daemon=True)
        self._reader.start()
        LOGGER.info("Voice link connected with model %s.", self.model)

    def _read_loop(self, on_event: Callable[[SessionEvent], None]) -> None:
        try:
            for server_event in self._connection:
                if self._closing.is_set():
                    break
                call_id = _function_call_id(server_event)
                if call_id:
                    self._acknowledge_tool_call(call_id)
                for session_event in translate_server_event(server_event):
                    on_event(session_event)
                if getattr(server_event, "type", None) == "response.done":
                    self._resume_after_tools()
        except Exception as exc:  # noqa: BLE001
            if not self._closing.is_set():
                LOGGER.warning("Voice link dropped: %s", exc)
                on_event(SessionErrorEvent(message=str(exc) or "Voice link dropped."))

    def _acknowledge_tool_call(self, call_id: str) -> None:
        self._connection.conversation.item.create(
            item={"type": "function_call_output", "call_id": call_id, "output": json.dumps({"ok": True})}
        )
        with self._lock:
            self._pending_outputs.append(call_id)

    def _resume_after_tools(self) -> None:
        with self._lock:
            pending = bool(self._pending_outputs)
            self._pending_outputs.clear()
        if pending:
            self._connection.response.create()

    def send_audio(self, chunk: bytes) -> None:
        connection = self._connection
        if connection is None or self._closing.is_set() or not chunk:
            return
        try:
            connection.input_audio_buffer.append(audio=base64.b64encode(chunk).decode("ascii"))
        except Exception as exc:  # noqa: BLE001
            LOGGER.debug("Dropping microphone chunk: %s", exc)

    def close(self) -> None:
        self._closing.set()
        connection, self._connection = self._connection, None
        if connection is not None:
            try:
                connection.close()
            except Exception as exc:  # noqa: BLE001
                LOGGER.debug("Ignoring voice link close failure: %s", exc)
        reader, self._reader = self._reader, None
        if reader is not None and reader is not threading.current_thread():
            reader.join(timeout=2.0)
        self._manager = None
        LOGGER.info("Voice link closed.")


__all__ = [
    "DEFAULT_VOICE",
    "OpenAIRealtimeLink",
    "VoiceLink",
    "build_instructions",
    "translate_server_event",
]
