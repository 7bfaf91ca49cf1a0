from __future__ import annotations

from typing import Callable, Optional

from mission_ledger.form import FormMode, TaskForm
from mission_ledger.task_store import TaskStore
from mission_ledger.voice.audio import AudioDeviceError
from mission_ledger.voice.events import (
    AudioChunkEvent,
    CommitEvent,
    SessionErrorEvent,
    SessionEvent,
    TranscriptEvent,
    TurnCompleteEvent,
    UpdateFieldEvent,
)
from mission_ledger.voice.session import VoiceSession, VoiceSessionState


class _FakeLink:
    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self.on_event: Optional[Callable[[SessionEvent], None]] = None
        self.sent: list[bytes] = []
        self.closed = False

    def connect(self, on_event: Callable[[SessionEvent], None]) -> None:
        if self.fail:
            raise ConnectionError("handshake refused")
        self.on_event = on_event

    def send_audio(self, chunk: bytes) -> None:
        self.sent.append(chunk)

    def close(self) -> None:
        self.closed = True

    def emit(self, event: SessionEvent) -> None:
        assert self.on_event is not None
        self.on_event(event)


class _FakeAudio:
    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self.on_chunk: Optional[Callable[[bytes], None]] = None
        self.played: list[bytes] = []
        self.closed = False

    def start(self, on_chunk: Callable[[bytes], None]) -> None:
        if self.fail:
            raise AudioDeviceError("microphone permission denied")
        self.on_chunk = on_chunk

    def play(self, chunk: bytes) -> None:
        self.played.append(chunk)

    def close(self) -> None:
        self.closed = True


def _session(
    store: TaskStore,
    clock,
    *,
    link: _FakeLink,
    audio: _FakeAudio,
    memory: Optional[list[str]] = None,
) -> VoiceSession:
    return VoiceSession(
        store,
        TaskForm(clock=clock),
        link_factory=lambda: link,
        audio_factory=lambda: audio,
        on_memory=(memory.extend if memory is not None else None),
        clock=clock,
    )


def test_open_wires_microphone_to_link(store: TaskStore, clock) -> None:
    link, audio = _FakeLink(), _FakeAudio()
    session = _session(store, clock, link=link, audio=audio)

    assert session.open() is True
    assert session.state is VoiceSessionState.ACTIVE
    assert session.form.mode is FormMode.VOICE_DRIVEN

    assert audio.on_chunk is not None
    audio.on_chunk(b"\x00\x01")
    assert link.sent == [b"\x00\x01"]


def test_device_failure_resets_to_idle(store: TaskStore, clock) -> None:
    link, audio = _FakeLink(), _FakeAudio(fail=True)
    session = _session(store, clock, link=link, audio=audio)

    assert session.open() is False
    assert session.state is VoiceSessionState.IDLE
    assert session.form.mode is FormMode.IDLE
    assert link.closed is True and audio.closed is True
    assert "microphone" in (session.last_error or "")


def test_link_failure_resets_to_idle(store: TaskStore, clock) -> None:
    link, audio = _FakeLink(fail=True), _FakeAudio()
    session = _session(store, clock, link=link, audio=audio)

    assert session.open() is False
    assert session.is_active is False
    assert audio.on_chunk is None


def test_open_refused_while_form_is_busy(store: TaskStore, clock) -> None:
    session = _session(store, clock, link=_FakeLink(), audio=_FakeAudio())
    session.form.begin_manual()

    assert session.open() is False
    assert session.last_error == "form_busy"
    assert session.form.mode is FormMode.MANUAL_EDITING


def test_pump_applies_fields_and_commits(store: TaskStore, clock) -> None:
    link = _FakeLink()
    session = _session(store, clock, link=link, audio=_FakeAudio())
    session.open()

    link.emit(UpdateFieldEvent(field="objective", value="Call the bank"))
    link.emit(UpdateFieldEvent(field="time", value="4 pm"))
    assert store.tasks == []

    link.emit(CommitEvent())
    saved = session.pump()

    assert [task.title for task in saved] == ["Call the bank"]
    assert store.tasks[0].time == "16:00"
    assert session.form.mode is FormMode.VOICE_DRIVEN
    assert session.form.draft.title == ""


def test_audio_chunks_are_played_immediately(store: TaskStore, clock) -> None:
    link, audio = _FakeLink(), _FakeAudio()
    session = _session(store, clock, link=link, audio=audio)
    session.open()

    link.emit(AudioChunkEvent(data=b"pcm"))

    assert audio.played == [b"pcm"]
    assert session.pump() == []


def test_turn_transcripts_land_in_memory(store: TaskStore, clock) -> None:
    link = _FakeLink()
    memory: list[str] = []
    session = _session(store, clock, link=link, audio=_FakeAudio(), memory=memory)
    session.open()

    link.emit(TranscriptEvent(role="user", text="Remind me to stretch"))
    link.emit(TranscriptEvent(role="assistant", text="Sure, "))
    link.emit(TranscriptEvent(role="assistant", text="what time?"))
    link.emit(TurnCompleteEvent())
    session.pump()

    assert memory == ["[08:50:00] User: Remind me to stretch", "Ria: Sure, what time?"]


def test_error_event_closes_session(store: TaskStore, clock) -> None:
    link, audio = _FakeLink(), _FakeAudio()
    session = _session(store, clock, link=link, audio=audio)
    session.open()

    link.emit(SessionErrorEvent(message="socket closed"))
    session.pump()

    assert session.state is VoiceSessionState.IDLE
    assert session.last_error == "socket closed"
    assert link.closed is True and audio.closed is True
    assert session.form.mode is FormMode.IDLE


def test_close_releases_everything(store: TaskStore, clock) -> None:
    link, audio = _FakeLink(), _FakeAudio()
    session = _session(store, clock, link=link, audio=audio)
    session.open()
    link.emit(UpdateFieldEvent(field="objective", value="Never applied"))

    session.close()

    assert link.closed is True and audio.closed is True
    assert session.form.mode is FormMode.IDLE
    assert session.pump() == []
    assert store.tasks == []
