from mission_ledger.voice.audio import AudioDevice, AudioDeviceError, SoundDeviceAudio
from mission_ledger.voice.events import (
    CommitEvent,
    SessionEvent,
    ToolCallError,
    UpdateFieldEvent,
    parse_tool_call,
)
from mission_ledger.voice.realtime import OpenAIRealtimeLink, VoiceLink, translate_server_event
from mission_ledger.voice.session import VoiceSession, VoiceSessionConfig, VoiceSessionState

__all__ = [
    "AudioDevice",
    "AudioDeviceError",
    "CommitEvent",
    "OpenAIRealtimeLink",
    "SessionEvent",
    "SoundDeviceAudio",
    "ToolCallError",
    "UpdateFieldEvent",
    "VoiceLink",
    "VoiceSession",
    "VoiceSessionConfig",
    "VoiceSessionState",
    "parse_tool_call",
    "translate_server_event",
]
