"""Events exchanged between the voice collaborator and the ledger.

Tool calls arrive as loosely typed payloads; they are validated here into a
small tagged union before anything touches the form state.
"""

from __future__ import annotations

import json
from typing import Annotated, Any, Literal, Mapping, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

VoiceField = Literal["objective", "category", "priority", "time", "date", "alarm"]

UPDATE_FIELD_TOOL = "update_task_field"
COMMIT_TOOL = "launch_mission"


class ToolCallError(ValueError):
    """Raised when the assistant sends an unknown or malformed tool call."""


class UpdateFieldEvent(BaseModel):
    kind: Literal["update_field"] = "update_field"
    field: VoiceField
    value: str


class CommitEvent(BaseModel):
    kind: Literal["commit"] = "commit"


ToolEvent = Annotated[Union[UpdateFieldEvent, CommitEvent], Field(discriminator="kind")]
_TOOL_EVENT_ADAPTER: TypeAdapter[UpdateFieldEvent | CommitEvent] = TypeAdapter(ToolEvent)


class TranscriptEvent(BaseModel):
    kind: Literal["transcript"] = "transcript"
    role: Literal["user", "assistant"]
    text: str


class AudioChunkEvent(BaseModel):
    kind: Literal["audio"] = "audio"
    data: bytes


class TurnCompleteEvent(BaseModel):
    kind: Literal["turn_complete"] = "turn_complete"


class SessionErrorEvent(BaseModel):
    kind: Literal["error"] = "error"
    message: str


SessionEvent = Union[
    UpdateFieldEvent,
    CommitEvent,
    TranscriptEvent,
    AudioChunkEvent,
    TurnCompleteEvent,
    SessionErrorEvent,
]


def parse_tool_event(payload: Mapping[str, Any]) -> UpdateFieldEvent | CommitEvent:
    try:
        return _TOOL_EVENT_ADAPTER.validate_python(dict(payload))
    except ValidationError as exc:
        raise ToolCallError(f"Invalid tool payload: {exc}") from exc


def parse_tool_call(name: str, arguments: str | Mapping[str, Any] | None) -> UpdateFieldEvent | CommitEvent:
    """Translate a function call emitted by the assistant into a tool event."""

    if isinstance(arguments, str):
        try:
            decoded = json.loads(arguments) if arguments.strip() else {}
        except json.JSONDecodeError as exc:
            raise ToolCallError(f"Tool arguments are not JSON: {arguments!r}") from exc
    else:
        decoded = dict(arguments or {})

    if not isinstance(decoded, dict):
        raise ToolCallError("Tool arguments must be an object.")

    if name == UPDATE_FIELD_TOOL:
        value = decoded.get("value")
        if isinstance(value, (int, float, bool)):
            value = str(value)
        return parse_tool_event({"kind": "update_field", "field": decoded.get("field"), "value": value})
    if name == COMMIT_TOOL:
        return parse_tool_event({"kind": "commit"})
    raise ToolCallError(f"Unknown tool '{name}'.")


TOOL_DECLARATIONS: list[dict[str, Any]] = [
    {
        "type": "function",
        "name": UPDATE_FIELD_TOOL,
        "description": "Update specific mission fields.",
        "parameters": {
            "type": "object",
            "properties": {
                "field": {"type": "string", "enum": ["objective", "category", "priority", "time", "date", "alarm"]},
                "value": {"type": "string"},
            },
            "required": ["field", "value"],
        },
    },
    {
        "type": "function",
        "name": COMMIT_TOOL,
        "description": "Save the mission gathered so far.",
        "parameters": {"type": "object", "properties": {}},
    },
]


__all__ = [
    "AudioChunkEvent",
    "COMMIT_TOOL",
    "CommitEvent",
    "SessionErrorEvent",
    "SessionEvent",
    "TOOL_DECLARATIONS",
    "ToolCallError",
    "TranscriptEvent",
    "TurnCompleteEvent",
    "UPDATE_FIELD_TOOL",
    "UpdateFieldEvent",
    "VoiceField",
    "parse_tool_call",
    "parse_tool_event",
]
