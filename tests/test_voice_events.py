from __future__ import annotations

import pytest

from mission_ledger.voice.events import (
    COMMIT_TOOL,
    TOOL_DECLARATIONS,
    UPDATE_FIELD_TOOL,
    CommitEvent,
    ToolCallError,
    UpdateFieldEvent,
    parse_tool_call,
    parse_tool_event,
)


def test_update_field_call_from_json_arguments() -> None:
    event = parse_tool_call(UPDATE_FIELD_TOOL, '{"field": "objective", "value": "Buy groceries"}')

    assert event == UpdateFieldEvent(field="objective", value="Buy groceries")


def test_numeric_values_are_stringified() -> None:
    event = parse_tool_call(UPDATE_FIELD_TOOL, {"field": "alarm", "value": 10})

    assert isinstance(event, UpdateFieldEvent)
    assert event.value == "10"


def test_commit_call_ignores_arguments() -> None:
    assert isinstance(parse_tool_call(COMMIT_TOOL, ""), CommitEvent)
    assert isinstance(parse_tool_call(COMMIT_TOOL, None), CommitEvent)


@pytest.mark.parametrize(
    "name,arguments",
    [
        ("delete_everything", "{}"),
        (UPDATE_FIELD_TOOL, '{"field": "colour", "value": "red"}'),
        (UPDATE_FIELD_TOOL, '{"field": "time"}'),
        (UPDATE_FIELD_TOOL, "{not json"),
        (UPDATE_FIELD_TOOL, "[1, 2]"),
    ],
)
def test_invalid_tool_calls_raise(name: str, arguments: str) -> None:
    with pytest.raises(ToolCallError):
        parse_tool_call(name, arguments)


def test_tagged_payloads_dispatch_on_kind() -> None:
    assert isinstance(parse_tool_event({"kind": "commit"}), CommitEvent)
    assert isinstance(parse_tool_event({"kind": "update_field", "field": "date", "value": "today"}), UpdateFieldEvent)

    with pytest.raises(ToolCallError):
        parse_tool_event({"kind": "reboot"})


def test_declarations_cover_both_tools() -> None:
    names = {declaration["name"] for declaration in TOOL_DECLARATIONS}
    fields = TOOL_DECLARATIONS[0]["parameters"]["properties"]["field"]["enum"]

    assert names == {UPDATE_FIELD_TOOL, COMMIT_TOOL}
    assert set(fields) == {"objective", "category", "priority", "time", "date", "alarm"}
