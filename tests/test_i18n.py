from __future__ import annotations

from typing import Any

import pytest

from mission_ledger.constants import KEY_LANGUAGE
from mission_ledger.i18n import _wrap_method, translate_text, translate_value
from mission_ledger.task_store import TaskStore


class _FakeContainer:
    def markdown(self, body: str, **kwargs: Any) -> tuple[str, dict[str, Any]]:
        return body, kwargs

    def text_input(self, label: Any, value: str = "", key: str | None = None) -> tuple[Any, str]:
        return label, value


@pytest.fixture()
def container() -> _FakeContainer:
    class _Container(_FakeContainer):
        pass

    _wrap_method("markdown", delta_generator=_Container)  # type: ignore[arg-type]
    _wrap_method("text_input", delta_generator=_Container)  # type: ignore[arg-type]
    return _Container()


@pytest.mark.parametrize("language", ["English", "Hindi"])
def test_slash_in_user_text_is_kept(session_state: dict[str, object], store: TaskStore, language: str) -> None:
    session_state[KEY_LANGUAGE] = language
    task = store.create(title="Call mom / dad", notes="buy milk / eggs")
    assert task is not None

    assert translate_value(task.title) == "Call mom / dad"
    assert translate_value(task.notes) == "buy milk / eggs"
    assert translate_value(["a / b", {"note": "c / d"}]) == ["a / b", {"note": "c / d"}]


def test_tuple_labels_follow_language(session_state: dict[str, object]) -> None:
    session_state[KEY_LANGUAGE] = "Hindi"

    assert translate_text(("Notes", "नोट्स")) == "नोट्स"
    assert translate_value([("Done", "पूर्ण"), "Plain"]) == ["पूर्ण", "Plain"]

    session_state[KEY_LANGUAGE] = "English"
    assert translate_value(("Done", "पूर्ण")) == "Done"


def test_patched_widgets_leave_user_content_alone(session_state: dict[str, object], container: _FakeContainer) -> None:
    session_state[KEY_LANGUAGE] = "Hindi"

    label, value = container.text_input(("Objective", "उद्देश्य"), value="Call mom / dad")
    body, _ = container.markdown("**Call mom / dad**")

    assert label == "उद्देश्य"
    assert value == "Call mom / dad"
    assert body == "**Call mom / dad**"


def test_wrapping_twice_is_a_no_op(container: _FakeContainer) -> None:
    wrapped = type(container).text_input

    _wrap_method("text_input", delta_generator=type(container))  # type: ignore[arg-type]

    assert type(container).text_input is wrapped
    assert getattr(wrapped, "_is_localized", False) is True
