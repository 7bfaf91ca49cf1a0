"""Lightweight English/Hindi localization driven by the language toggle."""

from __future__ import annotations

from functools import wraps
from typing import Iterable, Literal, Mapping

import streamlit as st
from streamlit.delta_generator import DeltaGenerator

from mission_ledger.constants import KEY_LANGUAGE

LanguageCode = Literal["English", "Hindi"]
DEFAULT_LANGUAGE: LanguageCode = "English"
LANGUAGE_OPTIONS: tuple[LanguageCode, ...] = ("English", "Hindi")

FALLBACK_ROADMAP: dict[LanguageCode, str] = {
    "English": "Matrix Sync Failure. Re-trying...",
    "Hindi": "सिंक विफल। पुनः प्रयास करें।",
}
FALLBACK_ADVICE: dict[LanguageCode, str] = {
    "English": "Connection Lost. Re-link required.",
    "Hindi": "कनेक्शन खो गया। पुनः लिंक करें।",
}
AWAITING_ADVICE: dict[LanguageCode, str] = {
    "English": "Awaiting strategy analysis commands...",
    "Hindi": "रणनीति विश्लेषण आदेशों की प्रतीक्षा है...",
}


def coerce_language(value: object) -> LanguageCode:
    if value == "Hindi":
        return "Hindi"
    return DEFAULT_LANGUAGE


def get_language() -> LanguageCode:
    """Return the active language stored in session state, defaulting to English."""

    language = st.session_state.get(KEY_LANGUAGE)
    if language in LANGUAGE_OPTIONS:
        return language

    st.session_state[KEY_LANGUAGE] = DEFAULT_LANGUAGE
    return DEFAULT_LANGUAGE


def set_language(language: LanguageCode) -> None:
    st.session_state[KEY_LANGUAGE] = coerce_language(language)


def translate_text(text: str | tuple[str, str]) -> str:
    """Return the text for the active language.

    A tuple is read as ``(english, hindi)``. Plain strings are returned
    unchanged, so user-entered text is never altered.
    """

    language = get_language()

    if isinstance(text, tuple) and len(text) == 2:
        english, hindi = text
        return english if language == "English" else hindi

    return text


def translate_value(value: object) -> object:
    """Recursively translate strings for Streamlit UI arguments."""

    if isinstance(value, tuple) and len(value) == 2 and all(isinstance(part, str) for part in value):
        return translate_text(value)

    if isinstance(value, str):
        return translate_text(value)

    if isinstance(value, list):
        return [translate_value(item) for item in value]

    if isinstance(value, Mapping):
        return {key: translate_value(val) for key, val in value.items()}

    return value


# Keyword arguments that carry widget state or user content rather than labels.
UNTRANSLATED_KWARGS = frozenset({"key", "value", "body", "placeholder"})


def _wrap_method(method_name: str, *, delta_generator: type[DeltaGenerator]) -> None:
    original = getattr(delta_generator, method_name, None)
    if original is None or getattr(original, "_is_localized", False):
        return

    @wraps(original)
    def wrapper(self: DeltaGenerator, *args: object, **kwargs: object):
        localized_args = [translate_value(arg) for arg in args]
        localized_kwargs = {
            key: value if key in UNTRANSLATED_KWARGS else translate_value(value) for key, value in kwargs.items()
        }
        return original(self, *localized_args, **localized_kwargs)

    setattr(wrapper, "_is_localized", True)
    setattr(delta_generator, method_name, wrapper)


def localize_streamlit(methods: Iterable[str] | None = None) -> None:
    """Patch common Streamlit methods to auto-translate bilingual labels."""

    default_methods = (
        "title",
        "header",
        "subheader",
        "markdown",
        "caption",
        "info",
        "warning",
        "error",
        "success",
        "button",
        "checkbox",
        "toggle",
        "text_input",
        "text_area",
        "date_input",
        "time_input",
        "slider",
        "metric",
        "tabs",
        "expander",
        "radio",
        "selectbox",
        "form_submit_button",
    )
    main_container = getattr(st, "_main", None)
    for method_name in methods or default_methods:
        _wrap_method(method_name, delta_generator=DeltaGenerator)
        # ``st.button`` and friends are bound to the main container at import time.
        if main_container is not None and hasattr(st, method_name):
            setattr(st, method_name, getattr(main_container, method_name))


__all__ = [
    "AWAITING_ADVICE",
    "DEFAULT_LANGUAGE",
    "FALLBACK_ADVICE",
    "FALLBACK_ROADMAP",
    "LANGUAGE_OPTIONS",
    "LanguageCode",
    "coerce_language",
    "get_language",
    "localize_streamlit",
    "set_language",
    "translate_text",
    "translate_value",
]
