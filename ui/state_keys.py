from __future__ import annotations

from typing import Any

import streamlit as st

from constants import REGISTRATION_UI_KEYS

REGISTRATION_PREFIX = "registration_"


class UIKeys:
    NAV_MAIN = "nav.main"
    WORKFLOW = "registration_workflow"
    SHOW_DIALOG = "registration_show_dialog"
    VERIFY_UPLOAD = "verify.upload"


def field_widget_key(field_name: str) -> str:
    return REGISTRATION_UI_KEYS[field_name]


def ss_get(key: str, default: Any = None) -> Any:
    return st.session_state.get(key, default)


def ss_set(key: str, value: Any) -> None:
    st.session_state[key] = value


def ensure_defaults(defaults: dict[str, Any]) -> None:
    for key, value in defaults.items():
        st.session_state.setdefault(key, value)


def reset_keys(prefix: str, *, keep: tuple[str, ...] = ()) -> None:
    keys = [
        key
        for key in st.session_state.keys()
        if key.startswith(prefix) and key not in keep
    ]
    for key in keys:
        del st.session_state[key]
