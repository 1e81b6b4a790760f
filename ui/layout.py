from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

import streamlit as st

_PAGE_CONFIG_DONE_KEY = "_ui.page_config_done"


def bootstrap_page(title: str, icon: str = "🎓") -> None:
    if st.session_state.get(_PAGE_CONFIG_DONE_KEY):
        return

    st.set_page_config(page_title=title, page_icon=icon, layout="centered")
    st.session_state[_PAGE_CONFIG_DONE_KEY] = True


def page_header(
    title: str, subtitle: str | None = None, right: str | None = None
) -> None:
    header_col, right_col = st.columns([5, 1])
    with header_col:
        st.title(title)
        if subtitle:
            st.caption(subtitle)
    with right_col:
        if right:
            st.caption(right)


@contextmanager
def card(title: str | None = None, *, key: str | None = None) -> Iterator[None]:
    with st.container(border=True, key=key):
        if title:
            st.markdown(f"### {title}")
        yield


def progress_bar(percent: float) -> None:
    bounded = min(max(percent, 0.0), 100.0)
    st.progress(int(round(bounded)), text=f"Progress: {bounded:.0f}%")


def info_banner(message: str) -> None:
    st.info(message)


def error_banner(message: str, details: str | None = None) -> None:
    st.error(message)
    if details:
        st.caption(details)
