from __future__ import annotations

import streamlit as st

from domain.models import EncodedImage
from services.qr_encoder import qr_file_name

_IN_APP_MARKERS: tuple[str, ...] = (
    "FBAN",
    "FBAV",
    "Instagram",
    "WhatsApp",
    "Line",
    "Messenger",
    "MicroMessenger",
    "Twitter",
)

SAVE_MANUALLY_INSTRUCTIONS = (
    "To download your QR code:\n\n"
    "1. Long press on the QR code image\n"
    "2. Select **Save Image**\n\n"
    "or open this page in your regular browser via the menu (⋮) and use "
    "**Download QR Code** there."
)


def is_in_app_browser(user_agent: str | None) -> bool:
    """Erkennt eingebettete Browser (Social-Media-Apps), die keine Downloads auslösen."""
    if not user_agent:
        return False
    if any(marker in user_agent for marker in _IN_APP_MARKERS):
        return True
    # iOS-WebViews melden Safari ohne Chrome.
    return "Mobile" in user_agent and "Safari" in user_agent and "Chrome" not in user_agent


def current_user_agent() -> str | None:
    context = getattr(st, "context", None)
    headers = getattr(context, "headers", None)
    if headers is None:
        return None
    return headers.get("User-Agent")


def render_download_action(
    image: EncodedImage,
    first_name: str,
    last_name: str,
    *,
    user_agent: str | None = None,
    key: str = "registration_download",
) -> None:
    file_name = qr_file_name(first_name, last_name)
    if is_in_app_browser(user_agent):
        st.warning(SAVE_MANUALLY_INSTRUCTIONS)
        st.markdown(
            f'<a href="{image.data_uri}" target="_blank">Open QR code in a new tab</a>',
            unsafe_allow_html=True,
        )
        return

    st.download_button(
        "Download QR Code",
        data=image.png_bytes,
        file_name=file_name,
        mime="image/png",
        use_container_width=True,
        key=key,
    )
