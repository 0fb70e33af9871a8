"""Session state management utilities."""

from __future__ import annotations

import logging
import os
from typing import Mapping, Optional, Sequence

import streamlit as st

from stockworks.apps.stock_studio.core import (
    CredentialGate,
    MetadataPanel,
    PromptPanel,
    StockStudioSettings,
    StudioSession,
    build_client,
    load_config,
)
from stockworks.gui.config import REQUEST_WAIT_PADDING_SECONDS
from stockworks.gui.utils.async_host import AsyncLoopHost

logger = logging.getLogger(__name__)


class SessionKeyHost:
    """Key selection backed by the key form on the gate screen.

    The form stages a key; ``open_select_key`` commits it. Plain attributes
    only, so the object can be used from the async loop thread.
    """

    def __init__(
        self,
        env_vars: Sequence[str],
        environ: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.env_vars = tuple(env_vars)
        self._environ = environ
        self._staged_key = ""
        self.api_key = ""

    def stage_key(self, value: str) -> None:
        self._staged_key = (value or "").strip()

    def env_key(self) -> str:
        env = os.environ if self._environ is None else self._environ
        for name in self.env_vars:
            value = (env.get(name) or "").strip()
            if value:
                return value
        return ""

    def resolved_key(self) -> str:
        return self.api_key or self.env_key()

    async def has_selected_key(self) -> bool:
        return bool(self.resolved_key())

    async def open_select_key(self) -> None:
        if self._staged_key:
            self.api_key = self._staged_key
        self._staged_key = ""


def _build_session(
    settings: StockStudioSettings, host: SessionKeyHost
) -> StudioSession:
    gate = CredentialGate(host, env_vars=settings.api_key_env_vars)
    return StudioSession(
        gate,
        lambda: build_client(settings, host.resolved_key()),
        settings,
    )


def init_session_state():
    """Initialize session state variables if they don't exist."""

    if "settings" not in st.session_state:
        st.session_state["settings"] = load_config()
    settings: StockStudioSettings = st.session_state["settings"]

    loop_host = st.session_state.get("loop_host")
    if loop_host is None or not loop_host.is_alive:
        st.session_state["loop_host"] = AsyncLoopHost()

    if "key_host" not in st.session_state:
        st.session_state["key_host"] = SessionKeyHost(settings.api_key_env_vars)

    if "studio" not in st.session_state:
        st.session_state["studio"] = _build_session(
            settings, st.session_state["key_host"]
        )

    # Panels
    studio = st.session_state["studio"]
    if "prompt_panel" not in st.session_state:
        st.session_state["prompt_panel"] = PromptPanel(studio)
    if "metadata_panel" not in st.session_state:
        st.session_state["metadata_panel"] = MetadataPanel(studio)

    # Queue execution
    if "queue_future" not in st.session_state:
        st.session_state["queue_future"] = None

    # UI states
    if "debug_mode" not in st.session_state:
        st.session_state["debug_mode"] = False


def get_studio() -> StudioSession:
    return st.session_state["studio"]


def get_loop_host() -> AsyncLoopHost:
    return st.session_state["loop_host"]


def get_key_host() -> SessionKeyHost:
    return st.session_state["key_host"]


def request_timeout() -> float:
    settings: StockStudioSettings = st.session_state["settings"]
    return float(settings.request_timeout + REQUEST_WAIT_PADDING_SECONDS)


def ensure_credential_checked() -> bool:
    """Run the one-time startup credential check; return availability."""

    gate = get_studio().gate
    if not gate.checked:
        get_loop_host().run(gate.check(), timeout=request_timeout())
    return gate.available


def select_api_key(value: str) -> bool:
    """Stage *value* as the API key, run selection and re-check the gate."""

    studio = get_studio()
    get_key_host().stage_key(value)
    available = get_loop_host().run(studio.gate.select(), timeout=request_timeout())
    if available:
        get_loop_host().invoke(studio.reset_client)
        logger.info("API key selected")
    return available


def require_credential() -> StudioSession:
    """Stop the page unless a usable API key is available."""

    init_session_state()
    if not ensure_credential_checked():
        st.warning("🔑 No API key selected. Open the main page to select one.")
        st.stop()
    return get_studio()


def reset_session() -> None:
    """Tear down the current studio session and start a fresh one."""

    studio = st.session_state.get("studio")
    if studio is not None:
        get_loop_host().invoke(studio.close)
    for key in ("prompt_panel", "metadata_panel"):
        panel = st.session_state.pop(key, None)
        if panel is not None:
            panel.close()
    st.session_state.pop("studio", None)
    st.session_state["queue_future"] = None
    init_session_state()
