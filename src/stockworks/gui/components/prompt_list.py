"""Prompt queue list with selection toggles."""

from __future__ import annotations

import streamlit as st

from stockworks.apps.stock_studio.core.session import StudioSession
from stockworks.gui.utils.async_host import AsyncLoopHost


def render_prompt_list(
    studio: StudioSession,
    host: AsyncLoopHost,
    key_prefix: str = "prompt_list",
) -> None:
    """Render the prompt queue with per-prompt toggles and a clear button.

    List changes reset the queue runner, so they run on the session loop.
    """

    prompts = studio.prompts
    col_title, col_clear = st.columns([3, 1])
    with col_title:
        queued = len(studio.queued_prompts())
        st.subheader(f"📋 Prompt Queue ({queued}/{len(prompts)} selected)")
    with col_clear:
        if prompts and st.button(
            "🗑️ Clear All", key=f"{key_prefix}_clear", use_container_width=True
        ):
            host.invoke(studio.clear_prompts)
            st.rerun()

    if not prompts:
        st.info("No prompts generated yet.")
        return

    for index, prompt in enumerate(prompts, start=1):
        col_toggle, col_text = st.columns([1, 12])
        with col_toggle:
            selected = st.checkbox(
                f"Queue prompt {index}",
                value=prompt.selected,
                key=f"{key_prefix}_{prompt.id}_selected",
                label_visibility="collapsed",
            )
            if selected != prompt.selected:
                host.invoke(studio.toggle_prompt, prompt.id)
                st.rerun()
        with col_text:
            # st.code renders a built-in copy button
            st.code(prompt.text, language=None, wrap_lines=True)
