"""Queue runner controls: start/pause, aspect ratio and live progress."""

from __future__ import annotations

import logging
from typing import Optional

import streamlit as st
from streamlit_autorefresh import st_autorefresh

from stockworks.apps.stock_studio.core.errors import QueueStateError
from stockworks.apps.stock_studio.core.models import QueuePhase
from stockworks.apps.stock_studio.core.queue_runner import QueueRunner
from stockworks.gui.config import ASPECT_RATIO_OPTIONS, QUEUE_REFRESH_INTERVAL_MS
from stockworks.gui.utils.async_host import AsyncLoopHost
from stockworks.gui.utils.error_handling import (
    ValidationError,
    handle_error,
    validate_aspect_ratio,
)

logger = logging.getLogger(__name__)

_PHASE_LABELS = {
    QueuePhase.IDLE: "⏸️ Idle",
    QueuePhase.RUNNING: "⏳ Running",
    QueuePhase.PAUSED: "⏸️ Paused",
    QueuePhase.COMPLETED: "✅ Completed",
}


def _surface_finished_run() -> None:
    """Report an unexpected failure of the background run, once."""

    future = st.session_state.get("queue_future")
    if future is None or not future.done():
        return
    st.session_state["queue_future"] = None
    exc: Optional[BaseException] = future.exception()
    if exc is not None:
        logger.error("Queue run stopped unexpectedly: %s", exc)
        handle_error(exc, context="The image queue stopped unexpectedly.")


def render_queue_controls(
    runner: QueueRunner,
    host: AsyncLoopHost,
    key_prefix: str = "queue",
) -> None:
    """
    Render queue controls for the image runner.

    Args:
        runner: Queue runner owned by the studio session
        host: Loop host that executes the runner's coroutine
        key_prefix: Unique prefix for widgets
    """
    state = runner.state
    _surface_finished_run()

    col_title, col_count = st.columns([3, 1])
    with col_title:
        st.subheader("🖼️ Auto Image Executor")
    with col_count:
        st.caption(
            f"{state.cursor} / {state.total} Prompts · {_PHASE_LABELS[state.phase]}"
        )

    current_ratio = runner.aspect_ratio.value
    ratio = st.selectbox(
        "Aspect Ratio",
        options=ASPECT_RATIO_OPTIONS,
        index=ASPECT_RATIO_OPTIONS.index(current_ratio),
        disabled=state.is_running,
        key=f"{key_prefix}_aspect_ratio",
    )
    if ratio != current_ratio and not state.is_running:
        try:
            host.invoke(runner.set_aspect_ratio, validate_aspect_ratio(ratio))
        except (QueueStateError, ValidationError) as exc:
            handle_error(exc)

    if state.total == 0:
        st.warning('⚠️ No prompts in queue. Go to the "Prompts" page first.')
        return

    st.progress(min(state.progress_percent, 100.0) / 100.0)

    if state.is_running:
        if st.button(
            "⏸️ Pause Queue",
            key=f"{key_prefix}_pause",
            type="primary",
            use_container_width=True,
        ):
            host.call(runner.pause)
            st.rerun()
        st_autorefresh(
            interval=QUEUE_REFRESH_INTERVAL_MS,
            key=f"{key_prefix}_autorefresh",
        )
    else:
        label = (
            "▶️ Resume Queue"
            if state.phase == QueuePhase.PAUSED
            else "▶️ Start Auto-Generation"
        )
        if st.button(
            label,
            key=f"{key_prefix}_start",
            type="primary",
            use_container_width=True,
            disabled=state.phase == QueuePhase.COMPLETED,
        ):
            st.session_state["queue_future"] = host.submit(runner.start())
            st.rerun()
