"""StockWorks Stock Studio - Main Application."""

import logging
import sys
from pathlib import Path

import streamlit as st

# Add project root to path
project_root = Path(__file__).parent.parent.parent.parent
sys.path.insert(0, str(project_root / "src"))

from stockworks.gui.config import (  # noqa: E402
    BILLING_DOCS_URL,
    IMAGES_PAGE,
    METADATA_PAGE,
    PROMPTS_PAGE,
)
from stockworks.gui.state import (  # noqa: E402
    ensure_credential_checked,
    get_studio,
    init_session_state,
    reset_session,
    select_api_key,
)
from stockworks.logging_utils import configure_logging  # noqa: E402

logger = logging.getLogger(__name__)


def _configure_logging_once() -> None:
    if "log_path" not in st.session_state:
        st.session_state["log_path"] = configure_logging("stock_studio_gui")
        logger.info("Stock Studio GUI logging → %s", st.session_state["log_path"])


def render_key_gate() -> None:
    """Blocking screen shown until an API key is available."""

    st.title("🔑 API Key Required")
    st.markdown(
        "To use image generation and metadata features, please select a paid "
        "Gemini API key."
    )
    with st.form("api_key_form"):
        value = st.text_input("API key", type="password")
        submitted = st.form_submit_button("Select API Key", type="primary")
    if submitted:
        if select_api_key(value):
            st.rerun()
        st.error("No usable API key. Paste a key or set GEMINI_API_KEY.")
    st.markdown(f"[Billing Information]({BILLING_DOCS_URL})")


def main():
    """Main application entry point."""

    # Page configuration
    st.set_page_config(
        page_title="StockWorks Stock Studio",
        page_icon="📸",
        layout="wide",
        initial_sidebar_state="expanded",
    )

    _configure_logging_once()
    init_session_state()

    if not ensure_credential_checked():
        render_key_gate()
        st.stop()

    studio = get_studio()

    with st.sidebar:
        st.title("📸 Stock Studio")
        st.markdown("---")
        st.markdown("### Session")
        st.caption(f"📋 {len(studio.prompts)} prompts")
        runner_state = studio.runner.state
        st.caption(f"🖼️ {runner_state.cursor} / {runner_state.total} processed")
        st.caption("🔑 Key Active")
        st.markdown("---")

        col1, col2 = st.columns(2)
        with col1:
            if st.button("♻️ New Session", use_container_width=True):
                reset_session()
                st.rerun()
        with col2:
            debug = st.checkbox(
                "🐛 Debug", value=st.session_state.get("debug_mode", False)
            )
            st.session_state["debug_mode"] = debug

    st.title("Welcome to Stock Studio")
    st.markdown(
        """
    ### 🚀 Workflow

    1. **✨ Prompts**: generate a batch of stock-photo prompts for a topic
    2. **🖼️ Images**: run the queue to generate one image per selected prompt
    3. **🏷️ Metadata**: get an Adobe Stock title, 30 keywords and a category
    """
    )

    col1, col2, col3 = st.columns(3)
    with col1:
        st.page_link(PROMPTS_PAGE, label="Prompts", icon="✨")
    with col2:
        st.page_link(IMAGES_PAGE, label="Images", icon="🖼️")
    with col3:
        st.page_link(METADATA_PAGE, label="Metadata", icon="🏷️")

    if st.session_state.get("debug_mode"):
        with st.expander("🐛 Debug Information", expanded=False):
            st.write("**Session State:**")
            st.json(
                {
                    k: str(v)[:100] if isinstance(v, (str, list, dict)) else str(v)
                    for k, v in st.session_state.items()
                }
            )


if __name__ == "__main__":
    main()
