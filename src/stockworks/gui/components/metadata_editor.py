"""Metadata result view with copy-ready fields."""

from typing import List

import streamlit as st

from stockworks.apps.stock_studio.core.models import MetadataResult


def _keyword_chips(keywords: List[str]) -> str:
    return " ".join(f"`{keyword}`" for keyword in keywords)


def render_metadata_result(
    result: MetadataResult,
    key_prefix: str = "metadata_result",
) -> None:
    """
    Render title, category and ranked keywords.

    Args:
        result: Metadata to show
        key_prefix: Unique prefix for widgets
    """

    st.markdown("#### Title")
    # st.code provides a one-click copy button
    st.code(result.title, language=None, wrap_lines=True)

    st.markdown("#### Category")
    st.markdown(f"**{result.category}**")

    keywords = list(result.keywords)
    st.markdown(f"#### Keywords ({len(keywords)})")
    if len(keywords) != 30:
        st.caption(f"Expected 30 keywords, received {len(keywords)}.")
    if keywords:
        st.markdown(_keyword_chips(keywords))
        with st.expander("📋 Copy All", expanded=False):
            st.code(result.keywords_text(), language=None, wrap_lines=True)
    else:
        st.info("No keywords returned.")
