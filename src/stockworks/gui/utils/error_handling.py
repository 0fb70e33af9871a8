"""Error handling and validation utilities."""

from typing import Optional

import streamlit as st

from stockworks.apps.stock_studio.core.errors import (
    CredentialUnavailable,
    SchemaError,
    TransportError,
)
from stockworks.apps.stock_studio.core.models import (
    ASPECT_RATIOS,
    MAX_PROMPT_COUNT,
    MIN_PROMPT_COUNT,
)


class ValidationError(Exception):
    """Custom validation error."""

    pass


def describe_error(error: Exception) -> str:
    """Return a short user-facing explanation for a generation failure."""

    if isinstance(error, CredentialUnavailable):
        return "No API key selected."
    if isinstance(error, TransportError):
        return "The generation service could not be reached or rejected the request."
    if isinstance(error, SchemaError):
        return "The generation service returned an unusable response."
    return str(error) or type(error).__name__


def handle_error(error: Exception, context: str = "") -> None:
    """
    Display error to user with context.

    Args:
        error: The exception that occurred
        context: Additional context about where/why error occurred
    """
    error_msg = f"**Error:** {describe_error(error)}"
    if context:
        error_msg = f"{context}\n\n{error_msg}"

    st.error(error_msg)

    # Show debug info if enabled
    if st.session_state.get("debug_mode", False):
        with st.expander("🐛 Debug Information"):
            st.code(f"Type: {type(error).__name__}\n{str(error)}")


def validate_topic(topic: Optional[str]) -> str:
    """
    Validate the prompt topic.

    Raises:
        ValidationError: If the topic is blank
    """
    if not topic or not topic.strip():
        raise ValidationError("Topic cannot be empty")
    return topic.strip()


def validate_prompt_count(count: int) -> int:
    """
    Validate the number of prompts requested.

    Raises:
        ValidationError: If count is out of range
    """
    if not MIN_PROMPT_COUNT <= count <= MAX_PROMPT_COUNT:
        raise ValidationError(
            f"Prompt count must be between {MIN_PROMPT_COUNT} and {MAX_PROMPT_COUNT}, got {count}"
        )
    return count


def validate_aspect_ratio(value: str) -> str:
    if value not in ASPECT_RATIOS:
        raise ValidationError(
            f"Unsupported aspect ratio: {value}. Must be one of {', '.join(ASPECT_RATIOS)}"
        )
    return value


def validate_metadata_input(has_image: bool, description: Optional[str]) -> None:
    """
    Require either a selected image or a description.

    Raises:
        ValidationError: If neither is available
    """
    if not has_image and not (description and description.strip()):
        raise ValidationError("Select an image or enter a description")
