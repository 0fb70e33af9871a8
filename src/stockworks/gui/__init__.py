"""Streamlit browser UI for Stock Studio."""
