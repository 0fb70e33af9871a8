"""Core modules for the Stock Studio application."""

from .client import GenerationClient, build_client  # noqa: F401
from .config import StockStudioSettings, load_config  # noqa: F401
from .credentials import CredentialGate  # noqa: F401
from .queue_runner import QueueRunner  # noqa: F401
from .session import MetadataPanel, PromptPanel, StudioSession  # noqa: F401

__all__ = [
    "CredentialGate",
    "GenerationClient",
    "MetadataPanel",
    "PromptPanel",
    "QueueRunner",
    "StockStudioSettings",
    "StudioSession",
    "build_client",
    "load_config",
]
