"""Session coordinator and panel controllers for Stock Studio.

``StudioSession`` is the single owner of cross-panel state: the prompt list,
the queue runner that consumes it and the image currently selected for
metadata. Panels receive the session explicitly and never keep their own copy
of that state.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, List, Optional, Tuple

from .client import GenerationClient
from .config import StockStudioSettings
from .credentials import CredentialGate
from .models import (
    ImageItem,
    MetadataResult,
    ProcessStatus,
    PromptItem,
    selected_prompts,
)
from .queue_runner import LivenessToken, QueueRunner

logger = logging.getLogger(__name__)

ClientFactory = Callable[[], GenerationClient]


class StudioSession:
    """Top-level owner of prompts, the queue runner and the selected image."""

    def __init__(
        self,
        gate: CredentialGate,
        client_factory: ClientFactory,
        settings: Optional[StockStudioSettings] = None,
    ) -> None:
        self.gate = gate
        self.settings = settings or StockStudioSettings()
        self._client_factory = client_factory
        self._client: Optional[GenerationClient] = None
        self._runner: Optional[QueueRunner] = None
        self._prompts: Tuple[PromptItem, ...] = tuple()
        self._selected_image: Optional[ImageItem] = None

    # ------------------------------------------------------------------
    # Generation access (gated)
    # ------------------------------------------------------------------
    @property
    def client(self) -> GenerationClient:
        self.gate.require()
        if self._client is None:
            self._client = self._client_factory()
        return self._client

    @property
    def runner(self) -> QueueRunner:
        if self._runner is None:
            self._runner = QueueRunner(
                self.client,
                self.queued_prompts(),
                aspect_ratio=self.settings.default_aspect_ratio,
            )
        return self._runner

    def reset_client(self) -> None:
        """Drop the cached client, e.g. after the API key changes."""

        if self._runner is not None:
            self._runner.close()
        self._runner = None
        self._client = None

    # ------------------------------------------------------------------
    # Prompt list
    # ------------------------------------------------------------------
    @property
    def prompts(self) -> Tuple[PromptItem, ...]:
        return self._prompts

    def queued_prompts(self) -> List[PromptItem]:
        return selected_prompts(self._prompts)

    def add_prompts(self, texts: Iterable[str]) -> List[PromptItem]:
        new_items = [PromptItem.create(text) for text in texts]
        self._set_prompts(self._prompts + tuple(new_items))
        return new_items

    def clear_prompts(self) -> None:
        self._set_prompts(tuple())

    def toggle_prompt(self, prompt_id: str) -> None:
        self._set_prompts(
            tuple(
                item.with_selected(not item.selected) if item.id == prompt_id else item
                for item in self._prompts
            )
        )

    def _set_prompts(self, prompts: Tuple[PromptItem, ...]) -> None:
        self._prompts = prompts
        if self._runner is not None:
            self._runner.set_prompts(self.queued_prompts())

    # ------------------------------------------------------------------
    # Selected image
    # ------------------------------------------------------------------
    @property
    def selected_image(self) -> Optional[ImageItem]:
        return self._selected_image

    def select_image(self, image: Optional[ImageItem]) -> None:
        self._selected_image = image

    def close(self) -> None:
        if self._runner is not None:
            self._runner.close()


class _PanelBase:
    def __init__(self, session: StudioSession) -> None:
        self.session = session
        self.status = ProcessStatus.IDLE
        self.last_error: Optional[str] = None
        self._token = LivenessToken()

    def close(self) -> None:
        """Detach the panel; results that arrive afterwards are dropped."""

        self._token.revoke()

    def _fail(self, action: str, exc: Exception) -> None:
        logger.error("%s failed: %s", action, exc)
        self.status = ProcessStatus.ERROR
        self.last_error = str(exc)


class PromptPanel(_PanelBase):
    """Bulk prompt creation."""

    async def generate(self, topic: str, count: int, mood: str) -> List[PromptItem]:
        if not topic or not topic.strip():
            return []
        token = self._token
        self.status = ProcessStatus.PROCESSING
        self.last_error = None
        try:
            texts = await self.session.client.generate_prompts(
                topic.strip(), count, mood
            )
        except Exception as exc:  # noqa: BLE001 - surfaced as panel status
            if token.alive:
                self._fail("Prompt generation", exc)
            return []
        if not token.alive:
            return []
        items = self.session.add_prompts(texts)
        self.status = ProcessStatus.COMPLETED
        return items


class MetadataPanel(_PanelBase):
    """Adobe Stock metadata for the selected image or a description."""

    def __init__(self, session: StudioSession) -> None:
        super().__init__(session)
        self.result: Optional[MetadataResult] = None
        self.last_image_id: Optional[str] = None

    def needs_refresh(self, image: Optional[ImageItem]) -> bool:
        """True when *image* was selected but has not been analysed yet."""

        return image is not None and image.id != self.last_image_id

    async def generate(
        self, image: Optional[ImageItem] = None, description: str = ""
    ) -> Optional[MetadataResult]:
        token = self._token
        self.status = ProcessStatus.PROCESSING
        self.result = None
        self.last_error = None
        if image is not None:
            self.last_image_id = image.id
        try:
            result = await self.session.client.generate_metadata(
                image.image_data if image is not None else None,
                description,
            )
        except Exception as exc:  # noqa: BLE001 - surfaced as panel status
            if token.alive:
                self._fail("Metadata generation", exc)
            return None
        if not token.alive:
            return None
        self.result = result
        self.status = ProcessStatus.COMPLETED
        return result
