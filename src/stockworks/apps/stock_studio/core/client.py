"""Generation client: prompts, images and stock metadata."""

from __future__ import annotations

import logging
from typing import List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from . import prompts as instructions
from .backends import (
    GenerationBackend,
    GenerationBackendKind,
    PromptBatch,
    StockMetadataPayload,
    create_backend,
)
from .config import StockStudioSettings
from .errors import NO_IMAGE_DATA_MESSAGE, GenerationError, SchemaError
from .models import (
    MAX_PROMPT_COUNT,
    MIN_PROMPT_COUNT,
    AspectRatio,
    MetadataResult,
    RequestPart,
)

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Untitled"
DEFAULT_CATEGORY = "Uncategorized"

_PayloadT = TypeVar("_PayloadT", bound=BaseModel)


def decode_structured(raw_text: Optional[str], schema: Type[_PayloadT]) -> _PayloadT:
    """Parse a structured JSON response; empty text decodes as ``{}``.

    Raises :class:`SchemaError` when the text is not valid JSON for *schema*.
    """

    text = (raw_text or "").strip() or "{}"
    try:
        return schema.model_validate_json(text)
    except ValidationError as exc:
        raise SchemaError(f"Unparsable {schema.__name__} response: {exc}") from exc


class GenerationClient:
    """Stateless wrapper that turns three intents into backend calls.

    Prompt and metadata responses are decoded leniently (missing fields take
    documented defaults). Image responses are strict: no payload is an error.
    Every call is a single attempt; failures are logged and re-raised.
    """

    def __init__(
        self,
        backend: GenerationBackend,
        settings: Optional[StockStudioSettings] = None,
    ) -> None:
        self.backend = backend
        self.settings = settings or StockStudioSettings()

    async def generate_prompts(self, topic: str, count: int, mood: str) -> List[str]:
        if not MIN_PROMPT_COUNT <= count <= MAX_PROMPT_COUNT:
            raise ValueError(
                f"count must be between {MIN_PROMPT_COUNT} and {MAX_PROMPT_COUNT}, got {count}"
            )
        system_instruction = instructions.build_prompt_batch_instruction(
            topic, count, mood
        )
        try:
            raw = await self.backend.generate_prompts(
                system_instruction, instructions.PROMPT_BATCH_TEMPLATE.user_template
            )
            payload = decode_structured(raw, PromptBatch)
        except GenerationError as exc:
            logger.error("Error generating prompts for %r: %s", topic, exc)
            raise

        cleaned = [
            text.strip() for text in payload.prompts or [] if text and text.strip()
        ]
        if len(cleaned) > count:
            logger.debug("Model returned %d prompts, keeping %d", len(cleaned), count)
        return cleaned[:count]

    async def generate_image(
        self, prompt_text: str, aspect_ratio: "str | AspectRatio"
    ) -> str:
        """Return base64 image data for *prompt_text* or raise GenerationError."""

        ratio = AspectRatio.parse(aspect_ratio)
        try:
            images = await self.backend.generate_image(
                prompt_text, ratio.value, self.settings.image_size
            )
            if not images:
                raise SchemaError(NO_IMAGE_DATA_MESSAGE)
        except GenerationError as exc:
            logger.error("Error generating image: %s", exc)
            raise
        return images[0].to_base64()

    async def generate_metadata(
        self,
        image_data: Optional[str] = None,
        description: Optional[str] = None,
    ) -> MetadataResult:
        parts: List[RequestPart]
        if image_data:
            parts = [
                RequestPart.from_inline(image_data, "image/png"),
                RequestPart.from_text(instructions.IMAGE_ANALYSIS_REQUEST),
            ]
        elif description and description.strip():
            parts = [
                RequestPart.from_text(
                    instructions.build_description_request(description.strip())
                )
            ]
        else:
            raise ValueError("Either image data or a description is required")

        try:
            raw = await self.backend.generate_metadata(
                parts, instructions.METADATA_TEMPLATE.system
            )
            payload = decode_structured(raw, StockMetadataPayload)
        except GenerationError as exc:
            logger.error("Error generating metadata: %s", exc)
            raise

        return MetadataResult(
            title=payload.title or DEFAULT_TITLE,
            keywords=tuple(payload.keywords or ()),
            category=payload.category or DEFAULT_CATEGORY,
        )

    async def aclose(self) -> None:
        await self.backend.aclose()


def build_client(settings: StockStudioSettings, api_key: str) -> GenerationClient:
    """Create a client backed by the configured Gemini models."""

    backend = create_backend(
        GenerationBackendKind.GEMINI,
        api_key=api_key,
        prompt_model=settings.prompt_model,
        image_model=settings.image_model,
        metadata_model=settings.metadata_model,
        timeout=settings.request_timeout,
    )
    return GenerationClient(backend, settings)
