"""Backend adapters for the remote generation service.

A backend speaks the three-call contract the rest of the app relies on:

* ``generate_prompts(system_instruction, request)`` returns the raw JSON text
  of a ``{"prompts": [...]}`` response.
* ``generate_image(prompt, aspect_ratio, size_hint)`` returns every inline
  binary payload found in the response (possibly none).
* ``generate_metadata(parts, system_instruction)`` returns the raw JSON text
  of a ``{"title", "keywords", "category"}`` response.

Backends do not decode or default anything; that is the client's job. They
only translate vendor transport failures into :class:`TransportError`.
"""

from __future__ import annotations

import base64
import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Type

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types
from pydantic import BaseModel

from .errors import TransportError
from .models import InlineImage, RequestPart

logger = logging.getLogger(__name__)


class PromptBatch(BaseModel):
    """Structured response for a prompt batch."""

    prompts: Optional[List[Optional[str]]] = None


class StockMetadataPayload(BaseModel):
    """Structured response for stock metadata."""

    title: Optional[str] = None
    keywords: Optional[List[str]] = None
    category: Optional[str] = None


class GenerationBackendKind(str, Enum):
    """Supported backend identifiers."""

    GEMINI = "gemini"


class GenerationBackend(ABC):
    """Abstract adapter around a multimodal generation service."""

    @abstractmethod
    async def generate_prompts(
        self, system_instruction: str, request: str
    ) -> Optional[str]:
        """Return the raw structured text for a prompt batch request."""

    @abstractmethod
    async def generate_image(
        self, prompt: str, aspect_ratio: str, size_hint: str
    ) -> List[InlineImage]:
        """Return the inline image payloads of an image request."""

    @abstractmethod
    async def generate_metadata(
        self, parts: Sequence[RequestPart], system_instruction: str
    ) -> Optional[str]:
        """Return the raw structured text for a metadata request."""

    async def aclose(self) -> None:
        """Hook for releasing backend resources."""


class GeminiBackend(GenerationBackend):
    """Backend adapter for the Gemini API via ``google-genai``."""

    def __init__(
        self,
        *,
        api_key: str,
        prompt_model: str,
        image_model: str,
        metadata_model: str,
        timeout: int = 120,
        client: Optional[genai.Client] = None,
    ) -> None:
        self.prompt_model = prompt_model
        self.image_model = image_model
        self.metadata_model = metadata_model
        self._client = client or genai.Client(
            api_key=api_key,
            http_options=types.HttpOptions(timeout=max(1, timeout) * 1000),
        )

    async def _generate(
        self, *, model: str, contents: Any, config: types.GenerateContentConfig
    ) -> types.GenerateContentResponse:
        try:
            return await self._client.aio.models.generate_content(
                model=model, contents=contents, config=config
            )
        except genai_errors.APIError as exc:
            raise TransportError(
                f"{model} request failed ({exc.code}): {exc.message}"
            ) from exc
        except httpx.HTTPError as exc:
            raise TransportError(f"{model} request failed: {exc}") from exc

    async def generate_prompts(
        self, system_instruction: str, request: str
    ) -> Optional[str]:
        response = await self._generate(
            model=self.prompt_model,
            contents=request,
            config=types.GenerateContentConfig(
                system_instruction=system_instruction,
                response_mime_type="application/json",
                response_schema=PromptBatch,
            ),
        )
        return response.text

    async def generate_image(
        self, prompt: str, aspect_ratio: str, size_hint: str
    ) -> List[InlineImage]:
        response = await self._generate(
            model=self.image_model,
            contents=[types.Part.from_text(text=prompt)],
            config=types.GenerateContentConfig(
                image_config=types.ImageConfig(
                    aspect_ratio=aspect_ratio,
                    image_size=size_hint,
                ),
            ),
        )
        return extract_inline_images(response)

    async def generate_metadata(
        self, parts: Sequence[RequestPart], system_instruction: str
    ) -> Optional[str]:
        response = await self._generate(
            model=self.metadata_model,
            contents=[_to_genai_part(part) for part in parts],
            config=types.GenerateContentConfig(
                system_instruction=system_instruction,
                response_mime_type="application/json",
                response_schema=StockMetadataPayload,
            ),
        )
        return response.text

    async def aclose(self) -> None:
        await self._client.aio.aclose()


def _to_genai_part(part: RequestPart) -> types.Part:
    if part.is_inline:
        return types.Part.from_bytes(
            data=base64.b64decode(part.inline_data or ""),
            mime_type=part.mime_type or "image/png",
        )
    return types.Part.from_text(text=part.text or "")


def extract_inline_images(response: types.GenerateContentResponse) -> List[InlineImage]:
    """Collect inline binary payloads from the first candidate, in order."""

    candidates = response.candidates or []
    if not candidates or candidates[0].content is None:
        return []
    images: List[InlineImage] = []
    for part in candidates[0].content.parts or []:
        inline = part.inline_data
        if inline is None or not inline.data:
            continue
        images.append(
            InlineImage(data=inline.data, mime_type=inline.mime_type or "image/png")
        )
    return images


BACKEND_REGISTRY: Dict[GenerationBackendKind, Type[GenerationBackend]] = {
    GenerationBackendKind.GEMINI: GeminiBackend,
}


def create_backend(
    kind: GenerationBackendKind = GenerationBackendKind.GEMINI,
    **kwargs: Any,
) -> GenerationBackend:
    """Instantiate the backend registered for *kind*."""

    backend_cls = BACKEND_REGISTRY.get(kind)
    if backend_cls is None:
        raise ValueError(f"Unsupported generation backend: {kind}")
    logger.debug("Creating %s generation backend", kind.value)
    return backend_cls(**kwargs)
