"""Dataclasses and shared models for the Stock Studio pipeline."""

from __future__ import annotations

import base64
import uuid
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple


class AspectRatio(str, Enum):
    """Aspect ratios accepted by the image model."""

    SQUARE = "1:1"
    PORTRAIT_2_3 = "2:3"
    LANDSCAPE_3_2 = "3:2"
    PORTRAIT_3_4 = "3:4"
    LANDSCAPE_4_3 = "4:3"
    PORTRAIT_9_16 = "9:16"
    WIDESCREEN_16_9 = "16:9"
    ULTRAWIDE_21_9 = "21:9"

    @classmethod
    def parse(cls, value: "str | AspectRatio") -> "AspectRatio":
        if isinstance(value, AspectRatio):
            return value
        try:
            return cls(str(value).strip())
        except ValueError as exc:
            allowed = ", ".join(ratio.value for ratio in cls)
            raise ValueError(
                f"Unsupported aspect ratio '{value}' (expected one of {allowed})"
            ) from exc


ASPECT_RATIOS: Tuple[str, ...] = tuple(ratio.value for ratio in AspectRatio)
DEFAULT_ASPECT_RATIO = AspectRatio.LANDSCAPE_4_3

MIN_PROMPT_COUNT = 1
MAX_PROMPT_COUNT = 20


class ProcessStatus(str, Enum):
    """Status of a single panel action."""

    IDLE = "IDLE"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    ERROR = "ERROR"


class QueuePhase(str, Enum):
    IDLE = "IDLE"
    RUNNING = "RUNNING"
    PAUSED = "PAUSED"
    COMPLETED = "COMPLETED"


def _new_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class PromptItem:
    """A generated image prompt waiting in the batch queue."""

    id: str
    text: str
    selected: bool = True

    @classmethod
    def create(cls, text: str) -> "PromptItem":
        return cls(id=_new_id(), text=text, selected=True)

    def with_selected(self, selected: bool) -> "PromptItem":
        return replace(self, selected=selected)


@dataclass(frozen=True)
class ImageItem:
    """One successfully generated image."""

    id: str
    prompt_text: str
    image_data: str
    created_at: float
    aspect_ratio: str = DEFAULT_ASPECT_RATIO.value

    @classmethod
    def create(
        cls,
        prompt_text: str,
        image_data: str,
        created_at: float,
        aspect_ratio: str = DEFAULT_ASPECT_RATIO.value,
    ) -> "ImageItem":
        return cls(
            id=_new_id(),
            prompt_text=prompt_text,
            image_data=image_data,
            created_at=created_at,
            aspect_ratio=aspect_ratio,
        )

    def data_uri(self) -> str:
        return f"data:image/png;base64,{self.image_data}"

    def image_bytes(self) -> bytes:
        return base64.b64decode(self.image_data)

    def download_filename(self) -> str:
        return f"stock-ai-{int(self.created_at * 1000)}.png"


@dataclass(frozen=True)
class MetadataResult:
    """Adobe Stock title, ranked keywords and category for one image."""

    title: str
    keywords: Tuple[str, ...] = field(default_factory=tuple)
    category: str = ""

    def keywords_text(self) -> str:
        return ", ".join(self.keywords)

    def to_dict(self) -> Dict[str, object]:
        return {
            "title": self.title,
            "keywords": list(self.keywords),
            "category": self.category,
        }


@dataclass(frozen=True)
class QueueRunState:
    """Snapshot of the queue runner's progress."""

    is_running: bool = False
    cursor: int = 0
    progress_percent: float = 0.0
    total: int = 0

    @property
    def phase(self) -> QueuePhase:
        if self.is_running:
            return QueuePhase.RUNNING
        if self.total and self.cursor >= self.total:
            return QueuePhase.COMPLETED
        if self.cursor > 0:
            return QueuePhase.PAUSED
        return QueuePhase.IDLE


@dataclass(frozen=True)
class RequestPart:
    """One part of a multimodal request: either text or inline base64 data."""

    text: Optional[str] = None
    inline_data: Optional[str] = None
    mime_type: Optional[str] = None

    @classmethod
    def from_text(cls, text: str) -> "RequestPart":
        return cls(text=text)

    @classmethod
    def from_inline(cls, data: str, mime_type: str = "image/png") -> "RequestPart":
        return cls(inline_data=data, mime_type=mime_type)

    @property
    def is_inline(self) -> bool:
        return self.inline_data is not None


@dataclass(frozen=True)
class InlineImage:
    """Binary payload found in an image-generation response."""

    data: bytes
    mime_type: str = "image/png"

    def to_base64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")


def selected_prompts(prompts: Sequence[PromptItem]) -> List[PromptItem]:
    """Return the prompts flagged for batch processing, preserving order."""

    return [prompt for prompt in prompts if prompt.selected]
