"""Instruction templates sent to the generation service."""

from __future__ import annotations

from dataclasses import dataclass

__all__ = [
    "InstructionTemplate",
    "PROMPT_BATCH_TEMPLATE",
    "METADATA_TEMPLATE",
    "IMAGE_ANALYSIS_REQUEST",
    "build_prompt_batch_instruction",
    "build_description_request",
]


@dataclass(frozen=True)
class InstructionTemplate:
    """System instruction plus the user-turn text that accompanies it."""

    system: str
    user_template: str

    def render_system(self, **values: object) -> str:
        return self.system.format(**values)

    def render_user(self, **values: object) -> str:
        return self.user_template.format(**values)


PROMPT_BATCH_TEMPLATE = InstructionTemplate(
    system=(
        "You are an expert prompt engineer for stock photography AI generators "
        "(like Midjourney, Firefly).\n"
        'Create {count} distinct, highly detailed, photorealistic image prompts about "{topic}".\n'
        "Mood: {mood}.\n"
        "Ensure prompts include lighting, camera angle, and style details optimized "
        "for stock sales."
    ),
    user_template="Generate the prompts now.",
)

METADATA_TEMPLATE = InstructionTemplate(
    system=(
        "You are an Adobe Stock SEO expert.\n"
        "Generate a catchy Title (5-7 words) and exactly 30 relevant Keywords "
        "sorted by relevance.\n"
        "Select a Category (e.g., Business, Lifestyle, Technology)."
    ),
    user_template="Generate Adobe Stock metadata for an image described as: {description}",
)

IMAGE_ANALYSIS_REQUEST = "Analyze this image for Adobe Stock metadata."


def build_prompt_batch_instruction(topic: str, count: int, mood: str) -> str:
    return PROMPT_BATCH_TEMPLATE.render_system(topic=topic, count=count, mood=mood)


def build_description_request(description: str) -> str:
    return METADATA_TEMPLATE.render_user(description=description)
