"""Configuration helpers for the Stock Studio application."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, Mapping, Optional, Tuple
import tomllib

from .models import (
    DEFAULT_ASPECT_RATIO,
    MAX_PROMPT_COUNT,
    MIN_PROMPT_COUNT,
    AspectRatio,
)


_CONFIG_ENV_PREFIX = "STOCKWORKS_STOCK_STUDIO__"


def _find_pyproject(start: Optional[Path] = None) -> Optional[Path]:
    """Locate the nearest ``pyproject.toml`` relative to *start*."""

    current = (start or Path.cwd()).resolve()
    for candidate in [current, *current.parents]:
        pyproject = candidate / "pyproject.toml"
        if pyproject.exists():
            return pyproject
    return None


def _coerce_int(value: object, default: int) -> int:
    if value is None:
        return default
    try:
        return int(value)
    except Exception:
        return default


def _as_path(value: object) -> Optional[Path]:
    if value is None:
        return None
    if isinstance(value, Path):
        return value
    if isinstance(value, str) and value.strip():
        return Path(value).expanduser()
    return None


def _as_text(value: object, default: str) -> str:
    if value is None:
        return default
    return str(value).strip() or default


def _normalise_iterable(value: object) -> Tuple[str, ...]:
    if value is None:
        return tuple()
    if isinstance(value, str):
        parts = [p.strip() for p in value.split(",")]
    elif isinstance(value, Iterable):
        parts = []
        for item in value:
            if not item:
                continue
            parts.append(str(item).strip())
    else:
        return tuple()

    return tuple(filter(None, parts))


@dataclass(frozen=True)
class StockStudioSettings:
    """Resolved configuration values for Stock Studio."""

    prompt_model: str = "gemini-2.5-flash"
    image_model: str = "gemini-3-pro-image-preview"
    metadata_model: str = "gemini-2.5-flash"
    image_size: str = "1K"
    default_aspect_ratio: str = DEFAULT_ASPECT_RATIO.value
    default_prompt_count: int = 5
    default_mood: str = "Bright, Professional, Commercial"
    api_key_env_vars: Tuple[str, ...] = field(
        default_factory=lambda: ("GEMINI_API_KEY", "API_KEY")
    )
    output_dir: Path = Path("outputs/stock_studio")
    request_timeout: int = 120

    def resolve_api_key(self, environ: Optional[Mapping[str, str]] = None) -> str:
        """Return the first non-empty API key found in the configured variables."""

        env = os.environ if environ is None else environ
        for name in self.api_key_env_vars:
            value = (env.get(name) or "").strip()
            if value:
                return value
        return ""


def _merge_dict(
    base: Dict[str, object], override: Optional[Dict[str, object]]
) -> Dict[str, object]:
    merged = base.copy()
    if not override:
        return merged
    for key, value in override.items():
        if value is None:
            continue
        merged[key] = value
    return merged


def _load_pyproject_settings(start: Optional[Path]) -> Dict[str, object]:
    pyproject = _find_pyproject(start)
    if not pyproject:
        return {}
    try:
        with pyproject.open("rb") as handle:
            data = tomllib.load(handle)
    except (OSError, tomllib.TOMLDecodeError):
        return {}

    tool_cfg = data.get("tool", {}).get("stockworks", {})
    if not isinstance(tool_cfg, dict):
        return {}

    studio_cfg = tool_cfg.get("stock_studio")
    return studio_cfg if isinstance(studio_cfg, dict) else {}


def _load_env_settings(
    environ: Optional[Mapping[str, str]] = None,
) -> Dict[str, object]:
    values: Dict[str, object] = {}
    env = os.environ if environ is None else environ
    for env_key, env_value in env.items():
        if not env_key.startswith(_CONFIG_ENV_PREFIX):
            continue
        key = env_key[len(_CONFIG_ENV_PREFIX) :].lower()
        values[key] = env_value
    return values


def load_config(
    start: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> StockStudioSettings:
    """Load Stock Studio settings: defaults, then pyproject, then environment."""

    defaults = StockStudioSettings()
    result: Dict[str, object] = {}
    result = _merge_dict(result, _load_pyproject_settings(start))
    result = _merge_dict(result, _load_env_settings(environ))

    aspect_raw = _as_text(
        result.get("default_aspect_ratio"), defaults.default_aspect_ratio
    )
    try:
        aspect_ratio = AspectRatio.parse(aspect_raw).value
    except ValueError:
        aspect_ratio = defaults.default_aspect_ratio

    prompt_count = _coerce_int(
        result.get("default_prompt_count"), defaults.default_prompt_count
    )
    prompt_count = max(MIN_PROMPT_COUNT, min(prompt_count, MAX_PROMPT_COUNT))

    key_vars = _normalise_iterable(result.get("api_key_env_vars"))

    return StockStudioSettings(
        prompt_model=_as_text(result.get("prompt_model"), defaults.prompt_model),
        image_model=_as_text(result.get("image_model"), defaults.image_model),
        metadata_model=_as_text(
            result.get("metadata_model"), defaults.metadata_model
        ),
        image_size=_as_text(result.get("image_size"), defaults.image_size),
        default_aspect_ratio=aspect_ratio,
        default_prompt_count=prompt_count,
        default_mood=_as_text(result.get("default_mood"), defaults.default_mood),
        api_key_env_vars=key_vars or defaults.api_key_env_vars,
        output_dir=_as_path(result.get("output_dir")) or defaults.output_dir,
        request_timeout=_coerce_int(
            result.get("request_timeout"), defaults.request_timeout
        ),
    )
