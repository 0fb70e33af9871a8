"""Reading and writing image payloads on disk."""

from __future__ import annotations

import base64
import io
import json
import logging
from pathlib import Path
from typing import Iterable, List

from PIL import Image, UnidentifiedImageError

from .errors import GenerationError
from .models import ImageItem, MetadataResult

logger = logging.getLogger(__name__)


def save_image(image: ImageItem, output_dir: Path) -> Path:
    """Write *image* as ``stock-ai-<ms>.png`` inside *output_dir*."""

    output_dir.mkdir(parents=True, exist_ok=True)
    target = output_dir / image.download_filename()
    suffix = 1
    while target.exists():
        target = output_dir / f"{Path(image.download_filename()).stem}-{suffix}.png"
        suffix += 1
    target.write_bytes(image.image_bytes())
    logger.info("Saved image → %s", target)
    return target


def save_images(images: Iterable[ImageItem], output_dir: Path) -> List[Path]:
    return [save_image(image, output_dir) for image in images]


def load_image_as_png_base64(path: Path) -> str:
    """Return the image at *path* as base64 PNG data, converting if needed."""

    try:
        with Image.open(path) as img:
            if img.format == "PNG":
                return base64.b64encode(path.read_bytes()).decode("ascii")
            if img.mode not in ("RGB", "RGBA"):
                img = img.convert("RGB")
            buffer = io.BytesIO()
            img.save(buffer, format="PNG")
    except (OSError, UnidentifiedImageError) as exc:
        raise GenerationError(f"Cannot read image {path}: {exc}") from exc
    return base64.b64encode(buffer.getvalue()).decode("ascii")


def write_prompts_file(prompts: Iterable[str], path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps({"prompts": list(prompts)}, indent=2), encoding="utf-8")
    return path


def read_prompts_file(path: Path) -> List[str]:
    """Read prompts from a JSON ``{"prompts": [...]}`` file or a plain text file.

    Raises ``ValueError`` when a JSON file is malformed or holds no list.
    """

    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        data = json.loads(text)
        items = (data.get("prompts") or []) if isinstance(data, dict) else data
        if not isinstance(items, list):
            raise ValueError(f"{path} does not contain a list of prompts")
        items = [item for item in items if item is not None]
        return [str(item).strip() for item in items if str(item).strip()]
    return [line.strip() for line in text.splitlines() if line.strip()]


def metadata_to_json(result: MetadataResult) -> str:
    return json.dumps(result.to_dict(), indent=2, ensure_ascii=False)
