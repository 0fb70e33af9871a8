import base64
import json

import pytest
from PIL import Image

from stockworks.apps.stock_studio.core.errors import GenerationError
from stockworks.apps.stock_studio.core.export import (
    load_image_as_png_base64,
    metadata_to_json,
    read_prompts_file,
    save_image,
    write_prompts_file,
)
from stockworks.apps.stock_studio.core.models import ImageItem, MetadataResult


def _image(created_at: float = 1700000000.0) -> ImageItem:
    data = base64.b64encode(b"\x89PNG payload").decode("ascii")
    return ImageItem.create(prompt_text="barn", image_data=data, created_at=created_at)


def test_save_image_never_overwrites(tmp_path):
    first = save_image(_image(), tmp_path / "out")
    second = save_image(_image(), tmp_path / "out")

    assert first.name == "stock-ai-1700000000000.png"
    assert second.name == "stock-ai-1700000000000-1.png"
    assert first.read_bytes() == b"\x89PNG payload"


def test_load_image_converts_jpeg_to_png(tmp_path):
    path = tmp_path / "photo.jpg"
    Image.new("RGB", (16, 8), color=(200, 30, 30)).save(path, format="JPEG")

    data = base64.b64decode(load_image_as_png_base64(path))

    assert data.startswith(b"\x89PNG")


def test_load_image_rejects_non_images(tmp_path):
    path = tmp_path / "notes.png"
    path.write_text("not an image", encoding="utf-8")

    with pytest.raises(GenerationError, match="Cannot read image"):
        load_image_as_png_base64(path)


def test_prompt_files_round_trip_json_and_text(tmp_path):
    json_path = write_prompts_file(["a", "b"], tmp_path / "prompts.json")
    assert json.loads(json_path.read_text()) == {"prompts": ["a", "b"]}
    assert read_prompts_file(json_path) == ["a", "b"]

    text_path = tmp_path / "prompts.txt"
    text_path.write_text("first\n\n  second  \n", encoding="utf-8")
    assert read_prompts_file(text_path) == ["first", "second"]


def test_metadata_to_json():
    result = MetadataResult(title="Barn", keywords=("farm", "barn"), category="Nature")
    assert json.loads(metadata_to_json(result)) == {
        "title": "Barn",
        "keywords": ["farm", "barn"],
        "category": "Nature",
    }


@pytest.mark.parametrize(
    "body", ['{"prompts": null}', '{"other": 1}', '{"prompts": ["a", null]}']
)
def test_read_prompts_file_tolerates_missing_entries(tmp_path, body):
    path = tmp_path / "prompts.json"
    path.write_text(body, encoding="utf-8")

    assert read_prompts_file(path) in ([], ["a"])


@pytest.mark.parametrize("body", ["{not json", '{"prompts": 5}', '"just text"'])
def test_read_prompts_file_rejects_malformed_json(tmp_path, body):
    path = tmp_path / "prompts.json"
    path.write_text(body, encoding="utf-8")

    with pytest.raises(ValueError):
        read_prompts_file(path)
