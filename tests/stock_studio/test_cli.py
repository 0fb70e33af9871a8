import json
from pathlib import Path
from typing import List

import pytest
from typer.testing import CliRunner

from stockworks.apps.stock_studio.cli import main as cli_main
from stockworks.apps.stock_studio.core.backends import GenerationBackend
from stockworks.apps.stock_studio.core.client import GenerationClient
from stockworks.apps.stock_studio.core.errors import TransportError
from stockworks.apps.stock_studio.core.models import InlineImage

runner = CliRunner()


class CliFakeBackend(GenerationBackend):
    def __init__(self) -> None:
        self.image_prompts: List[str] = []
        self.closed = False

    async def generate_prompts(self, system_instruction, request):
        return json.dumps({"prompts": ["Sunlit desk", "Morning coffee", "Team call"]})

    async def generate_image(self, prompt, aspect_ratio, size_hint):
        self.image_prompts.append(prompt)
        if prompt == "broken prompt":
            raise TransportError("safety filter")
        return [InlineImage(data=b"\x89PNG " + prompt.encode())]

    async def generate_metadata(self, parts, system_instruction):
        return json.dumps(
            {"title": "Sunny desk", "keywords": ["desk", "office"], "category": "Business"}
        )

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def fake_backend(monkeypatch):
    backend = CliFakeBackend()
    monkeypatch.setenv("GEMINI_API_KEY", "test-key")
    monkeypatch.setattr(
        cli_main,
        "_make_client",
        lambda settings: GenerationClient(backend, settings),
    )
    return backend


def test_prompts_command_prints_and_saves(tmp_path: Path, fake_backend):
    output = tmp_path / "prompts.json"
    res = runner.invoke(
        cli_main.app, ["prompts", "Home office", "--count", "2", "--output", str(output)]
    )

    assert res.exit_code == 0, res.stdout
    assert "Sunlit desk" in res.stdout
    assert "Team call" not in res.stdout
    assert json.loads(output.read_text()) == {"prompts": ["Sunlit desk", "Morning coffee"]}
    assert fake_backend.closed


def test_prompts_command_without_api_key(monkeypatch):
    for name in ("GEMINI_API_KEY", "API_KEY"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("STOCKWORKS_STOCK_STUDIO__API_KEY_ENV_VARS", "GEMINI_API_KEY,API_KEY")

    res = runner.invoke(cli_main.app, ["prompts", "Home office"])

    assert res.exit_code == 1
    assert "No API key found" in res.stdout


def test_images_command_skips_failures(tmp_path: Path, fake_backend):
    prompts_file = tmp_path / "prompts.txt"
    prompts_file.write_text("first prompt\nbroken prompt\nthird prompt\n", encoding="utf-8")
    out_dir = tmp_path / "images"

    res = runner.invoke(
        cli_main.app,
        [
            "images",
            "--prompts-file",
            str(prompts_file),
            "--aspect-ratio",
            "1:1",
            "--output-dir",
            str(out_dir),
        ],
    )

    assert res.exit_code == 0, res.stdout
    assert "Generated 2/3 images" in res.stdout
    assert fake_backend.image_prompts == ["first prompt", "broken prompt", "third prompt"]
    assert len(list(out_dir.glob("stock-ai-*.png"))) == 2


def test_images_command_from_topic(tmp_path: Path, fake_backend):
    res = runner.invoke(
        cli_main.app,
        ["images", "--topic", "Home office", "-n", "2", "-o", str(tmp_path)],
    )

    assert res.exit_code == 0, res.stdout
    assert fake_backend.image_prompts == ["Sunlit desk", "Morning coffee"]
    assert len(list(tmp_path.glob("*.png"))) == 2


def test_images_command_rejects_unknown_aspect_ratio(tmp_path: Path, fake_backend):
    prompts_file = tmp_path / "prompts.txt"
    prompts_file.write_text("first prompt\n", encoding="utf-8")

    res = runner.invoke(
        cli_main.app, ["images", "-p", str(prompts_file), "--aspect-ratio", "5:4"]
    )

    assert res.exit_code == 1
    assert fake_backend.image_prompts == []


def test_images_command_with_empty_prompts_file(tmp_path: Path, fake_backend):
    prompts_file = tmp_path / "prompts.txt"
    prompts_file.write_text("\n\n", encoding="utf-8")

    res = runner.invoke(cli_main.app, ["images", "-p", str(prompts_file)])

    assert res.exit_code == 0
    assert "nothing to do" in res.stdout
    assert fake_backend.image_prompts == []


def test_metadata_command_json_output(fake_backend):
    res = runner.invoke(
        cli_main.app, ["metadata", "--description", "a sunny desk", "--json"]
    )

    assert res.exit_code == 0, res.stdout
    assert json.loads(res.stdout) == {
        "title": "Sunny desk",
        "keywords": ["desk", "office"],
        "category": "Business",
    }


def test_metadata_command_requires_input(fake_backend):
    res = runner.invoke(cli_main.app, ["metadata"])
    assert res.exit_code == 1


@pytest.mark.parametrize("body", ["{not json", '{"prompts": 5}'])
def test_images_command_reports_unreadable_prompts_file(
    tmp_path: Path, fake_backend, body
):
    prompts_file = tmp_path / "prompts.json"
    prompts_file.write_text(body, encoding="utf-8")

    res = runner.invoke(cli_main.app, ["images", "-p", str(prompts_file)])

    assert res.exit_code == 1
    assert "Cannot read prompts file" in res.stdout
    assert fake_backend.image_prompts == []
