"""Command line interface for Stock Studio."""

from __future__ import annotations

import asyncio
import logging
import subprocess
import sys
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.progress import BarColumn, Progress, TaskProgressColumn, TextColumn
from rich.table import Table

from stockworks.logging_utils import configure_logging

from ..core.client import GenerationClient, build_client
from ..core.config import StockStudioSettings, load_config
from ..core.credentials import CredentialGate
from ..core.errors import GenerationError
from ..core.export import (
    load_image_as_png_base64,
    metadata_to_json,
    read_prompts_file,
    save_images,
    write_prompts_file,
)
from ..core.models import AspectRatio, PromptItem, QueueRunState
from ..core.queue_runner import QueueRunner

LOG_PATH = configure_logging("stock_studio")
logger = logging.getLogger(__name__)
logger.info("Stock Studio logging initialised → %s", LOG_PATH)

console = Console()

app = typer.Typer(
    help="Generate stock-photo prompts, batch images and Adobe Stock metadata."
)


def _make_client(settings: StockStudioSettings) -> GenerationClient:
    return build_client(settings, settings.resolve_api_key())


def _open_client(settings: StockStudioSettings) -> GenerationClient:
    gate = CredentialGate(env_vars=settings.api_key_env_vars)
    if not asyncio.run(gate.check()):
        names = ", ".join(settings.api_key_env_vars)
        console.print(f"[red]No API key found. Set one of: {names}[/red]")
        raise typer.Exit(code=1)
    return _make_client(settings)


async def _generate_prompts(
    client: GenerationClient, topic: str, count: int, mood: str
) -> List[str]:
    try:
        return await client.generate_prompts(topic, count, mood)
    finally:
        await client.aclose()


@app.command("prompts")
def prompts_command(
    topic: str = typer.Argument(..., help="Subject of the prompt batch."),
    count: Optional[int] = typer.Option(
        None, "--count", "-n", min=1, max=20, help="Number of prompts (1-20)."
    ),
    mood: Optional[str] = typer.Option(None, "--mood", help="Mood / style keywords."),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Write prompts to this JSON file."
    ),
) -> None:
    """Generate a batch of stock-photography prompts."""

    settings = load_config()
    client = _open_client(settings)
    try:
        prompts = asyncio.run(
            _generate_prompts(
                client,
                topic,
                count or settings.default_prompt_count,
                mood or settings.default_mood,
            )
        )
    except (GenerationError, ValueError) as exc:
        console.print(f"[red]Prompt generation failed:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    for index, text in enumerate(prompts, start=1):
        console.print(f"[bold]{index:>2}.[/bold] {text}")
    if not prompts:
        console.print("[yellow]The model returned no prompts.[/yellow]")
    if output:
        write_prompts_file(prompts, output)
        console.print(f"Saved {len(prompts)} prompts → {output}")


async def _run_batch(
    client: GenerationClient,
    texts: Optional[List[str]],
    *,
    topic: str,
    count: int,
    mood: str,
    aspect_ratio: AspectRatio,
    on_update,
) -> QueueRunner:
    try:
        if texts is None:
            texts = await client.generate_prompts(topic, count, mood)
        runner = QueueRunner(
            client,
            [PromptItem.create(text) for text in texts],
            aspect_ratio=aspect_ratio,
            on_update=on_update,
        )
        if texts:
            await runner.start()
        return runner
    finally:
        await client.aclose()


@app.command("images")
def images_command(
    prompts_file: Optional[Path] = typer.Option(
        None,
        "--prompts-file",
        "-p",
        exists=True,
        dir_okay=False,
        help="JSON ({'prompts': [...]}) or text file with one prompt per line.",
    ),
    topic: Optional[str] = typer.Option(
        None, "--topic", help="Generate prompts for this topic first."
    ),
    count: Optional[int] = typer.Option(
        None, "--count", "-n", min=1, max=20, help="Prompts to generate with --topic."
    ),
    mood: Optional[str] = typer.Option(None, "--mood", help="Mood for --topic."),
    aspect_ratio: Optional[str] = typer.Option(
        None,
        "--aspect-ratio",
        "-a",
        help="One of 1:1, 2:3, 3:2, 3:4, 4:3, 9:16, 16:9, 21:9.",
    ),
    output_dir: Optional[Path] = typer.Option(
        None, "--output-dir", "-o", help="Directory for generated PNG files."
    ),
) -> None:
    """Generate one image per prompt, sequentially."""

    if not prompts_file and not topic:
        console.print("[red]Provide --prompts-file or --topic.[/red]")
        raise typer.Exit(code=1)

    settings = load_config()
    try:
        ratio = AspectRatio.parse(aspect_ratio or settings.default_aspect_ratio)
    except ValueError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc

    try:
        texts = read_prompts_file(prompts_file) if prompts_file else None
    except (OSError, ValueError) as exc:
        console.print(f"[red]Cannot read prompts file:[/red] {exc}")
        raise typer.Exit(code=1) from exc
    if texts is not None and not texts:
        console.print("[yellow]No prompts in queue; nothing to do.[/yellow]")
        return

    client = _open_client(settings)
    with Progress(
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        console=console,
    ) as progress:
        task_id = progress.add_task("Generating images", total=len(texts or []) or None)

        def _on_update(state: QueueRunState) -> None:
            progress.update(task_id, total=state.total, completed=state.cursor)

        try:
            runner = asyncio.run(
                _run_batch(
                    client,
                    texts,
                    topic=topic or "",
                    count=count or settings.default_prompt_count,
                    mood=mood or settings.default_mood,
                    aspect_ratio=ratio,
                    on_update=_on_update,
                )
            )
        except (GenerationError, ValueError) as exc:
            console.print(f"[red]Prompt generation failed:[/red] {exc}")
            raise typer.Exit(code=1) from exc

    total = len(runner.prompts)
    if not total:
        console.print("[yellow]No prompts in queue; nothing to do.[/yellow]")
        return

    images = runner.images
    target_dir = output_dir or settings.output_dir
    # runner.images is most-recent-first; write files in dispatch order
    paths = save_images(reversed(images), target_dir)
    failed = runner.state.cursor - len(images)
    summary = f"Generated {len(images)}/{total} images → {target_dir}"
    if failed:
        summary += f" ([yellow]{failed} failed[/yellow])"
    console.print(summary)
    for path in paths:
        logger.debug("Wrote %s", path)


async def _generate_metadata(
    client: GenerationClient, image_data: Optional[str], description: Optional[str]
):
    try:
        return await client.generate_metadata(image_data, description)
    finally:
        await client.aclose()


@app.command("metadata")
def metadata_command(
    image: Optional[Path] = typer.Option(
        None, "--image", "-i", exists=True, dir_okay=False, help="Image to analyse."
    ),
    description: Optional[str] = typer.Option(
        None, "--description", "-d", help="Describe the image instead of uploading it."
    ),
    as_json: bool = typer.Option(
        False, "--json", help="Print JSON instead of a table."
    ),
) -> None:
    """Generate an Adobe Stock title, 30 keywords and a category."""

    if not image and not (description and description.strip()):
        console.print("[red]Provide --image or --description.[/red]")
        raise typer.Exit(code=1)

    settings = load_config()
    client = _open_client(settings)
    try:
        image_data = load_image_as_png_base64(image) if image else None
        result = asyncio.run(_generate_metadata(client, image_data, description))
    except (GenerationError, ValueError) as exc:
        console.print(f"[red]Metadata generation failed:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    if as_json:
        typer.echo(metadata_to_json(result))
        return

    table = Table(show_header=False)
    table.add_row("Title", result.title)
    table.add_row("Category", result.category)
    table.add_row(f"Keywords ({len(result.keywords)})", result.keywords_text())
    console.print(table)


@app.command("gui")
def gui_command(
    port: int = typer.Option(8501, "--port", help="Port for the Streamlit server."),
) -> None:
    """Launch the browser UI."""

    app_path = Path(__file__).resolve().parents[3] / "gui" / "app.py"
    command = [
        sys.executable,
        "-m",
        "streamlit",
        "run",
        str(app_path),
        "--server.port",
        str(port),
    ]
    logger.info("Launching GUI: %s", " ".join(command))
    raise typer.Exit(code=subprocess.call(command))


def main() -> None:  # pragma: no cover - console entry point
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
