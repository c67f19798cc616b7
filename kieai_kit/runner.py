"""CLI for the KIE.ai client.

Usage:
    python -m kieai_kit.runner models --kind video
    python -m kieai_kit.runner image "A cat on Mars" --model gpt-image/1.5-text-to-image --width 1920 --height 1080
    python -m kieai_kit.runner edit "Make it night" --image-url https://... --model google/nano-banana-edit
    python -m kieai_kit.runner video "Waves at sunset" --model kling-2.6/text-to-video --duration 5
    python -m kieai_kit.runner audio "Calm piano" --model <audio-model> --duration 30
    python -m kieai_kit.runner status <task_id>
    python -m kieai_kit.runner upload ./photo.png
"""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path
from typing import Any, Awaitable, Callable

import click
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from kieai_kit.catalog import list_models
from kieai_kit.client import KieClient
from kieai_kit.config import resolve_config
from kieai_kit.errors import KieApiError
from kieai_kit.models import (
    AudioGenerationRequest,
    GenerationResult,
    ImageEditRequest,
    ImageGenerationRequest,
    MediaKind,
    VideoGenerationRequest,
)

console = Console()


def _setup_logging(verbose: bool) -> None:
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    # Quiet down httpx unless debugging
    if not verbose:
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)


def _make_client(ctx: click.Context) -> KieClient:
    config = resolve_config(ctx.obj["config"])
    return KieClient.from_config(config, console=console if ctx.obj["echo"] else None)


def _run(coro_factory: Callable[[], Awaitable[Any]]) -> Any:
    """Run a coroutine and turn the usual failures into exit codes."""
    try:
        return asyncio.run(coro_factory())
    except FileNotFoundError as exc:
        console.print(f"[red]Error: {exc}[/red]")
        sys.exit(1)
    except ValueError as exc:
        console.print(f"[red]Invalid value: {exc}[/red]")
        sys.exit(1)
    except KieApiError as exc:
        console.print(f"[red]{exc}[/red]")
        sys.exit(1)
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted.[/yellow]")
        sys.exit(130)


def _print_result(result: GenerationResult) -> None:
    table = Table(title="Result", show_lines=True)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Task ID", result.task_id)
    table.add_row("Model", result.model)
    table.add_row("URL", result.primary_url or "")
    duration = getattr(result, "duration", None)
    if duration is not None:
        table.add_row("Duration", f"{duration:g}s")
    console.print(table)


async def _generate(
    ctx: click.Context,
    model: str,
    request: Any,
    output: str | None,
) -> GenerationResult:
    async with _make_client(ctx) as client:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            transient=True,
        ) as progress:
            progress.add_task(f"Generating with {model}...", total=None)
            result = await client.generate(model, request)
        if output and result.primary_url:
            await client.download_file(result.primary_url, output)
            console.print(f"[green]Saved to {output}[/green]")
    return result


@click.group()
@click.option("--config", "-c", default=None, help="Path to config.yaml (falls back to KIE_AI_API_KEY)")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.option("--echo", is_flag=True, help="Print request bodies")
@click.pass_context
def cli(ctx: click.Context, config: str | None, verbose: bool, echo: bool) -> None:
    """KIE.ai image, video and audio generation."""
    ctx.ensure_object(dict)
    ctx.obj["config"] = config
    ctx.obj["echo"] = echo
    _setup_logging(verbose)


@cli.command("models")
@click.option("--kind", type=click.Choice([k.value for k in MediaKind]), default=None, help="Filter by media kind")
def cmd_models(kind: str | None) -> None:
    """List the known models."""
    table = Table(title="Models", show_lines=False)
    table.add_column("Model ID", style="cyan")
    table.add_column("Name")
    table.add_column("Kind", justify="center")
    table.add_column("Mode", justify="center")
    for descriptor in list_models(kind):
        table.add_row(descriptor.wire_id, descriptor.display_name, descriptor.kind.value, descriptor.execution_mode.value)
    console.print(table)


@cli.command("image")
@click.argument("prompt")
@click.option("--model", "-m", default="gpt-image/1.5-text-to-image", show_default=True)
@click.option("--width", type=int, default=None)
@click.option("--height", type=int, default=None)
@click.option("--negative-prompt", default=None)
@click.option("--seed", type=int, default=None)
@click.option("--count", type=int, default=None)
@click.option("--output", "-o", default=None, help="Download the result to this path")
@click.pass_context
def cmd_image(
    ctx: click.Context,
    prompt: str,
    model: str,
    width: int | None,
    height: int | None,
    negative_prompt: str | None,
    seed: int | None,
    count: int | None,
    output: str | None,
) -> None:
    """Generate an image."""
    def factory() -> Awaitable[GenerationResult]:
        request = ImageGenerationRequest(
            prompt=prompt,
            negative_prompt=negative_prompt,
            count=count,
            width=width,
            height=height,
            seed=seed,
        )
        return _generate(ctx, model, request, output)

    _print_result(_run(factory))


@cli.command("edit")
@click.argument("prompt")
@click.option("--image-url", "image_urls", multiple=True, required=True, help="Source image URL (repeatable)")
@click.option("--model", "-m", default="google/nano-banana-edit", show_default=True)
@click.option("--output-format", default=None)
@click.option("--image-size", default=None)
@click.option("--output", "-o", default=None, help="Download the result to this path")
@click.pass_context
def cmd_edit(
    ctx: click.Context,
    prompt: str,
    image_urls: tuple[str, ...],
    model: str,
    output_format: str | None,
    image_size: str | None,
    output: str | None,
) -> None:
    """Edit one or more images."""
    def factory() -> Awaitable[GenerationResult]:
        request = ImageEditRequest(
            prompt=prompt,
            image_urls=image_urls,
            output_format=output_format,
            image_size=image_size,
        )
        return _generate(ctx, model, request, output)

    _print_result(_run(factory))


@cli.command("video")
@click.argument("prompt")
@click.option("--model", "-m", default="kling-2.6/text-to-video", show_default=True)
@click.option("--duration", type=int, default=5, show_default=True)
@click.option("--aspect-ratio", default=None, help="e.g. 16:9")
@click.option("--image-url", default=None, help="First frame for image-to-video")
@click.option("--output", "-o", default=None, help="Download the result to this path")
@click.pass_context
def cmd_video(
    ctx: click.Context,
    prompt: str,
    model: str,
    duration: int,
    aspect_ratio: str | None,
    image_url: str | None,
    output: str | None,
) -> None:
    """Generate a video."""
    def factory() -> Awaitable[GenerationResult]:
        request = VideoGenerationRequest(
            prompt=prompt,
            duration=duration,
            aspect_ratio=aspect_ratio,
            init_image_url=image_url,
        )
        return _generate(ctx, model, request, output)

    _print_result(_run(factory))


@cli.command("audio")
@click.argument("prompt")
@click.option("--model", "-m", required=True)
@click.option("--duration", type=float, default=30.0, show_default=True)
@click.option("--audio-type", type=click.Choice(["music", "speech", "sound_effect", "ambient"]), default="music")
@click.option("--output", "-o", default=None, help="Download the result to this path")
@click.pass_context
def cmd_audio(
    ctx: click.Context,
    prompt: str,
    model: str,
    duration: float,
    audio_type: str,
    output: str | None,
) -> None:
    """Generate audio."""
    def factory() -> Awaitable[GenerationResult]:
        request = AudioGenerationRequest(prompt=prompt, duration=duration, audio_type=audio_type)
        return _generate(ctx, model, request, output)

    _print_result(_run(factory))


@cli.command("status")
@click.argument("task_id")
@click.pass_context
def cmd_status(ctx: click.Context, task_id: str) -> None:
    """Show the current status of a task."""
    async def fetch():
        async with _make_client(ctx) as client:
            return await client.get_task(task_id)

    task = _run(fetch)

    if task.status.is_success:
        status_str = "[green]SUCCESS[/green]"
    elif task.status.is_terminal:
        status_str = f"[red]{task.status.value.upper()}[/red]"
    else:
        status_str = f"[yellow]{task.status.value.upper()}[/yellow]"

    table = Table(title=f"Task {task.task_id}", show_lines=True)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Status", status_str)
    table.add_row("Model", task.model or "")
    table.add_row("Progress", "" if task.progress is None else f"{task.progress}%")
    if task.error_message:
        table.add_row("Error", task.error_message)
    if task.result_url:
        table.add_row("Result", task.result_url)
    console.print(table)


@cli.command("upload")
@click.argument("source")
@click.option("--upload-path", default="uploads", show_default=True)
@click.pass_context
def cmd_upload(ctx: click.Context, source: str, upload_path: str) -> None:
    """Upload a local file or a remote URL to the KIE.ai file host."""
    async def upload():
        async with _make_client(ctx) as client:
            if source.startswith(("http://", "https://")):
                return await client.uploads.upload_from_url(source, upload_path=upload_path)
            return await client.uploads.upload_file(Path(source), upload_path=upload_path)

    uploaded = _run(upload)
    console.print(f"[green]Uploaded:[/green] {uploaded.file_url}")
    if uploaded.expires_at:
        console.print(f"  Expires: {uploaded.expires_at.isoformat()}")


def main() -> None:
    """Entry point."""
    cli()


if __name__ == "__main__":
    main()
