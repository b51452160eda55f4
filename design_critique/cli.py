"""
Command-Line Interface

CLI using rich for colored output and formatted results. Compresses
designs for a provider, checks payloads against the size ceiling, and runs
full critiques.
"""

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from . import __version__
from .analyzer import DesignAnalyzer
from .config import load_config
from .errors import ImagePipelineError
from .models import DEFAULT_SETTINGS, MAX_PAYLOAD_BYTES, MIB, CompressionAttempt, merge_settings
from .preparation import prepare_image
from .providers import ANTHROPIC_PROFILE, OPENAI_PROFILE, get_provider
from .storage import LocalObjectStore
from .validation import verify_locator


console = Console()
err_console = Console(stderr=True)

PROFILES = {
    "default": DEFAULT_SETTINGS,
    "anthropic": ANTHROPIC_PROFILE,
    "openai": OPENAI_PROFILE,
}


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True
    )


def _fail(message: str, code: int = 1):
    console.print(f"[red]❌ {message}[/red]")
    sys.exit(code)


@click.group()
@click.option('--verbose', '-v', is_flag=True, help='Show every compression attempt')
@click.option(
    '--env-file',
    default=None,
    type=click.Path(exists=True),
    help='Path to .env file (defaults to ./.env)'
)
@click.version_option(version=__version__)
@click.pass_context
def main(ctx: click.Context, verbose: bool, env_file: Optional[str]):
    """
    Design Critique - compress designs and get vision AI feedback.

    Examples:

      # Compress a design for Claude
      design-critique compress mockup.png -o mockup.jpg

      # Check a payload against the 5MB ceiling
      design-critique check https://example.com/mockup.jpg

      # Full critique, JSON output for tooling
      design-critique analyze mockup.png --output json
    """
    try:
        config = load_config(Path(env_file) if env_file else None)
    except ValueError as e:
        _fail(f"Invalid configuration: {e}")
    _setup_logging("DEBUG" if verbose else config.log_level)
    ctx.obj = config


@main.command()
@click.argument('image', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option('--output-file', '-o', type=click.Path(dir_okay=False, path_type=Path),
              help='Where to write the payload (default: <image>_compressed.<ext>)')
@click.option('--provider', default='default',
              type=click.Choice(list(PROFILES), case_sensitive=False),
              help='Compression profile to start from')
@click.option('--max-width', type=click.IntRange(min=1), help='Maximum output width')
@click.option('--max-height', type=click.IntRange(min=1), help='Maximum output height')
@click.option('--quality', type=click.FloatRange(0, 1, min_open=True), help='Starting quality (0-1)')
@click.option('--max-size', type=click.FloatRange(0, min_open=True), help='Size ceiling in MB')
@click.option('--force-opaque/--keep-format', default=None,
              help='Flatten transparency and always emit JPEG')
@click.option('--output', default='rich', type=click.Choice(['rich', 'json'], case_sensitive=False),
              help='Output format: rich (colored terminal) or json')
@click.pass_obj
def compress(config, image: Path, output_file: Optional[Path], provider: str,
             max_width: Optional[int], max_height: Optional[int], quality: Optional[float],
             max_size: Optional[float], force_opaque: Optional[bool], output: str):
    """Compress IMAGE under the size ceiling."""
    try:
        settings = merge_settings(
            PROFILES[provider.lower()],
            max_width=max_width,
            max_height=max_height,
            quality=quality,
            max_size_bytes=max(1, int(max_size * MIB)) if max_size else None,
            force_opaque_format=force_opaque
        )
    except ValueError as e:
        _fail(f"Invalid compression settings: {e}")

    attempts: list[CompressionAttempt] = []
    try:
        prepared = prepare_image(
            image,
            settings,
            max_input_bytes=config.max_input_bytes,
            on_attempt=attempts.append
        )
    except ImagePipelineError as e:
        _fail(str(e))

    payload = prepared.payload
    extension = ".jpg" if payload.mime == "image/jpeg" else ".png"
    target = output_file or image.with_name(f"{image.stem}_compressed{extension}")
    target.write_bytes(payload.data)

    if output == 'json':
        print(json.dumps({
            "output": str(target),
            "mime": payload.mime,
            "size": payload.size,
            "width": payload.width,
            "height": payload.height,
            "quality": payload.quality,
            "attempts": [a.model_dump() for a in attempts]
        }, indent=2))
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Attempt", justify="right")
    table.add_column("Dimensions")
    table.add_column("Quality", justify="right")
    table.add_column("Size", justify="right")
    for a in attempts:
        size = f"{a.size / 1024:.0f}KB" if a.size is not None else "[red]failed[/red]"
        label = f"{a.number}{' (emergency)' if a.emergency else ''}"
        table.add_row(label, f"{a.width}x{a.height}", f"{a.quality:.2f}", size)

    console.print(table)
    console.print(f"[green]✓ {target}[/green] ({payload.mime}, {payload.size / 1024:.0f}KB)")


@main.command()
@click.argument('locator')
@click.option('--limit', default=MAX_PAYLOAD_BYTES / MIB, show_default=True,
              type=click.FloatRange(0, min_open=True), help='Size ceiling in MB')
@click.pass_obj
def check(config, locator: str, limit: float):
    """Verify LOCATOR (path, data: or http(s) URL) is a deliverable payload."""
    try:
        size = verify_locator(locator, max_size_bytes=int(limit * MIB), timeout=config.fetch_timeout)
    except ImagePipelineError as e:
        _fail(str(e))
    console.print(f"[green]✓ OK[/green] {size / MIB:.2f}MB (limit {limit:.2f}MB)")


@main.command()
@click.argument('image', required=False, type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option('--url', default=None, help='Critique a screenshot of this page instead of IMAGE')
@click.option('--wait-for', default=None, help='CSS selector to wait for before capture')
@click.option(
    '--provider',
    default=None,
    type=click.Choice(['anthropic', 'openai'], case_sensitive=False),
    help='Vision provider to use. Defaults to VISION_PROVIDER from .env'
)
@click.option('--upload-dir', default=None, type=click.Path(file_okay=False, path_type=Path),
              help='Store the payload here and send its locator')
@click.option('--output', default='rich', type=click.Choice(['rich', 'json'], case_sensitive=False),
              help='Output format: rich (colored terminal) or json (for agents)')
@click.pass_obj
def analyze(config, image: Optional[Path], url: Optional[str], wait_for: Optional[str],
            provider: Optional[str], upload_dir: Optional[Path], output: str):
    """Critique IMAGE (or a page given with --url) with a vision model."""
    if (image is None) == (url is None):
        _fail("Give either an IMAGE or --url")

    provider_name = (provider or config.vision_provider).lower()
    try:
        vision = get_provider(provider_name, config)
    except ValueError as e:
        _fail(str(e))

    if not vision.is_available():
        _fail(f"Provider '{provider_name}' is not available")

    upload_root = upload_dir or config.upload_dir
    store = LocalObjectStore(upload_root) if upload_root else None
    analyzer = DesignAnalyzer(vision, config, store=store)

    try:
        result = asyncio.run(_run_analysis(analyzer, image, url, wait_for))
    except KeyboardInterrupt:
        console.print("\n[yellow]⚠️  Interrupted by user[/yellow]")
        sys.exit(130)
    except ImagePipelineError as e:
        _fail(str(e))

    if output == 'json':
        print(result.model_dump_json(indent=2))
    else:
        _output_rich(result)


async def _run_analysis(analyzer: DesignAnalyzer, image: Optional[Path], url: Optional[str],
                        wait_for: Optional[str]):
    """Run the critique workflow with a progress spinner"""
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=err_console,
        transient=True
    ) as progress:
        task = progress.add_task("[cyan]Analyzing design with vision model...", total=None)
        if url:
            result = await analyzer.analyze_url(url, wait_for=wait_for)
        else:
            result = await analyzer.analyze(image, {"project_name": image.name})
        progress.update(task, description="[green]✓ Analysis complete", completed=True)
    return result


def _output_rich(result):
    """Output result in rich formatted terminal output"""
    console.print()
    console.print(Panel.fit(
        f"[bold]Design Critique[/bold]\n"
        f"Provider: {result.provider} · payload {result.payload_size / 1024:.0f}KB",
        border_style="cyan"
    ))

    if result.strengths:
        console.print(f"\n[bold]✅ Strengths ({len(result.strengths)})[/bold]")
        for item in result.strengths:
            console.print(f"  {item.id}. [green]{item.title}[/green]: {item.description}")

    if result.improvements:
        console.print(f"\n[bold]🔍 Issues ({len(result.improvements)})[/bold]")
        colors = {"high": "red", "medium": "yellow", "low": "green"}
        for priority in ("high", "medium", "low"):
            for item in (i for i in result.improvements if i.priority == priority):
                console.print(f"  {item.id}. [{colors[priority]}]\\[{priority}][/] {item.title}")
                console.print(f"     💡 {item.description}")
    else:
        console.print("\n[bold green]✓ No issues found![/bold green]")

    if result.overall_feedback:
        console.print(f"\n[bold]Overall[/bold]\n  {result.overall_feedback}")
    console.print()


if __name__ == "__main__":
    main()
