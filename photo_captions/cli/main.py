"""
Command-line interface for batch captioning
"""

import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

import click
from rich import box
from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn, TimeRemainingColumn
from rich.table import Table

from .. import __version__
from ..core.config import Config, ConfigError, OUTPUT_FORMATS
from ..core.image_processor import ImageProcessor, OutputRecord
from ..core.image_utils import read_url_list

# Initialize Rich console
console = Console()


def process_images(processor: ImageProcessor, input_path: str, output_path: Path,
                   output_format: str) -> List[OutputRecord]:
    """Run a batch with a progress bar and return the written records."""
    total = len(read_url_list(input_path))
    console.print(f"Processing {total} images...")

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        TimeRemainingColumn(),
        console=console,
    ) as progress:
        task = progress.add_task("Analyzing", total=total)

        def advance(index: int, record: OutputRecord) -> None:
            progress.update(task, advance=1, description=f"Analyzing {record['file']}")

        processor.progress_callback = advance
        return asyncio.run(processor.run(input_path, output_path, output_format))


def print_results(results: List[OutputRecord]) -> None:
    """Pretty print results in the terminal."""
    table = Table(
        title="📊 Caption Results",
        box=box.ROUNDED,
        show_header=True,
        header_style="bold magenta",
        show_lines=True,
    )
    table.add_column("📁 File", style="cyan", no_wrap=True)
    table.add_column("🏷️ Category", style="yellow")
    table.add_column("📝 Footer", style="green", max_width=60, overflow="fold")
    table.add_column("📷 Camera", style="blue")

    for result in results:
        table.add_row(
            result.get('file', ''),
            result.get('category', ''),
            result.get('footer_en') or result.get('footer', ''),
            result.get('camera', ''),
        )

    console.print("\n")
    console.print(table, justify="center")
    console.print("\n")


@click.group()
def cli():
    """Photo Captions CLI for captioning remote images in bulk."""
    config = Config()
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )


@cli.command()
@click.argument('input_file', required=False, type=click.Path())
@click.option('--output-format', '-f', type=click.Choice(OUTPUT_FORMATS), default=None,
              help='Output format for results (json or csv)')
@click.option('--output', '-o', 'output_file', type=click.Path(), default=None,
              help='Output file path')
@click.option('--concurrency', '-c', type=int, default=None,
              help='Maximum number of images processed at once')
@click.option('--model', '-m', default=None, help='Gemini model to use')
@click.option('--verboseoff', is_flag=True, help='Disable the results table (verbose is on by default)')
def run(input_file: Optional[str], output_format: Optional[str], output_file: Optional[str],
        concurrency: Optional[int], model: Optional[str], verboseoff: bool):
    """Caption every image URL listed in INPUT_FILE (default: urls.txt)."""
    config = Config()
    try:
        api_key = config.require_api_key()
    except ConfigError as e:
        click.echo(f"Error: {str(e)}", err=True)
        sys.exit(1)

    input_path = input_file or config.input_file
    output_format = output_format or config.output_format
    if output_format not in OUTPUT_FORMATS:
        click.echo(f"Error: Unsupported output format: {output_format}", err=True)
        sys.exit(1)
    output_path = Path(output_file) if output_file else config.get_output_path(output_format)
    verbose = not verboseoff and config.verbose_output

    try:
        processor = ImageProcessor(
            api_key=api_key,
            config=config,
            model=model,
            concurrency=concurrency,
        )
        results = process_images(processor, input_path, output_path, output_format)
    except Exception as e:
        click.echo(f"Error: {str(e)}", err=True)
        sys.exit(1)

    click.echo(f"Results saved to {output_path}")
    stats = processor.stats
    click.echo(
        f"{stats['processed']} images in {stats['elapsed']:.1f}s, "
        f"{stats['analysis_failed']} without analysis, {stats['metadata_missing']} without metadata"
    )

    if verbose:
        print_results(results)


@cli.command()
def version():
    """Show version information"""
    click.echo(f"Photo Captions v{__version__}")


if __name__ == '__main__':
    cli()
