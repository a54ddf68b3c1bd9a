import logging
import os
import sys
import time
from contextlib import ExitStack
from typing import BinaryIO, Optional

import typer
from rich.console import Console
from rich.progress import BarColumn, DownloadColumn, Progress, TextColumn, TimeRemainingColumn
from rich.table import Table

from ol_dump_parser.config.enums import EditionPolicy, Framing
from ol_dump_parser.config.type_registry import TYPE_POLICIES
from ol_dump_parser.logging_config import setup_logging
from ol_dump_parser.core.exceptions import CorruptStreamError, DumpParserError, FileIngestionError, OutputGenerationError
from ol_dump_parser.core.ingestion import DecompressionReader, open_dump, resolve_framing
from ol_dump_parser.core.pipeline import DEFAULT_BATCH_SIZE, run_pipeline
from ol_dump_parser.schemas.summary import PipelineSummary
from ol_dump_parser.utils.config_validator import validate_configurations


app = typer.Typer(
    help="Streams an Open Library style dump into author and book ndjson.",
    context_settings={"help_option_names": ["-h", "--help"]},
    add_completion=False
)
logger = logging.getLogger(__name__)
# stdout may carry the ndjson output, so everything for humans goes to stderr.
stderr_console = Console(stderr=True)


def _open_input(input_path: str, framing: Framing, show_progress: bool, stack: ExitStack) -> DecompressionReader:
    """Opens the dump, wrapping the compressed file in a rich progress bar when requested."""
    if input_path == "-" or not show_progress:
        return stack.enter_context(open_dump(input_path, framing))

    try:
        raw = open(input_path, "rb")
    except OSError as e:
        raise FileIngestionError(f"Failed to open dump file {input_path}: {e}") from e
    progress = stack.enter_context(Progress(
        TextColumn("[cyan]{task.description}"),
        BarColumn(),
        DownloadColumn(),
        TimeRemainingColumn(),
        console=stderr_console,
        transient=True,
    ))
    tracked = progress.wrap_file(raw, total=os.path.getsize(input_path), description="Reading dump")
    return stack.enter_context(DecompressionReader(tracked, resolve_framing(input_path, framing)))


def _open_output(output_path: str, stack: ExitStack) -> BinaryIO:
    if output_path == "-":
        return sys.stdout.buffer
    try:
        return stack.enter_context(open(output_path, "wb"))
    except OSError as e:
        raise OutputGenerationError(f"Failed to open output file {output_path}: {e}") from e


def _render_summary(summary: PipelineSummary) -> None:
    table = Table(title="Extraction summary" + (" (aborted)" if summary.aborted else ""))
    table.add_column("Counter")
    table.add_column("Count", justify="right")
    table.add_row("lines read", str(summary.lines_read))
    for kind, count in summary.emitted.items():
        table.add_row(f"emitted {kind.value}", str(count))
    for reason, count in summary.skipped.items():
        table.add_row(f"skipped {reason.value}", str(count))
    stderr_console.print(table)


@app.command()
def run(
    input_path: str = typer.Argument(..., help="Dump file (.txt or .txt.gz), or '-' for stdin."),
    output_path: str = typer.Option("-", "--output", "-o", help="ndjson output file, or '-' for stdout."),
    edition_policy: EditionPolicy = typer.Option(
        EditionPolicy.SKIP, "--edition-policy", "-e",
        help="'skip' drops edition records; 'book' emits them as books.",
        case_sensitive=False,
    ),
    framing: Framing = typer.Option(Framing.AUTO, "--framing", help="Compression framing of the input.", case_sensitive=False),
    workers: int = typer.Option(
        1, "--workers", "-w", min=1,
        help="Worker processes for decoding and normalization. 1 runs single-threaded and keeps input order."
    ),
    batch_size: int = typer.Option(DEFAULT_BATCH_SIZE, "--batch-size", min=1, help="Lines per worker batch (parallel mode only)."),
    log_level: str = typer.Option("INFO", help="Logging level (DEBUG, INFO, WARNING, ERROR)."),
    show_progress: bool = typer.Option(True, "--progress/--no-progress", help="Show a progress bar on stderr when reading a file."),
):
    """
    Extracts author and book records from a dump as newline-delimited JSON.
    """
    total_start_time = time.perf_counter()
    setup_logging(log_level)

    summary: Optional[PipelineSummary] = None
    try:
        validate_configurations()
        with ExitStack() as stack:
            reader = _open_input(input_path, framing, show_progress, stack)
            sink = _open_output(output_path, stack)
            summary = run_pipeline(
                reader, sink,
                edition_policy=edition_policy,
                workers=workers,
                batch_size=batch_size,
            )
    except CorruptStreamError as e:
        logger.critical(f"The input dump is corrupt, extraction aborted: {e}", exc_info=False)
        if e.summary is not None:
            _render_summary(e.summary)
        raise typer.Exit(code=1)
    except DumpParserError as e:
        logger.critical(f"A fatal parser error occurred: {e}", exc_info=False)
        raise typer.Exit(code=1)
    except Exception as e:
        logger.critical(f"An unexpected fatal error occurred: {e}", exc_info=True)
        raise typer.Exit(code=1)

    _render_summary(summary)
    total_time = time.perf_counter() - total_start_time
    logger.info(f"--- Extraction finished successfully in {total_time:.2f} seconds ---")


@app.command(name="list-types")
def cli_list_types():
    """Lists the record types that are extracted and the edition policies enabling them."""
    typer.echo("Extracted record types (all other types are skipped):")
    for type_key, policies in TYPE_POLICIES.items():
        typer.echo(f"  - {type_key.value:<15} policies: {', '.join(p.value for p in policies)}")


if __name__ == "__main__":
    app()
