"""CLI application entry point for frametrace.

This module provides the main CLI interface using Typer.
"""

import json
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated, Any

import typer

from frametrace import __version__
from frametrace.cli.output import (
    console,
    create_progress,
    print_cancellation_notice,
    print_error,
    print_fonts,
    print_header,
    print_input_info,
    print_item_errors,
    print_step,
    print_success,
)
from frametrace.config import FrameTraceSettings, LoggingConfig, ProcessingConfig
from frametrace.core import FrameProcessor
from frametrace.domain import ConversionResult, DecompositionMode, ItemResult, JobKind, TextMode
from frametrace.exceptions import FrameTraceError
from frametrace.utils import configure_logging

# Create the Typer app
app = typer.Typer(
    name="frametrace",
    help="Convert images, shapes and text into vector path frames.",
    add_completion=False,
    no_args_is_help=True,
)

IMAGE_KINDS = (JobKind.VECTORIZE, JobKind.SMART_CROP, JobKind.REMOVE_BACKGROUND)


@dataclass
class CliState:
    settings: FrameTraceSettings
    quiet: bool = False


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold blue]FrameTrace[/bold blue] v{__version__}")
        raise typer.Exit()


@app.callback()
def main_options(
    ctx: typer.Context,
    workers: Annotated[
        int,
        typer.Option(
            "--workers",
            "-j",
            help="Worker processes for batch and per-character items (1 = sequential)",
            min=1,
        ),
    ] = 1,
    timeout: Annotated[
        float | None,
        typer.Option(
            "--timeout",
            help="Per-item time limit in seconds (items then run in worker processes)",
            min=0.001,
        ),
    ] = None,
    log_file: Annotated[
        Path | None,
        typer.Option(
            "--log-file",
            help="Write detailed logs to file",
        ),
    ] = None,
    log_level: Annotated[
        str,
        typer.Option(
            "--log-level",
            help="Logging level (DEBUG|INFO|WARNING|ERROR)",
        ),
    ] = "WARNING",
    log_format: Annotated[
        str,
        typer.Option(
            "--log-format",
            help="Log line format (json|plain)",
        ),
    ] = "json",
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Minimal console output",
        ),
    ] = False,
    _version: Annotated[  # noqa: ARG001
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """Convert images, shapes and text into vector path frames."""
    settings = FrameTraceSettings(
        processing=ProcessingConfig(max_workers=workers, item_timeout_seconds=timeout),
        logging=LoggingConfig(
            log_file=log_file,
            log_level=log_level,
            json_format=log_format.lower() != "plain",
        ),
    )
    configure_logging(
        log_file=settings.logging.log_file,
        console_level=settings.logging.log_level,
        file_level=settings.logging.file_log_level,
        quiet=quiet,
        json_format=settings.logging.json_format,
    )
    ctx.obj = CliState(settings=settings, quiet=quiet)


def _read_input(path: Path) -> bytes:
    if not path.exists():
        print_error(
            f"Input file not found: {path}",
            details=f"The file '{path}' does not exist or is not accessible.",
        )
        raise typer.Exit(code=1)
    if not path.is_file():
        print_error(f"Input path is not a file: {path}")
        raise typer.Exit(code=1)
    return path.read_bytes()


def _emit(payload: dict[str, Any], output: Path | None) -> None:
    """Write the JSON result to a file or stdout."""
    text = json.dumps(payload, indent=2, ensure_ascii=False)
    if output is None:
        typer.echo(text)
    else:
        output.write_text(text + "\n", encoding="utf-8")


def _run_single(
    state: CliState,
    label: str,
    size: int,
    kind: JobKind,
    output: Path | None,
    convert: Callable[[], ConversionResult],
) -> None:
    if not state.quiet:
        print_header(__version__)
        print_step("Converting")
        print_input_info(label, size, kind.value)

    start = time.time()
    try:
        result = convert()
    except FrameTraceError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from None

    _emit(result.to_dict(), output)
    if not state.quiet:
        print_success(
            total_time_s=time.time() - start,
            items=1,
            paths=len(result.paths),
            output_path=str(output) if output else None,
        )


def _run_items(
    state: CliState,
    total: int,
    key: str,
    output: Path | None,
    convert: Callable[..., list[ItemResult]],
) -> None:
    start = time.time()
    try:
        if state.quiet:
            results: list[ItemResult] = convert(None)
        else:
            print_step(f"Converting {total} items")
            with create_progress() as progress:
                task_id = progress.add_task(f"Converting {total} items", total=total)

                def update_progress(completed: int, *_: object) -> None:
                    progress.update(task_id, completed=completed)

                results = convert(update_progress)
    except FrameTraceError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from None
    except KeyboardInterrupt:
        if not state.quiet:
            print_cancellation_notice()
        raise typer.Exit(code=130) from None  # Standard Unix SIGINT exit code

    _emit({"results": [item.to_dict(key=key) for item in results]}, output)

    if not state.quiet:
        errors = sum(1 for item in results if not item.ok)
        print_success(
            total_time_s=time.time() - start,
            items=len(results),
            paths=sum(len(item.paths) for item in results),
            errors=errors,
            output_path=str(output) if output else None,
        )
        print_item_errors(results)


OutputOption = Annotated[
    Path | None,
    typer.Option("--output", "-o", help="Write JSON here instead of stdout"),
]


@app.command()
def image(
    ctx: typer.Context,
    input_file: Annotated[Path, typer.Argument(help="Image file", show_default=False)],
    kind: Annotated[
        str,
        typer.Option("--kind", "-k", help="vectorize|smart-crop|remove-bg"),
    ] = JobKind.VECTORIZE.value,
    mode: Annotated[
        str | None,
        typer.Option("--mode", "-m", help="flatten|compound (default: the kind's own)"),
    ] = None,
    output: OutputOption = None,
) -> None:
    """Vectorize an image into path records.

    Example:
        frametrace image logo.png --kind smart-crop -o logo.json
    """
    state: CliState = ctx.obj
    try:
        job_kind = JobKind(kind.lower())
        if job_kind not in IMAGE_KINDS:
            raise ValueError(kind)
        job_mode = DecompositionMode(mode.lower()) if mode else None
    except ValueError:
        print_error(
            f"Invalid kind or mode: {kind} / {mode}",
            details="Kinds: vectorize, smart-crop, remove-bg. Modes: flatten, compound",
        )
        raise typer.Exit(code=1) from None

    data = _read_input(input_file)
    processor = FrameProcessor(state.settings)
    _run_single(
        state,
        input_file.name,
        len(data),
        job_kind,
        output,
        lambda: processor.convert_image(data, kind=job_kind, mode=job_mode, name=input_file.name),
    )


@app.command()
def shape(
    ctx: typer.Context,
    input_file: Annotated[Path, typer.Argument(help="Shape image file", show_default=False)],
    output: OutputOption = None,
) -> None:
    """Convert a shape image into one auto-cropped compound frame."""
    state: CliState = ctx.obj
    data = _read_input(input_file)
    processor = FrameProcessor(state.settings)
    _run_single(
        state,
        input_file.name,
        len(data),
        JobKind.SHAPE,
        output,
        lambda: processor.convert_shape(data, name=input_file.name),
    )


@app.command()
def batch(
    ctx: typer.Context,
    input_files: Annotated[list[Path], typer.Argument(help="Image files", show_default=False)],
    kind: Annotated[
        str,
        typer.Option("--kind", "-k", help="vectorize|smart-crop|remove-bg"),
    ] = JobKind.VECTORIZE.value,
    output: OutputOption = None,
) -> None:
    """Vectorize several images; a failing file does not stop the others."""
    state: CliState = ctx.obj
    try:
        job_kind = JobKind(kind.lower())
        if job_kind not in IMAGE_KINDS:
            raise ValueError(kind)
    except ValueError:
        print_error(f"Invalid kind: {kind}", details="Kinds: vectorize, smart-crop, remove-bg")
        raise typer.Exit(code=1) from None

    items = [(path.name, _read_input(path)) for path in input_files]
    if not state.quiet:
        print_header(__version__)

    processor = FrameProcessor(state.settings)
    _run_items(
        state,
        len(items),
        "name",
        output,
        lambda callback: processor.convert_batch(
            items, kind=job_kind, progress_callback=callback
        ),
    )


@app.command()
def text(
    ctx: typer.Context,
    value: Annotated[str, typer.Argument(metavar="TEXT", help="Text to convert")],
    font: Annotated[
        str | None,
        typer.Option("--font", "-f", help="Font key (see `frametrace fonts`)"),
    ] = None,
    size: Annotated[
        int | None,
        typer.Option("--size", "-s", help="Font size in pixels"),
    ] = None,
    mode: Annotated[
        str,
        typer.Option("--mode", "-m", help="combined|individual"),
    ] = TextMode.COMBINED.value,
    output: OutputOption = None,
) -> None:
    """Convert text into one frame, or one frame per character."""
    state: CliState = ctx.obj
    try:
        text_mode = TextMode(mode.lower())
    except ValueError:
        print_error(f"Invalid mode: {mode}", details="Modes: combined, individual")
        raise typer.Exit(code=1) from None

    processor = FrameProcessor(state.settings)

    if text_mode is TextMode.COMBINED:
        _run_single(
            state,
            value,
            len(value.encode("utf-8")),
            JobKind.TEXT,
            output,
            lambda: processor.convert_text(value, font_size=size, font_key=font),
        )
        return

    if not state.quiet:
        print_header(__version__)

    _run_items(
        state,
        sum(1 for char in value if not char.isspace()),
        "letter",
        output,
        lambda callback: processor.convert_text(
            value,
            font_size=size,
            font_key=font,
            mode=TextMode.INDIVIDUAL,
            progress_callback=callback,
        ),
    )


@app.command()
def fonts(ctx: typer.Context) -> None:
    """List font keys and the files they resolve to."""
    state: CliState = ctx.obj
    processor = FrameProcessor(state.settings)
    if not state.quiet:
        print_step("Scanning fonts")
    print_fonts(processor.fonts)


@app.command()
def serve(
    ctx: typer.Context,
    host: Annotated[str | None, typer.Option("--host", help="Bind address")] = None,
    port: Annotated[
        int | None,
        typer.Option("--port", "-p", envvar="PORT", help="Bind port"),
    ] = None,
) -> None:
    """Run the HTTP service."""
    import uvicorn

    from frametrace.api import create_app

    state: CliState = ctx.obj
    server = state.settings.server
    bind_host = host or server.host
    bind_port = port or server.port

    if not state.quiet:
        print_header(__version__)
        print_step(f"Serving on http://{bind_host}:{bind_port}")

    uvicorn.run(
        create_app(FrameProcessor(state.settings)),
        host=bind_host,
        port=bind_port,
        log_level=state.settings.logging.log_level.lower(),
    )


def cli() -> None:
    """Entry point for the CLI application."""
    app()


def main() -> None:
    """Entry point for the CLI application (alias for cli)."""
    cli()


if __name__ == "__main__":
    cli()
