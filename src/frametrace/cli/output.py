"""Rich console output helpers for the CLI.

Status, progress and summaries go to stderr so stdout carries only the
JSON result.
"""

from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table
from rich.text import Text

from frametrace.domain import ItemResult
from frametrace.io.fonts import FontRegistry

console = Console(stderr=True)

# Unicode symbols for consistent visual language
SYM_STEP = "▸"  # Step indicator
SYM_OK = "✓"  # Success
SYM_ERR = "✗"  # Error
SYM_DOT = "·"  # Separator/secondary info


def create_progress() -> Progress:
    """Create a rich progress bar for multi-item runs.

    Returns:
        Configured Progress instance with bar and time elapsed.
    """
    return Progress(
        TextColumn("  "),
        BarColumn(bar_width=40, complete_style="green", finished_style="green"),
        TaskProgressColumn(),
        TimeElapsedColumn(),
        console=console,
        transient=False,
    )


def print_header(version: str) -> None:
    console.print(f"\n[bold]FrameTrace[/bold] v{version}")
    console.print("─" * 44)


def print_step(message: str) -> None:
    """Print a processing step indicator."""
    console.print(f"\n{SYM_STEP} {message}")


def print_input_info(label: str, size_bytes: int, kind: str) -> None:
    """Print one input line.

    Args:
        label: File name or text being converted
        size_bytes: Input size
        kind: Job kind
    """
    # Use Text to safely handle names with markup characters
    line = Text("  ")
    line.append(label)
    line.append(f" ({format_size(size_bytes)}) {SYM_DOT} {kind}")
    console.print(line)


def format_time(seconds: float) -> str:
    """Format seconds into human-readable time string."""
    if seconds < 1:
        return f"{seconds * 1000:.0f}ms"
    elif seconds < 60:
        return f"{seconds:.1f}s"
    else:
        mins = int(seconds // 60)
        secs = seconds % 60
        return f"{mins}m {secs:.1f}s"


def format_size(size_bytes: int) -> str:
    """Format a byte count (e.g. "428 KB")."""
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.0f} KB"
    else:
        return f"{size_bytes / (1024 * 1024):.1f} MB"


def print_success(
    total_time_s: float,
    items: int,
    paths: int,
    errors: int = 0,
    output_path: str | None = None,
) -> None:
    """Print success message with summary.

    Args:
        total_time_s: Wall time in seconds
        items: Number of results produced
        paths: Total path records across results
        errors: Number of failed items
        output_path: File the JSON was written to (None = stdout)
    """
    time_str = format_time(total_time_s)
    console.print(f"\n[bold green]{SYM_OK} Complete[/bold green] in {time_str}")

    if output_path is not None:
        line = Text("  ")
        line.append(output_path, style="bold")
        console.print(line)

    error_style = "red" if errors > 0 else "green"
    plural = "item" if items == 1 else "items"
    console.print(
        f"  {items} {plural} {SYM_DOT} {paths} paths {SYM_DOT} "
        f"[{error_style}]{errors} errors[/{error_style}]"
    )


def print_item_errors(results: list[ItemResult]) -> None:
    """List failed items with their messages."""
    for item in results:
        if item.error is not None:
            line = Text(f"  {SYM_ERR} ", style="red")
            line.append(item.name, style="bold")
            line.append(f": {item.error.message}")
            console.print(line)


def print_fonts(fonts: FontRegistry) -> None:
    """Print the font registry as a table."""
    table = Table(show_header=True, header_style="bold")
    table.add_column("Key")
    table.add_column("Label")
    table.add_column("Weight", justify="right")
    table.add_column("File")

    for key in fonts.keys():
        spec = fonts.spec(key)
        path = fonts.path(key)
        table.add_row(
            key,
            spec.label,
            str(spec.weight),
            str(path) if path is not None else "[dim](bundled default)[/dim]",
        )

    console.print(table)


def print_error(message: str, details: str | None = None) -> None:
    """Print error message.

    Args:
        message: Main error message
        details: Optional detailed error information
    """
    console.print(f"\n[bold red]{SYM_ERR} Error:[/bold red] {message}")
    if details:
        console.print(f"  {details}")


def print_cancellation_notice() -> None:
    console.print(f"\n{SYM_DOT} [bold]Cancelled[/bold]")
    console.print("  No output written")
