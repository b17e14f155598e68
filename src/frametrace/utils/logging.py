"""Logging utilities for frametrace."""

import logging
from dataclasses import dataclass, field
from pathlib import Path

import structlog


@dataclass
class ProcessingStats:
    """Statistics from a batch or per-character run."""

    processed_count: int = 0
    error_count: int = 0
    paths_emitted: int = 0
    errors: list[tuple[str, str]] = field(default_factory=list)
    item_timings_ms: list[float] = field(default_factory=list)
    start_time: float | None = None
    end_time: float | None = None

    @property
    def duration_seconds(self) -> float:
        """Calculate processing duration."""
        if self.start_time and self.end_time:
            return self.end_time - self.start_time
        return 0.0

    @property
    def avg_item_time_ms(self) -> float | None:
        if not self.item_timings_ms:
            return None
        return sum(self.item_timings_ms) / len(self.item_timings_ms)

    @property
    def min_item_time_ms(self) -> float | None:
        return min(self.item_timings_ms) if self.item_timings_ms else None

    @property
    def max_item_time_ms(self) -> float | None:
        return max(self.item_timings_ms) if self.item_timings_ms else None


SHARED_PROCESSORS: list[structlog.typing.Processor] = [
    structlog.stdlib.filter_by_level,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.stdlib.PositionalArgumentsFormatter(),
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
    structlog.processors.UnicodeDecoder(),
]

# Handlers installed by the last configure_logging call, replaced on the next one.
_installed_handlers: list[logging.Handler] = []


def configure_logging(
    log_file: Path | None = None,
    console_level: str = "WARNING",
    file_level: str = "DEBUG",
    quiet: bool = False,
    json_format: bool = True,
) -> structlog.stdlib.BoundLogger:
    """Route structlog events through the stdlib root logger.

    Safe to call more than once: handlers from a previous call are removed
    before the new ones are attached, so the CLI, the HTTP service and each
    worker process can configure logging independently.

    Args:
        log_file: Path to log file (no file output if None)
        console_level: Logging level for the stderr handler
        file_level: Logging level for the file handler
        quiet: If True, attach no console handler at all
        json_format: Render events as JSON lines, otherwise as key=value text

    Returns:
        Configured structlog logger
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    for handler in _installed_handlers:
        root_logger.removeHandler(handler)
        handler.close()
    _installed_handlers.clear()

    if log_file is not None:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(getattr(logging, file_level.upper()))
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s | %(levelname)-8s | %(name)s | %(message)s")
        )
        _installed_handlers.append(file_handler)

    if not quiet:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(getattr(logging, console_level.upper()))
        console_handler.setFormatter(logging.Formatter("%(message)s"))
        _installed_handlers.append(console_handler)

    for handler in _installed_handlers:
        root_logger.addHandler(handler)

    renderer: structlog.typing.Processor = (
        structlog.processors.JSONRenderer()
        if json_format
        else structlog.processors.KeyValueRenderer(key_order=["event", "level", "logger"])
    )
    structlog.configure(
        processors=[*SHARED_PROCESSORS, renderer],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    logger = structlog.get_logger("frametrace")
    logger.debug(
        "Logging configured",
        log_file=str(log_file) if log_file else None,
        console=None if quiet else console_level,
        json=json_format,
    )
    return logger


class ProcessingLogger:
    """Logger for tracking per-item progress and statistics."""

    def __init__(self, logger: structlog.stdlib.BoundLogger) -> None:
        self._logger = logger
        self._stats = ProcessingStats()

    def log_item_start(self, name: str, kind: str) -> None:
        """Log start of an item's pipeline run."""
        self._logger.debug("Processing item", item=name, kind=kind)

    def log_item_complete(self, name: str, path_count: int, duration_ms: float) -> None:
        """Log a successful item."""
        self._logger.info(
            "Item converted",
            item=name,
            paths=path_count,
            duration_ms=round(duration_ms, 2),
        )
        self._stats.processed_count += 1
        self._stats.paths_emitted += path_count
        self._stats.item_timings_ms.append(duration_ms)

    def log_item_error(
        self,
        name: str,
        error: Exception | str,
        traceback: str | None = None,
    ) -> None:
        """Log an isolated item failure."""
        self._logger.error(
            "Item conversion failed",
            item=name,
            error=str(error),
            error_type=type(error).__name__ if isinstance(error, Exception) else None,
            traceback=traceback,
        )
        self._stats.error_count += 1
        self._stats.errors.append((name, str(error)))

    @property
    def stats(self) -> ProcessingStats:
        """Get current processing statistics."""
        return self._stats
