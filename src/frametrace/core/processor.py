"""Job orchestration for the conversion pipeline.

Runs each job through normalize -> trace -> decompose, with input
validation up front and per-item isolation for batches and per-character
text. Batch items run sequentially in-process by default, or in a
ProcessPoolExecutor when more than one worker or a per-item timeout is
configured.

Key components:
- process_item: Top-level picklable function for worker processes
- FrameProcessor: Main orchestrator class
"""

import time
import traceback
from collections.abc import Callable, Sequence
from concurrent.futures import Future, ProcessPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError
from functools import cached_property
from typing import Any

import structlog

from frametrace.config import (
    JOB_SPECS,
    FrameTraceSettings,
    JobSpec,
    Profile,
    build_profile_registry,
)
from frametrace.core.decomposer import decompose, parse_view_box
from frametrace.core.normalizer import RasterNormalizer
from frametrace.core.text import TextRasterizer
from frametrace.core.tracer import PotraceTracer, Tracer
from frametrace.domain import (
    ConversionResult,
    DecompositionMode,
    ItemResult,
    Job,
    JobKind,
    TextMode,
)
from frametrace.exceptions import FrameTraceError, InputValidationError
from frametrace.io.fonts import FontRegistry
from frametrace.utils import ProcessingLogger, ProcessingStats, configure_logging

ProgressCallback = Callable[[int, int, str, bool], None]

# Set in each worker process by init_worker; read-only afterwards.
_worker_processor: "FrameProcessor | None" = None


def init_worker(settings_dict: dict[str, Any]) -> None:
    """Executor initializer: build the worker's processor once."""
    global _worker_processor
    settings = FrameTraceSettings.model_validate(settings_dict)
    configure_logging(
        log_file=settings.logging.log_file,
        console_level=settings.logging.log_level,
        file_level=settings.logging.file_log_level,
        quiet=True,
        json_format=settings.logging.json_format,
    )
    _worker_processor = FrameProcessor(settings)


def process_item(
    job_dict: dict[str, Any],
    settings_dict: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Run one job in a worker process.

    Top-level function designed to be picklable for use with ProcessPoolExecutor.
    Uses the processor built by init_worker when there is one, otherwise
    builds one from ``settings_dict``.

    Args:
        job_dict: Serialized job (from Job.to_dict())
        settings_dict: Serialized settings (from FrameTraceSettings.model_dump())

    Returns:
        Dictionary containing either:
        - Success: {"result": result_dict, "duration_ms": float}
        - Error: {"error": str, "name": str, "traceback": str, "duration_ms": float}
    """
    start_time = time.time()

    try:
        job = Job.from_dict(job_dict)
        processor = _worker_processor or FrameProcessor(
            FrameTraceSettings.model_validate(settings_dict or {})
        )
        processor.validate_item(job)
        result = processor.run(job)

        duration_ms = (time.time() - start_time) * 1000
        return {"result": result.to_dict(), "duration_ms": duration_ms}

    except Exception as e:
        duration_ms = (time.time() - start_time) * 1000
        return {
            "error": str(e) or type(e).__name__,
            "name": job_dict.get("name", "unknown"),
            "traceback": traceback.format_exc(),
            "duration_ms": duration_ms,
        }


class FrameProcessor:
    """Orchestrates conversions from images and text to path records.

    Built once at startup and shared by reference; it holds only read-only
    configuration (settings, profile registry, font registry) and stateless
    services.

    Example:
        processor = FrameProcessor(FrameTraceSettings())
        result = processor.convert_image(png_bytes)
        items = processor.convert_batch([("a.png", a_bytes), ("b.png", b_bytes)])
    """

    def __init__(
        self,
        settings: FrameTraceSettings | None = None,
        tracer: Tracer | None = None,
        fonts: FontRegistry | None = None,
    ) -> None:
        """Initialize the processor.

        Args:
            settings: Application settings (defaults if None)
            tracer: Tracing backend (PotraceTracer if None)
            fonts: Font registry (scanned from settings.text.font_dirs on first use if None)

        Worker processes build their own tracer and fonts from settings, so
        injected collaborators are only accepted for in-process runs.

        Raises:
            ValueError: If tracer or fonts are given while items run in workers
        """
        self.settings = settings or FrameTraceSettings()
        if (tracer is not None or fonts is not None) and self.settings.processing.uses_workers:
            raise ValueError(
                "injected tracer or fonts cannot reach worker processes; "
                "use max_workers=1 without an item timeout"
            )
        self.logger = structlog.get_logger("frametrace.processor")
        self.profiles = build_profile_registry(self.settings.profiles)
        self.normalizer = RasterNormalizer(self.settings.raster)
        self.tracer = tracer or PotraceTracer(self.settings.tracer)
        self._fonts = fonts

    @property
    def fonts(self) -> FontRegistry:
        """Font registry, resolved once on first text job."""
        if self._fonts is None:
            self._fonts = FontRegistry.from_dirs(self.settings.text.font_dirs)
        return self._fonts

    @cached_property
    def text_rasterizer(self) -> TextRasterizer:
        return TextRasterizer(
            self.fonts,
            self.normalizer,
            self.settings.text,
            max_length=self.settings.limits.max_text_length,
        )

    def job_spec(self, kind: JobKind) -> tuple[JobSpec, Profile]:
        """Resolve a job kind to its spec and profile."""
        spec = JOB_SPECS[kind]
        try:
            return spec, self.profiles[spec.profile]
        except KeyError:
            raise InputValidationError("profile", f"unknown profile {spec.profile!r}") from None

    # -- single-item pipeline -------------------------------------------------

    def run(self, job: Job) -> ConversionResult:
        """Run one already validated job through the pipeline.

        Raises:
            DecodeError: If the image bytes cannot be decoded
            TraceError: If the tracer fails
            EmptyResultError: If no path records were produced
        """
        spec, profile = self.job_spec(job.kind)
        mode = job.mode or spec.mode

        if job.kind.is_text:
            raster = self.text_rasterizer.rasterize_text(
                job.text or "",
                job.font_size or self.settings.text.default_font_size,
                job.font_key or self.settings.text.default_font,
                profile,
            )
        else:
            raster = self.normalizer.normalize(job.data or b"", profile, spec.variant)

        document = self.tracer.trace(raster, profile)
        paths = decompose(document, mode, spec.cap)
        view_box = parse_view_box(document)

        return ConversionResult(paths=paths, view_box=view_box, crop=raster.crop)

    def validate_item(self, job: Job) -> None:
        """Checks that apply to every item, alone or inside a batch."""
        if job.kind.is_text:
            self._validate_text(job.text)
        else:
            self._validate_bytes(job.data)

    def _validate_bytes(self, data: bytes | None, field: str = "file") -> None:
        if not data:
            raise InputValidationError(field, "no file uploaded or file is empty")
        limit = self.settings.limits.max_input_bytes
        if len(data) > limit:
            raise InputValidationError(field, f"{len(data)} bytes exceeds the {limit} byte limit")

    def _validate_text(self, text: str | None) -> str:
        if text is None or not text.strip():
            raise InputValidationError("text", "text is required")
        return text

    def _validate_font(self, font_size: int, font_key: str) -> None:
        limits = self.settings.limits
        if not limits.min_font_size <= font_size <= limits.max_font_size:
            raise InputValidationError(
                "fontSize",
                f"{font_size} is outside {limits.min_font_size}..{limits.max_font_size}",
            )
        self.fonts.spec(font_key)

    # -- public operations ----------------------------------------------------

    def convert_image(
        self,
        data: bytes | None,
        kind: JobKind = JobKind.VECTORIZE,
        mode: DecompositionMode | None = None,
        name: str = "",
    ) -> ConversionResult:
        """Convert one encoded image.

        Args:
            data: Encoded image bytes
            kind: Image job kind (vectorize, smart-crop, remove-bg or shape)
            mode: Decomposition mode override
            name: Label used in logs

        Returns:
            ConversionResult with paths, viewBox and (auto-crop kinds) crop

        Raises:
            InputValidationError: If the input is missing, empty or too large
            DecodeError, TraceError, EmptyResultError: From the pipeline stages
        """
        if kind.is_text:
            raise InputValidationError("kind", f"{kind.value!r} is not an image job kind")

        job = Job(kind=kind, name=name, data=data, mode=mode)
        self.validate_item(job)

        start_time = time.time()
        self.logger.info("Converting image", kind=kind.value, item=name, size=len(data or b""))
        result = self.run(job)
        self.logger.info(
            "Image converted",
            kind=kind.value,
            item=name,
            paths=len(result.paths),
            duration_ms=round((time.time() - start_time) * 1000, 2),
        )
        return result

    def convert_shape(self, data: bytes | None, name: str = "") -> ConversionResult:
        """Convert a shape image into one compound frame."""
        return self.convert_image(data, kind=JobKind.SHAPE, name=name)

    def convert_batch(
        self,
        items: Sequence[tuple[str, bytes | None]],
        kind: JobKind = JobKind.VECTORIZE,
        mode: DecompositionMode | None = None,
        progress_callback: ProgressCallback | None = None,
    ) -> list[ItemResult]:
        """Convert several images, isolating failures per item.

        Args:
            items: (name, bytes) pairs in request order
            kind: Image job kind applied to every item
            mode: Decomposition mode override
            progress_callback: Optional callback(completed, total, name, success)

        Returns:
            One ItemResult per input, in input order

        Raises:
            InputValidationError: If there are no items or too many
        """
        if kind.is_text:
            raise InputValidationError("kind", f"{kind.value!r} is not an image job kind")
        if not items:
            raise InputValidationError("files", "no files uploaded")
        limit = self.settings.limits.max_batch_items
        if len(items) > limit:
            raise InputValidationError("files", f"{len(items)} files exceeds the limit of {limit}")

        jobs = [
            Job(kind=kind, name=name or f"batch-{index}", data=data, mode=mode)
            for index, (name, data) in enumerate(items)
        ]
        return self.run_items(jobs, progress_callback)

    def convert_text(
        self,
        text: str | None,
        font_size: int | None = None,
        font_key: str | None = None,
        mode: TextMode = TextMode.COMBINED,
        progress_callback: ProgressCallback | None = None,
    ) -> ConversionResult | list[ItemResult]:
        """Convert text into one frame or one frame per character.

        Args:
            text: Text to render; whitespace runs collapse, long text is truncated
            font_size: Pixel size (default from settings)
            font_key: Font registry key (default from settings)
            mode: COMBINED for one result, INDIVIDUAL for one ItemResult per
                non-whitespace character
            progress_callback: Optional callback for INDIVIDUAL mode

        Returns:
            ConversionResult (combined) or list of ItemResult labelled by character

        Raises:
            InputValidationError: If text is empty, the size is out of range or
                the font key is unknown
        """
        text = self._validate_text(text)
        font_size = font_size if font_size is not None else self.settings.text.default_font_size
        font_key = font_key or self.settings.text.default_font
        self._validate_font(font_size, font_key)

        if mode is TextMode.COMBINED:
            prepared = self.text_rasterizer.prepare(text)
            job = Job(
                kind=JobKind.TEXT,
                name=prepared,
                text=prepared,
                font_size=font_size,
                font_key=font_key,
            )
            start_time = time.time()
            self.logger.info("Converting text", text=prepared, font=font_key, size=font_size)
            result = self.run(job)
            self.logger.info(
                "Text converted",
                text=prepared,
                paths=len(result.paths),
                duration_ms=round((time.time() - start_time) * 1000, 2),
            )
            return result

        jobs = [
            Job(kind=JobKind.GLYPH, name=char, text=char, font_size=font_size, font_key=font_key)
            for char in self.text_rasterizer.glyphs(text)
        ]
        return self.run_items(jobs, progress_callback)

    # -- multi-item execution -------------------------------------------------

    def run_items(
        self,
        jobs: Sequence[Job],
        progress_callback: ProgressCallback | None = None,
    ) -> list[ItemResult]:
        """Run jobs with per-item isolation; results keep input order."""
        processing_logger = ProcessingLogger(self.logger)
        stats = processing_logger.stats
        stats.start_time = time.time()

        processing = self.settings.processing
        self.logger.info(
            "Starting items",
            count=len(jobs),
            max_workers=processing.max_workers,
            timeout=processing.item_timeout_seconds,
        )

        # A timeout can only be enforced on a worker, even for a single item
        if jobs and processing.uses_workers and (
            len(jobs) > 1 or processing.item_timeout_seconds is not None
        ):
            results = self._run_parallel(jobs, processing_logger, progress_callback)
        else:
            results = []
            for job in jobs:
                item = self._run_isolated(job, processing_logger)
                results.append(item)
                if progress_callback is not None:
                    progress_callback(len(results), len(jobs), job.name, item.ok)

        stats.end_time = time.time()
        self._log_summary(stats)
        return results

    def _run_isolated(self, job: Job, processing_logger: ProcessingLogger) -> ItemResult:
        start_time = time.time()
        processing_logger.log_item_start(job.name, job.kind.value)

        try:
            self.validate_item(job)
            result = self.run(job)
        except FrameTraceError as e:
            duration_ms = (time.time() - start_time) * 1000
            processing_logger.log_item_error(job.name, e)
            return ItemResult.failure(job.name, str(e), duration_ms)
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            processing_logger.log_item_error(job.name, e, traceback.format_exc())
            return ItemResult.failure(job.name, str(e) or type(e).__name__, duration_ms)

        duration_ms = (time.time() - start_time) * 1000
        processing_logger.log_item_complete(job.name, len(result.paths), duration_ms)
        return ItemResult.success(job.name, result, duration_ms)

    def _run_parallel(
        self,
        jobs: Sequence[Job],
        processing_logger: ProcessingLogger,
        progress_callback: ProgressCallback | None = None,
    ) -> list[ItemResult]:
        """Run jobs in worker processes, collecting results in input order.

        A per-item timeout marks that slot as failed. The pool holding the
        stuck worker is shut down without waiting, and the items it had not
        finished are resubmitted to a fresh pool so they do not inherit the
        stall.
        """
        settings_dict = self.settings.model_dump()
        processing = self.settings.processing
        timeout = processing.item_timeout_seconds
        total = len(jobs)
        results: dict[int, ItemResult] = {}
        pending = list(range(total))

        def record(index: int, item: ItemResult) -> None:
            results[index] = item
            if progress_callback is not None:
                progress_callback(len(results), total, jobs[index].name, item.ok)

        while pending:
            executor = ProcessPoolExecutor(
                max_workers=min(processing.max_workers, len(pending)),
                initializer=init_worker,
                initargs=(settings_dict,),
            )
            abandoned = False
            try:
                futures = {
                    index: executor.submit(process_item, jobs[index].to_dict())
                    for index in pending
                }

                for index in pending:
                    job = jobs[index]
                    item = self._collect(job, futures[index], timeout, processing_logger)
                    if item is None:
                        abandoned = True
                        message = f"timed out after {timeout:g} s"
                        processing_logger.log_item_error(job.name, message)
                        record(index, ItemResult.failure(job.name, message, (timeout or 0) * 1000))
                        break
                    record(index, item)

                if abandoned:
                    # Keep whatever other workers finished before the stall
                    for index in pending:
                        future = futures[index]
                        if index in results or not future.done() or future.cancelled():
                            continue
                        item = self._collect(jobs[index], future, 0, processing_logger)
                        if item is not None:
                            record(index, item)

            except KeyboardInterrupt:
                self.logger.info("Cancellation requested by user")
                abandoned = True
                raise

            finally:
                executor.shutdown(wait=not abandoned, cancel_futures=True)

            pending = [index for index in pending if index not in results]
            if pending:
                self.logger.warning("Restarting worker pool", remaining=len(pending))

        return [results[index] for index in range(total)]

    def _collect(
        self,
        job: Job,
        future: Future,
        timeout: float | None,
        processing_logger: ProcessingLogger,
    ) -> ItemResult | None:
        """Item result from a worker future, or None if it did not finish in time."""
        try:
            payload = future.result(timeout=timeout)
        except FuturesTimeoutError:
            return None
        except Exception as e:
            # Executor-level error (e.g. a worker died)
            processing_logger.log_item_error(job.name, e, traceback.format_exc())
            return ItemResult.failure(job.name, str(e) or type(e).__name__)
        return self._item_from_payload(job.name, payload, processing_logger)

    def _item_from_payload(
        self,
        name: str,
        payload: dict[str, Any],
        processing_logger: ProcessingLogger,
    ) -> ItemResult:
        duration_ms = payload.get("duration_ms", 0.0)
        if "error" in payload:
            processing_logger.log_item_error(
                name,
                Exception(payload["error"]),
                traceback=payload.get("traceback"),
            )
            return ItemResult.failure(name, payload["error"], duration_ms)

        result = ConversionResult.from_dict(payload["result"])
        processing_logger.log_item_complete(name, len(result.paths), duration_ms)
        return ItemResult.success(name, result, duration_ms)

    def _log_summary(self, stats: ProcessingStats) -> None:
        self.logger.info(
            "Items complete",
            processed=stats.processed_count,
            errors=stats.error_count,
            paths=stats.paths_emitted,
            duration_seconds=round(stats.duration_seconds, 2),
            avg_item_ms=round(stats.avg_item_time_ms, 2) if stats.avg_item_time_ms else None,
        )


def run_job(job: Job, settings: FrameTraceSettings | None = None) -> ConversionResult:
    """Validate and run a single job with a fresh processor."""
    processor = FrameProcessor(settings)
    processor.validate_item(job)
    return processor.run(job)
