"""FastAPI application factory.

Every route delegates to a FrameProcessor shared by reference. Processing
is CPU-bound, so it runs in the threadpool; uploads are read asynchronously.

Errors are returned as ``{"error": message}``: 400 for rejected input
(validation and decode failures), 500 for everything else.
"""

import structlog
from fastapi import FastAPI, File, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel, ConfigDict, Field
from starlette.concurrency import run_in_threadpool

from frametrace import __version__
from frametrace.core import FrameProcessor
from frametrace.domain import ConversionResult, JobKind, TextMode
from frametrace.exceptions import DecodeError, FrameTraceError, InputValidationError

logger = structlog.get_logger(__name__)

CLIENT_ERRORS = (InputValidationError, DecodeError)


class TextRequest(BaseModel):
    """Body of POST /text-to-frame."""

    model_config = ConfigDict(populate_by_name=True)

    text: str = ""
    font_size: int | None = Field(default=None, alias="fontSize")
    font_style: str | None = Field(default=None, alias="fontStyle")
    mode: TextMode = TextMode.COMBINED


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


async def _read_upload(file: UploadFile | None) -> tuple[str, bytes | None]:
    if file is None:
        return "", None
    return file.filename or "", await file.read()


def create_app(processor: FrameProcessor | None = None) -> FastAPI:
    """Build the HTTP application.

    Args:
        processor: Shared orchestrator (default settings if None)

    Returns:
        Configured FastAPI app
    """
    processor = processor or FrameProcessor()
    app = FastAPI(title="FrameTrace API", version=__version__)

    # Browser clients call the API from other origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    @app.exception_handler(FrameTraceError)
    async def frametrace_error_handler(_request: Request, exc: FrameTraceError) -> JSONResponse:
        status_code = 400 if isinstance(exc, CLIENT_ERRORS) else 500
        logger.warning("Request failed", error=str(exc), error_type=type(exc).__name__)
        return _error(status_code, str(exc))

    @app.exception_handler(RequestValidationError)
    async def request_error_handler(
        _request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        details = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        return _error(400, f"Invalid request: {details}")

    @app.exception_handler(Exception)
    async def unexpected_error_handler(_request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unexpected error", error=str(exc))
        return _error(500, str(exc) or type(exc).__name__)

    async def convert_upload(file: UploadFile | None, kind: JobKind) -> ConversionResult:
        name, data = await _read_upload(file)
        return await run_in_threadpool(processor.convert_image, data, kind, None, name)

    @app.get("/", response_class=PlainTextResponse)
    async def health() -> str:
        return "OK"

    @app.post("/vectorize")
    async def vectorize(file: UploadFile | None = File(None)) -> dict:
        result = await convert_upload(file, JobKind.VECTORIZE)
        return result.to_dict()

    @app.post("/smart-crop")
    async def smart_crop(file: UploadFile | None = File(None)) -> dict:
        result = await convert_upload(file, JobKind.SMART_CROP)
        return result.to_dict()

    @app.post("/remove-bg")
    async def remove_background(file: UploadFile | None = File(None)) -> dict:
        result = await convert_upload(file, JobKind.REMOVE_BACKGROUND)
        return result.to_dict()

    @app.post("/shape-to-frame")
    async def shape_to_frame(file: UploadFile | None = File(None)) -> dict:
        result = await convert_upload(file, JobKind.SHAPE)
        return result.to_dict()

    @app.post("/vectorize-batch")
    async def vectorize_batch(files: list[UploadFile] | None = File(None)) -> dict:
        items = [await _read_upload(file) for file in files or []]
        results = await run_in_threadpool(processor.convert_batch, items)
        return {"results": [item.to_dict(key="name") for item in results]}

    @app.post("/text-to-frame")
    async def text_to_frame(body: TextRequest) -> dict:
        converted = await run_in_threadpool(
            processor.convert_text,
            body.text,
            body.font_size,
            body.font_style,
            body.mode,
        )
        if isinstance(converted, ConversionResult):
            return converted.to_dict()
        return {"results": [item.to_dict(key="letter") for item in converted]}

    return app
