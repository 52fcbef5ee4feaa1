# metastrip/server.py
import logging
import time
from pathlib import Path
from typing import Dict, Optional
from urllib.parse import quote

from fastapi import Depends, FastAPI, File, HTTPException, Request, Response, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse, PlainTextResponse
from fastapi.staticfiles import StaticFiles

from metastrip import settings
from metastrip.errors import MetastripError, PayloadTooLarge, RateLimitExceeded, UnsupportedFormat
from metastrip.logs import configure_logging
from metastrip.models import ImageMetadataReport
from metastrip.ratelimit import RateLimiter, client_identifier
from metastrip.service import build_report, cleaned_filename, strip_image

logger = logging.getLogger(__name__)


def get_rate_limiter(request: Request) -> RateLimiter:
    return request.app.state.rate_limiter

def enforce_rate_limit(request: Request, limiter: RateLimiter = Depends(get_rate_limiter)) -> Dict[str, str]:
    """Consume a token for the caller; returns the rate limit headers to send."""
    key = client_identifier(request.headers, request.client.host if request.client else None)
    allowed, remaining = limiter.allow_request(key)
    window = int(limiter.window_seconds)
    if not allowed:
        raise RateLimitExceeded(retry_after=window, headers={
            "X-RateLimit-Limit": str(limiter.capacity),
            "X-RateLimit-Remaining": "0",
            "X-RateLimit-Reset": str(int(time.time() + limiter.seconds_until_refill(key))),
            "Retry-After": str(window),
        })
    return {
        "X-RateLimit-Limit": str(limiter.capacity),
        "X-RateLimit-Remaining": str(remaining),
    }

async def _read_upload(upload: Optional[UploadFile]) -> Optional[bytes]:
    if upload is None:
        return None
    # One byte past the cap is enough to know it is too big
    data = await upload.read(settings.MAX_FILE_SIZE + 1)
    if len(data) > settings.MAX_FILE_SIZE:
        raise PayloadTooLarge(settings.MAX_FILE_SIZE)
    return data

def _declared_length(request: Request) -> Optional[int]:
    value = request.headers.get("content-length", "")
    return int(value) if value.isdigit() else None

def content_disposition(filename: str) -> str:
    """Attachment header with an ASCII fallback name plus the RFC 5987 UTF-8 form."""
    fallback = filename.encode("ascii", "replace").decode("ascii")
    fallback = fallback.replace("\\", "\\\\").replace('"', '\\"')
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename, safe='')}"

async def handle_metastrip_error(request: Request, exc: MetastripError) -> JSONResponse:
    body = {"error": exc.message, "status": exc.http_status}
    headers = None
    if isinstance(exc, RateLimitExceeded):
        body["retryAfter"] = exc.retry_after
        headers = exc.headers
    return JSONResponse(status_code=exc.http_status, content=body, headers=headers)

async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    # A "file" part without a filename arrives as a plain string
    if any("file" in err.get("loc", ()) for err in exc.errors()):
        return await handle_metastrip_error(request, UnsupportedFormat())
    return JSONResponse(status_code=400, content={"error": "Invalid request", "status": 400})

async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled error on {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"error": f"An unexpected error occurred: {exc}", "status": 500},
    )

def _mount_spa(app: FastAPI, static_dir: Path) -> None:
    index_path = static_dir / "index.html"
    if not index_path.is_file():
        logger.info(f"No frontend build in {static_dir}, serving API only")
        return
    if (static_dir / "assets").is_dir():
        app.mount("/assets", StaticFiles(directory=str(static_dir / "assets")), name="assets")

    @app.get("/{path:path}", include_in_schema=False)
    def spa(path: str):
        if path.startswith("api/"):
            raise HTTPException(status_code=404, detail="Not Found")
        # Client-side routes have no dot; anything else must be a real file
        if "." not in path.rsplit("/", 1)[-1]:
            return FileResponse(index_path)
        target = (static_dir / path).resolve()
        if static_dir.resolve() not in target.parents or not target.is_file():
            raise HTTPException(status_code=404, detail="Not Found")
        return FileResponse(target)

def create_app(rate_limiter: Optional[RateLimiter] = None, static_dir: Optional[Path] = None) -> FastAPI:
    app = FastAPI(title="Metadata Stripper API")
    app.state.rate_limiter = rate_limiter or RateLimiter(
        settings.RATE_LIMIT_CAPACITY, settings.RATE_LIMIT_WINDOW_SECONDS
    )

    @app.middleware("http")
    async def reject_oversized_upload(request: Request, call_next):
        # Refuse on the declared length before the multipart body is spooled
        if request.method == "POST" and request.url.path.startswith(settings.API_PREFIX):
            length = _declared_length(request)
            if length is not None and length > settings.MAX_FILE_SIZE + settings.UPLOAD_OVERHEAD_BYTES:
                logger.info(f"Rejected upload of {length} bytes on {request.url.path}")
                return await handle_metastrip_error(request, PayloadTooLarge(settings.MAX_FILE_SIZE))
        return await call_next(request)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Content-Disposition", "X-RateLimit-Limit", "X-RateLimit-Remaining", "X-RateLimit-Reset", "Retry-After"],
    )
    app.add_exception_handler(MetastripError, handle_metastrip_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    @app.get(f"{settings.API_PREFIX}/health", response_class=PlainTextResponse)
    def health():
        return settings.HEALTH_MESSAGE

    @app.post(f"{settings.API_PREFIX}/metadata", response_model=ImageMetadataReport, response_model_by_alias=True)
    async def metadata(
        response: Response,
        file: Optional[UploadFile] = File(None),
        rate_headers: Dict[str, str] = Depends(enforce_rate_limit),
    ):
        filename = file.filename if file else None
        logger.info(f"Received request to extract metadata from: {filename}")
        data = await _read_upload(file)
        report = await run_in_threadpool(build_report, data, filename, file.content_type if file else None)
        response.headers.update(rate_headers)
        return report

    @app.post(f"{settings.API_PREFIX}/strip")
    async def strip(
        file: Optional[UploadFile] = File(None),
        rate_headers: Dict[str, str] = Depends(enforce_rate_limit),
    ):
        filename = file.filename if file else None
        logger.info(f"Received request to strip metadata from: {filename}")
        data = await _read_upload(file)
        cleaned = await run_in_threadpool(strip_image, data, filename)
        headers = {
            "Content-Disposition": content_disposition(cleaned_filename(filename)),
            **rate_headers,
        }
        return Response(
            content=cleaned,
            media_type=(file.content_type if file else None) or "application/octet-stream",
            headers=headers,
        )

    _mount_spa(app, static_dir or settings.STATIC_DIR)
    return app

app = create_app()

def main() -> None:
    import uvicorn

    configure_logging(settings.LOG_LEVEL)
    uvicorn.run(app, host=settings.HOST, port=settings.PORT)

if __name__ == "__main__":
    main()
