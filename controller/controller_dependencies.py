# controller/controller_dependencies.py
from fastapi import File, HTTPException, Request, UploadFile
from fastapi_limiter.depends import RateLimiter
from config.settings import settings
from core.pdf_pages import PageSplitter
from repository.class_repository import ClassRepository
from repository.parse_repository import ParseResultRepository
from service.class_service import ClassService
from service.parse_service import ParseService

rate_limiter = RateLimiter(
    times=settings.RATE_LIMIT_TIMES, seconds=settings.RATE_LIMIT_SECONDS
)


def get_class_service() -> ClassService:
    return ClassService(ClassRepository())


def get_parse_service() -> ParseService:
    _classes = ClassRepository()
    _results = ParseResultRepository()
    _splitter = PageSplitter(mupdf_log_level=settings.mupdf_log_level)
    return ParseService(_classes, _results, _splitter)


def _too_large() -> HTTPException:
    return HTTPException(
        status_code=413,
        detail={
            "ok": False,
            "error": "file_too_large",
            "maxMb": settings.MAX_FILE_MB,
        },
    )


async def enforce_max_upload_size(
    request: Request, file: UploadFile | None = File(None)
) -> UploadFile | None:
    if file is None:
        return None
    # Fast pre-check via Content-Length if present
    max_bytes = settings.MAX_FILE_MB * 1024 * 1024
    cl = request.headers.get("content-length")
    if cl and cl.isdigit() and int(cl) > max_bytes:
        raise _too_large()

    # Hard cap while reading initial bytes (works even if no Content-Length)
    blob = await file.read(max_bytes + 1)
    if len(blob) > max_bytes:
        raise _too_large()

    # Reset so downstream can re-read file stream
    await file.seek(0)
    return file
