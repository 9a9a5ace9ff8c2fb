# main.py
from fastapi_limiter import FastAPILimiter
import logging
import routes
from contextlib import asynccontextmanager
from util.enums import Environment, Color, ErrorMessage
from fastapi import FastAPI, Request
from starlette.middleware.cors import CORSMiddleware
from config.settings import settings
from config.cache import close_redis, get_redis
from fastapi.responses import JSONResponse
from util.logger import init_logger

logger = logging.getLogger(__name__)


async def _real_ip(request: Request) -> str:
    if settings.TRUST_PROXY:
        fwd = request.headers.get("x-forwarded-for")
        if fwd:
            return fwd.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


@asynccontextmanager
async def lifespan(fastApi: FastAPI):
    init_logger()
    try:
        logger.info("%sInitializing...%s", Color.GREEN, Color.RESET)
        redis = await get_redis()
        await FastAPILimiter.init(redis, identifier=_real_ip)
        logger.info("%sServer Started%s", Color.BLUE, Color.RESET)
    except Exception:
        logger.error("startup.redis.error", exc_info=True)
        raise

    try:
        yield
    finally:
        try:
            await close_redis()
        except Exception:
            logger.error("shutdown.redis.error", exc_info=True)

        logger.info("%sServer Shutdown%s", Color.RED, Color.RESET)


app: FastAPI = FastAPI(title="report-splitter", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.ALLOWED_ORIGIN],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Authorization", "Content-Type", "Accept"],
    expose_headers=["Content-Disposition"],  # download names for the browser
)


@app.get("/healthz")
async def healthz():
    return {"ok": True}


@app.exception_handler(429)
async def ratelimit_handler(request: Request, exc):
    return JSONResponse(
        status_code=429,
        content={
            "ok": False,
            "error": "rate_limited",
            "message": f"Too many requests. Try again in {settings.RATE_LIMIT_SECONDS}s.",
        },
        headers={"Retry-After": str(settings.RATE_LIMIT_SECONDS)},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error("request.unhandled path=%s", request.url.path, exc_info=exc)
    info = ErrorMessage.INTERNAL_ERROR.value
    return JSONResponse(
        status_code=info.http_status,
        content={"ok": False, "error": "internal_error", "message": info.message},
    )


routes.register_routes(app)

if __name__ == "__main__":
    import uvicorn

    reload = settings.APP_ENV == Environment.DEV
    uvicorn.run("main:app", host="127.0.0.1", port=8000, reload=reload)
