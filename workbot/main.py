from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from loguru import logger

from workbot.api.workbot import router as workbot_router
from workbot.config.settings import settings
from workbot.core.logger import setup_logger
from workbot.db.session import init_db

setup_logger(
    level=settings.log_level,
    log_file=settings.log_file,
    rotation=settings.log_rotation,
    retention=settings.log_retention,
)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """Ensure tables exist before serving requests."""
    init_db()
    yield


app = FastAPI(title="Workbot", lifespan=lifespan)

app.include_router(workbot_router)

logger.info("FastAPI application initialized")


@app.get("/health")
def health():
    return {"status": "ok"}


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all HTTP requests, tagging every record with the caller id."""
    with logger.contextualize(user_id=request.headers.get("X-User-Id") or "-"):
        logger.debug(f"Request: {request.method} {request.url.path}")
        response = await call_next(request)
        logger.debug(f"Response: {response.status_code} for {request.method} {request.url.path}")
    return response
