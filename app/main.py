from contextlib import asynccontextmanager
import asyncio
import logging
import sqlalchemy
from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.database import database
from app.api import sentiment
from app.middlewares.access_logger import AccessLoggingMiddleware
from app.middlewares.logging import setup_logging
from app.pipelines.sentiment_pipeline import build_sentiment_pipeline
from app.utils.exception_handlers import (
    generic_exception_handler,
    http_exception_handler,
)
from app.core.config import settings

logger = logging.getLogger(__name__)

is_ready = False


async def wait_for_database(max_retries: int = 10, delay_seconds: float = 3) -> None:
    for attempt in range(max_retries):
        try:
            async with database.engine.connect() as conn:
                await conn.execute(sqlalchemy.text("SELECT 1"))
            logger.info("✅ Successfully connected to the database!")
            return
        except Exception as e:
            logger.warning(
                f"❌ Database not ready (attempt {attempt + 1}/{max_retries}) - {e}"
            )
            await asyncio.sleep(delay_seconds)
    raise RuntimeError("🚨 Could not connect to the database after retries!")


@asynccontextmanager
async def lifespan(app: FastAPI):
    global is_ready

    await wait_for_database()

    pipeline = build_sentiment_pipeline(database.session_factory, settings)
    app.state.sentiment = pipeline
    if settings.SENTIMENT_WORKER_ENABLED:
        pipeline.worker.start()
    else:
        logger.info("⏸️ Sentiment worker disabled by configuration")

    is_ready = True
    try:
        yield
    finally:
        is_ready = False
        await pipeline.aclose()
        await database.dispose()


# ✅ SETUP LOGGING FIRST
setup_logging()

app = FastAPI(
    title="Event Review Sentiment API",
    description="Asynchronous sentiment scoring of event reviews and organizer dashboards",
    version="1.0.0",
    lifespan=lifespan,
    debug=settings.DEBUG,
)


# ===============
# Middlewares
# ===============
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.ENV == "local" else [settings.FRONTEND_ORIGIN or ""],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(AccessLoggingMiddleware)


# ===============
# Routers
# ===============
app.include_router(sentiment.router)


# ===============
# Health Checks
# ===============
@app.get("/health")
def health():
    return {"status": "ok"}


@app.get("/liveness", status_code=204)
def liveness():
    return Response(status_code=204)


@app.api_route("/readiness", methods=["GET", "HEAD"], status_code=200)
def readiness():
    return {"status": "ready"} if is_ready else Response(status_code=503)


# ===============
# Global Error Handlers
# ===============
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)
