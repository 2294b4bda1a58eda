"""
wcpilot/main.py

Purpose: Application entry point

- Builds the FastAPI app: middleware, error handlers, routers
- Startup: validate config, connect MongoDB, ensure indexes
- Shutdown: close MongoDB
- No business logic here
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import time

from wcpilot.core.config import settings, validate_settings
from wcpilot.core.errors import add_exception_handlers
from wcpilot.core.logging import setup_logging, get_logger
from wcpilot.db.mongo import connect_to_mongo, close_mongo_connection
from wcpilot.db.indexes import create_indexes
from wcpilot.services.evolution_service import get_evolution_factory
from wcpilot.api import auth, billing, health, instances, messages, realtime, users, webhooks

setup_logging()
logger = get_logger(__name__)

SLOW_REQUEST_SECONDS = 5.0


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("🚀 Starting WCPilot API...")

    try:
        validate_settings()
        await connect_to_mongo()
        await create_indexes()
        # Built once here so shared-credential mode is announced at startup
        get_evolution_factory()
    except Exception as e:
        logger.critical(f"Failed to start application: {e}", exc_info=True)
        raise

    logger.info(f"🎉 WCPilot API started ({settings.ENVIRONMENT}, provider {settings.EVOLUTION_API_URL})")

    yield

    logger.info("🛑 Shutting down WCPilot API...")
    await close_mongo_connection()


app = FastAPI(
    title="WCPilot API",
    description="Multi-tenant WhatsApp instance management on top of Evolution API",
    version=health.VERSION,
    lifespan=lifespan,
    debug=settings.DEBUG,
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    elapsed = time.perf_counter() - started
    response.headers["X-Process-Time"] = f"{elapsed:.4f}"

    if elapsed > SLOW_REQUEST_SECONDS:
        logger.warning(f"Slow request: {request.method} {request.url.path} took {elapsed:.1f}s")

    return response


add_exception_handlers(app)

for module, tag in (
    (auth, "Auth"),
    (instances, "Instances"),
    (messages, "Messages"),
    (webhooks, "Webhooks"),
    (billing, "Billing"),
    (users, "User"),
):
    app.include_router(module.router, prefix=settings.API_PREFIX, tags=[tag])

app.include_router(realtime.router, tags=["Realtime"])
app.include_router(health.router, tags=["Health"])


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "wcpilot.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.is_development,
        log_level=settings.LOG_LEVEL.lower()
    )
