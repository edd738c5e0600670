"""
Feed Ranking API — entry point.

Startup sequence:
  1. Configure OTel tracing (→ Jaeger via OTLP)
  2. Initialise DB connection pool (TiDB); create tables only when
     TIDB_CREATE_TABLES is set
  3. Connect to Redis for the viewer profile cache (optional)
  4. Expose Prometheus /metrics endpoint
"""
import logging

from contextlib import asynccontextmanager
from fastapi import FastAPI
from prometheus_client import make_asgi_app
from redis.exceptions import RedisError

from feedrank.config import settings
from feedrank.database import engine, init_db
from feedrank.telemetry import setup_tracing, instrument_app
from feedrank.clients.redis_client import close_redis, init_redis
from feedrank.routers import feed

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s — %(message)s",
)
logger = logging.getLogger(__name__)

# Set up tracing before the app is created so all imports are instrumented
setup_tracing()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage startup and shutdown of all external connections."""
    logger.info("Starting Feed Ranking API (env=%s)", settings.environment)

    if settings.tidb_create_tables:
        await init_db()
    if settings.redis_profile_cache_enabled:
        try:
            await init_redis()
        except (RedisError, OSError) as exc:
            logger.warning("Redis unavailable (%s) — profile cache disabled", exc)
            await close_redis()

    logger.info("All services connected. API ready.")
    yield

    logger.info("Shutting down...")
    await close_redis()
    await engine.dispose()


app = FastAPI(
    title="Feed Ranking API",
    description=(
        "Personalized feed ranking: visibility-filtered candidate retrieval, "
        "multi-signal scoring and explained, paginated results."
    ),
    version="1.0.0",
    lifespan=lifespan,
)

# ── Routers ────────────────────────────────────────────────────────────────
app.include_router(feed.router, prefix="/feed", tags=["Feed"])

# ── Prometheus metrics endpoint ────────────────────────────────────────────
# Mounted at /metrics — scraped by Prometheus
metrics_app = make_asgi_app()
app.mount("/metrics", metrics_app)

# ── OTel FastAPI instrumentation ──────────────────────────────────────────
instrument_app(app)


@app.get("/health", tags=["Health"])
async def health():
    return {"status": "ok", "service": settings.service_name}
