import logging
from contextlib import asynccontextmanager
from logging.handlers import RotatingFileHandler
from pathlib import Path

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tripfit.config import settings

# ─── Logging setup (file + console) ───
_LOG_DIR = Path(settings.log_dir)
_LOG_DIR.mkdir(parents=True, exist_ok=True)

_log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

logging.basicConfig(
    level=_log_level,
    format="%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    handlers=[
        logging.StreamHandler(),
        RotatingFileHandler(
            _LOG_DIR / "tripfit.log",
            maxBytes=10 * 1024 * 1024,  # 10 MB
            backupCount=5,
            encoding="utf-8",
        ),
    ],
)

# Quiet noisy libraries
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

from tripfit.routers import currency, queries, ranking  # noqa: E402
from tripfit.services.currency_service import currency_normalizer  # noqa: E402

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: one refresh, then the background refresh job
    await currency_normalizer.refresh()

    scheduler = None
    if settings.scheduler_enabled:
        try:
            scheduler = AsyncIOScheduler()
            scheduler.add_job(
                currency_normalizer.refresh,
                IntervalTrigger(minutes=settings.rates_refresh_interval_minutes),
                id="exchange_rates",
                max_instances=1,
                coalesce=True,
            )
            scheduler.start()
            logger.info("Background scheduler started")
        except Exception as e:
            logger.error(f"Scheduler failed to start: {e}")
            scheduler = None

    yield

    # Shutdown
    if scheduler:
        scheduler.shutdown(wait=False)
        logger.info("Background scheduler stopped")


app = FastAPI(
    title="tripfit",
    description="Constraint-based ranking for travel provider results",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(queries.router, prefix="/api/queries", tags=["queries"])
app.include_router(ranking.router, prefix="/api", tags=["ranking"])
app.include_router(currency.router, prefix="/api/currency", tags=["currency"])


@app.get("/api/health")
async def health_check():
    return {"status": "ok", "service": "tripfit", "rates_stale": currency_normalizer.is_stale()}
