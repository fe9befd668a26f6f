import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from candle_admin.container import get_progress_store
from candle_admin.core.config import settings
from candle_admin.core.middleware import apply_cors
from candle_admin.db.progress_store import ProgressStore
from candle_admin.routes import health_router, v1_router

logger = logging.getLogger(__name__)


async def sweep_progress_forever(store: ProgressStore, interval: float) -> None:
    """Expire old deployment progress runs every ``interval`` seconds."""
    while True:
        await asyncio.sleep(interval)
        try:
            store.expire()
        except Exception as e:
            logger.warning(f"Progress sweep failed: {e}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    FastAPI lifespan event handler.

    On startup:
    - Start the in-process progress sweeper (memory backend only; with
      Redis, Celery beat runs the sweep)

    On shutdown:
    - Cancel the sweeper
    """
    logger.info("=== Candle Admin Starting ===")

    sweeper = None
    if settings.progress_store_backend == "memory":
        sweeper = asyncio.create_task(
            sweep_progress_forever(get_progress_store(), settings.progress_sweep_interval_seconds)
        )
        logger.info(f"Progress sweeper started (every {settings.progress_sweep_interval_seconds}s)")

    logger.info("=== Candle Admin Ready ===")

    yield

    logger.info("=== Candle Admin Shutting Down ===")
    if sweeper is not None:
        sweeper.cancel()
        try:
            await sweeper
        except asyncio.CancelledError:
            pass
    logger.info("Shutdown complete")


app = FastAPI(title="Candle Admin Backend", lifespan=lifespan)
logging.basicConfig(level=logging.INFO, format="%(levelname)s:%(name)s:%(message)s")

apply_cors(app)

app.include_router(health_router)
app.include_router(v1_router)
