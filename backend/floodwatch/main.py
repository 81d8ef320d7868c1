# backend/floodwatch/main.py
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import asyncio
import os
from typing import Optional

from .api import router as api_router, set_monitor
from .healthcheck import router as health_router, update_health
from .logging_setup import logger
from .monitor import FloodMonitor
from .store import PersistenceStore
from .weather_client import WeatherClient

# ----- Config -----
REFRESH_MINUTES = float(os.getenv("FLOODWATCH_REFRESH_MINUTES", "5"))
RUN_ON_START = os.getenv("FLOODWATCH_RUN_ON_START", "true").lower() in ("1", "true", "yes")

logger.info(f"Refresh minutes: {REFRESH_MINUTES}, run_on_start: {RUN_ON_START}")

app = FastAPI(title="FloodWatch - Risk Simulation & Notification API", version="1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health_router, tags=["Health"])
app.include_router(api_router)

@app.get("/")
def root():
    return {"status": "floodwatch backend running"}


# ----- SCHEDULER -----
_monitor: Optional[FloodMonitor] = None
_scheduler_task: Optional[asyncio.Task] = None
_scheduler_stop = False


async def _refresh_once(monitor: FloodMonitor):
    try:
        refreshed = await monitor.refresh_weather()
        if refreshed:
            update_health("refresh_run", monitor.weather_source)
            logger.info(
                f"✅ Weather refreshed | source={monitor.weather_source} | "
                f"condition={monitor.engine.context} | notifications={len(monitor.feed.notifications)}"
            )
    except Exception as e:
        logger.error(f"❌ Weather refresh failed: {e}", exc_info=True)


async def _scheduler_loop(monitor: FloodMonitor):
    if RUN_ON_START:
        logger.info("Scheduler initial run: refreshing weather...")
        await _refresh_once(monitor)
    else:
        logger.info("RUN_ON_START disabled, skipping initial refresh.")

    while not _scheduler_stop:
        logger.info(f"Scheduler sleeping for {REFRESH_MINUTES} minute(s)...")
        await asyncio.sleep(REFRESH_MINUTES * 60)
        if _scheduler_stop:
            break
        logger.info("Scheduler wakeup: refreshing weather...")
        await _refresh_once(monitor)


@app.on_event("startup")
async def _startup():
    global _monitor, _scheduler_task, _scheduler_stop
    _monitor = FloodMonitor(PersistenceStore(), WeatherClient())
    set_monitor(_monitor)
    await _monitor.load()
    await _monitor.generate_notifications()

    _scheduler_stop = False
    _scheduler_task = asyncio.get_running_loop().create_task(_scheduler_loop(_monitor))
    update_health("scheduler_start")
    logger.info("Background scheduler started.")


@app.on_event("shutdown")
async def _shutdown():
    global _scheduler_stop, _scheduler_task
    logger.info("Shutting down scheduler...")
    _scheduler_stop = True
    if _scheduler_task:
        _scheduler_task.cancel()
        try:
            await _scheduler_task
        except asyncio.CancelledError:
            pass
    update_health("scheduler_stop")
    logger.info("Scheduler stopped.")
