# backend/floodwatch/healthcheck.py
from fastapi import APIRouter
from datetime import datetime
import os
from .logging_setup import logger

router = APIRouter()

# Internal health state (updated by the refresh scheduler in main.py)
health_state = {
    "scheduler_alive": False,
    "last_refreshed": None,   # ISO string or None
    "weather_source": None,   # "live" / "fallback"
}

# threshold (in seconds) to judge "freshness"; default is three missed 5-minute refreshes
REFRESH_FRESH_SEC = int(os.getenv("FLOODWATCH_HEALTH_FRESH_SEC", "900"))

def _iso_to_dt(iso: str | None) -> datetime | None:
    if not iso:
        return None
    try:
        if iso.endswith("Z"):
            iso = iso[:-1]
        return datetime.fromisoformat(iso)
    except ValueError:
        return None

def friendly_status(now: datetime | None = None):
    """
    Compute friendly status string and details from the scheduler flag,
    refresh age and weather source.
    """
    now = now or datetime.utcnow()
    scheduler_alive = bool(health_state.get("scheduler_alive"))
    last_dt = _iso_to_dt(health_state.get("last_refreshed"))
    age = (now - last_dt).total_seconds() if last_dt else None
    fresh = age is not None and age <= REFRESH_FRESH_SEC
    live = health_state.get("weather_source") == "live"

    details = {"scheduler_alive": scheduler_alive, "refresh_age_sec": age, "weather_source": health_state.get("weather_source")}
    if scheduler_alive and fresh and live:
        return "🟢 Healthy", details
    if scheduler_alive and fresh:
        return "🟡 Degraded", details
    return "🔴 Inactive", details

@router.get("/health")
def health_check():
    status_str, status_details = friendly_status()
    return {
        "status": status_str,
        "status_details": status_details,
        "scheduler_alive": health_state["scheduler_alive"],
        "last_refreshed": health_state["last_refreshed"],
        "weather_source": health_state["weather_source"],
    }

def update_health(event: str, source: str | None = None):
    """
    Events: "scheduler_start", "refresh_run", "scheduler_stop".
    """
    now = datetime.utcnow().isoformat() + "Z"
    if event == "scheduler_start":
        health_state["scheduler_alive"] = True
    elif event == "refresh_run":
        health_state["last_refreshed"] = now
        health_state["weather_source"] = source
    elif event == "scheduler_stop":
        health_state["scheduler_alive"] = False
    logger.info(f"[healthcheck] update: {event} -> {now}")
