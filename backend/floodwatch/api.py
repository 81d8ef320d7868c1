from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException
from .actions import AreaNotFoundError, NotificationNotFoundError, UnknownActionError
from .logging_setup import logger
from .monitor import AreaValidationError, FloodMonitor
from .notifications import NotificationFeed
from .risk_scorer import calculate_flood_risk
from .schemas import (
    ActionRequest,
    ActionResult,
    AreaCreate,
    AreaView,
    AuditRecord,
    ClassifyRequest,
    FloodEventDay,
    FloodEventReport,
    MonitoredArea,
    NotificationFeedView,
    RealtimeToggle,
    RiskAssessment,
    RiskInputs,
    SimulationRequest,
    SimulationState,
    ThemePreference,
    WeatherAlert,
    WeatherReport,
)
from .simulation import marker_color
from .weather_classifier import classify_weather
from .weather_client import wind_direction_label

router = APIRouter()

_monitor: Optional[FloodMonitor] = None

def set_monitor(monitor: FloodMonitor) -> None:
    global _monitor
    _monitor = monitor

def get_monitor() -> FloodMonitor:
    if _monitor is None:
        raise HTTPException(status_code=503, detail="Monitor not initialised")
    return _monitor

def _feed_view(feed: NotificationFeed) -> NotificationFeedView:
    return NotificationFeedView(**feed.view())

# ---- Risk & classification ----
@router.post("/risk/score", response_model=RiskAssessment)
def score_risk(inputs: RiskInputs):
    return calculate_flood_risk(
        inputs.elevation,
        inputs.distance_from_water,
        inputs.soil_permeability,
        inputs.slope_gradient,
        inputs.drainage_condition,
        inputs.vegetation_cover,
        inputs.flood_history,
        inputs.area_type,
    )

@router.post("/weather/classify")
def classify(payload: ClassifyRequest):
    return {"condition": classify_weather(payload.current, payload.forecast)}

# ---- Weather ----
@router.get("/weather", response_model=WeatherReport)
def get_weather(monitor: FloodMonitor = Depends(get_monitor)):
    weather = monitor.weather
    direction = None
    if weather is not None and weather.wind_direction is not None:
        direction = wind_direction_label(weather.wind_direction)
    return WeatherReport(
        weather=weather,
        forecast=monitor.forecast,
        source=monitor.weather_source,
        last_updated=monitor.last_updated,
        wind_direction_label=direction,
    )

@router.post("/weather/refresh")
async def refresh_weather(monitor: FloodMonitor = Depends(get_monitor)):
    refreshed = await monitor.refresh_weather()
    return {"refreshed": refreshed, "source": monitor.weather_source}

@router.get("/weather/alert", response_model=WeatherAlert)
def get_weather_alert(monitor: FloodMonitor = Depends(get_monitor)):
    level, message = monitor.weather_alert()
    return WeatherAlert(level=level, message=message)

# ---- Areas ----
@router.get("/areas", response_model=List[AreaView])
def list_areas(monitor: FloodMonitor = Depends(get_monitor)):
    return [AreaView(**a.model_dump(), marker_color=marker_color(a)) for a in monitor.areas]

@router.post("/areas", response_model=MonitoredArea, status_code=201)
async def create_area(payload: AreaCreate, monitor: FloodMonitor = Depends(get_monitor)):
    try:
        return await monitor.add_area(payload)
    except AreaValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))

@router.delete("/areas/{area_id}")
async def delete_area(area_id: str, monitor: FloodMonitor = Depends(get_monitor)):
    try:
        await monitor.delete_area(area_id)
    except AreaNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"status": "ok", "area_id": area_id}

# ---- Simulation ----
@router.get("/simulation", response_model=SimulationState)
def simulation_state(monitor: FloodMonitor = Depends(get_monitor)):
    return monitor.engine.state()

@router.post("/simulation/apply", response_model=SimulationState)
async def apply_simulation(payload: SimulationRequest, monitor: FloodMonitor = Depends(get_monitor)):
    return await monitor.apply_simulation(payload.condition)

@router.post("/simulation/reset", response_model=SimulationState)
async def reset_simulation(monitor: FloodMonitor = Depends(get_monitor)):
    return await monitor.reset_simulation()

@router.post("/simulation/realtime", response_model=SimulationState)
async def toggle_realtime(payload: RealtimeToggle, monitor: FloodMonitor = Depends(get_monitor)):
    return await monitor.set_realtime(payload.enabled)

# ---- Notifications ----
@router.get("/notifications", response_model=NotificationFeedView)
def list_notifications(monitor: FloodMonitor = Depends(get_monitor)):
    return _feed_view(monitor.feed)

@router.post("/notifications/generate", response_model=NotificationFeedView)
async def regenerate_notifications(monitor: FloodMonitor = Depends(get_monitor)):
    await monitor.generate_notifications()
    return _feed_view(monitor.feed)

@router.post("/notifications/resolve", response_model=ActionResult)
async def resolve_notification(payload: ActionRequest, monitor: FloodMonitor = Depends(get_monitor)):
    try:
        return await monitor.resolve_notification(payload)
    except UnknownActionError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except (AreaNotFoundError, NotificationNotFoundError) as e:
        raise HTTPException(status_code=404, detail=str(e))

@router.delete("/notifications")
async def clear_notifications(monitor: FloodMonitor = Depends(get_monitor)):
    try:
        await monitor.clear_notifications()
    except Exception as e:
        logger.error(f"[api] clear_notifications failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Clearing notifications failed: {e}")
    return {"status": "ok"}

# ---- Audit trail & reports ----
@router.get("/records/flood", response_model=List[AuditRecord])
async def flood_records(area_id: Optional[str] = None, monitor: FloodMonitor = Depends(get_monitor)):
    return await monitor.store.load_flood_records(area_id)

@router.get("/records/disregard", response_model=List[AuditRecord])
async def disregard_records(area_id: Optional[str] = None, monitor: FloodMonitor = Depends(get_monitor)):
    return await monitor.store.load_disregard_records(area_id)

@router.post("/events", status_code=201)
async def submit_flood_event(report: FloodEventReport, monitor: FloodMonitor = Depends(get_monitor)):
    try:
        event_id = await monitor.submit_flood_event(report)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Saving flood event failed: {e}")
    return {"status": "ok", "id": event_id}

@router.get("/events/history", response_model=List[FloodEventDay])
async def flood_event_history(monitor: FloodMonitor = Depends(get_monitor)):
    return await monitor.flood_event_history()

# ---- Preferences ----
@router.get("/preferences/theme", response_model=ThemePreference)
async def get_theme(monitor: FloodMonitor = Depends(get_monitor)):
    return ThemePreference(theme=await monitor.get_theme())

@router.put("/preferences/theme", response_model=ThemePreference)
async def set_theme(payload: ThemePreference, monitor: FloodMonitor = Depends(get_monitor)):
    return ThemePreference(theme=await monitor.set_theme(payload.theme))
