# backend/floodwatch/monitor.py
"""
FloodMonitor wires the engine together: it owns the area list, the latest
(weather, forecast) pair, the simulation engine, the live notification feed
and the persistence store, and re-derives notifications after every change
that can affect risk.
"""

import asyncio
import uuid
from datetime import datetime
from typing import List, Optional

from .actions import ActionResolver, AreaNotFoundError
from .geometry import close_ring, polygon_centroid
from .history import group_events_by_date
from .logging_setup import logger
from .notifications import NotificationFeed, generate_notifications, weather_alert
from .risk_scorer import calculate_flood_risk
from .schemas import (
    ActionRequest,
    ActionResult,
    AreaCreate,
    FloodEventDay,
    FloodEventReport,
    ForecastDay,
    MonitoredArea,
    Notification,
    RiskInputs,
    RiskLevel,
    WeatherSnapshot,
)
from .simulation import SimulationEngine, clear_overlay

DEFAULT_THEME = "dark"


class AreaValidationError(ValueError):
    pass


def build_area(payload: AreaCreate, area_id: Optional[str] = None) -> MonitoredArea:
    """Validate a submitted area form. Raises AreaValidationError, never returns a partial area."""
    name = (payload.name or "").strip()
    if not name or payload.type is None:
        raise AreaValidationError("Please fill in all required fields: name and type are required")
    if payload.coordinates is not None and payload.polygon:
        raise AreaValidationError("An area is either a point or a polygon, not both")
    if payload.coordinates is None and not payload.polygon:
        raise AreaValidationError("A location (point or polygon) is required")
    if payload.population is not None and payload.population <= 0:
        raise AreaValidationError("Population must be a positive integer")

    flood_risk = payload.flood_risk
    if flood_risk is None:
        inputs = payload.risk_inputs or RiskInputs()
        result = calculate_flood_risk(
            inputs.elevation,
            inputs.distance_from_water,
            inputs.soil_permeability,
            inputs.slope_gradient,
            inputs.drainage_condition,
            inputs.vegetation_cover,
            inputs.flood_history,
            inputs.area_type or payload.type.value,
        )
        flood_risk = RiskLevel(result["level"])

    polygon = None
    coordinates = payload.coordinates
    if payload.polygon:
        if len(payload.polygon) < 3:
            raise AreaValidationError("A polygon needs at least three vertices")
        polygon = close_ring(payload.polygon)
        coordinates = polygon_centroid(polygon)

    return MonitoredArea(
        id=area_id or uuid.uuid4().hex,
        name=name,
        type=payload.type,
        flood_risk=flood_risk,
        landslide_risk=payload.landslide_risk,
        population=payload.population,
        notes=payload.notes or None,
        coordinates=coordinates,
        polygon=polygon,
    )


class FloodMonitor:
    def __init__(self, store, weather_client, engine: Optional[SimulationEngine] = None):
        self.store = store
        self.weather_client = weather_client
        self.engine = engine or SimulationEngine()
        self.feed = NotificationFeed()
        self.resolver = ActionResolver(store, self.feed)
        self.areas: List[MonitoredArea] = []
        self.weather: Optional[WeatherSnapshot] = None
        self.forecast: List[ForecastDay] = []
        self.weather_source: Optional[str] = None
        self.last_updated: Optional[datetime] = None
        self._refresh_lock = asyncio.Lock()

    # ---- loading & weather ----
    async def load(self) -> List[MonitoredArea]:
        self.areas = await self.store.load_areas()
        for area in self.areas:
            clear_overlay(area)
        logger.info(f"[monitor] Loaded {len(self.areas)} monitored areas")
        return self.areas

    async def refresh_weather(self) -> bool:
        """Fetch weather and re-derive simulation + notifications. Skips if a refresh is in flight."""
        if self._refresh_lock.locked():
            logger.info("[monitor] Weather refresh already in progress, skipping")
            return False
        async with self._refresh_lock:
            weather, forecast, source = await self.weather_client.fetch()
            self.weather, self.forecast, self.weather_source = weather, forecast, source
            self.last_updated = datetime.utcnow()
            self.engine.auto_update(self.areas, self.weather, self.forecast)
            await self.generate_notifications()
        return True

    def weather_alert(self):
        return weather_alert(self.weather, self.forecast)

    # ---- areas ----
    async def _persist_areas(self) -> None:
        baseline = []
        for area in self.areas:
            copy = area.model_copy(deep=True)
            clear_overlay(copy)
            baseline.append(copy)
        await self.store.save_areas(baseline)

    async def add_area(self, payload: AreaCreate) -> MonitoredArea:
        area = build_area(payload)
        if self.engine.current_condition is not None:
            self.engine.apply_condition(self.engine.current_condition, [area], manual=self.engine.manual_override)
        self.areas.append(area)
        await self._persist_areas()
        logger.info(f"[monitor] Added area {area.name} ({area.id}) flood_risk={area.flood_risk.value}")
        await self.generate_notifications()
        return area

    async def delete_area(self, area_id: str) -> None:
        remaining = [a for a in self.areas if a.id != area_id]
        if len(remaining) == len(self.areas):
            raise AreaNotFoundError(f"Area {area_id} not found")
        self.areas = remaining
        await self._persist_areas()
        logger.info(f"[monitor] Deleted area {area_id}")
        await self.generate_notifications()

    # ---- simulation ----
    async def apply_simulation(self, condition) -> dict:
        self.engine.apply_condition(condition, self.areas, manual=True)
        await self.generate_notifications()
        return self.engine.state()

    async def reset_simulation(self) -> dict:
        self.engine.reset(self.areas, self.weather, self.forecast)
        await self.generate_notifications()
        return self.engine.state()

    async def set_realtime(self, enabled: bool) -> dict:
        self.engine.set_realtime(enabled, self.areas, self.weather, self.forecast)
        await self.generate_notifications()
        return self.engine.state()

    # ---- notifications ----
    async def generate_notifications(self) -> List[Notification]:
        notifications = generate_notifications(
            self.areas, self.weather, self.forecast, self.engine.current_condition
        )
        try:
            await self.store.save_notifications(notifications)
        except Exception as e:
            logger.error(f"[monitor] Failed to persist notification snapshot: {e}", exc_info=True)
        self.feed.replace(notifications)
        return notifications

    async def clear_notifications(self) -> None:
        await self.store.clear_notifications()
        self.feed.clear()

    async def resolve_notification(self, request: ActionRequest) -> ActionResult:
        return await self.resolver.resolve(request, self.areas, self.weather, self.engine.context)

    # ---- reports & preferences ----
    async def submit_flood_event(self, report: FloodEventReport) -> str:
        return await self.store.append_flood_event(report)

    async def flood_event_history(self) -> List[FloodEventDay]:
        return group_events_by_date(await self.store.load_flood_events())

    async def get_theme(self) -> str:
        return await self.store.load_theme() or DEFAULT_THEME

    async def set_theme(self, theme: str) -> str:
        await self.store.save_theme(theme)
        return theme
