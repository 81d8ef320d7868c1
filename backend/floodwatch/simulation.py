# backend/floodwatch/simulation.py
"""
Weather simulation overlay for monitored areas.

Each area is either at baseline (no overlay) or simulated (overlay set).
Transforms always read the baseline flood risk, so re-applying a condition
never compounds on a previously simulated value. A single condition (or
none) is active process-wide.
"""

import os
from typing import Dict, List, Optional, Sequence

from .logging_setup import logger
from .schemas import ForecastDay, MonitoredArea, RiskLevel, SimulationCondition, WeatherSnapshot
from .weather_classifier import classify_weather, condition_name, has_plausible_readings

REALTIME_DEFAULT = os.getenv("FLOODWATCH_REALTIME_SIMULATION", "true").lower() in ("1", "true", "yes")
REAL_TIME_CONTEXT = "real-time"

_L, _M, _H = RiskLevel.LOW, RiskLevel.MEDIUM, RiskLevel.HIGH

# baseline flood risk -> simulated flood risk, per condition. Never de-escalates
# except under CLEAR.
TRANSFORMS: Dict[SimulationCondition, Dict[RiskLevel, RiskLevel]] = {
    SimulationCondition.CLEAR: {_L: _L, _M: _L, _H: _L},
    SimulationCondition.LIGHT_RAIN: {_L: _M, _M: _H, _H: _H},
    SimulationCondition.HEAVY_RAIN: {_L: _H, _M: _H, _H: _H},
    SimulationCondition.THUNDERSTORM: {_L: _H, _M: _H, _H: _H},
    SimulationCondition.TYPHOON: {_L: _H, _M: _H, _H: _H},
}

RISK_COLORS = {_H: "#dc2626", _M: "#f59e0b", _L: "#10b981"}


def simulated_risk(condition: SimulationCondition, baseline: RiskLevel) -> RiskLevel:
    return TRANSFORMS[SimulationCondition(condition)][RiskLevel(baseline)]


def effective_flood_risk(area: MonitoredArea) -> RiskLevel:
    return area.simulated_flood_risk or area.flood_risk


def effective_landslide_risk(area: MonitoredArea) -> Optional[RiskLevel]:
    return area.simulated_landslide_risk or area.landslide_risk


def marker_color(area: MonitoredArea) -> str:
    flood = effective_flood_risk(area)
    landslide = effective_landslide_risk(area)
    if _H in (flood, landslide):
        return RISK_COLORS[_H]
    if _M in (flood, landslide):
        return RISK_COLORS[_M]
    return RISK_COLORS[_L]


def clear_overlay(area: MonitoredArea) -> None:
    area.simulated_flood_risk = None
    area.simulated_landslide_risk = None
    area.is_simulated = False


class SimulationEngine:
    def __init__(self, realtime_enabled: bool = REALTIME_DEFAULT):
        self.current_condition: Optional[SimulationCondition] = None
        self.realtime_enabled = realtime_enabled
        self.manual_override = False

    @property
    def context(self) -> str:
        """Label stored on audit records: the active condition or real-time."""
        if self.current_condition is None:
            return REAL_TIME_CONTEXT
        return self.current_condition.value

    def apply_condition(self, condition, areas: Sequence[MonitoredArea], manual: bool = True) -> SimulationCondition:
        condition = SimulationCondition(condition)
        for area in areas:
            clear_overlay(area)
            area.simulated_flood_risk = simulated_risk(condition, area.flood_risk)
            area.is_simulated = True

        self.current_condition = condition
        if manual:
            self.manual_override = True
        logger.info(
            f"[simulation] Applied {condition.value} ({'manual' if manual else 'auto'}) to {len(areas)} areas"
        )
        return condition

    def reset(
        self,
        areas: Sequence[MonitoredArea],
        weather: Optional[WeatherSnapshot] = None,
        forecast: Optional[List[ForecastDay]] = None,
    ) -> Optional[SimulationCondition]:
        """
        Return every area to baseline and drop any manual override. If
        automatic mode is on and weather is known, reclassify and reapply.
        """
        for area in areas:
            clear_overlay(area)
        self.current_condition = None
        self.manual_override = False
        logger.info(f"[simulation] Reset {len(areas)} areas to baseline")

        if self.realtime_enabled:
            self.auto_update(areas, weather, forecast)
        return self.current_condition

    def auto_update(
        self,
        areas: Sequence[MonitoredArea],
        weather: Optional[WeatherSnapshot],
        forecast: Optional[List[ForecastDay]],
    ) -> Optional[SimulationCondition]:
        """
        Derive the condition from the latest weather and apply it when it
        differs from the active one. No-op without data, when disabled, or
        while a manual condition is in force.
        """
        if not self.realtime_enabled or self.manual_override:
            return None
        if weather is None or not forecast:
            return None
        if not has_plausible_readings(weather, forecast):
            logger.warning("[simulation] Skipping real-time simulation: implausible weather values")
            return None

        condition = classify_weather(weather, forecast)
        if condition == self.current_condition:
            return None
        logger.info(f"[simulation] Real-time condition -> {condition_name(condition)}")
        return self.apply_condition(condition, areas, manual=False)

    def set_realtime(
        self,
        enabled: bool,
        areas: Sequence[MonitoredArea],
        weather: Optional[WeatherSnapshot] = None,
        forecast: Optional[List[ForecastDay]] = None,
    ) -> Optional[SimulationCondition]:
        self.realtime_enabled = enabled
        if enabled:
            self.auto_update(areas, weather, forecast)
        else:
            self.reset(areas)
        return self.current_condition

    def state(self) -> dict:
        return {
            "current_condition": self.current_condition,
            "condition_name": condition_name(self.current_condition) if self.current_condition else None,
            "context": self.context,
            "realtime_enabled": self.realtime_enabled,
            "manual_override": self.manual_override,
        }
