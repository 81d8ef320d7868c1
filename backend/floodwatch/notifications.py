# backend/floodwatch/notifications.py
"""
Builds the notification feed from area state and raw weather thresholds,
and keeps the live feed plus its unread badge.
"""

from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from .schemas import (
    ForecastDay,
    MonitoredArea,
    Notification,
    NotificationType,
    RiskLevel,
    SimulationCondition,
    WeatherSnapshot,
)
from .simulation import effective_flood_risk, effective_landslide_risk
from .weather_classifier import condition_name

# ---- Thresholds ----
HEAVY_RAIN_MM = 10.0
MODERATE_RAIN_MM = 5.0
STRONG_WIND = 15.0
FORECAST_LOOKAHEAD_DAYS = 2


def is_high_risk(area: MonitoredArea) -> bool:
    return (
        effective_flood_risk(area) == RiskLevel.HIGH
        or effective_landslide_risk(area) == RiskLevel.HIGH
    )


def _high_risk_alert(
    areas: Sequence[MonitoredArea],
    active_condition: Optional[SimulationCondition],
    now: datetime,
) -> Optional[Notification]:
    matched = [area for area in areas if is_high_risk(area)]
    if not matched:
        return None

    is_simulation = any(area.is_simulated for area in matched)
    context = ""
    if is_simulation and active_condition is not None:
        context = f" during {condition_name(active_condition)} simulation"
    plural = "s" if len(matched) > 1 else ""
    return Notification(
        type=NotificationType.HIGH_RISK_ALERT,
        title="🚨 High Risk Areas Detected",
        message=(
            f"{len(matched)} area{plural} detected with high flood or landslide risk{context}. "
            "Click to review and confirm flood events."
        ),
        time=now,
        high_risk_areas=[area.model_copy(deep=True) for area in matched],
        is_simulation=is_simulation,
    )


def _weather_notifications(
    weather: Optional[WeatherSnapshot],
    forecast: Sequence[ForecastDay],
    now: datetime,
) -> List[Notification]:
    out: List[Notification] = []
    if weather is not None:
        if weather.precipitation > HEAVY_RAIN_MM:
            out.append(Notification(
                type=NotificationType.CRITICAL,
                title="Heavy Rainfall Alert",
                message=f"Heavy rainfall detected ({weather.precipitation}mm). High flood risk in monitored areas.",
                time=now,
            ))
        elif weather.precipitation > MODERATE_RAIN_MM:
            out.append(Notification(
                type=NotificationType.WARNING,
                title="Moderate Rainfall",
                message=f"Moderate rainfall ({weather.precipitation}mm). Monitor flood-prone areas closely.",
                time=now,
            ))

        if weather.wind_speed > STRONG_WIND:
            out.append(Notification(
                type=NotificationType.WARNING,
                title="Strong Winds",
                message=f"Wind speeds of {weather.wind_speed} m/s detected. Monitor for potential hazards.",
                time=now,
            ))

    high_days = [
        day for day in list(forecast)[:FORECAST_LOOKAHEAD_DAYS]
        if day.risk_level == RiskLevel.HIGH
    ]
    if high_days:
        out.append(Notification(
            type=NotificationType.WARNING,
            title="High Risk Forecast",
            message=f"{len(high_days)} day(s) with high flood risk expected in the forecast.",
            time=now,
        ))
    return out


def generate_notifications(
    areas: Sequence[MonitoredArea],
    weather: Optional[WeatherSnapshot],
    forecast: Sequence[ForecastDay],
    active_condition: Optional[SimulationCondition] = None,
    now: Optional[datetime] = None,
) -> List[Notification]:
    """
    Full replacement notification list for the current state: at most one
    aggregated high-risk alert, then weather threshold notices, or a single
    informational status entry when nothing fired.
    """
    now = now or datetime.utcnow()
    notifications: List[Notification] = []

    alert = _high_risk_alert(areas, active_condition, now)
    if alert is not None:
        notifications.append(alert)
    notifications.extend(_weather_notifications(weather, forecast, now))

    if not notifications:
        notifications.append(Notification(
            type=NotificationType.INFO,
            title="System Status",
            message="All monitoring systems operating normally. Weather conditions stable.",
            time=now,
        ))
    return notifications


def badge_count(notifications: Sequence[Notification]) -> int:
    return sum(1 for n in notifications if n.type != NotificationType.INFO)


def weather_alert(weather: Optional[WeatherSnapshot], forecast: Sequence[ForecastDay]) -> Tuple[RiskLevel, str]:
    """Dashboard banner level and text; LOW means no banner."""
    level, text = RiskLevel.LOW, ""
    if weather is not None:
        if weather.precipitation > HEAVY_RAIN_MM:
            level, text = RiskLevel.HIGH, "Heavy rainfall detected. High flood risk in monitored areas."
        elif weather.precipitation > MODERATE_RAIN_MM:
            level, text = RiskLevel.MEDIUM, "Moderate rainfall. Monitor flood-prone areas closely."
        elif weather.wind_speed > STRONG_WIND:
            level, text = RiskLevel.MEDIUM, "Strong winds detected. Monitor for potential hazards."

    # days 1-2 after today
    upcoming_high = any(day.risk_level == RiskLevel.HIGH for day in list(forecast)[1:3])
    if upcoming_high and level == RiskLevel.LOW:
        level, text = RiskLevel.MEDIUM, "High risk weather conditions expected in the next 2 days."
    return level, text


class NotificationFeed:
    """Live notification list shown to the user, with its unread badge."""

    def __init__(self):
        self.notifications: List[Notification] = []
        self.badge = 0

    def replace(self, notifications: List[Notification]) -> None:
        self.notifications = list(notifications)
        self.badge = badge_count(self.notifications)

    def get(self, index: int) -> Optional[Notification]:
        if index is None or index < 0 or index >= len(self.notifications):
            return None
        return self.notifications[index]

    def find_for_area(self, area_id: str) -> Optional[int]:
        for idx, n in enumerate(self.notifications):
            if n.area_id == area_id:
                return idx
            if n.high_risk_areas and any(a.id == area_id for a in n.high_risk_areas):
                return idx
        return None

    def remove(self, index: int) -> bool:
        """Drop one notification and decrement the badge by exactly one."""
        if self.get(index) is None:
            return False
        self.notifications.pop(index)
        self.badge = max(0, self.badge - 1)
        return True

    def resolve_area(self, index: int, area_id: str) -> Tuple[bool, bool]:
        """
        Take one resolved area out of the notification at index.

        An aggregated alert only loses that area and is removed once its
        list is empty; a per-area notification is removed outright.
        Returns (changed, removed).
        """
        notification = self.get(index)
        if notification is None:
            return False, False

        if notification.type == NotificationType.HIGH_RISK_ALERT and notification.high_risk_areas:
            remaining = [a for a in notification.high_risk_areas if a.id != area_id]
            if len(remaining) == len(notification.high_risk_areas):
                return False, False
            if remaining:
                self.notifications[index] = notification.model_copy(update={"high_risk_areas": remaining})
                return True, False
            self.remove(index)
            return True, True

        if notification.area_id == area_id:
            self.remove(index)
            return True, True
        return False, False

    def clear(self) -> None:
        self.notifications = []
        self.badge = 0

    @property
    def badge_visible(self) -> bool:
        return self.badge > 0

    def view(self) -> dict:
        return {
            "notifications": self.notifications,
            "badge": self.badge,
            "badge_visible": self.badge_visible,
        }
