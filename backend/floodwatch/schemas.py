from datetime import date, datetime
from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, Field


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class AreaType(str, Enum):
    RESIDENTIAL = "residential"
    SINGLE_HOUSE = "single-house"
    COMMERCIAL = "commercial"
    INFRASTRUCTURE = "infrastructure"
    LANDMARK = "landmark"
    RIVER = "river"
    WATER_STREAM = "water-stream"
    BRIDGE = "bridge"
    ROAD = "road"
    SLOPE = "slope"
    AGRICULTURAL = "agricultural"
    OTHER = "other"


class SimulationCondition(str, Enum):
    CLEAR = "clear"
    LIGHT_RAIN = "light-rain"
    HEAVY_RAIN = "heavy-rain"
    THUNDERSTORM = "thunderstorm"
    TYPHOON = "typhoon"


class NotificationType(str, Enum):
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"
    HIGH_RISK_ALERT = "high-risk-alert"


class Action(str, Enum):
    CONFIRM = "confirm"
    DISREGARD = "disregard"
    CONFIRM_HIGH_RISK = "confirm-high-risk"
    DISREGARD_HIGH_RISK = "disregard-high-risk"
    REVIEW_HIGH_RISK = "review-high-risk"


# ---- Areas ----

class MonitoredArea(BaseModel):
    id: str
    name: str
    type: AreaType
    flood_risk: RiskLevel
    landslide_risk: Optional[RiskLevel] = None
    population: Optional[int] = None
    notes: Optional[str] = None
    coordinates: Tuple[float, float]
    polygon: Optional[List[Tuple[float, float]]] = None
    # simulation overlay, never the source of truth
    simulated_flood_risk: Optional[RiskLevel] = None
    simulated_landslide_risk: Optional[RiskLevel] = None
    is_simulated: bool = False


class RiskInputs(BaseModel):
    elevation: Optional[float] = None
    distance_from_water: Optional[float] = None
    soil_permeability: Optional[str] = None
    slope_gradient: Optional[float] = None
    drainage_condition: Optional[str] = None
    vegetation_cover: Optional[str] = None
    flood_history: Optional[str] = None
    area_type: Optional[str] = None


class RiskAssessment(BaseModel):
    level: RiskLevel
    score: int
    factors: List[str]


class AreaView(MonitoredArea):
    """Area as listed for the map: effective risk colour for its marker."""
    marker_color: str


class AreaCreate(BaseModel):
    """Submitted area form; cross-field rules are checked by the monitor."""
    name: Optional[str] = None
    type: Optional[AreaType] = None
    flood_risk: Optional[RiskLevel] = None
    risk_inputs: Optional[RiskInputs] = None
    landslide_risk: Optional[RiskLevel] = None
    population: Optional[int] = None
    notes: Optional[str] = None
    coordinates: Optional[Tuple[float, float]] = None
    polygon: Optional[List[Tuple[float, float]]] = None


# ---- Weather ----

class WeatherSnapshot(BaseModel):
    temperature: float
    description: str
    humidity: float
    wind_speed: float
    wind_direction: Optional[float] = None
    precipitation: float = 0.0
    pressure: float
    visibility: float
    feels_like: float
    cloudiness: float = 0.0
    uv_index: Optional[float] = None
    dew_point: Optional[float] = None


class TemperatureRange(BaseModel):
    min: float
    max: float


class ForecastDay(BaseModel):
    date: str
    day_name: str
    temperature: TemperatureRange
    humidity: float
    precipitation: float
    wind_speed: float
    description: str
    icon: str
    risk_level: RiskLevel


class ClassifyRequest(BaseModel):
    current: WeatherSnapshot
    forecast: List[ForecastDay] = []


class WeatherReport(BaseModel):
    weather: Optional[WeatherSnapshot]
    forecast: List[ForecastDay]
    source: Optional[str]
    last_updated: Optional[datetime]
    wind_direction_label: Optional[str] = None


class WeatherAlert(BaseModel):
    level: RiskLevel
    message: str


# ---- Simulation ----

class SimulationRequest(BaseModel):
    condition: SimulationCondition


class RealtimeToggle(BaseModel):
    enabled: bool


class SimulationState(BaseModel):
    current_condition: Optional[SimulationCondition]
    condition_name: Optional[str]
    context: str
    realtime_enabled: bool
    manual_override: bool


# ---- Notifications ----

class Notification(BaseModel):
    type: NotificationType
    title: str
    message: str
    time: datetime
    area_id: Optional[str] = None
    high_risk_areas: Optional[List[MonitoredArea]] = None
    is_simulation: bool = False


class NotificationFeedView(BaseModel):
    notifications: List[Notification]
    badge: int
    badge_visible: bool


class ActionRequest(BaseModel):
    action: Action
    area_id: Optional[str] = None
    index: Optional[int] = None


class ActionResult(BaseModel):
    action: Action
    area_ids: List[str] = []
    records_written: int = 0
    failed: List[str] = []
    notification_removed: bool = False
    badge: int = 0
    open_report_for: Optional[MonitoredArea] = None
    review_areas: Optional[List[MonitoredArea]] = None
    is_simulation: Optional[bool] = None


# ---- Audit trail & reports ----

class AuditRecord(BaseModel):
    id: Optional[int] = None
    area_id: str
    area_name: str
    actor: str = "user"
    weather_conditions: Optional[WeatherSnapshot] = None
    simulation_context: str = "real-time"
    timestamp: Optional[datetime] = None


class FloodRecord(AuditRecord):
    pass


class DisregardRecord(AuditRecord):
    pass


class FloodEventReport(BaseModel):
    id: Optional[str] = None
    area_id: str
    area_name: str
    date_time: Optional[str] = None
    water_level: Optional[str] = None
    rainfall_amount: Optional[str] = None
    duration: Optional[str] = None
    flood_extent: Optional[str] = None
    flood_impact: Optional[str] = None
    weather_conditions: Optional[str] = None
    warnings_issued: Optional[str] = None
    reporter_name: Optional[str] = None
    reporter_contact: Optional[str] = None
    reporter_organization: Optional[str] = None
    photo_urls: List[str] = Field(default_factory=list)
    submitted_at: Optional[datetime] = None


class FloodEventDay(BaseModel):
    date: date
    count: int
    events: List[FloodEventReport]


class ThemePreference(BaseModel):
    theme: str = Field(pattern="^(dark|light)$")
