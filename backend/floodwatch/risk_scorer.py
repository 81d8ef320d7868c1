# backend/floodwatch/risk_scorer.py
"""
Static flood risk scoring for a monitored site.

Additive point scoring across seven site factors plus an area-type
adjustment:
1️⃣ Elevation (0–20)          5️⃣ Drainage (0–10)
2️⃣ Distance from water (0–20) 6️⃣ Vegetation cover (0–10)
3️⃣ Soil permeability (0–15)   7️⃣ Flood history (0–10)
4️⃣ Slope gradient (0–15)      ➕ Area type (0–5)

The score is not clamped, so the area-type bonus can push it past 100.
"""

from typing import Any, Dict, List, Optional, Tuple

# ---- Defaults for missing inputs ----
DEFAULT_ELEVATION_M = 5.0
DEFAULT_DISTANCE_FROM_WATER_M = 50.0
DEFAULT_SLOPE_DEG = 2.0
DEFAULT_SOIL_PERMEABILITY = "medium"
DEFAULT_DRAINAGE = "fair"
DEFAULT_VEGETATION = "medium"
DEFAULT_FLOOD_HISTORY = "rare"

HIGH_THRESHOLD = 70
MEDIUM_THRESHOLD = 40

# ---- Numeric factor bands: (upper bound inclusive, points, label) ----
ELEVATION_BANDS = [
    (2, 20, "Very low elevation"),
    (5, 15, "Low elevation"),
    (10, 10, "Moderate elevation"),
    (20, 5, "Higher elevation"),
]
ELEVATION_ELSE = (0, "High elevation")

DISTANCE_BANDS = [
    (10, 20, "Very close to water"),
    (25, 15, "Close to water"),
    (50, 10, "Moderate distance from water"),
    (100, 5, "Far from water"),
]
DISTANCE_ELSE = (0, "Very far from water")

SLOPE_BANDS = [
    (2, 15, "Very flat terrain"),
    (5, 10, "Flat terrain"),
    (10, 5, "Moderate slope"),
    (20, 2, "Steep slope"),
]
SLOPE_ELSE = (0, "Very steep slope")

# ---- Categorical factors: value -> (points, label); last entry is the fallback ----
SOIL_POINTS = {
    "low": (15, "Low soil permeability"),
    "medium": (8, "Medium soil permeability"),
}
SOIL_ELSE = (0, "High soil permeability")

DRAINAGE_POINTS = {
    "poor": (10, "Poor drainage"),
    "fair": (5, "Fair drainage"),
}
DRAINAGE_ELSE = (0, "Good drainage")

VEGETATION_POINTS = {
    "low": (10, "Low vegetation cover"),
    "medium": (5, "Medium vegetation cover"),
}
VEGETATION_ELSE = (0, "High vegetation cover")

HISTORY_POINTS = {
    "frequent": (10, "Frequent historical flooding"),
    "occasional": (7, "Occasional historical flooding"),
    "rare": (3, "Rare historical flooding"),
}
HISTORY_ELSE = (0, "No historical flooding")

AREA_TYPE_POINTS = {
    "residential": (3, "Residential area vulnerability"),
    "single-house": (3, "Residential area vulnerability"),
    "commercial": (4, "Critical infrastructure"),
    "infrastructure": (4, "Critical infrastructure"),
    "agricultural": (2, "Agricultural land"),
}


def _to_float(value: Any, default: float) -> float:
    if value is None or value == "":
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if number != number:  # NaN
        return default
    return number


def _to_key(value: Any, default: str) -> str:
    if value is None:
        return default
    key = getattr(value, "value", value)
    key = str(key).strip().lower()
    return key or default


def _band(value: float, bands: List[Tuple[float, int, str]], fallback: Tuple[int, str]) -> Tuple[int, str]:
    for upper, points, label in bands:
        if value <= upper:
            return points, label
    return fallback


def level_for_score(score: float) -> str:
    if score >= HIGH_THRESHOLD:
        return "high"
    if score >= MEDIUM_THRESHOLD:
        return "medium"
    return "low"


def calculate_flood_risk(
    elevation: Optional[float] = None,
    distance_from_water: Optional[float] = None,
    soil_permeability: Optional[str] = None,
    slope_gradient: Optional[float] = None,
    drainage_condition: Optional[str] = None,
    vegetation_cover: Optional[str] = None,
    flood_history: Optional[str] = None,
    area_type: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Score a site and return {"level", "score", "factors"}.

    Parameters:
        elevation: Site elevation (m)
        distance_from_water: Distance to the nearest waterbody (m)
        soil_permeability: low / medium / high
        slope_gradient: Terrain slope (degrees)
        drainage_condition: poor / fair / good
        vegetation_cover: low / medium / high
        flood_history: frequent / occasional / rare / none
        area_type: Monitored area type, adds a vulnerability bonus
    """
    elevation = _to_float(elevation, DEFAULT_ELEVATION_M)
    distance_from_water = _to_float(distance_from_water, DEFAULT_DISTANCE_FROM_WATER_M)
    slope_gradient = _to_float(slope_gradient, DEFAULT_SLOPE_DEG)

    steps = [
        _band(elevation, ELEVATION_BANDS, ELEVATION_ELSE),
        _band(distance_from_water, DISTANCE_BANDS, DISTANCE_ELSE),
        SOIL_POINTS.get(_to_key(soil_permeability, DEFAULT_SOIL_PERMEABILITY), SOIL_ELSE),
        _band(slope_gradient, SLOPE_BANDS, SLOPE_ELSE),
        DRAINAGE_POINTS.get(_to_key(drainage_condition, DEFAULT_DRAINAGE), DRAINAGE_ELSE),
        VEGETATION_POINTS.get(_to_key(vegetation_cover, DEFAULT_VEGETATION), VEGETATION_ELSE),
        HISTORY_POINTS.get(_to_key(flood_history, DEFAULT_FLOOD_HISTORY), HISTORY_ELSE),
    ]
    bonus = AREA_TYPE_POINTS.get(_to_key(area_type, ""))
    if bonus:
        steps.append(bonus)

    score = sum(points for points, _ in steps)
    factors = [label for _, label in steps]
    return {"level": level_for_score(score), "score": score, "factors": factors}
