# backend/floodwatch/weather_classifier.py
"""
Maps a current observation plus the short forecast onto one discrete
simulation condition. Rules are a priority cascade: the first match wins.
"""

from typing import List, Sequence

from .schemas import ForecastDay, SimulationCondition, WeatherSnapshot

# ---- Tunable thresholds (precipitation mm, wind m/s) ----
LOOKAHEAD_DAYS = 2
SEVERE_FORECAST_PRECIP_MM = 20.0
SEVERE_FORECAST_WIND = 25.0
TYPHOON_PRECIP_MM = 15.0
TYPHOON_WIND = 20.0
THUNDERSTORM_PRECIP_MM = 8.0
THUNDERSTORM_WIND = 12.0
HEAVY_RAIN_PRECIP_MM = 4.0
HEAVY_RAIN_WIND = 8.0
LIGHT_RAIN_PRECIP_MM = 0.5
RAIN_KEYWORDS = ("rain", "drizzle", "shower")

# readings at or above these are treated as provider glitches
PLAUSIBLE_PRECIP_MM = 50.0
PLAUSIBLE_WIND = 30.0

CONDITION_NAMES = {
    SimulationCondition.CLEAR: "Clear Weather",
    SimulationCondition.LIGHT_RAIN: "Light Rainfall",
    SimulationCondition.HEAVY_RAIN: "Heavy Rainfall",
    SimulationCondition.THUNDERSTORM: "Thunderstorm",
    SimulationCondition.TYPHOON: "Typhoon",
}


def condition_name(condition) -> str:
    try:
        return CONDITION_NAMES[SimulationCondition(condition)]
    except ValueError:
        return str(condition)


def classify_weather(current: WeatherSnapshot, forecast: Sequence[ForecastDay]) -> SimulationCondition:
    precipitation = current.precipitation or 0.0
    wind = current.wind_speed or 0.0
    description = (current.description or "").lower()

    severe_ahead = any(
        day.precipitation > SEVERE_FORECAST_PRECIP_MM or day.wind_speed > SEVERE_FORECAST_WIND
        for day in list(forecast)[:LOOKAHEAD_DAYS]
    )

    if severe_ahead:
        return SimulationCondition.TYPHOON
    if precipitation > TYPHOON_PRECIP_MM or wind > TYPHOON_WIND:
        return SimulationCondition.TYPHOON
    if precipitation > THUNDERSTORM_PRECIP_MM or wind > THUNDERSTORM_WIND:
        return SimulationCondition.THUNDERSTORM
    if precipitation > HEAVY_RAIN_PRECIP_MM or wind > HEAVY_RAIN_WIND:
        return SimulationCondition.HEAVY_RAIN
    if precipitation > LIGHT_RAIN_PRECIP_MM or any(word in description for word in RAIN_KEYWORDS):
        return SimulationCondition.LIGHT_RAIN
    return SimulationCondition.CLEAR


def has_plausible_readings(current: WeatherSnapshot, forecast: List[ForecastDay]) -> bool:
    """False when the current reading or any forecast day looks like an API error."""
    if current.precipitation >= PLAUSIBLE_PRECIP_MM or current.wind_speed >= PLAUSIBLE_WIND:
        return False
    return all(
        day.precipitation < PLAUSIBLE_PRECIP_MM and day.wind_speed < PLAUSIBLE_WIND
        for day in forecast
    )
