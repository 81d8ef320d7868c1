# backend/floodwatch/weather_client.py
"""
Weather provider client (OpenWeatherMap-compatible).

Fetches current conditions and the 3-hour step forecast, aggregates the
forecast into daily buckets, and falls back to synthetic data on any
failure so the classifier always has something to work with.
"""

import os
import random
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Tuple

import httpx
import pandas as pd

from .logging_setup import logger
from .schemas import ForecastDay, RiskLevel, TemperatureRange, WeatherSnapshot

# ---- Config ----
OWM_BASE_URL = os.getenv("FLOODWATCH_OWM_BASE_URL", "https://api.openweathermap.org/data/2.5")
OWM_API_KEY = os.getenv("FLOODWATCH_OWM_API_KEY", "").strip()
LATITUDE = float(os.getenv("FLOODWATCH_LAT", "12.1113"))
LONGITUDE = float(os.getenv("FLOODWATCH_LON", "125.3756"))
HTTP_TIMEOUT = float(os.getenv("FLOODWATCH_HTTP_TIMEOUT", "30"))

FORECAST_DAYS = 5
MIDDAY_HOURS = (11, 13)

# per-day risk thresholds
DAY_HIGH_PRECIP_MM = 15.0
DAY_HIGH_WIND = 20.0
DAY_MEDIUM_PRECIP_MM = 5.0
DAY_MEDIUM_WIND = 10.0

SOURCE_LIVE = "live"
SOURCE_FALLBACK = "fallback"

CARDINALS = ["N", "NNE", "NE", "ENE", "E", "ESE", "SE", "SSE",
             "S", "SSW", "SW", "WSW", "W", "WNW", "NW", "NNW"]


def wind_direction_label(degrees: float) -> str:
    return CARDINALS[int(round(degrees / 22.5)) % 16]


def day_risk_level(precipitation: float, wind_speed: float) -> RiskLevel:
    if precipitation > DAY_HIGH_PRECIP_MM or wind_speed > DAY_HIGH_WIND:
        return RiskLevel.HIGH
    if precipitation > DAY_MEDIUM_PRECIP_MM or wind_speed > DAY_MEDIUM_WIND:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def _day_name(index: int, day: datetime) -> str:
    if index == 0:
        return "Today"
    if index == 1:
        return "Tomorrow"
    return day.strftime("%a")


def parse_current(payload: Dict[str, Any]) -> WeatherSnapshot:
    main = payload["main"]
    wind = payload.get("wind") or {}
    temp = float(main["temp"])
    humidity = float(main["humidity"])
    visibility = payload.get("visibility")
    return WeatherSnapshot(
        temperature=round(temp),
        description=payload["weather"][0]["description"],
        humidity=humidity,
        wind_speed=round(float(wind.get("speed", 0.0)), 1),
        wind_direction=wind.get("deg"),
        precipitation=float((payload.get("rain") or {}).get("1h", 0.0)),
        pressure=float(main["pressure"]),
        visibility=visibility / 1000 if visibility else 10.0,  # km
        feels_like=round(float(main["feels_like"])),
        cloudiness=float((payload.get("clouds") or {}).get("all", 0)),
        dew_point=temp - ((100 - humidity) / 5),
    )


def aggregate_forecast(payload: Dict[str, Any], days: int = FORECAST_DAYS) -> List[ForecastDay]:
    """
    Group 3-hour entries into local calendar days.

    Precipitation per day is min(2 × max 3h value, sum of 3h values), which
    damps over-estimation from many small reports.
    """
    entries = payload.get("list") or []
    if not entries:
        return []
    tz_offset = int((payload.get("city") or {}).get("timezone", 0))

    rows = []
    for item in entries:
        rows.append({
            "local_time": datetime.fromtimestamp(item["dt"], tz=timezone.utc).replace(tzinfo=None)
            + timedelta(seconds=tz_offset),
            "temp": float(item["main"]["temp"]),
            "humidity": float(item["main"]["humidity"]),
            "wind": float((item.get("wind") or {}).get("speed", 0.0)),
            "precip": float((item.get("rain") or {}).get("3h", 0.0)),
            "description": item["weather"][0]["description"],
            "icon": item["weather"][0]["icon"],
        })
    df = pd.DataFrame(rows)
    df["day"] = df["local_time"].dt.normalize()
    df["hour"] = df["local_time"].dt.hour

    forecast: List[ForecastDay] = []
    for index, (day, group) in enumerate(df.groupby("day", sort=True)):
        if index >= days:
            break
        precipitation = min(group["precip"].max() * 2, group["precip"].sum())
        wind_speed = group["wind"].mean()
        midday = group[group["hour"].between(*MIDDAY_HOURS)]
        rep = midday.iloc[0] if not midday.empty else group.iloc[0]

        forecast.append(ForecastDay(
            date=day.isoformat(),
            day_name=_day_name(index, day),
            temperature=TemperatureRange(min=round(group["temp"].min()), max=round(group["temp"].max())),
            humidity=round(group["humidity"].mean()),
            precipitation=round(float(precipitation), 1),
            wind_speed=round(float(wind_speed)),
            description=rep["description"],
            icon=rep["icon"],
            risk_level=day_risk_level(precipitation, wind_speed),
        ))
    return forecast


def fallback_weather(today: datetime = None) -> Tuple[WeatherSnapshot, List[ForecastDay]]:
    """Synthetic but realistic conditions used when the provider is unreachable."""
    today = today or datetime.utcnow()
    weather = WeatherSnapshot(
        temperature=28,
        description="Weather data unavailable",
        humidity=70,
        wind_speed=5,
        precipitation=0,
        pressure=1013,
        visibility=10,
        feels_like=30,
        cloudiness=50,
    )
    forecast = []
    for i in range(FORECAST_DAYS):
        day = today + timedelta(days=i)
        precipitation = 0.5 if i == 0 else random.uniform(0, 3)
        wind_speed = 3 + random.uniform(0, 4)
        rainy = precipitation > 1
        forecast.append(ForecastDay(
            date=day.replace(hour=0, minute=0, second=0, microsecond=0).isoformat(),
            day_name=_day_name(i, day),
            temperature=TemperatureRange(min=25, max=32),
            humidity=70,
            precipitation=round(precipitation, 1),
            wind_speed=round(wind_speed),
            description="Light rain" if rainy else "Partly cloudy",
            icon="10d" if rainy else "02d",
            risk_level=RiskLevel.MEDIUM if rainy else RiskLevel.LOW,
        ))
    return weather, forecast


class WeatherClient:
    def __init__(self, api_key: str = OWM_API_KEY, lat: float = LATITUDE, lon: float = LONGITUDE,
                 base_url: str = OWM_BASE_URL, timeout: float = HTTP_TIMEOUT, transport=None):
        self.api_key = api_key
        self.lat = lat
        self.lon = lon
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    async def _get(self, client: httpx.AsyncClient, path: str) -> Dict[str, Any]:
        params = {"lat": self.lat, "lon": self.lon, "appid": self.api_key, "units": "metric"}
        response = await client.get(f"{self.base_url}/{path}", params=params, timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    async def fetch(self) -> Tuple[WeatherSnapshot, List[ForecastDay], str]:
        """Returns (weather, forecast, source). Never raises."""
        if not self.api_key:
            logger.warning("[weather_client] No API key configured, using fallback weather")
            return (*fallback_weather(), SOURCE_FALLBACK)
        try:
            async with httpx.AsyncClient(transport=self.transport) as client:
                current = await self._get(client, "weather")
                raw_forecast = await self._get(client, "forecast")
            weather = parse_current(current)
            forecast = aggregate_forecast(raw_forecast)
            logger.info(
                f"[weather_client] Fetched weather: {weather.description}, "
                f"rain={weather.precipitation}mm, wind={weather.wind_speed}m/s, days={len(forecast)}"
            )
            return weather, forecast, SOURCE_LIVE
        except (httpx.HTTPError, KeyError, IndexError, TypeError, ValueError) as e:
            logger.error(f"[weather_client] Error fetching weather data: {e}", exc_info=True)
            return (*fallback_weather(), SOURCE_FALLBACK)
