import pytest

from backend.floodwatch.db_models import make_session_factory
from backend.floodwatch.schemas import (
    ForecastDay,
    MonitoredArea,
    RiskLevel,
    TemperatureRange,
    WeatherSnapshot,
)
from backend.floodwatch.store import PersistenceStore


def make_weather(precipitation=0.0, wind_speed=3.0, description="clear sky", **kwargs):
    fields = dict(
        temperature=28,
        description=description,
        humidity=70,
        wind_speed=wind_speed,
        precipitation=precipitation,
        pressure=1012,
        visibility=10,
        feels_like=30,
        cloudiness=20,
    )
    fields.update(kwargs)
    return WeatherSnapshot(**fields)


def make_day(precipitation=1.0, wind_speed=4.0, risk_level=RiskLevel.LOW, day_name="Today"):
    return ForecastDay(
        date="2026-10-19T00:00:00",
        day_name=day_name,
        temperature=TemperatureRange(min=25, max=31),
        humidity=75,
        precipitation=precipitation,
        wind_speed=wind_speed,
        description="scattered clouds",
        icon="03d",
        risk_level=risk_level,
    )


def make_area(area_id="a1", flood_risk="low", name=None, area_type="residential", **kwargs):
    return MonitoredArea(
        id=area_id,
        name=name or f"Area {area_id}",
        type=area_type,
        flood_risk=flood_risk,
        coordinates=(12.11, 125.37),
        **kwargs,
    )


class FakeWeatherClient:
    def __init__(self, weather=None, forecast=None, source="live"):
        self.weather = weather or make_weather()
        self.forecast = forecast if forecast is not None else [make_day(), make_day(day_name="Tomorrow")]
        self.source = source
        self.calls = 0

    async def fetch(self):
        self.calls += 1
        return self.weather, self.forecast, self.source


@pytest.fixture
def session_factory(tmp_path):
    return make_session_factory(f"sqlite:///{tmp_path / 'floodwatch_test.sqlite3'}")


@pytest.fixture
def store(session_factory):
    return PersistenceStore(session_factory)
