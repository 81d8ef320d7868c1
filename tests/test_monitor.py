import asyncio

import pytest

from backend.floodwatch.actions import AreaNotFoundError, NotificationNotFoundError
from backend.floodwatch.monitor import AreaValidationError, FloodMonitor, build_area
from backend.floodwatch.schemas import (
    ActionRequest,
    AreaCreate,
    FloodEventReport,
    NotificationType,
    RiskLevel,
    SimulationCondition,
)
from backend.floodwatch.simulation import SimulationEngine
from conftest import FakeWeatherClient, make_day, make_weather


def _monitor(store, realtime=False, client=None):
    return FloodMonitor(store, client or FakeWeatherClient(), SimulationEngine(realtime_enabled=realtime))


def test_build_area_computes_risk_when_not_given():
    area = build_area(AreaCreate(
        name="  Riverside  ",
        type="residential",
        coordinates=(12.1, 125.3),
        risk_inputs={"elevation": 2, "distance_from_water": 30, "soil_permeability": "low",
                     "slope_gradient": 1, "drainage_condition": "poor", "vegetation_cover": "low",
                     "flood_history": "frequent"},
    ))
    assert area.name == "Riverside"
    assert area.flood_risk == RiskLevel.HIGH
    assert area.id


def test_build_area_polygon_sets_centroid_and_closes_ring():
    area = build_area(AreaCreate(
        name="Block", type="commercial", flood_risk="low",
        polygon=[(0, 0), (0, 2), (2, 2), (2, 0)],
    ))
    assert area.coordinates == pytest.approx((1.0, 1.0))
    assert area.polygon[0] == area.polygon[-1]
    assert len(area.polygon) == 5


@pytest.mark.parametrize(
    "payload",
    [
        {"type": "residential", "coordinates": (1, 1)},
        {"name": "   ", "type": "residential", "coordinates": (1, 1)},
        {"name": "No type", "coordinates": (1, 1)},
        {"name": "Nowhere", "type": "landmark"},
        {"name": "Both", "type": "landmark", "coordinates": (1, 1), "polygon": [(0, 0), (0, 1), (1, 1)]},
        {"name": "Line", "type": "landmark", "polygon": [(0, 0), (0, 1)]},
        {"name": "Empty", "type": "landmark", "coordinates": (1, 1), "population": 0},
    ],
)
def test_build_area_rejects_invalid_forms(payload):
    with pytest.raises(AreaValidationError):
        build_area(AreaCreate(**payload))


def test_add_and_delete_area_persist_and_renotify(store):
    monitor = _monitor(store)

    async def scenario():
        area = await monitor.add_area(AreaCreate(name="Port", type="infrastructure", flood_risk="high", coordinates=(1, 2)))
        persisted = await store.load_areas()
        alerts = [n for n in monitor.feed.notifications if n.type == NotificationType.HIGH_RISK_ALERT]
        await monitor.delete_area(area.id)
        return area, persisted, alerts, await store.load_areas()

    area, persisted, alerts, after_delete = asyncio.run(scenario())
    assert [a.id for a in persisted] == [area.id]
    assert alerts and alerts[0].high_risk_areas[0].id == area.id
    assert after_delete == []
    assert [n.title for n in monitor.feed.notifications] == ["System Status"]


def test_delete_unknown_area_raises(store):
    with pytest.raises(AreaNotFoundError):
        asyncio.run(_monitor(store).delete_area("missing"))


def test_refresh_applies_realtime_condition_without_touching_persisted_baseline(store):
    client = FakeWeatherClient(weather=make_weather(precipitation=9), forecast=[make_day(), make_day()])
    monitor = _monitor(store, realtime=True, client=client)

    async def scenario():
        await monitor.add_area(AreaCreate(name="Low", type="residential", flood_risk="low", coordinates=(1, 1)))
        refreshed = await monitor.refresh_weather()
        return refreshed, await store.load_areas()

    refreshed, persisted = asyncio.run(scenario())
    assert refreshed
    assert client.calls == 1
    assert monitor.weather_source == "live"
    assert monitor.last_updated is not None
    assert monitor.engine.current_condition == SimulationCondition.THUNDERSTORM
    assert monitor.areas[0].simulated_flood_risk == RiskLevel.HIGH
    assert persisted[0].flood_risk == RiskLevel.LOW
    assert persisted[0].simulated_flood_risk is None and not persisted[0].is_simulated
    assert monitor.feed.notifications[0].is_simulation


def test_refresh_is_skipped_while_one_is_in_flight(store):
    monitor = _monitor(store)

    async def scenario():
        async with monitor._refresh_lock:
            return await monitor.refresh_weather()

    assert asyncio.run(scenario()) is False
    assert monitor.weather_client.calls == 0


def test_new_area_joins_active_simulation(store):
    monitor = _monitor(store)

    async def scenario():
        await monitor.apply_simulation("light-rain")
        return await monitor.add_area(AreaCreate(name="Late", type="agricultural", flood_risk="medium", coordinates=(1, 1)))

    area = asyncio.run(scenario())
    assert area.is_simulated
    assert area.simulated_flood_risk == RiskLevel.HIGH


def test_simulation_state_and_reset(store):
    monitor = _monitor(store)

    async def scenario():
        await monitor.add_area(AreaCreate(name="A", type="landmark", flood_risk="low", coordinates=(1, 1)))
        applied = await monitor.apply_simulation("typhoon")
        reset = await monitor.reset_simulation()
        return applied, reset

    applied, reset = asyncio.run(scenario())
    assert applied["context"] == "typhoon" and applied["manual_override"]
    assert reset["current_condition"] is None and reset["context"] == "real-time"
    assert not monitor.areas[0].is_simulated


def test_resolve_records_simulation_context(store):
    monitor = _monitor(store)

    async def scenario():
        await monitor.add_area(AreaCreate(name="A", type="landmark", flood_risk="medium", coordinates=(1, 1)))
        await monitor.apply_simulation("heavy-rain")
        await monitor.resolve_notification(ActionRequest(action="disregard-high-risk", index=0))
        return await store.load_disregard_records()

    records = asyncio.run(scenario())
    assert [r.simulation_context for r in records] == ["heavy-rain"]


def test_clear_notifications(store):
    monitor = _monitor(store)

    async def scenario():
        await monitor.generate_notifications()
        await monitor.clear_notifications()
        return await store.load_notifications()

    assert asyncio.run(scenario()) == []
    assert monitor.feed.badge == 0


def test_flood_event_history_and_theme(store):
    monitor = _monitor(store)

    async def scenario():
        await monitor.submit_flood_event(FloodEventReport(area_id="a", area_name="A", water_level="0.5m"))
        await monitor.submit_flood_event(FloodEventReport(area_id="b", area_name="B"))
        default_theme = await monitor.get_theme()
        await monitor.set_theme("light")
        return await monitor.flood_event_history(), default_theme, await monitor.get_theme()

    history, default_theme, theme = asyncio.run(scenario())
    assert len(history) == 1 and history[0].count == 2
    assert (default_theme, theme) == ("dark", "light")


def test_load_strips_stale_overlay(store):
    monitor = _monitor(store)

    async def scenario():
        await monitor.add_area(AreaCreate(name="A", type="landmark", flood_risk="low", coordinates=(1, 1)))
        return await _monitor(store).load()

    loaded = asyncio.run(scenario())
    assert len(loaded) == 1 and not loaded[0].is_simulated


def test_bulk_action_after_failed_snapshot_write_leaves_live_feed_alone(store):
    client = FakeWeatherClient(weather=make_weather(precipitation=12), forecast=[make_day()])
    monitor = _monitor(store, client=client)

    async def failing_save(notifications):
        raise RuntimeError("disk full")

    async def scenario():
        await monitor.refresh_weather()
        area = await monitor.add_area(AreaCreate(name="Old", type="landmark", flood_risk="high", coordinates=(1, 1)))
        store.save_notifications = failing_save
        await monitor.delete_area(area.id)
        with pytest.raises(NotificationNotFoundError):
            await monitor.resolve_notification(ActionRequest(action="confirm-high-risk", index=0))
        return await store.load_flood_records()

    assert asyncio.run(scenario()) == []
    assert [n.title for n in monitor.feed.notifications] == ["Heavy Rainfall Alert"]
