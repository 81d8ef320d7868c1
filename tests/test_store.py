import asyncio

from backend.floodwatch.db_helpers import clean_data
from backend.floodwatch.schemas import DisregardRecord, FloodEventReport, FloodRecord
from backend.floodwatch.store import PersistenceStore
from conftest import make_area, make_weather


def test_clean_data_strips_none_recursively():
    assert clean_data({"a": 1, "b": None, "c": [{"d": None, "e": 2}]}) == {"a": 1, "c": [{"e": 2}]}


def test_areas_round_trip_with_full_replace(store):
    async def scenario():
        await store.save_areas([make_area("a", "high"), make_area("b", "low", population=40)])
        await store.save_areas([make_area("c", "medium", polygon=[(0, 0), (0, 1), (1, 1), (0, 0)])])
        return await store.load_areas()

    areas = asyncio.run(scenario())
    assert [a.id for a in areas] == ["c"]
    assert areas[0].polygon[1] == (0, 1)


def test_audit_records_are_appended_in_order_with_timestamps(store):
    async def scenario():
        for name in ("first", "second", "third"):
            await store.append_disregard_record(DisregardRecord(
                area_id=name, area_name=name, weather_conditions=make_weather(), simulation_context="typhoon",
            ))
        await store.append_flood_record(FloodRecord(area_id="x", area_name="X"))
        return await store.load_disregard_records(), await store.load_flood_records()

    disregards, floods = asyncio.run(scenario())
    assert [r.area_id for r in disregards] == ["first", "second", "third"]
    assert all(r.timestamp is not None and r.id is not None for r in disregards)
    assert disregards[0].weather_conditions.description == "clear sky"
    assert disregards[0].simulation_context == "typhoon"
    assert floods[0].weather_conditions is None
    assert floods[0].simulation_context == "real-time"


def test_notifications_replace_and_clear(store):
    from backend.floodwatch.notifications import generate_notifications

    async def scenario():
        await store.save_notifications(generate_notifications([make_area("a", "high")], None, []))
        loaded = await store.load_notifications()
        await store.clear_notifications()
        return loaded, await store.load_notifications()

    loaded, cleared = asyncio.run(scenario())
    assert loaded[0].high_risk_areas[0].id == "a"
    assert cleared == []


def test_theme_and_flood_events(store):
    async def scenario():
        assert await store.load_theme() is None
        await store.save_theme("light")
        event_id = await store.append_flood_event(FloodEventReport(area_id="a", area_name="A", water_level="1.2m"))
        return await store.load_theme(), event_id, await store.load_flood_events()

    theme, event_id, events = asyncio.run(scenario())
    assert theme == "light"
    assert events[0].id == event_id
    assert events[0].water_level == "1.2m"
    assert events[0].submitted_at is not None


def test_reads_degrade_to_empty_on_failure():
    def broken_factory():
        raise RuntimeError("database unavailable")

    store = PersistenceStore(broken_factory)

    async def scenario():
        return await store.load_areas(), await store.load_flood_records(), await store.load_theme()

    assert asyncio.run(scenario()) == ([], [], None)


def test_malformed_stored_entries_are_skipped(store, session_factory):
    from backend.floodwatch import db_helpers
    from backend.floodwatch.db_models import NOTIFICATIONS
    from backend.floodwatch.notifications import generate_notifications

    good = generate_notifications([make_area("a", "high")], None, [])[0].model_dump(mode="json")
    db_helpers.save_document(session_factory, NOTIFICATIONS, [good, {"type": "bogus"}, "junk"])

    loaded = asyncio.run(store.load_notifications())
    assert [n.high_risk_areas[0].id for n in loaded] == ["a"]


def test_non_list_document_reads_as_empty(store, session_factory):
    from backend.floodwatch import db_helpers
    from backend.floodwatch.db_models import MONITORED_AREAS

    db_helpers.save_document(session_factory, MONITORED_AREAS, {"not": "a list"})
    assert asyncio.run(store.load_areas()) == []
