from datetime import date, datetime

from backend.floodwatch.history import group_events_by_date
from backend.floodwatch.schemas import FloodEventReport


def _event(area_id, submitted_at=None, date_time=None):
    return FloodEventReport(area_id=area_id, area_name=area_id.upper(), submitted_at=submitted_at, date_time=date_time)


def test_groups_by_day_most_recent_first():
    events = [
        _event("a", submitted_at=datetime(2026, 10, 17, 9)),
        _event("b", submitted_at=datetime(2026, 10, 19, 7)),
        _event("c", submitted_at=datetime(2026, 10, 17, 22)),
    ]
    days = group_events_by_date(events)

    assert [d.date for d in days] == [date(2026, 10, 19), date(2026, 10, 17)]
    assert [d.count for d in days] == [1, 2]
    assert [e.area_id for e in days[1].events] == ["a", "c"]


def test_falls_back_to_reported_time_and_skips_undated():
    events = [
        _event("a", date_time="2026-10-18T14:30"),
        _event("b", date_time="yesterday"),
        _event("c"),
    ]
    days = group_events_by_date(events)
    assert [(d.date, d.count) for d in days] == [(date(2026, 10, 18), 1)]
