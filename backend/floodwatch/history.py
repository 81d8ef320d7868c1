# backend/floodwatch/history.py
from collections import defaultdict
from datetime import date, datetime
from typing import Dict, List, Optional

from .schemas import FloodEventDay, FloodEventReport


def _event_date(event: FloodEventReport) -> Optional[date]:
    if event.submitted_at is not None:
        return event.submitted_at.date()
    if event.date_time:
        try:
            return datetime.fromisoformat(event.date_time).date()
        except ValueError:
            return None
    return None


def group_events_by_date(events: List[FloodEventReport]) -> List[FloodEventDay]:
    """Community reports per calendar day, most recent day first."""
    by_date: Dict[date, List[FloodEventReport]] = defaultdict(list)
    for ev in events:
        day = _event_date(ev)
        if day is not None:
            by_date[day].append(ev)

    return [
        FloodEventDay(date=day, count=len(by_date[day]), events=by_date[day])
        for day in sorted(by_date, reverse=True)
    ]
