# backend/floodwatch/store.py
"""
Async facade over the SQLAlchemy document/audit helpers.

Reads degrade to empty results and log; writes log and re-raise so callers
that need confirmation can see the failure.
"""

import asyncio
from functools import partial
from typing import Any, List, Optional

from pydantic import ValidationError

from . import db_helpers
from .db_models import (
    DisregardRecordRow,
    FloodRecordRow,
    MONITORED_AREAS,
    NOTIFICATIONS,
    THEME_PREFERENCE,
    make_session_factory,
)
from .logging_setup import logger
from .schemas import DisregardRecord, FloodEventReport, FloodRecord, MonitoredArea, Notification


def _parse_entries(label: str, model_cls, raw) -> list:
    """Validate stored entries one by one, skipping (and logging) malformed ones."""
    if raw is None:
        return []
    if not isinstance(raw, list):
        logger.warning(f"[store] Ignoring malformed {label} document of type {type(raw).__name__}")
        return []
    parsed = []
    for item in raw:
        try:
            parsed.append(model_cls.model_validate(item))
        except ValidationError as e:
            item_id = item.get("id") if isinstance(item, dict) else item
            logger.warning(f"[store] Skipping malformed {label} entry {item_id}: {e}")
    return parsed


class PersistenceStore:
    def __init__(self, session_factory=None):
        self.session_factory = session_factory or make_session_factory()

    async def _run(self, fn, *args, **kwargs):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(fn, self.session_factory, *args, **kwargs))

    async def _read(self, label: str, default, fn, *args, **kwargs):
        try:
            return await self._run(fn, *args, **kwargs)
        except Exception as e:
            logger.error(f"[store] Error loading {label}: {e}", exc_info=True)
            return default

    # ---- Monitored areas (full replace) ----
    async def save_areas(self, areas: List[MonitoredArea]) -> None:
        payload = [a.model_dump(mode="json") for a in areas]
        await self._run(db_helpers.save_document, MONITORED_AREAS, payload)

    async def load_areas(self) -> List[MonitoredArea]:
        raw = await self._read("monitored areas", [], db_helpers.load_document, MONITORED_AREAS, [])
        return _parse_entries("area", MonitoredArea, raw)

    # ---- Audit trail (append only) ----
    async def append_flood_record(self, record: FloodRecord) -> FloodRecord:
        row = await self._run(db_helpers.insert_audit_record, FloodRecordRow, record.model_dump(mode="json"))
        return FloodRecord.model_validate(row)

    async def load_flood_records(self, area_id: Optional[str] = None) -> List[FloodRecord]:
        rows = await self._read("flood records", [], db_helpers.list_audit_records, FloodRecordRow, area_id)
        return _parse_entries("flood record", FloodRecord, rows)

    async def append_disregard_record(self, record: DisregardRecord) -> DisregardRecord:
        row = await self._run(db_helpers.insert_audit_record, DisregardRecordRow, record.model_dump(mode="json"))
        return DisregardRecord.model_validate(row)

    async def load_disregard_records(self, area_id: Optional[str] = None) -> List[DisregardRecord]:
        rows = await self._read("disregard records", [], db_helpers.list_audit_records, DisregardRecordRow, area_id)
        return _parse_entries("disregard record", DisregardRecord, rows)

    # ---- Notification snapshot (full replace + clear) ----
    async def save_notifications(self, notifications: List[Notification]) -> None:
        payload = [n.model_dump(mode="json") for n in notifications]
        await self._run(db_helpers.save_document, NOTIFICATIONS, payload)

    async def load_notifications(self) -> List[Notification]:
        raw = await self._read("notifications", [], db_helpers.load_document, NOTIFICATIONS, [])
        return _parse_entries("notification", Notification, raw)

    async def clear_notifications(self) -> None:
        await self._run(db_helpers.delete_document, NOTIFICATIONS)

    # ---- Theme preference (scalar) ----
    async def save_theme(self, theme: str) -> None:
        await self._run(db_helpers.save_document, THEME_PREFERENCE, theme)

    async def load_theme(self) -> Optional[str]:
        return await self._read("theme preference", None, db_helpers.load_document, THEME_PREFERENCE, None)

    # ---- Community flood-event reports (append, returns id) ----
    async def append_flood_event(self, report: FloodEventReport) -> str:
        body = report.model_dump(mode="json", exclude={"id", "submitted_at"})
        return await self._run(db_helpers.insert_flood_event, body)

    async def load_flood_events(self) -> List[FloodEventReport]:
        raw: List[Any] = await self._read("flood events", [], db_helpers.list_flood_events)
        return _parse_entries("flood event", FloodEventReport, raw)
