# backend/floodwatch/actions.py
"""
Resolves user decisions on notifications into audit records.

Single-area actions write one record; bulk actions on the aggregated
high-risk alert write one record per embedded area, strictly in list order,
and tolerate per-record failures (logged, not rolled back).
"""

from typing import List, Optional, Sequence

from .logging_setup import logger
from .notifications import NotificationFeed
from .schemas import (
    Action,
    ActionRequest,
    ActionResult,
    DisregardRecord,
    FloodRecord,
    MonitoredArea,
    Notification,
    NotificationType,
    WeatherSnapshot,
)

ACTOR = "user"


class UnknownActionError(ValueError):
    pass


class AreaNotFoundError(LookupError):
    pass


class NotificationNotFoundError(LookupError):
    pass


def _area_ids(notification: Notification) -> List[str]:
    return [a.id for a in notification.high_risk_areas or []]


class ActionResolver:
    def __init__(self, store, feed: NotificationFeed):
        self.store = store
        self.feed = feed

    async def resolve(
        self,
        request: ActionRequest,
        areas: Sequence[MonitoredArea],
        weather: Optional[WeatherSnapshot],
        context: str,
    ) -> ActionResult:
        try:
            action = Action(request.action)
        except ValueError:
            raise UnknownActionError(f"Unknown action: {request.action}")

        if action in (Action.CONFIRM, Action.DISREGARD):
            return await self._resolve_single(action, request, areas, weather, context)
        if action in (Action.CONFIRM_HIGH_RISK, Action.DISREGARD_HIGH_RISK):
            return await self._resolve_bulk(action, request, weather, context)
        return await self._review(request)

    # ---- helpers ----
    def _build_record(self, action: Action, area: MonitoredArea, weather, context: str):
        record_cls = FloodRecord if action in (Action.CONFIRM, Action.CONFIRM_HIGH_RISK) else DisregardRecord
        return record_cls(
            area_id=area.id,
            area_name=area.name,
            actor=ACTOR,
            weather_conditions=weather.model_copy(deep=True) if weather is not None else None,
            simulation_context=context,
        )

    async def _write(self, record) -> None:
        if isinstance(record, FloodRecord):
            await self.store.append_flood_record(record)
        else:
            await self.store.append_disregard_record(record)

    async def _high_risk_notification(self, index: Optional[int]) -> Notification:
        if index is None:
            raise NotificationNotFoundError("A notification index is required for high-risk actions")
        snapshot = await self.store.load_notifications()
        if index < 0 or index >= len(snapshot):
            raise NotificationNotFoundError(f"No notification at index {index}")
        notification = snapshot[index]
        if notification.type != NotificationType.HIGH_RISK_ALERT or not notification.high_risk_areas:
            raise NotificationNotFoundError(f"Notification {index} is not a high-risk alert")

        # stored snapshot and live feed must still describe the same alert
        live = self.feed.get(index)
        if live is None or live.type != notification.type or _area_ids(live) != _area_ids(notification):
            logger.warning(f"[actions] Stored notification {index} no longer matches the live feed")
            raise NotificationNotFoundError(f"Notification {index} is out of date, regenerate notifications")
        return notification

    async def _sync_snapshot(self) -> None:
        try:
            await self.store.save_notifications(self.feed.notifications)
        except Exception as e:
            logger.error(f"[actions] Failed to persist notification snapshot: {e}", exc_info=True)

    def _find_area(self, area_id: str, index: Optional[int], areas: Sequence[MonitoredArea]) -> MonitoredArea:
        candidates: List[MonitoredArea] = []
        origin = self.feed.get(index) if index is not None else None
        if origin is not None and origin.high_risk_areas:
            candidates.extend(origin.high_risk_areas)
        candidates.extend(areas)
        for area in candidates:
            if str(area.id) == str(area_id):
                return area
        raise AreaNotFoundError(f"Area {area_id} not found")

    # ---- single area ----
    async def _resolve_single(self, action, request, areas, weather, context) -> ActionResult:
        if not request.area_id:
            raise AreaNotFoundError("An area id is required for confirm/disregard")
        area = self._find_area(request.area_id, request.index, areas)
        result = ActionResult(action=action, area_ids=[area.id])

        record = self._build_record(action, area, weather, context)
        try:
            await self._write(record)
            result.records_written = 1
            logger.info(f"[actions] {action.value} recorded for area {area.name} ({area.id})")
        except Exception as e:
            result.failed.append(area.id)
            logger.error(f"[actions] Error saving {action.value} record for {area.id}: {e}", exc_info=True)

        index = request.index if request.index is not None else self.feed.find_for_area(area.id)
        if index is not None:
            changed, removed = self.feed.resolve_area(index, area.id)
            result.notification_removed = removed
            if changed:
                await self._sync_snapshot()

        if action == Action.CONFIRM:
            # the caller opens the flood-event report capture flow for this area
            result.open_report_for = area.model_copy(deep=True)
        result.badge = self.feed.badge
        return result

    # ---- bulk ----
    async def _resolve_bulk(self, action, request, weather, context) -> ActionResult:
        notification = await self._high_risk_notification(request.index)
        result = ActionResult(action=action, is_simulation=notification.is_simulation)

        for area in notification.high_risk_areas:
            result.area_ids.append(area.id)
            record = self._build_record(action, area, weather, context)
            try:
                await self._write(record)
                result.records_written += 1
            except Exception as e:
                result.failed.append(area.id)
                logger.error(f"[actions] Error saving {action.value} record for {area.id} (bulk): {e}", exc_info=True)

        logger.info(
            f"[actions] {action.value}: written={result.records_written}, "
            f"failed={len(result.failed)}, areas={len(result.area_ids)}"
        )
        if self.feed.remove(request.index):
            result.notification_removed = True
            await self._sync_snapshot()
        result.badge = self.feed.badge
        return result

    # ---- review (read-only) ----
    async def _review(self, request) -> ActionResult:
        notification = await self._high_risk_notification(request.index)
        return ActionResult(
            action=Action.REVIEW_HIGH_RISK,
            area_ids=[a.id for a in notification.high_risk_areas],
            review_areas=notification.high_risk_areas,
            is_simulation=notification.is_simulation,
            badge=self.feed.badge,
        )
