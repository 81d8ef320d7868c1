# backend/floodwatch/db_helpers.py
from typing import Any, Dict, List, Optional
from datetime import datetime
import json
import uuid
from .db_models import Document, FloodEventRow
from .logging_setup import logger


def clean_data(data: Any) -> Any:
    """Recursively drop None-valued keys before a document is stored."""
    if isinstance(data, dict):
        return {k: clean_data(v) for k, v in data.items() if v is not None}
    if isinstance(data, list):
        return [clean_data(v) for v in data]
    return data


def save_document(session_factory, key: str, value: Any) -> None:
    db = session_factory()
    try:
        payload = json.dumps(clean_data(value), default=str)
        doc = db.get(Document, key)
        if doc is None:
            db.add(Document(key=key, value_json=payload, updated_at=datetime.utcnow()))
        else:
            doc.value_json = payload
            doc.updated_at = datetime.utcnow()
        db.commit()
        logger.info(f"[db_helpers] Saved document {key}")
    except Exception as e:
        db.rollback()
        logger.error(f"[db_helpers] save_document failed for {key}: {e}", exc_info=True)
        raise
    finally:
        db.close()


def load_document(session_factory, key: str, default: Any = None) -> Any:
    db = session_factory()
    try:
        doc = db.get(Document, key)
        if doc is None:
            return default
        return json.loads(doc.value_json)
    finally:
        db.close()


def delete_document(session_factory, key: str) -> None:
    db = session_factory()
    try:
        doc = db.get(Document, key)
        if doc is not None:
            db.delete(doc)
            db.commit()
        logger.info(f"[db_helpers] Cleared document {key}")
    except Exception as e:
        db.rollback()
        logger.error(f"[db_helpers] delete_document failed for {key}: {e}", exc_info=True)
        raise
    finally:
        db.close()


def insert_audit_record(session_factory, row_cls, record: Dict[str, Any]) -> Dict[str, Any]:
    """Append one audit row; the id and timestamp are assigned here."""
    db = session_factory()
    try:
        row = row_cls(
            area_id=record["area_id"],
            area_name=record["area_name"],
            actor=record.get("actor", "user"),
            weather_json=json.dumps(clean_data(record.get("weather_conditions")), default=str),
            simulation_context=record.get("simulation_context", "real-time"),
            timestamp=datetime.utcnow(),
        )
        db.add(row)
        db.commit()
        db.refresh(row)
        logger.info(
            f"[db_helpers] Inserted {row_cls.__tablename__} row for area_id={row.area_id}, "
            f"context={row.simulation_context}"
        )
        return _audit_row_to_dict(row)
    except Exception as e:
        db.rollback()
        logger.error(f"[db_helpers] insert into {row_cls.__tablename__} failed for {record.get('area_id')}: {e}", exc_info=True)
        raise
    finally:
        db.close()


def _audit_row_to_dict(r) -> Dict[str, Any]:
    weather = None
    if r.weather_json:
        try:
            weather = json.loads(r.weather_json)
        except Exception:
            weather = None
    return {
        "id": r.id,
        "area_id": r.area_id,
        "area_name": r.area_name,
        "actor": r.actor,
        "weather_conditions": weather,
        "simulation_context": r.simulation_context,
        "timestamp": r.timestamp,
    }


def list_audit_records(session_factory, row_cls, area_id: Optional[str] = None) -> List[Dict[str, Any]]:
    db = session_factory()
    try:
        q = db.query(row_cls)
        if area_id:
            q = q.filter(row_cls.area_id == area_id)
        rows = q.order_by(row_cls.id.asc()).all()
        return [_audit_row_to_dict(r) for r in rows]
    finally:
        db.close()


def insert_flood_event(session_factory, event: Dict[str, Any]) -> str:
    db = session_factory()
    key = uuid.uuid4().hex
    try:
        submitted_at = datetime.utcnow()
        body = clean_data({**event, "id": key, "submitted_at": submitted_at.isoformat()})
        db.add(FloodEventRow(
            id=key,
            area_id=event["area_id"],
            area_name=event["area_name"],
            raw_json=json.dumps(body, default=str),
            submitted_at=submitted_at,
        ))
        db.commit()
        logger.info(f"[db_helpers] Flood event saved with key {key}")
        return key
    except Exception as e:
        db.rollback()
        logger.error(f"[db_helpers] insert_flood_event failed for {event.get('area_id')}: {e}", exc_info=True)
        raise
    finally:
        db.close()


def list_flood_events(session_factory) -> List[Dict[str, Any]]:
    db = session_factory()
    try:
        rows = db.query(FloodEventRow).order_by(FloodEventRow.submitted_at.asc()).all()
        return [json.loads(r.raw_json) for r in rows]
    finally:
        db.close()
