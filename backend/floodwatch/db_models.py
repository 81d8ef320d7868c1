# backend/floodwatch/db_models.py
from sqlalchemy import Column, Integer, String, DateTime, Text, create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from datetime import datetime
import os

DEFAULT_DB_PATH = os.path.join("data", "floodwatch.sqlite3")
DATABASE_URL = os.getenv("FLOODWATCH_DB_URL", f"sqlite:///{DEFAULT_DB_PATH}")

Base = declarative_base()

# document keys
MONITORED_AREAS = "monitoredAreas"
NOTIFICATIONS = "notifications"
THEME_PREFERENCE = "themePreference"


class Document(Base):
    """Key-scoped document, replaced wholesale on every save."""
    __tablename__ = "documents"
    key = Column(String, primary_key=True)
    value_json = Column(Text, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class FloodRecordRow(Base):
    __tablename__ = "flood_records"
    id = Column(Integer, primary_key=True, index=True)
    area_id = Column(String, index=True)
    area_name = Column(String)
    actor = Column(String)
    weather_json = Column(Text)
    simulation_context = Column(String)
    timestamp = Column(DateTime, default=datetime.utcnow)


class DisregardRecordRow(Base):
    __tablename__ = "disregard_records"
    id = Column(Integer, primary_key=True, index=True)
    area_id = Column(String, index=True)
    area_name = Column(String)
    actor = Column(String)
    weather_json = Column(Text)
    simulation_context = Column(String)
    timestamp = Column(DateTime, default=datetime.utcnow)


class FloodEventRow(Base):
    __tablename__ = "flood_events"
    id = Column(String, primary_key=True)
    area_id = Column(String, index=True)
    area_name = Column(String)
    raw_json = Column(Text)
    submitted_at = Column(DateTime, default=datetime.utcnow)


def make_session_factory(url: str = DATABASE_URL):
    if url.startswith("sqlite:///"):
        db_dir = os.path.dirname(url[len("sqlite:///"):])
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    engine = create_engine(url, connect_args=connect_args)
    Base.metadata.create_all(bind=engine)
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)
