# backend/cascade_auditor/db.py
import datetime
import logging
import os
from typing import Optional

from sqlalchemy import create_engine, Column, Integer, String, JSON, DateTime
from sqlalchemy.orm import declarative_base, sessionmaker, Session

from cascade_auditor.schemas import CaseSession

log = logging.getLogger("db")

DATABASE_URL = os.getenv("CASCADE_AUDITOR_DB_URL", "sqlite:///./cascade_cases.db")

_connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(DATABASE_URL, connect_args=_connect_args)
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
Base = declarative_base()


def _utcnow():
    return datetime.datetime.now(datetime.timezone.utc)


class CaseRecord(Base):
    __tablename__ = "cases"

    patient_id = Column(String, primary_key=True, index=True)
    step = Column(Integer, default=1)
    payload = Column(JSON)  # full CaseSession dump
    saved_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)


def init_db(bind=engine):
    Base.metadata.create_all(bind=bind)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_case(db: Session, patient_id: str) -> Optional[CaseSession]:
    record = db.get(CaseRecord, patient_id)
    if record is None:
        return None
    return CaseSession.model_validate(record.payload or {})


def put_case(db: Session, case: CaseSession) -> bool:
    """Upsert a case by patient id. Failures are logged and rolled back, never raised."""
    if not case.patient_id:
        return False
    now = _utcnow()
    case.saved_at = now.isoformat()
    try:
        record = db.get(CaseRecord, case.patient_id)
        if record is None:
            record = CaseRecord(patient_id=case.patient_id)
            db.add(record)
        record.step = case.step
        record.payload = case.model_dump(mode="json")
        record.saved_at = now
        db.commit()
        return True
    except Exception as e:
        db.rollback()
        log.error("Failed to save case %s: %s", case.patient_id, e)
        return False


def clear_cases(db: Session) -> int:
    try:
        n = db.query(CaseRecord).delete()
        db.commit()
        return n
    except Exception:
        db.rollback()
        log.exception("Failed to clear cases")
        raise
