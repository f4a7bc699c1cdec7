# backend/cascade_auditor/services/report.py
import csv
import datetime
from typing import Any, Dict, Optional

import pandas as pd

from cascade_auditor.schemas import CaseSession, ReportRow, ReportSummary

APP_VERSION = "1.0"
NOTE_PREVIEW = 60

CSV_COLUMNS = [
    "Cascade ID", "Name EN", "Name ES", "Plausibility", "Evidence", "Status",
    "Index Drugs", "Cascade Drugs", "DDI Count", "Clinician Note",
]


def _today() -> str:
    return datetime.date.today().isoformat()


def _status_of(case: CaseSession, cascade_id: str) -> str:
    record = case.verifications.get(cascade_id)
    if record is None or record.status not in ("confirmed", "ruled_out"):
        return "pending"
    return record.status


def build_report(case: CaseSession, today: Optional[str] = None) -> ReportSummary:
    rows = []
    counts = {"confirmed": 0, "ruled_out": 0, "pending": 0}
    for f in case.detected_cascades:
        c = f.cascade
        status = _status_of(case, c.id)
        counts[status] += 1
        note = case.verifications[c.id].note if c.id in case.verifications else ""
        if len(note) > NOTE_PREVIEW:
            note = note[:NOTE_PREVIEW] + "…"
        rows.append(ReportRow(
            cascade_id=c.id,
            name=c.name_en or c.name_es,
            plausibility=c.plausibility or "?",
            status=status,
            note=note,
        ))

    if counts["confirmed"]:
        status, message = "red", f"{counts['confirmed']} confirmed cascade(s) — clinical review recommended"
    elif counts["pending"]:
        status, message = "amber", f"{counts['pending']} unverified finding(s)"
    else:
        status, message = "green", "No confirmed cascades"

    return ReportSummary(
        patient_id=case.patient_id or "Unknown",
        generated=today or _today(),
        status=status,
        message=message,
        medications=case.normalized_meds,
        rows=rows,
        version=APP_VERSION,
        **counts,
    )


def export_json(case: CaseSession) -> Dict[str, Any]:
    payload = case.model_dump(mode="json")
    payload["saved_at"] = datetime.datetime.now(datetime.timezone.utc).isoformat()
    return payload


def export_csv(case: CaseSession) -> str:
    records = []
    for f in case.detected_cascades:
        c = f.cascade
        v = case.verifications.get(c.id)
        records.append([
            c.id,
            c.name_en,
            c.name_es,
            c.plausibility,
            c.evidence_level,
            v.status if v else "pending",
            "; ".join(f.matched_index),
            "; ".join(f.matched_cascade),
            len(f.ddi_alerts),
            (v.note if v else "").replace("\n", " "),
        ])
    df = pd.DataFrame(records, columns=CSV_COLUMNS)
    return df.to_csv(index=False, quoting=csv.QUOTE_ALL, lineterminator="\n")


def export_filename(case: CaseSession, ext: str, today: Optional[str] = None) -> str:
    return f"cascade-audit-{case.patient_id or 'case'}-{today or _today()}.{ext}"


def import_case(data: Any) -> CaseSession:
    """Load an exported case payload. A payload without a patient id is rejected."""
    if not isinstance(data, dict) or not data.get("patient_id"):
        raise ValueError("Missing patient_id in file")
    return CaseSession.model_validate(data)
