# backend/cascade_auditor/main.py
import json
import logging
import os
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, File, Form, HTTPException, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse, Response
from sqlalchemy.orm import Session

from cascade_auditor.db import clear_cases, get_case, get_db, init_db, put_case
from cascade_auditor.schemas import (
    CaseSession, DetectionResult, DetectRequest, ExtractionResponse, KBStatus, ManualMedication,
    NormalizeRequest, NoteUpdate, ReportSummary, VerificationRecord, VerificationUpdate,
)
from cascade_auditor.services import cascades, extract, normalize, report, workflow
from cascade_auditor.services.interactions import alert_level, scan_ddi
from cascade_auditor.services.knowledge_base import KnowledgeBase, load_knowledge_base

log = logging.getLogger("uvicorn.error")

HERE = os.path.dirname(__file__)
EXAMPLE_NOTE_PATH = os.getenv("EXAMPLE_NOTE_PATH", os.path.join(HERE, "data", "example_note.txt"))


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    app.state.kb = await load_knowledge_base()
    log.info("HIV Prescribing Cascade Auditor v%s ready", report.APP_VERSION)
    yield


app = FastAPI(title="HIV Prescribing Cascade Auditor", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_kb(request: Request) -> KnowledgeBase:
    kb = getattr(request.app.state, "kb", None)
    # no KB yet: an empty, not-ready one keeps extraction working on the ARV supplement list
    return kb if kb is not None else KnowledgeBase()


def _load_case(db: Session, patient_id: str) -> CaseSession:
    case = get_case(db, patient_id)
    if case is None:
        raise HTTPException(status_code=404, detail=f"No case for patient '{patient_id}'")
    return case


def _save(db: Session, case: CaseSession) -> CaseSession:
    if not put_case(db, case):
        log.warning("Case %s was not persisted", case.patient_id)
    return case


# --- service / knowledge base ---

@app.get("/health")
def health(kb: KnowledgeBase = Depends(get_kb)):
    return {"status": "healthy", "version": report.APP_VERSION, "kb_loaded": kb.loaded}


@app.get("/kb/status", response_model=KBStatus)
def kb_status(kb: KnowledgeBase = Depends(get_kb)):
    return kb.status()


@app.post("/kb/reload", response_model=KBStatus)
async def kb_reload(request: Request):
    request.app.state.kb = await load_knowledge_base()
    return request.app.state.kb.status()


@app.get("/example-note", response_class=PlainTextResponse)
def example_note():
    try:
        with open(EXAMPLE_NOTE_PATH, "r", encoding="utf-8") as f:
            return f.read()
    except OSError as e:
        log.error(f"Could not load example note: {e}")
        raise HTTPException(status_code=404, detail="Example note not available")


# --- stateless pipeline ---

@app.post("/extract", response_model=ExtractionResponse)
async def route_extract(file: UploadFile = File(None), text: str = Form(None),
                        kb: KnowledgeBase = Depends(get_kb)):
    if file:
        try:
            raw_text = extract.decode_note(await file.read())
        except Exception as e:
            log.error(f"Reading uploaded note failed: {e}")
            return ExtractionResponse(meds=[], error=f"Could not read file: {e}")
    elif text:
        raw_text = text
    else:
        return ExtractionResponse(meds=[], error="No file or text provided.")

    return ExtractionResponse(meds=extract.extract_medications(raw_text, kb.vocabulary))


@app.post("/normalize")
def route_normalize(payload: NormalizeRequest):
    return {"meds": normalize.normalize_medications(payload.meds)}


@app.post("/detect", response_model=DetectionResult)
def route_detect(payload: DetectRequest, kb: KnowledgeBase = Depends(get_kb)):
    return cascades.detect_cascades(payload.meds, kb)


# --- cases ---

@app.post("/cases/import", response_model=CaseSession)
async def import_case(file: UploadFile = File(...), db: Session = Depends(get_db)):
    try:
        case = report.import_case(json.loads(await file.read()))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Import failed: {e}")
    return _save(db, case)


@app.delete("/cases")
def delete_all_cases(db: Session = Depends(get_db)):
    return {"deleted": clear_cases(db)}


@app.get("/cases/{patient_id}", response_model=CaseSession)
def read_case(patient_id: str, db: Session = Depends(get_db)):
    return _load_case(db, patient_id)


@app.put("/cases/{patient_id}", response_model=CaseSession)
def write_case(patient_id: str, case: CaseSession, db: Session = Depends(get_db)):
    case.patient_id = patient_id
    return _save(db, case)


@app.post("/cases/{patient_id}/note", response_model=CaseSession)
def update_note(patient_id: str, body: NoteUpdate, db: Session = Depends(get_db)):
    case = get_case(db, patient_id) or CaseSession(patient_id=patient_id)
    case.clinical_note = body.clinical_note
    return _save(db, case)


@app.post("/cases/{patient_id}/reset", response_model=CaseSession)
def reset(patient_id: str, db: Session = Depends(get_db)):
    case = _load_case(db, patient_id)
    workflow.reset_case(case)
    return _save(db, case)


@app.post("/cases/{patient_id}/next", response_model=CaseSession)
def next_step(patient_id: str, db: Session = Depends(get_db), kb: KnowledgeBase = Depends(get_kb)):
    case = _load_case(db, patient_id)
    try:
        workflow.advance(case, kb)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _save(db, case)


@app.get("/cases/{patient_id}/steps/{step}", response_model=CaseSession)
def show_step(patient_id: str, step: int, db: Session = Depends(get_db),
              kb: KnowledgeBase = Depends(get_kb)):
    case = _load_case(db, patient_id)
    workflow.go_to(case, step)
    workflow.prepare_step(case, case.step, kb)
    return _save(db, case)


@app.get("/cases/{patient_id}/detection")
def detection_summary(patient_id: str, db: Session = Depends(get_db),
                      kb: KnowledgeBase = Depends(get_kb)):
    case = _load_case(db, patient_id)
    if not kb.loaded:
        return {"status": "kb_not_ready", "level": None, "message": "Knowledge base not loaded.",
                "cascades": [], "ddi_alerts": []}
    level, message = alert_level(case.detected_cascades)
    return {
        "status": "ok",
        "level": level,
        "message": message,
        "cascades": case.detected_cascades,
        "ddi_alerts": scan_ddi(case.normalized_meds, kb.interactions),
    }


@app.post("/cases/{patient_id}/medications", response_model=CaseSession)
def add_medication(patient_id: str, body: ManualMedication, db: Session = Depends(get_db)):
    case = _load_case(db, patient_id)
    try:
        workflow.add_manual_medication(case, body.name, body.dose)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _save(db, case)


@app.delete("/cases/{patient_id}/medications", response_model=CaseSession)
def clear_medications(patient_id: str, db: Session = Depends(get_db)):
    case = _load_case(db, patient_id)
    workflow.clear_extracted(case)
    return _save(db, case)


@app.delete("/cases/{patient_id}/medications/{index}", response_model=CaseSession)
def remove_medication(patient_id: str, index: int, db: Session = Depends(get_db)):
    case = _load_case(db, patient_id)
    try:
        workflow.remove_medication(case, index)
    except IndexError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _save(db, case)


@app.put("/cases/{patient_id}/verifications/{cascade_id}", response_model=VerificationRecord)
def verify(patient_id: str, cascade_id: str, body: VerificationUpdate,
           db: Session = Depends(get_db)):
    case = _load_case(db, patient_id)
    record = workflow.set_verification(case, cascade_id, body.status, body.note)
    _save(db, case)
    return record


@app.get("/cases/{patient_id}/report", response_model=ReportSummary)
def case_report(patient_id: str, db: Session = Depends(get_db)):
    return report.build_report(_load_case(db, patient_id))


@app.get("/cases/{patient_id}/export.json")
def export_json(patient_id: str, db: Session = Depends(get_db)):
    case = _load_case(db, patient_id)
    body = json.dumps(report.export_json(case), indent=2, ensure_ascii=False)
    filename = report.export_filename(case, "json")
    return Response(content=body, media_type="application/json",
                    headers={"Content-Disposition": f'attachment; filename="{filename}"'})


@app.get("/cases/{patient_id}/export.csv")
def export_csv(patient_id: str, db: Session = Depends(get_db)):
    case = _load_case(db, patient_id)
    filename = report.export_filename(case, "csv")
    return Response(content=report.export_csv(case), media_type="text/csv; charset=utf-8",
                    headers={"Content-Disposition": f'attachment; filename="{filename}"'})
