# backend/cascade_auditor/services/workflow.py
"""
Six-step case workflow: note -> extraction -> normalization -> detection -> verification -> report.

The CaseSession is owned by the caller and passed in explicitly; every stage replaces its
output wholesale. Pipeline functions themselves stay free of session state.
"""
import logging
from typing import Optional

from cascade_auditor.schemas import CaseSession, VerificationRecord
from cascade_auditor.services.cascades import detect_cascades
from cascade_auditor.services.extract import extract_medications, manual_medication
from cascade_auditor.services.normalize import normalize_medications

log = logging.getLogger("workflow")

TOTAL_STEPS = 6


def run_extraction(case: CaseSession, kb) -> None:
    vocabulary = kb.vocabulary if kb is not None else []
    case.extracted_meds = extract_medications(case.clinical_note, vocabulary)
    log.info("Extractor found %d medications", len(case.extracted_meds))


def run_normalization(case: CaseSession) -> None:
    case.normalized_meds = normalize_medications(case.extracted_meds)
    log.info("Normalizer mapped %d medications", len(case.normalized_meds))


def run_detection(case: CaseSession, kb) -> bool:
    """Returns False (and leaves previous results alone) when the KB is not ready."""
    result = detect_cascades(case.normalized_meds, kb)
    if not result.ready:
        return False
    case.detected_cascades = result.cascades
    return True


def add_manual_medication(case: CaseSession, name: str, dose: str = "") -> None:
    case.extracted_meds.append(manual_medication(name, dose))


def remove_medication(case: CaseSession, index: int) -> None:
    if index < 0 or index >= len(case.extracted_meds):
        raise IndexError(f"No medication at position {index}")
    del case.extracted_meds[index]


def clear_extracted(case: CaseSession) -> None:
    case.extracted_meds = []


def set_verification(case: CaseSession, cascade_id: str, status: Optional[str] = None,
                     note: Optional[str] = None) -> VerificationRecord:
    record = case.verifications.get(cascade_id)
    if record is None:
        record = VerificationRecord()
        case.verifications[cascade_id] = record
    if status is not None:
        record.status = VerificationRecord(status=status).status
    if note is not None:
        record.note = note
    return record


def go_to(case: CaseSession, step: int) -> None:
    if 1 <= step <= TOTAL_STEPS:
        case.step = step


def prepare_step(case: CaseSession, step: int, kb) -> None:
    """Fill in derived data a step needs when it is shown for the first time."""
    if step == 2 and not case.extracted_meds and case.clinical_note.strip():
        run_extraction(case, kb)
    elif step == 3 and not case.normalized_meds and case.extracted_meds:
        run_normalization(case)
    elif step == 4 and kb is not None and kb.loaded and not case.detected_cascades and case.normalized_meds:
        run_detection(case, kb)


def advance(case: CaseSession, kb) -> None:
    step = case.step
    if step == 1:
        if not case.clinical_note.strip():
            raise ValueError("Enter a clinical note first.")
        run_extraction(case, kb)
    elif step == 2:
        run_normalization(case)
    elif step == 3:
        if case.normalized_meds:
            run_detection(case, kb)
    if step < TOTAL_STEPS:
        go_to(case, step + 1)


def reset_case(case: CaseSession) -> None:
    case.step = 1
    case.clinical_note = ""
    case.extracted_meds = []
    case.normalized_meds = []
    case.detected_cascades = []
    case.verifications = {}
