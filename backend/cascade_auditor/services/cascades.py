# backend/cascade_auditor/services/cascades.py
import logging
from typing import List, Sequence, Tuple

from cascade_auditor.schemas import (
    CascadeDefinition, DetectedCascade, DetectionResult, NormalizedMedication,
)
from cascade_auditor.services.interactions import scan_ddi
from cascade_auditor.services.matching import matches_any

log = logging.getLogger("cascades")


def _side_hits(examples: Sequence[str], drug_class: str, names: List[str],
               classes: List[str]) -> Tuple[bool, List[str]]:
    matched = [d for d in (e.lower() for e in examples) if matches_any(d, names)]
    class_hit = bool(drug_class) and matches_any(drug_class.lower(), classes)
    return bool(matched) or class_hit, matched


def detect_cascades(meds: Sequence[NormalizedMedication], kb) -> DetectionResult:
    """
    Match the medication list against every KB cascade, core first then HIV-specific.

    A cascade fires when both its index side and its cascade side hit, by example drug name
    (canonical or original) or by drug class. Each detected cascade carries the DDI alerts of
    the whole medication list, not only of its own drugs.
    Returns status "kb_not_ready" instead of raising when the KB is incomplete.
    """
    if kb is None or not kb.loaded:
        log.warning("Cascade detection skipped: knowledge base not loaded")
        return DetectionResult(status="kb_not_ready")

    names = [m.canonical.lower() for m in meds] + [m.original.lower() for m in meds]
    classes = [(m.drug_class or "").lower() for m in meds]

    found: List[DetectedCascade] = []
    seen = set()
    ddi_alerts = None

    def check(cascade: CascadeDefinition, source: str):
        nonlocal ddi_alerts
        idx_hit, idx_drugs = _side_hits(cascade.index_drugs_examples, cascade.index_drug_class,
                                        names, classes)
        cas_hit, cas_drugs = _side_hits(cascade.cascade_drugs_examples, cascade.cascade_drug_class,
                                        names, classes)
        if not (idx_hit and cas_hit) or cascade.id in seen:
            return
        if ddi_alerts is None:
            ddi_alerts = scan_ddi(meds, kb.interactions)
        seen.add(cascade.id)
        found.append(DetectedCascade(
            cascade=cascade,
            matched_index=idx_drugs,
            matched_cascade=cas_drugs,
            source=source,
            ddi_alerts=list(ddi_alerts),
        ))

    for c in kb.core_cascades:
        check(c, "core")
    for c in kb.vih_cascades:
        check(c, "vih")

    log.info("Detector found %d cascades", len(found))
    return DetectionResult(status="ok", cascades=found)
