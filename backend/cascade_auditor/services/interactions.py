# backend/cascade_auditor/services/interactions.py
from typing import List, Sequence, Tuple

from cascade_auditor.schemas import DDIEntry, DetectedCascade, NormalizedMedication
from cascade_auditor.services.matching import ddi_terms, matches_any


def scan_ddi(meds: Sequence[NormalizedMedication], watchlist: Sequence[DDIEntry]) -> List[DDIEntry]:
    """
    Watchlist entries where both sides are present among the canonical names.
    Keeps KB order; each entry appears at most once.
    """
    names = [(m.canonical or "").lower() for m in meds]
    if not names:
        return []

    results = []
    for ddi in watchlist:
        a_hit = any(matches_any(t, names) for t in ddi_terms(ddi.drug_a))
        b_hit = any(matches_any(t, names) for t in ddi_terms(ddi.drug_b))
        if a_hit and b_hit:
            results.append(ddi)
    return results


def alert_level(cascades: Sequence[DetectedCascade]) -> Tuple[str, str]:
    """Headline for the detector step: (level, message). Severities are compared as written in the KB."""
    severities = {d.severity for c in cascades for d in c.ddi_alerts}
    if not cascades:
        return "clear", "No potential cascades detected"
    if "CONTRAINDICATED" in severities:
        return "critical", "CRITICAL — Contraindicated combination detected"
    if "MAJOR" in severities:
        return "high", "HIGH ALERT — Major DDI in cascade found"
    return "warning", f"{len(cascades)} potential cascade(s) detected"
