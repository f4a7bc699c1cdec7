# backend/cascade_auditor/services/normalize.py
from typing import List, Sequence

from cascade_auditor.schemas import ExtractedMedication, NormalizedMedication
from cascade_auditor.services.drug_tables import ARV_LOOKUP, CLASS_LOOKUP


def normalize_medication(med: ExtractedMedication) -> NormalizedMedication:
    """
    Map an extracted name to its canonical identity and class.
    ARV table first, then the general class table; unknown names pass through with an empty class.
    """
    name = med.name or ""
    key = name.strip().lower()
    arv = ARV_LOOKUP.get(key)
    if arv:
        return NormalizedMedication(
            original=name,
            canonical=arv.canonical,
            drug_class=arv.drug_class,
            is_arv=True,
            arv_class=arv.arv_class,
            dose=med.dose,
            indication=med.indication,
        )
    return NormalizedMedication(
        original=name,
        canonical=name,
        drug_class=CLASS_LOOKUP.get(key, ""),
        is_arv=False,
        arv_class="",
        dose=med.dose,
        indication=med.indication,
    )


def normalize_medications(meds: Sequence[ExtractedMedication]) -> List[NormalizedMedication]:
    return [normalize_medication(m) for m in meds]
