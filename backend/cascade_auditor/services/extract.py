# backend/cascade_auditor/services/extract.py
import re
from typing import List, Sequence

from cascade_auditor.schemas import DrugVocabularyEntry, ExtractedMedication
from cascade_auditor.services.vocabulary import MIN_TERM_LENGTH

# any unicode letter; digits and punctuation are valid word edges
_ALPHA = r"[^\W\d_]"
DOSE_UNITS = ("mg", "g", "mcg", "ml", "iu")


def name_pattern(name: str) -> re.Pattern:
    """Whole-word match: the name may not touch a letter on either side."""
    return re.compile(rf"(?<!{_ALPHA}){re.escape(name)}(?!{_ALPHA})", re.IGNORECASE)


def find_dose(text: str, name: str) -> str:
    """
    Dose written right after the drug name, e.g. "simvastatin 40 mg at night" -> "40 mg at night".
    Stops at the first comma, semicolon, period or newline, and after 40 trailing chars.
    """
    units = "|".join(DOSE_UNITS)
    pattern = re.compile(
        rf"\b{re.escape(name)}\s+(\d+(?:\.\d+)?\s*(?:{units})[^,;.\n]{{0,40}})",
        re.IGNORECASE,
    )
    m = pattern.search(text)
    return m.group(1).strip() if m else ""


def extract_medications(note: str, vocabulary: Sequence[DrugVocabularyEntry]) -> List[ExtractedMedication]:
    """
    Main extraction entry point.
    Results follow vocabulary order, not position in the note.
    """
    if not note or not note.strip():
        return []

    seen = set()
    meds = []
    for entry in vocabulary:
        name = entry.name.lower()
        if len(name) < MIN_TERM_LENGTH or name in seen:
            continue
        if not name_pattern(name).search(note):
            continue
        seen.add(name)
        meds.append(ExtractedMedication(
            name=name,
            dose=find_dose(note, name),
            indication=entry.indication_hint,
            source="text",
        ))
    return meds


def manual_medication(name: str, dose: str = "") -> ExtractedMedication:
    name = (name or "").strip()
    if not name:
        raise ValueError("Medication name is required.")
    return ExtractedMedication(name=name.lower(), dose=(dose or "").strip(), indication="", source="manual")


def decode_note(content: bytes) -> str:
    """Uploaded notes are plain text; undecodable bytes are replaced rather than rejected."""
    return content.decode("utf-8", errors="replace")
