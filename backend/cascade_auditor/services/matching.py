# backend/cascade_auditor/services/matching.py
import re
from typing import Iterable, List

_DDI_SPLIT = re.compile(r"[\s/,()]+")


def fuzzy_includes(a: str, b: str) -> bool:
    """
    Bidirectional, case-insensitive substring test shared by cascade and DDI matching.
    An empty string is contained in every string, so it matches anything.
    """
    a, b = (a or "").lower(), (b or "").lower()
    return a in b or b in a


def matches_any(term: str, names: Iterable[str]) -> bool:
    return any(fuzzy_includes(term, n) for n in names)


def ddi_terms(drug: str) -> List[str]:
    """Split a watchlist drug field ("lopinavir/ritonavir (LPV/r)") into tokens longer than 3 chars."""
    return [t for t in _DDI_SPLIT.split((drug or "").lower()) if len(t) > 3]
