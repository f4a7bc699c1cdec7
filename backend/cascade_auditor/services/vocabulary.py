# backend/cascade_auditor/services/vocabulary.py
from typing import List

from cascade_auditor.schemas import DrugVocabularyEntry
from cascade_auditor.services.drug_tables import ARV_SUPPLEMENT

MIN_TERM_LENGTH = 4  # shorter names ("HIV", "act") match inside too many words


def build_vocabulary(kb) -> List[DrugVocabularyEntry]:
    """
    Candidate drug names for the extractor, in KB order: core cascade index/cascade examples,
    HIV cascade index/cascade/contraindicated drugs, then the ARV supplement list.
    First occurrence of a lower-cased name wins.
    """
    vocab: List[DrugVocabularyEntry] = []
    seen = set()

    def add(name, hint):
        key = (name or "").lower()
        if key in seen or len(key) < MIN_TERM_LENGTH:
            return
        seen.add(key)
        vocab.append(DrugVocabularyEntry(name=key, indication_hint=hint))

    for c in kb.core_cascades:
        for d in c.index_drugs_examples:
            add(d, "index")
        for d in c.cascade_drugs_examples:
            add(d, "cascade")
    for c in kb.vih_cascades:
        for d in c.index_drugs_examples:
            add(d, "ARV")
        for d in c.cascade_drugs_examples:
            add(d, "cascade")
        for d in c.contraindicated_cascade_drugs:
            add(d, "contraindicated")
    for d in ARV_SUPPLEMENT:
        add(d, "ARV")
    return vocab
