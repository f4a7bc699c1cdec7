# backend/cascade_auditor/services/knowledge_base.py
import asyncio
import json
import logging
import os
from collections import Counter
from typing import Any, List, Optional

import requests
from pydantic import ValidationError

from cascade_auditor.schemas import CascadeDefinition, DDIEntry, KBStatus
from cascade_auditor.services.vocabulary import build_vocabulary

log = logging.getLogger("knowledge_base")

HERE = os.path.dirname(__file__)
KB_DIR = os.path.join(HERE, "..", "data", "kb")

CORE_CASCADES_PATH = os.getenv("KB_CORE_CASCADES", os.path.join(KB_DIR, "kb_core_cascades.json"))
VIH_MODIFIERS_PATH = os.getenv("KB_VIH_MODIFIERS", os.path.join(KB_DIR, "kb_vih_modifiers.json"))
DDI_WATCHLIST_PATH = os.getenv("KB_DDI_WATCHLIST", os.path.join(KB_DIR, "ddi_watchlist.json"))
FETCH_TIMEOUT = float(os.getenv("KB_FETCH_TIMEOUT", "10"))


def read_document(location: str, timeout: float = FETCH_TIMEOUT) -> Any:
    """Read one KB JSON document from a local path or an http(s) URL."""
    if location.startswith(("http://", "https://")):
        r = requests.get(location, timeout=timeout)
        r.raise_for_status()
        return r.json()
    with open(location, "r", encoding="utf-8") as f:
        return json.load(f)


def _section(doc: Any, key: str) -> list:
    if not isinstance(doc, dict):
        return []
    items = doc.get(key)
    return items if isinstance(items, list) else []


def _parse(items: list, model, label: str) -> list:
    parsed = []
    for i, raw in enumerate(items):
        try:
            parsed.append(model.model_validate(raw))
        except ValidationError as e:
            log.warning("Skipping malformed %s entry #%d: %s", label, i, e)
    return parsed


class KnowledgeBase:
    """
    The three KB documents, parsed once and read-only afterwards.
    A document passed as None failed to load; detection refuses to run until all three are present.
    """

    def __init__(self, core_cascades: Any = None, vih_modifiers: Any = None, ddi_watchlist: Any = None):
        self.documents = {
            "core_cascades": core_cascades is not None,
            "vih_modifiers": vih_modifiers is not None,
            "ddi_watchlist": ddi_watchlist is not None,
        }
        self.core_cascades: List[CascadeDefinition] = _parse(
            _section(core_cascades, "cascades"), CascadeDefinition, "core cascade")
        self.vih_cascades: List[CascadeDefinition] = _parse(
            _section(vih_modifiers, "art_related_cascades"), CascadeDefinition, "HIV cascade")
        self.interactions: List[DDIEntry] = _parse(
            _section(ddi_watchlist, "interactions"), DDIEntry, "DDI")
        self.vocabulary = build_vocabulary(self)

    @property
    def loaded(self) -> bool:
        return all(self.documents.values())

    def duplicate_cascade_ids(self) -> List[str]:
        counts = Counter(c.id for c in self.core_cascades + self.vih_cascades)
        return [cid for cid, n in counts.items() if n > 1]

    def status(self) -> KBStatus:
        return KBStatus(
            loaded=self.loaded,
            documents=dict(self.documents),
            core_cascades=len(self.core_cascades),
            vih_cascades=len(self.vih_cascades),
            interactions=len(self.interactions),
            vocabulary_size=len(self.vocabulary),
            duplicate_cascade_ids=self.duplicate_cascade_ids(),
        )


async def _fetch_one(name: str, location: str) -> Optional[Any]:
    try:
        return await asyncio.to_thread(read_document, location)
    except (OSError, ValueError, requests.RequestException) as e:
        log.error(f"Failed to load KB document {name} from {location}: {e}")
        return None


async def load_knowledge_base(core_path: str = CORE_CASCADES_PATH,
                              vih_path: str = VIH_MODIFIERS_PATH,
                              ddi_path: str = DDI_WATCHLIST_PATH) -> KnowledgeBase:
    core, vih, ddi = await asyncio.gather(
        _fetch_one("core_cascades", core_path),
        _fetch_one("vih_modifiers", vih_path),
        _fetch_one("ddi_watchlist", ddi_path),
    )
    kb = KnowledgeBase(core, vih, ddi)
    if not kb.loaded:
        log.warning("Some KB files could not be loaded; cascade detection disabled: %s", kb.documents)
    dupes = kb.duplicate_cascade_ids()
    if dupes:
        log.warning("Cascade ids repeated in KB, later definitions will be ignored: %s", dupes)
    log.info("KB ready: %d core, %d HIV cascades, %d interactions, %d vocabulary terms",
             len(kb.core_cascades), len(kb.vih_cascades), len(kb.interactions), len(kb.vocabulary))
    return kb
