"""Tests for loading and validating knowledge base documents."""

import asyncio
import json
from unittest.mock import MagicMock, patch

import pytest
import requests

from cascade_auditor.services.knowledge_base import (
    KnowledgeBase,
    load_knowledge_base,
    read_document,
)


def write_json(path, data):
    path.write_text(json.dumps(data), encoding="utf-8")
    return str(path)


@pytest.fixture
def kb_files(tmp_path, core_doc, vih_doc, ddi_doc):
    return (
        write_json(tmp_path / "core.json", core_doc),
        write_json(tmp_path / "vih.json", vih_doc),
        write_json(tmp_path / "ddi.json", ddi_doc),
    )


class TestLoadKnowledgeBase:

    def test_all_documents_loaded(self, kb_files):
        kb = asyncio.run(load_knowledge_base(*kb_files))
        assert kb.loaded
        assert [c.id for c in kb.core_cascades] == ["PC-001", "PC-002"]
        assert [c.id for c in kb.vih_cascades] == ["VIH-001"]
        assert len(kb.interactions) == 2
        assert kb.vocabulary

    def test_missing_file_isolated(self, kb_files, tmp_path):
        core, vih, _ = kb_files
        kb = asyncio.run(load_knowledge_base(core, vih, str(tmp_path / "missing.json")))
        assert not kb.loaded
        assert kb.documents == {"core_cascades": True, "vih_modifiers": True, "ddi_watchlist": False}
        assert len(kb.core_cascades) == 2
        assert kb.interactions == []

    def test_invalid_json_isolated(self, kb_files, tmp_path):
        bad = tmp_path / "bad.json"
        bad.write_text("{not json", encoding="utf-8")
        _, vih, ddi = kb_files
        kb = asyncio.run(load_knowledge_base(str(bad), vih, ddi))
        assert kb.documents["core_cascades"] is False
        assert kb.documents["vih_modifiers"] is True
        assert kb.core_cascades == []

    def test_bundled_knowledge_base(self):
        kb = asyncio.run(load_knowledge_base())
        assert kb.loaded
        assert kb.core_cascades and kb.vih_cascades and kb.interactions
        assert kb.duplicate_cascade_ids() == []


class TestMalformedDocuments:

    def test_missing_arrays_default_to_empty(self):
        kb = KnowledgeBase({}, {"other": 1}, [])
        assert kb.loaded
        assert kb.core_cascades == []
        assert kb.vih_cascades == []
        assert kb.interactions == []

    def test_bad_entries_skipped(self):
        core = {"cascades": [
            "not-a-dict",
            {"name_en": "no id"},
            {"id": 7, "index_drugs_examples": None, "cascade_drug_class": None},
        ]}
        kb = KnowledgeBase(core, {"art_related_cascades": None}, {"interactions": [{"drug_a": None}]})
        assert [c.id for c in kb.core_cascades] == ["7"]
        assert kb.core_cascades[0].index_drugs_examples == []
        assert kb.core_cascades[0].cascade_drug_class == ""
        assert kb.interactions[0].drug_a == ""

    def test_extra_fields_preserved(self):
        core = {"cascades": [{"id": "X", "references": ["PMID 1"]}]}
        kb = KnowledgeBase(core, {}, {})
        assert kb.core_cascades[0].model_dump()["references"] == ["PMID 1"]

    def test_status(self, kb):
        status = kb.status()
        assert status.loaded
        assert status.core_cascades == 2
        assert status.vih_cascades == 1
        assert status.interactions == 2
        assert status.vocabulary_size == len(kb.vocabulary)


class TestReadDocument:

    def test_url_uses_requests(self):
        response = MagicMock()
        response.json.return_value = {"interactions": []}
        with patch("cascade_auditor.services.knowledge_base.requests.get", return_value=response) as get:
            assert read_document("https://kb.example.org/ddi.json", timeout=3) == {"interactions": []}
        get.assert_called_once_with("https://kb.example.org/ddi.json", timeout=3)
        response.raise_for_status.assert_called_once()

    def test_http_error_isolated(self, kb_files):
        core, vih, _ = kb_files
        response = MagicMock()
        response.raise_for_status.side_effect = requests.HTTPError("404")
        with patch("cascade_auditor.services.knowledge_base.requests.get", return_value=response):
            kb = asyncio.run(load_knowledge_base(core, vih, "http://kb.example.org/ddi.json"))
        assert kb.documents["ddi_watchlist"] is False
        assert kb.documents["core_cascades"] is True
