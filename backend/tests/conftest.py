"""Shared fixtures: a small in-memory knowledge base and an API client on in-memory SQLite."""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from cascade_auditor.db import get_db, init_db
from cascade_auditor.main import app
from cascade_auditor.schemas import NormalizedMedication
from cascade_auditor.services.knowledge_base import KnowledgeBase


@pytest.fixture
def core_doc() -> dict:
    return {
        "cascades": [
            {
                "id": "PC-001",
                "name_en": "CCB -> edema -> loop diuretic",
                "name_es": "Calcioantagonista -> edema -> diurético de asa",
                "plausibility": "high",
                "evidence_level": "B",
                "index_drugs_examples": ["amlodipine", "nifedipine"],
                "index_drug_class": "Calcium channel blocker",
                "cascade_drugs_examples": ["furosemide"],
                "cascade_drug_class": "Loop diuretic",
            },
            {
                "id": "PC-002",
                "name_en": "ACE inhibitor -> cough -> antitussive",
                "plausibility": "medium",
                "index_drugs_examples": ["enalapril"],
                "index_drug_class": "",
                "cascade_drugs_examples": ["dextromethorphan"],
                "cascade_drug_class": "",
            },
        ]
    }


@pytest.fixture
def vih_doc() -> dict:
    return {
        "art_related_cascades": [
            {
                "id": "VIH-001",
                "name_en": "Boosted PI -> dyslipidemia -> statin",
                "plausibility": "high",
                "index_drugs_examples": ["lopinavir"],
                "index_drug_class": "",
                "cascade_drugs_examples": ["simvastatin"],
                "cascade_drug_class": "",
                "contraindicated_cascade_drugs": ["lovastatin"],
            },
        ]
    }


@pytest.fixture
def ddi_doc() -> dict:
    return {
        "interactions": [
            {
                "drug_a": "lopinavir/ritonavir",
                "drug_b": "simvastatin",
                "severity": "CONTRAINDICATED",
                "consequence_en": "Rhabdomyolysis",
                "management_en": "Stop simvastatin",
            },
            {
                "drug_a": "efavirenz",
                "drug_b": "methadone",
                "severity": "MODERATE",
            },
        ]
    }


@pytest.fixture
def kb(core_doc, vih_doc, ddi_doc) -> KnowledgeBase:
    return KnowledgeBase(core_doc, vih_doc, ddi_doc)


@pytest.fixture
def pi_statin_meds():
    return [
        NormalizedMedication(original="lopinavir/ritonavir", canonical="lopinavir/ritonavir",
                             drug_class="PI/booster", is_arv=True),
        NormalizedMedication(original="simvastatin", canonical="simvastatin",
                             drug_class="Statin (CYP3A4 substrate — AVOID with PI/r)", is_arv=False),
    ]


@pytest.fixture
def client(kb):
    """API client with an in-memory database and the fixture KB; lifespan startup is not run."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    TestingSession = sessionmaker(bind=engine, autocommit=False, autoflush=False)

    def override_get_db():
        db = TestingSession()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.state.kb = kb
    yield TestClient(app)

    app.dependency_overrides.clear()
    del app.state.kb


@pytest.fixture
def clinical_note() -> str:
    return (
        "58M, HIV on lopinavir/ritonavir and Truvada. Hypertension: amlodipine 10 mg daily, "
        "ankle edema so furosemide 40 mg every morning.\n"
        "Dyslipidemia: simvastatin 40 mg at night."
    )
