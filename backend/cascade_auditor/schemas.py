# backend/cascade_auditor/schemas.py
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Dict, List, Literal, Optional

IndicationHint = Literal["index", "cascade", "ARV", "contraindicated"]
VerificationStatus = Literal["pending", "confirmed", "ruled_out"]


def _none_to_list(v):
    return [] if v is None else v


def _none_to_str(v):
    return "" if v is None else v


class DrugVocabularyEntry(BaseModel):
    name: str
    indication_hint: IndicationHint


class ExtractedMedication(BaseModel):
    name: str
    dose: str = ""
    indication: str = ""
    source: Literal["text", "manual"] = "text"


class NormalizedMedication(BaseModel):
    original: str
    canonical: str
    drug_class: str = ""
    is_arv: bool = False
    arv_class: str = ""
    dose: str = ""
    indication: str = ""


class CascadeDefinition(BaseModel):
    """One prescribing cascade from the knowledge base. Extra narrative fields are kept."""
    model_config = ConfigDict(extra="allow")

    id: str
    name_en: str = ""
    name_es: str = ""
    plausibility: str = ""
    evidence_level: str = ""
    index_drugs_examples: List[str] = []
    index_drug_class: str = ""
    cascade_drugs_examples: List[str] = []
    cascade_drug_class: str = ""
    contraindicated_cascade_drugs: List[str] = []
    ade_en: str = ""
    ade_es: str = ""
    ade_mechanism_en: str = ""
    ade_mechanism_es: str = ""
    ddi_warning_en: str = ""
    clinical_note_en: str = ""
    clinical_note_es: str = ""

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_str(cls, v):
        return str(v) if isinstance(v, (int, float)) else v

    @field_validator("index_drugs_examples", "cascade_drugs_examples",
                     "contraindicated_cascade_drugs", mode="before")
    @classmethod
    def _lists(cls, v):
        return _none_to_list(v)

    @field_validator("name_en", "name_es", "plausibility", "evidence_level",
                     "index_drug_class", "cascade_drug_class", "ade_en", "ade_es",
                     "ade_mechanism_en", "ade_mechanism_es", "ddi_warning_en",
                     "clinical_note_en", "clinical_note_es", mode="before")
    @classmethod
    def _strings(cls, v):
        return _none_to_str(v)


class DDIEntry(BaseModel):
    model_config = ConfigDict(extra="allow")

    drug_a: str = ""
    drug_b: str = ""
    severity: str = ""
    consequence_en: str = ""
    consequence_es: str = ""
    management_en: str = ""

    @field_validator("drug_a", "drug_b", "severity", "consequence_en",
                     "consequence_es", "management_en", mode="before")
    @classmethod
    def _strings(cls, v):
        return _none_to_str(v)


class DetectedCascade(BaseModel):
    cascade: CascadeDefinition
    matched_index: List[str] = []
    matched_cascade: List[str] = []
    source: Literal["core", "vih"]
    ddi_alerts: List[DDIEntry] = []


class DetectionResult(BaseModel):
    status: Literal["ok", "kb_not_ready"] = "ok"
    cascades: List[DetectedCascade] = []

    @property
    def ready(self) -> bool:
        return self.status == "ok"


class VerificationRecord(BaseModel):
    status: VerificationStatus = "pending"
    note: str = ""


class CaseSession(BaseModel):
    patient_id: str = ""
    step: int = Field(default=1, ge=1, le=6)
    clinical_note: str = ""
    extracted_meds: List[ExtractedMedication] = []
    normalized_meds: List[NormalizedMedication] = []
    detected_cascades: List[DetectedCascade] = []
    verifications: Dict[str, VerificationRecord] = {}
    saved_at: Optional[str] = None


# --- request / response bodies ---

class ExtractionResponse(BaseModel):
    meds: List[ExtractedMedication]
    error: Optional[str] = None


class NormalizeRequest(BaseModel):
    meds: List[ExtractedMedication] = []


class DetectRequest(BaseModel):
    meds: List[NormalizedMedication] = []


class NoteUpdate(BaseModel):
    clinical_note: str


class ManualMedication(BaseModel):
    name: str
    dose: str = ""


class VerificationUpdate(BaseModel):
    status: Optional[VerificationStatus] = None
    note: Optional[str] = None


class KBStatus(BaseModel):
    loaded: bool
    documents: Dict[str, bool]
    core_cascades: int = 0
    vih_cascades: int = 0
    interactions: int = 0
    vocabulary_size: int = 0
    duplicate_cascade_ids: List[str] = []


class ReportRow(BaseModel):
    cascade_id: str
    name: str
    plausibility: str
    status: VerificationStatus
    note: str


class ReportSummary(BaseModel):
    patient_id: str
    generated: str
    status: Literal["red", "amber", "green"]
    message: str
    medications: List[NormalizedMedication] = []
    confirmed: int = 0
    ruled_out: int = 0
    pending: int = 0
    rows: List[ReportRow] = []
    version: str = ""
