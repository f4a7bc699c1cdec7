"""Tests for the HTTP API."""

import json

from cascade_auditor.main import app
from cascade_auditor.services.knowledge_base import KnowledgeBase


def start_case(client, pid, note):
    r = client.post(f"/cases/{pid}/note", json={"clinical_note": note})
    assert r.status_code == 200
    return r.json()


def run_to_detection(client, pid, note):
    start_case(client, pid, note)
    for _ in range(3):
        r = client.post(f"/cases/{pid}/next")
        assert r.status_code == 200
    return r.json()


class TestService:

    def test_health(self, client):
        r = client.get("/health")
        assert r.status_code == 200
        assert r.json()["status"] == "healthy"
        assert r.json()["kb_loaded"] is True

    def test_kb_status(self, client):
        body = client.get("/kb/status").json()
        assert body["loaded"] is True
        assert body["core_cascades"] == 2
        assert body["interactions"] == 2
        assert body["duplicate_cascade_ids"] == []

    def test_example_note(self, client):
        r = client.get("/example-note")
        assert r.status_code == 200
        assert "lopinavir/ritonavir" in r.text


class TestPipeline:

    def test_extract_text(self, client, clinical_note):
        r = client.post("/extract", data={"text": clinical_note})
        body = r.json()
        assert body["error"] is None
        assert [m["name"] for m in body["meds"]][:2] == ["amlodipine", "furosemide"]

    def test_extract_file(self, client):
        files = {"file": ("note.txt", b"simvastatin 20 mg nightly", "text/plain")}
        meds = client.post("/extract", files=files).json()["meds"]
        assert meds == [{"name": "simvastatin", "dose": "20 mg nightly",
                         "indication": "cascade", "source": "text"}]

    def test_extract_nothing(self, client):
        assert client.post("/extract").json() == {"meds": [], "error": "No file or text provided."}

    def test_normalize(self, client):
        r = client.post("/normalize", json={"meds": [{"name": "biktarvy"}, {"name": "omeprazole"}]})
        meds = r.json()["meds"]
        assert meds[0]["is_arv"] is True
        assert meds[1]["canonical"] == "omeprazole"

    def test_detect(self, client, pi_statin_meds):
        payload = {"meds": [m.model_dump() for m in pi_statin_meds]}
        body = client.post("/detect", json=payload).json()
        assert body["status"] == "ok"
        assert [c["cascade"]["id"] for c in body["cascades"]] == ["VIH-001"]
        assert body["cascades"][0]["ddi_alerts"][0]["severity"] == "CONTRAINDICATED"

    def test_detect_kb_not_ready(self, client, core_doc, pi_statin_meds):
        app.state.kb = KnowledgeBase(core_doc, None, None)
        payload = {"meds": [m.model_dump() for m in pi_statin_meds]}
        assert client.post("/detect", json=payload).json() == {"status": "kb_not_ready", "cascades": []}


class TestCaseFlow:

    def test_unknown_case(self, client):
        assert client.get("/cases/nobody").status_code == 404
        assert client.post("/cases/nobody/next").status_code == 404

    def test_next_requires_note(self, client):
        start_case(client, "P1", "  ")
        r = client.post("/cases/P1/next")
        assert r.status_code == 400
        assert r.json()["detail"] == "Enter a clinical note first."

    def test_full_flow(self, client, clinical_note):
        case = run_to_detection(client, "PX-0042", clinical_note)
        assert case["step"] == 4
        assert len(case["detected_cascades"]) == 2

        detection = client.get("/cases/PX-0042/detection").json()
        assert detection["level"] == "critical"
        assert [d["drug_b"] for d in detection["ddi_alerts"]] == ["simvastatin"]

        r = client.put("/cases/PX-0042/verifications/VIH-001",
                       json={"status": "confirmed", "note": "LDL rose after LPV/r"})
        assert r.json() == {"status": "confirmed", "note": "LDL rose after LPV/r"}

        summary = client.get("/cases/PX-0042/report").json()
        assert summary["status"] == "red"
        assert summary["confirmed"] == 1
        assert summary["pending"] == 1

    def test_step_navigation_prepares_data(self, client, clinical_note):
        start_case(client, "P2", clinical_note)
        case = client.get("/cases/P2/steps/3").json()
        assert case["step"] == 3
        assert case["extracted_meds"] == []
        assert case["normalized_meds"] == []
        case = client.get("/cases/P2/steps/2").json()
        assert len(case["extracted_meds"]) == 5

    def test_detection_without_kb(self, client, clinical_note):
        run_to_detection(client, "P3", clinical_note)
        app.state.kb = KnowledgeBase()
        body = client.get("/cases/P3/detection").json()
        assert body["status"] == "kb_not_ready"
        assert body["cascades"] == []

    def test_medication_list(self, client):
        start_case(client, "P4", "no drugs mentioned")
        case = client.post("/cases/P4/medications", json={"name": "Tramadol", "dose": "50 mg"}).json()
        assert case["extracted_meds"][0]["source"] == "manual"
        assert client.post("/cases/P4/medications", json={"name": "  "}).status_code == 400
        assert client.delete("/cases/P4/medications/5").status_code == 400
        assert client.delete("/cases/P4/medications/0").json()["extracted_meds"] == []

    def test_clear_medications(self, client, clinical_note):
        start_case(client, "P5", clinical_note)
        client.post("/cases/P5/next")
        assert client.delete("/cases/P5/medications").json()["extracted_meds"] == []

    def test_bad_verification_status(self, client):
        start_case(client, "P6", "note")
        r = client.put("/cases/P6/verifications/PC-001", json={"status": "maybe"})
        assert r.status_code == 422

    def test_reset(self, client, clinical_note):
        run_to_detection(client, "P7", clinical_note)
        case = client.post("/cases/P7/reset").json()
        assert case["patient_id"] == "P7"
        assert case["step"] == 1
        assert case["detected_cascades"] == []

    def test_delete_all(self, client):
        start_case(client, "A", "x")
        start_case(client, "B", "y")
        assert client.delete("/cases").json() == {"deleted": 2}
        assert client.get("/cases/A").status_code == 404


class TestExportImport:

    def test_csv_export(self, client, clinical_note):
        run_to_detection(client, "PX-0042", clinical_note)
        r = client.get("/cases/PX-0042/export.csv")
        assert r.status_code == 200
        assert r.headers["content-type"].startswith("text/csv")
        assert 'filename="cascade-audit-PX-0042-' in r.headers["content-disposition"]
        assert r.text.splitlines()[0].startswith('"Cascade ID"')
        assert len(r.text.splitlines()) == 3

    def test_json_roundtrip_through_import(self, client, clinical_note):
        run_to_detection(client, "PX-0042", clinical_note)
        r = client.get("/cases/PX-0042/export.json")
        assert r.headers["content-disposition"].endswith('.json"')
        payload = r.json()
        payload["patient_id"] = "PX-0043"

        files = {"file": ("case.json", json.dumps(payload), "application/json")}
        imported = client.post("/cases/import", files=files)
        assert imported.status_code == 200
        assert client.get("/cases/PX-0043").json()["step"] == 4

    def test_import_without_patient_id(self, client):
        files = {"file": ("case.json", json.dumps({"step": 2}), "application/json")}
        r = client.post("/cases/import", files=files)
        assert r.status_code == 400
        assert "Missing patient_id" in r.json()["detail"]

    def test_import_not_json(self, client):
        files = {"file": ("case.json", b"not json", "application/json")}
        assert client.post("/cases/import", files=files).status_code == 400
