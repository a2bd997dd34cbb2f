"""Tests for the HTTP endpoints."""

import os
import pytest
import sys

# Add backend to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from fastapi.testclient import TestClient

from main import app


VALID_GEDCOM = """0 HEAD
1 SOUR ACME
2 VERS 1.0
1 GEDC
2 VERS 5.5
2 FORM LINEAGE-LINKED
1 CHAR ANSEL
0 @SUBM1@ SUBM
1 NAME Jane Doe
0 @I1@ INDI
1 NAME John /Smith/
1 SEX M
1 FAMS @F1@
0 @F1@ FAM
1 HUSB @I1@
0 TRLR
"""


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def client():
    return TestClient(app)


def upload(content: str, filename: str = "family.ged"):
    return {"file": (filename, content.encode("utf-8"), "text/plain")}


# ============================================================================
# Health Tests
# ============================================================================

class TestHealth:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}


# ============================================================================
# Validate Endpoint Tests
# ============================================================================

class TestValidateEndpoint:
    """Tests for POST /validate."""

    def test_clean_file(self, client):
        response = client.post("/validate", files=upload(VALID_GEDCOM))
        assert response.status_code == 200
        data = response.json()
        assert data["finding_count"] == 0
        assert data["error_count"] == 0
        assert data["findings"] == []

    def test_findings_are_reported(self, client):
        content = VALID_GEDCOM.replace("1 SEX M", "1 SEX X").replace("1 FAMS @F1@", "1 FAMS @F9@")
        response = client.post("/validate", files=upload(content))
        assert response.status_code == 200
        data = response.json()
        assert data["finding_count"] == 2
        assert data["error_count"] == 1
        assert data["repaired_count"] == 0
        by_field = {f["field"]: f for f in data["findings"]}
        assert by_field["sex"]["severity"] == "WARNING"
        assert by_field["sex"]["recordType"] == "Individual"
        assert by_field["sex"]["xref"] == "@I1@"
        assert by_field["spouse_families"]["relatedItemCount"] == 1

    def test_missing_trailer_with_repair(self, client):
        content = VALID_GEDCOM.replace("0 TRLR\n", "")
        response = client.post("/validate", params={"auto_repair": "all"}, files=upload(content))
        data = response.json()
        assert data["finding_count"] == 1
        assert data["repaired_count"] == 1
        assert data["findings"][0]["field"] == "trailer"

    def test_repair_by_severity(self, client):
        content = VALID_GEDCOM.replace("1 SEX M", "1 SEX X").replace("1 FAMS @F1@", "1 FAMS @F9@")
        response = client.post("/validate", params={"auto_repair": "error"}, files=upload(content))
        data = response.json()
        assert data["repaired_count"] == 1
        repaired = [f["field"] for f in data["findings"] if f["repairCount"]]
        assert repaired == ["spouse_families"]

    def test_unknown_repair_mode(self, client):
        response = client.post("/validate", params={"auto_repair": "sometimes"}, files=upload(VALID_GEDCOM))
        assert response.status_code == 422

    def test_wrong_file_type(self, client):
        response = client.post("/validate", files=upload(VALID_GEDCOM, "family.txt"))
        assert response.status_code == 400

    def test_not_a_gedcom(self, client):
        response = client.post("/validate", files=upload("just some text\n"))
        assert response.status_code == 400


# ============================================================================
# Export Endpoint Tests
# ============================================================================

class TestExportEndpoint:
    """Tests for POST /export."""

    def test_export_round_trip(self, client):
        response = client.post("/export", files=upload(VALID_GEDCOM))
        assert response.status_code == 200
        assert response.text == VALID_GEDCOM
        assert "family.ged" in response.headers["content-disposition"]

    def test_blocking_findings(self, client):
        content = VALID_GEDCOM.replace("1 FAMS @F1@", "1 FAMS @F9@")
        response = client.post("/export", files=upload(content))
        assert response.status_code == 422
        detail = response.json()["detail"]
        assert detail["findings"][0]["field"] == "spouse_families"

    def test_repaired_before_export(self, client):
        content = VALID_GEDCOM.replace("1 FAMS @F1@", "1 FAMS @F9@").replace("0 TRLR\n", "")
        response = client.post("/export", params={"auto_repair": "all"}, files=upload(content))
        assert response.status_code == 200
        assert "FAMS" not in response.text
        assert response.text.endswith("0 TRLR\n")

    def test_incomplete_entries_dropped_before_export(self, client):
        content = VALID_GEDCOM.replace("1 FAMS @F1@\n", "1 FAMS @F1@\n1 ASSO @I1@\n2 TYPE INDI\n1 OBJE\n2 TITL Photo\n")
        assert client.post("/export", files=upload(content)).status_code == 422

        response = client.post("/export", params={"auto_repair": "all"}, files=upload(content))
        assert response.status_code == 200
        assert "ASSO" not in response.text
        assert "OBJE" not in response.text

    def test_wrong_file_type(self, client):
        response = client.post("/export", files=upload(VALID_GEDCOM, "family.csv"))
        assert response.status_code == 400
