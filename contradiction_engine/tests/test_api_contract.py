"""
Tests for API Contract
======================

Ensures the API always returns valid JSON with expected structure.
Tests both success and error cases.
"""

import pytest
import json
from pathlib import Path

# Add parent to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from fastapi.testclient import TestClient
from contradiction_engine.api import app
from contradiction_engine.schemas import AnalysisResult, ComparisonResult, HealthResponse


# =============================================================================
# Test Client
# =============================================================================

@pytest.fixture
def client():
    """Create test client"""
    return TestClient(app)


@pytest.fixture
def documents():
    """Load sample documents fixture"""
    fixture_path = Path(__file__).parent / "fixtures" / "sample_documents.json"
    with open(fixture_path, 'r', encoding='utf-8') as f:
        return json.load(f)


# =============================================================================
# Health Check Tests
# =============================================================================

class TestHealthEndpoint:
    """Tests for /health endpoint"""

    def test_health_returns_200(self, client):
        response = client.get("/health")
        assert response.status_code == 200

    def test_health_schema(self, client):
        data = client.get("/health").json()
        health = HealthResponse(**data)
        assert health.status == "healthy"
        assert health.version


# =============================================================================
# Analyze Tests
# =============================================================================

class TestAnalyzeEndpoint:
    """Tests for /analyze endpoint"""

    def test_analyze_temporal(self, client, documents):
        response = client.post("/analyze", json={"text": documents["temporal"]["text"]})
        assert response.status_code == 200

        data = response.json()
        assert {"documentHash", "findings", "summary", "forensicData", "metadata"} <= set(data)
        assert data["summary"]["riskScore"] == 30
        assert len(data["findings"]) == 1
        assert data["findings"][0]["type"] == "temporal_contradiction"

    @pytest.mark.parametrize("level", ["low", "medium", "high"])
    @pytest.mark.parametrize("key", ["temporal", "numerical", "logical", "certainty", "clean"])
    def test_scenarios_at_every_level(self, client, documents, key, level):
        doc = documents[key]
        response = client.post("/analyze", json={"text": doc["text"], "options": {"sensitivityLevel": level}})
        assert response.status_code == 200

        data = response.json()
        expected = doc["expected"]
        if "findings" in expected:
            assert len(data["findings"]) == expected["findings"]
        else:
            assert len(data["findings"]) >= expected["min_findings"]
        assert data["metadata"]["sensitivityLevel"] == level
        assert data["textAnalysis"]["statistics"]["sentenceCount"] >= 3
        assert data["forensicData"]["summary"]["totalContradictions"] == len(data["findings"])

    def test_response_parses_as_result(self, client, documents):
        data = client.post("/analyze", json={"text": documents["certainty"]["text"]}).json()
        result = AnalysisResult.model_validate(data)
        assert result.summary.total_contradictions == 2

    def test_options_accepted(self, client, documents):
        response = client.post("/analyze", json={
            "text": documents["temporal"]["text"],
            "options": {"sensitivityLevel": "high", "generateForensicHash": False},
        })
        assert response.status_code == 200

        data = response.json()
        assert data["documentHash"] is None
        assert data["metadata"]["sensitivityLevel"] == "high"

    def test_clean_document(self, client, documents):
        data = client.post("/analyze", json={"text": documents["clean"]["text"]}).json()
        assert data["findings"] == []
        assert data["summary"]["riskScore"] == 0

    def test_empty_text_is_400(self, client):
        response = client.post("/analyze", json={"text": "   "})
        assert response.status_code == 400

        data = response.json()
        assert data["error"] == "input_error"
        assert "empty" in data["detail"].lower()

    def test_bad_option_is_422(self, client, documents):
        response = client.post("/analyze", json={
            "text": documents["temporal"]["text"],
            "options": {"sensitivityLevel": "extreme"},
        })
        assert response.status_code == 422
        assert response.json()["error"] == "config_error"

    def test_missing_text_is_422(self, client):
        response = client.post("/analyze", json={})
        assert response.status_code == 422


# =============================================================================
# Compare Tests
# =============================================================================

class TestCompareEndpoint:
    """Tests for /compare endpoint"""

    def test_compare(self, client, documents):
        doc = documents["comparison"]
        response = client.post("/compare", json={"text1": doc["text1"], "text2": doc["text2"]})
        assert response.status_code == 200

        data = response.json()
        assert data["consistencyScore"] == 40
        assert len(data["crossDocumentFindings"]) == 2
        assert "document1Analysis" in data
        assert "document2Analysis" in data
        ComparisonResult.model_validate(data)

    def test_compare_empty_side_is_400(self, client, documents):
        response = client.post("/compare", json={"text1": documents["temporal"]["text"], "text2": ""})
        assert response.status_code == 400


# =============================================================================
# Report Tests
# =============================================================================

class TestReportEndpoint:
    """Tests for /report endpoint"""

    def test_json_report_default(self, client, documents):
        response = client.post("/report", json={"text": documents["temporal"]["text"]})
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/json")
        assert json.loads(response.text)["summary"]["riskScore"] == 30

    def test_text_report(self, client, documents):
        response = client.post("/report", json={
            "text": documents["temporal"]["text"],
            "options": {"outputFormat": "text"},
        })
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert "CONTRADICTION ENGINE REPORT" in response.text

    def test_html_comparison_report(self, client, documents):
        doc = documents["comparison"]
        response = client.post("/report", json={
            "text": doc["text1"],
            "text2": doc["text2"],
            "options": {"outputFormat": "html"},
        })
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/html")
        assert "Cross-Document Comparison" in response.text

    def test_unknown_format_is_422(self, client, documents):
        response = client.post("/report", json={
            "text": documents["temporal"]["text"],
            "options": {"outputFormat": "pdf"},
        })
        assert response.status_code == 422
