"""Tests for API endpoints."""

import pytest
from fastapi.testclient import TestClient

from app import app
from app import AnalysisService
from app import get_analysis_service
from conftest import basis_vector
from conftest import FakeEmbeddingProvider
from services.corpus_search import InMemoryCorpusSearch


PROHIBITION = "Setiap orang dilarang menjual minuman beralkohol di sekitar sekolah."
PERMISSION  = "Penjualan minuman beralkohol diperbolehkan di kawasan tertentu."


@pytest.fixture
def test_client() -> TestClient:
    # Lifespan is not entered, so no real provider is built
    return TestClient(app)


@pytest.fixture(autouse=True)
def clear_overrides():
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def service(make_generator, make_corpus, vector_at) -> AnalysisService:
    generator = make_generator(FakeEmbeddingProvider(overrides={PROHIBITION: basis_vector(0)}))
    corpus    = make_corpus(("Peraturan Daerah Kota Bandung Nomor 11 Tahun 2010 tentang Minuman Beralkohol", PERMISSION, vector_at(0.85),
                             {"clause_ref": "Pasal 7", "document_type": "regulation", "jurisdiction": "regional"}))

    analysis  = AnalysisService(embedding_generator=generator, search_client=corpus)
    app.dependency_overrides[get_analysis_service] = lambda: analysis

    return analysis


class TestCompareEndpoint:
    """Test suite for POST /api/v1/compare."""

    def test_added_article(self, test_client, service, pasal_1, pasal_2) -> None:
        response = test_client.post("/api/v1/compare", json={"old_clauses": [pasal_1], "new_clauses": [pasal_1, pasal_2]})

        assert response.status_code == 200

        data     = response.json()

        assert [change["change_type"] for change in data["changes"]] == ["added"]
        assert data["changes"][0]["new_text"] == pasal_2["text"]
        assert "old_text" not in data["changes"][0]
        assert data["statistics"]["additions"] == 1
        assert data["summary"] == "1 clause added (1 critical change)."

    def test_invalid_options_rejected(self, test_client, service, pasal_1) -> None:
        response = test_client.post("/api/v1/compare", json={"old_clauses": [pasal_1], "new_clauses": [pasal_1], "options": {"semantic_threshold": 2}})

        assert response.status_code == 422
        assert response.json()["error"] == "ValidationError"

    def test_missing_fields(self, test_client, service) -> None:
        response = test_client.post("/api/v1/compare", json={"old_clauses": []})

        assert response.status_code == 422


class TestConflictEndpoint:
    def test_contradiction_reported(self, test_client, service) -> None:
        response = test_client.post("/api/v1/conflicts", json={"clauses": [{"text": PROHIBITION, "clause_ref": "Pasal 4"}]})

        assert response.status_code == 200

        data     = response.json()

        assert len(data["conflicts"]) == 1
        assert data["conflicts"][0]["conflict_type"] == "contradiction"
        assert data["conflicts"][0]["severity"] == "high"
        assert data["conflicts"][0]["citation_data"]["type"] == "peraturan-daerah"
        assert data["risk_assessment"] == "medium"

    def test_invalid_options_rejected(self, test_client, service) -> None:
        response = test_client.post("/api/v1/conflicts", json={"clauses": [{"text": PROHIBITION}], "options": {"similarity_threshold": 3}})

        assert response.status_code == 422

    @pytest.mark.parametrize("options", [{"document_types": "statute"}, {"include_ai_explanations": "yes"}, {"jurisdiction_filter": 5}])
    def test_mistyped_options_rejected(self, test_client, service, options) -> None:
        response = test_client.post("/api/v1/conflicts", json={"clauses": [{"text": PROHIBITION}], "options": options})

        assert response.status_code == 422
        assert response.json()["error"] == "ValidationError"


class TestServiceEndpoints:
    def test_health(self, test_client, service) -> None:
        response = test_client.get("/api/v1/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["corpus_size"] == 1
        assert response.json()["llm_explanations"] is False
        assert response.json()["issues"] == []

    def test_empty_corpus_is_degraded(self, test_client, make_generator) -> None:
        analysis = AnalysisService(embedding_generator=make_generator(), search_client=InMemoryCorpusSearch())
        app.dependency_overrides[get_analysis_service] = lambda: analysis

        health   = test_client.get("/api/v1/health").json()
        report   = test_client.post("/api/v1/conflicts", json={"clauses": [{"text": PROHIBITION}]}).json()

        assert health["status"] == "degraded"
        assert health["issues"] == ["corpus is empty"]
        assert report["processing_info"]["corpus_empty"] is True
        assert report["summary"].startswith("Korpus peraturan perundang-undangan kosong")

    def test_uninitialized_service_unavailable(self, test_client) -> None:
        response = test_client.get("/api/v1/health")

        assert response.status_code == 503
        assert response.json()["error"] == "Service not initialized"

    def test_cache_stats_and_clear(self, test_client, service, pasal_1, pasal_2) -> None:
        test_client.post("/api/v1/compare", json={"old_clauses": [pasal_1], "new_clauses": [pasal_1, pasal_2]})

        stats    = test_client.get("/api/v1/cache/stats").json()
        response = test_client.post("/api/v1/cache/clear")

        assert stats["size"] == 2
        assert response.json() == {"cleared": 2}
        assert test_client.get("/api/v1/cache/stats").json()["size"] == 0
