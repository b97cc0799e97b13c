"""Tests for legislative conflict detection."""

import pytest
import requests
from unittest.mock import Mock

from conftest import FakeEmbeddingProvider
from conftest import basis_vector
from config.legal_rules import ClauseType
from config.legal_rules import LegalRules
from services.data_models import Severity
from services.data_models import RiskLevel
from services.data_models import ConflictFlag
from services.data_models import ConflictType
from services.data_models import SimilarClause
from utils.exceptions import ValidationError
from utils.exceptions import ConflictDetectionError
from model_manager.retry_policy import RetryPolicy
from services.corpus_search import CorpusSearchClient
from services.corpus_search import InMemoryCorpusSearch
from services.conflict_detector import assess_risk
from services.conflict_detector import build_citation
from services.conflict_detector import classify_conflict
from services.conflict_detector import ConflictDetector
from services.conflict_detector import create_conflict_detector
from services.conflict_detector import calculate_confidence
from services.conflict_detector import NO_CONFLICTS_SUMMARY
from services.conflict_detector import EMPTY_CORPUS_SUMMARY
from services.conflict_detector import calculate_compatibility
from services.conflict_detector import ConflictDetectionOptions
from services.explanation_generator import ConflictExplanation
from services.explanation_generator import ExplanationGenerator


PROHIBITION    = "Setiap orang dilarang menjual minuman beralkohol di sekitar sekolah."
PERMISSION     = "Penjualan minuman beralkohol diperbolehkan di kawasan tertentu."
OBLIGATION     = "Pelaku usaha wajib memiliki izin lingkungan sebelum beroperasi."
EXEMPTION      = "Pelaku usaha mikro tidak wajib memiliki izin lingkungan."
OTHER_CLAUSE   = "Pemerintah daerah menyusun rencana tata ruang wilayah."
REGIONAL_TITLE = "Peraturan Daerah Kota Bandung Nomor 11 Tahun 2010 tentang Minuman Beralkohol"
STATUTE_TITLE  = "Undang-Undang Nomor 32 Tahun 2009 tentang Perlindungan dan Pengelolaan Lingkungan Hidup"


def make_flag(severity: Severity, confidence: float = 0.85, conflict_type: ConflictType = ConflictType.OVERLAP) -> ConflictFlag:
    candidate = SimilarClause(clause_id="c1", document_id="d1", document_title=STATUTE_TITLE, clause_ref="Pasal 1", clause_text=EXEMPTION, similarity=confidence)

    return ConflictFlag(clause_index       = 0,
                        clause_ref         = None,
                        law_ref            = STATUTE_TITLE,
                        matched_clause_ref = "Pasal 1",
                        overlap_score      = confidence,
                        conflict_type      = conflict_type,
                        excerpt_input      = OBLIGATION,
                        excerpt_existing   = EXEMPTION,
                        explanation        = "",
                        citation           = build_citation(candidate),
                        confidence_score   = confidence,
                        severity           = severity,
                       )


@pytest.fixture
def make_detector(make_generator, fake_sleep):
    """Detector whose input clauses embed to fixed vectors and whose corpus is in memory."""

    def _make(corpus: CorpusSearchClient, overrides=None, provider=None, explanation_generator=None, **options) -> ConflictDetector:
        provider = provider or FakeEmbeddingProvider(overrides=overrides or {PROHIBITION: basis_vector(0), OBLIGATION: basis_vector(0)})

        return ConflictDetector(search_client         = corpus,
                                embedding_generator   = make_generator(provider),
                                explanation_generator = explanation_generator,
                                options               = ConflictDetectionOptions(**options),
                                retry_policy          = RetryPolicy(max_attempts=3, base_delay_ms=10, jitter=0.0),
                                sleep                 = fake_sleep,
                               )

    return _make


@pytest.fixture
def regional_corpus(make_corpus, vector_at):
    return make_corpus((REGIONAL_TITLE, PERMISSION, vector_at(0.85), {"clause_ref": "Pasal 7", "document_type": "regulation", "jurisdiction": "regional"}))


class TestDetectConflicts:
    """End-to-end detection over an in-memory corpus."""

    def test_prohibition_against_permission_is_contradiction(self, make_detector, regional_corpus) -> None:
        result = make_detector(regional_corpus).detect_conflicts([{"text": PROHIBITION, "clause_ref": "Pasal 4"}])

        assert len(result.conflicts) == 1

        flag   = result.conflicts[0]

        assert flag.conflict_type == ConflictType.CONTRADICTION
        assert flag.overlap_score == pytest.approx(0.85)
        assert flag.confidence_score == pytest.approx(0.85)
        assert flag.severity == Severity.HIGH
        assert flag.clause_ref == "Pasal 4"
        assert flag.law_ref == f"{REGIONAL_TITLE}, Pasal 7"
        assert flag.explanation.startswith("Potensi konflik: ketentuan ini bertentangan dengan Peraturan Daerah")
        assert flag.resolution_suggestion
        assert flag.citation.instrument_type == "peraturan-daerah"
        assert (flag.citation.number, flag.citation.year) == ("11", 2010)
        assert flag.citation.status == "active"

        assert result.risk_assessment == RiskLevel.MEDIUM
        assert result.overall_compatibility_score == pytest.approx(1 - 3 * 0.85 / 4)
        assert result.summary == ("Ditemukan 1 potensi konflik dengan peraturan yang ada: 0 kritis, 1 tinggi, 0 sedang, 0 rendah. "
                                  "Tingkat risiko keseluruhan: sedang.")

    def test_no_matches_means_low_risk(self, make_detector, make_corpus, vector_at) -> None:
        corpus = make_corpus((REGIONAL_TITLE, PERMISSION, vector_at(0.5), {}))

        result = make_detector(corpus).detect_conflicts([{"text": PROHIBITION}])

        assert result.conflicts == []
        assert result.risk_assessment == RiskLevel.LOW
        assert result.overall_compatibility_score == 1.0
        assert result.summary == NO_CONFLICTS_SUMMARY
        assert result.statistics.total_conflicts == 0
        assert result.recommendations
        assert result.processing_info["corpus_empty"] is False

    def test_empty_corpus_is_not_a_clean_result(self, make_detector, make_corpus) -> None:
        result = make_detector(make_corpus()).detect_conflicts([{"text": PROHIBITION}])

        assert result.conflicts == []
        assert result.processing_info["corpus_empty"] is True
        assert result.summary == EMPTY_CORPUS_SUMMARY
        assert result.recommendations[0].startswith("Muat korpus")
        assert not any("selaras dengan peraturan yang ada" in recommendation for recommendation in result.recommendations)

    def test_national_statute_article_is_critical(self, make_detector, make_corpus, vector_at) -> None:
        corpus = make_corpus((STATUTE_TITLE, EXEMPTION, vector_at(0.82), {"clause_ref": "Pasal 36", "document_type": "statute", "jurisdiction": "national"}))

        result = make_detector(corpus).detect_conflicts([{"text": OBLIGATION, "clause_type": "pasal"}])
        flag   = result.conflicts[0]

        assert flag.conflict_type == ConflictType.CONTRADICTION
        assert flag.confidence_score == 1.0
        assert flag.severity == Severity.CRITICAL
        assert result.risk_assessment == RiskLevel.CRITICAL
        assert flag.citation.issuing_authority == "DPR RI dan Presiden"

    def test_flags_sorted_by_confidence(self, make_detector, make_corpus, vector_at) -> None:
        corpus = make_corpus((REGIONAL_TITLE, OTHER_CLAUSE, vector_at(0.83), {"document_type": "regulation"}),
                             (STATUTE_TITLE, OTHER_CLAUSE, vector_at(0.81), {"document_type": "statute"}),
                             (REGIONAL_TITLE, OTHER_CLAUSE, vector_at(0.88), {"document_type": "regulation"}),
                            )

        result = make_detector(corpus).detect_conflicts([{"text": PROHIBITION}])
        scores = [flag.confidence_score for flag in result.conflicts]

        assert scores == sorted(scores, reverse=True)
        # 0.81 from a statute is boosted above both regulations
        assert result.conflicts[0].citation.instrument_type == "undang-undang"

    def test_max_conflicts_per_clause(self, make_detector, make_corpus, vector_at) -> None:
        corpus = make_corpus(*[(REGIONAL_TITLE, OTHER_CLAUSE, vector_at(0.81 + 0.01 * number), {}) for number in range(6)])

        result = make_detector(corpus, max_conflicts_per_clause=2).detect_conflicts([{"text": PROHIBITION}])

        assert [round(flag.overlap_score, 2) for flag in result.conflicts] == [0.86, 0.85]

    def test_excluded_document_is_not_matched(self, make_detector, make_corpus, vector_at) -> None:
        corpus = make_corpus((REGIONAL_TITLE, PERMISSION, vector_at(0.85), {"document_id": "draft-1"}))

        result = make_detector(corpus).detect_conflicts([{"text": PROHIBITION}], exclude_doc_id="draft-1")

        assert result.conflicts == []

    def test_clause_index_follows_sequence_order(self, make_detector, regional_corpus) -> None:
        clauses = [{"text": OTHER_CLAUSE, "sequence_order": 2},
                   {"text": PROHIBITION, "sequence_order": 1},
                  ]
        overrides = {PROHIBITION: basis_vector(0), OTHER_CLAUSE: basis_vector(5)}

        result  = make_detector(regional_corpus, overrides=overrides).detect_conflicts(clauses)

        assert [flag.clause_index for flag in result.conflicts] == [0]

    def test_identical_runs_are_identical(self, make_detector, make_corpus, vector_at) -> None:
        corpus   = make_corpus((REGIONAL_TITLE, PERMISSION, vector_at(0.85), {}),
                               (STATUTE_TITLE, EXEMPTION, vector_at(0.9), {}),
                              )
        detector = make_detector(corpus)
        clauses  = [{"text": PROHIBITION}, {"text": OBLIGATION}]

        first    = detector.detect_conflicts(clauses).to_dict()
        second   = detector.detect_conflicts(clauses).to_dict()

        first.pop("processing_info")
        second.pop("processing_info")

        assert first == second

    def test_progress_reaches_completion(self, make_detector, regional_corpus) -> None:
        updates = list()

        make_detector(regional_corpus).detect_conflicts([{"text": PROHIBITION}], on_progress=updates.append)

        assert [update.current_phase for update in updates] == ["embedding", "searching", "analyzing", "finalizing"]
        assert updates[-1].percentage == 100.0
        assert updates[-1].conflicts_found == 1


class TestFailures:
    def test_search_outage_fails_the_job(self, make_detector, sleeps) -> None:
        search = Mock(spec=CorpusSearchClient)
        search.search.side_effect = requests.ConnectionError("connection refused")

        with pytest.raises(ConflictDetectionError) as exc_info:
            make_detector(search).detect_conflicts([{"text": PROHIBITION}, {"text": OBLIGATION}])

        assert str(exc_info.value).startswith("Conflict detection failed")
        assert search.search.call_count == 6
        assert len(sleeps) == 4

    def test_single_search_failure_is_skipped(self, make_detector, regional_corpus) -> None:
        class FlakyCorpus(InMemoryCorpusSearch):
            def search(self, query_vector, *args, **kwargs):
                if query_vector[5] == 1.0:
                    raise requests.ConnectionError("connection reset")

                return super().search(query_vector, *args, **kwargs)

        corpus    = FlakyCorpus(regional_corpus.entries)
        overrides = {PROHIBITION: basis_vector(0), OTHER_CLAUSE: basis_vector(5)}

        result    = make_detector(corpus, overrides=overrides).detect_conflicts([{"text": PROHIBITION}, {"text": OTHER_CLAUSE}])

        assert len(result.conflicts) == 1
        assert result.processing_info["failed_clauses"] == 1
        assert result.processing_info["failures"][0]["context"]["index"] == 1
        assert result.processing_info["clauses_analyzed"] == 1
        assert any("tidak dapat dianalisis" in recommendation for recommendation in result.recommendations)

    def test_rejected_clause_is_recorded_and_skipped(self, make_detector, regional_corpus) -> None:
        provider = FakeEmbeddingProvider(overrides={PROHIBITION: basis_vector(0)}, reject_markers=["TERLARANG"])

        result   = make_detector(regional_corpus, provider=provider).detect_conflicts([{"text": PROHIBITION}, {"text": "Pasal 9. TERLARANG."}])

        assert len(result.conflicts) == 1
        assert result.processing_info["failed_clauses"] == 1
        assert result.processing_info["failures"][0]["context"]["operation"] == "embeddings.create"

    def test_rejected_clause_alone_in_its_batch_is_skipped(self, make_detector, regional_corpus) -> None:
        provider = FakeEmbeddingProvider(overrides={PROHIBITION: basis_vector(0)}, reject_markers=["TERLARANG"])
        clauses  = [{"text": PROHIBITION, "clause_ref": f"Pasal {number}"} for number in range(1, 11)] + [{"text": "Pasal 11. TERLARANG."}]

        result   = make_detector(regional_corpus, provider=provider, batch_size=10).detect_conflicts(clauses)

        assert len(result.conflicts) == 10
        assert result.processing_info["clauses_analyzed"] == 10
        assert result.processing_info["failed_clauses"] == 1
        assert result.processing_info["failures"][0]["context"]["index"] == 10

    def test_embedding_outage_fails_the_job(self, make_detector, regional_corpus) -> None:
        provider = FakeEmbeddingProvider(transient_failures=100)

        with pytest.raises(ConflictDetectionError) as exc_info:
            make_detector(regional_corpus, provider=provider).detect_conflicts([{"text": PROHIBITION}])

        assert exc_info.value.context["operation"] == "embed_batch"

    def test_bad_request_on_lone_clause_is_skipped(self, make_detector, regional_corpus) -> None:
        class RejectingCorpus(InMemoryCorpusSearch):
            def search(self, query_vector, *args, **kwargs):
                if query_vector[5] == 1.0:
                    raise requests.HTTPError("400 Bad Request", response=Mock(status_code=400))

                return super().search(query_vector, *args, **kwargs)

        corpus    = RejectingCorpus(regional_corpus.entries)
        overrides = {PROHIBITION: basis_vector(0), OTHER_CLAUSE: basis_vector(5)}

        result    = make_detector(corpus, overrides=overrides, batch_size=2).detect_conflicts([{"text": PROHIBITION}, {"text": PROHIBITION}, {"text": OTHER_CLAUSE}])

        assert len(result.conflicts) == 2
        assert result.processing_info["failed_clauses"] == 1
        assert result.processing_info["failures"][0]["context"]["index"] == 2

    def test_outage_on_lone_clause_fails_the_job(self, make_detector, regional_corpus) -> None:
        class FailingCorpus(InMemoryCorpusSearch):
            def search(self, query_vector, *args, **kwargs):
                if query_vector[5] == 1.0:
                    raise requests.ConnectionError("connection refused")

                return super().search(query_vector, *args, **kwargs)

        corpus    = FailingCorpus(regional_corpus.entries)
        overrides = {PROHIBITION: basis_vector(0), OTHER_CLAUSE: basis_vector(5)}

        with pytest.raises(ConflictDetectionError) as exc_info:
            make_detector(corpus, overrides=overrides, batch_size=2).detect_conflicts([{"text": PROHIBITION}, {"text": PROHIBITION}, {"text": OTHER_CLAUSE}])

        assert exc_info.value.context["batch_index"] == 1

    def test_unusable_embedding_provider_fails(self, make_detector, regional_corpus) -> None:
        provider = FakeEmbeddingProvider(error=RuntimeError("invalid_api_key"))

        with pytest.raises(ConflictDetectionError) as exc_info:
            make_detector(regional_corpus, provider=provider).detect_conflicts([{"text": PROHIBITION}])

        assert exc_info.value.context["scope"] == "provider"

    def test_invalid_input_rejected(self, make_detector, regional_corpus) -> None:
        with pytest.raises(ValidationError):
            make_detector(regional_corpus).detect_conflicts("Pasal 1")


class TestEnrichment:
    def test_llm_explanation_used_when_available(self, make_detector, regional_corpus) -> None:
        explainer = Mock()
        explainer.explain_conflict.return_value = ConflictExplanation(explanation            = "Perda membolehkan penjualan yang dilarang rancangan ini.",
                                                                      legal_implications     = ["Perda dapat diuji di Mahkamah Agung."],
                                                                      resolution_suggestions = ["Tambahkan pengecualian kawasan."],
                                                                     )

        flag      = make_detector(regional_corpus, explanation_generator=explainer).detect_conflicts([{"text": PROHIBITION}]).conflicts[0]

        assert flag.explanation == "Perda membolehkan penjualan yang dilarang rancangan ini."
        assert flag.legal_implications == ["Perda dapat diuji di Mahkamah Agung."]
        assert flag.resolution_suggestion == "Tambahkan pengecualian kawasan."
        explainer.explain_conflict.assert_called_once_with(PROHIBITION, PERMISSION, REGIONAL_TITLE, "contradiction")

    def test_severity_factors_and_precedent_reach_the_report(self, make_detector, regional_corpus) -> None:
        llm_manager = Mock()
        llm_manager.generate_structured_json.return_value = {"explanation"            : "Perda membolehkan penjualan yang dilarang rancangan ini.",
                                                             "legal_implications"     : ["Perda dapat diuji di Mahkamah Agung."],
                                                             "resolution_suggestions" : ["Tambahkan pengecualian kawasan."],
                                                             "severity_factors"       : ["Larangan mutlak", "Objek pengaturan sama"],
                                                             "legal_precedent"        : "Asas lex superior derogat legi inferiori",
                                                            }
        explainer   = ExplanationGenerator(llm_manager=llm_manager, fallback_providers=[])

        report      = make_detector(regional_corpus, explanation_generator=explainer).detect_conflicts([{"text": PROHIBITION}]).to_dict()
        flag        = report["conflicts"][0]

        assert flag["severity_factors"] == ["Larangan mutlak", "Objek pengaturan sama"]
        assert flag["legal_precedent"] == "Asas lex superior derogat legi inferiori"
        assert flag["explanation"] == "Perda membolehkan penjualan yang dilarang rancangan ini."

    def test_template_flag_has_no_precedent(self, make_detector, regional_corpus) -> None:
        flag = make_detector(regional_corpus).detect_conflicts([{"text": PROHIBITION}]).conflicts[0].to_dict()

        assert flag["severity_factors"] == []
        assert flag["legal_precedent"] is None

    def test_llm_failure_falls_back_to_template(self, make_detector, regional_corpus) -> None:
        explainer = Mock()
        explainer.explain_conflict.side_effect = ValueError("LLM response did not contain an explanation")

        flag      = make_detector(regional_corpus, explanation_generator=explainer).detect_conflicts([{"text": PROHIBITION}]).conflicts[0]

        assert flag.explanation.startswith("Potensi konflik:")

    def test_enrichment_skipped_when_disabled(self, make_detector, regional_corpus) -> None:
        explainer = Mock()

        make_detector(regional_corpus, explanation_generator=explainer, include_ai_explanations=False).detect_conflicts([{"text": PROHIBITION}])

        explainer.explain_conflict.assert_not_called()


class TestScoring:
    """Pure classification, confidence, citation and aggregation rules."""

    @pytest.mark.parametrize("input_text, existing_text, similarity, expected",
                             [(PROHIBITION, PERMISSION, 0.85, ConflictType.CONTRADICTION),
                              (PERMISSION, PROHIBITION, 0.85, ConflictType.CONTRADICTION),
                              (OBLIGATION, EXEMPTION, 0.75, ConflictType.CONTRADICTION),
                              (PROHIBITION, PERMISSION, 0.95, ConflictType.OVERLAP),
                              ("Persyaratan pendaftaran diatur oleh menteri.", "Persyaratan pendaftaran ditetapkan gubernur.", 0.78, ConflictType.INCONSISTENCY),
                              ("Persyaratan pendaftaran diatur oleh menteri.", "Persyaratan pendaftaran ditetapkan gubernur.", 0.65, ConflictType.OVERLAP),
                              (OTHER_CLAUSE, PERMISSION, 0.85, ConflictType.OVERLAP),
                             ])
    def test_classify_conflict(self, input_text, existing_text, similarity, expected) -> None:
        assert classify_conflict(input_text, existing_text, similarity) == expected

    @pytest.mark.parametrize("first, second, expected",
                             [("Penjualan minuman beralkohol tidak dilarang di hotel.", "Penjualan minuman beralkohol diperbolehkan di hotel.", False),
                              ("Penjualan minuman beralkohol dilarang di hotel.", "Penjualan minuman beralkohol tidak dilarang di hotel.", True),
                              ("Penjualan minuman beralkohol dilarang di hotel.", "Penjualan minuman beralkohol diperbolehkan di hotel.", True),
                             ])
    def test_negated_prohibition(self, first, second, expected) -> None:
        assert LegalRules.has_modal_contradiction(first, second) is expected
        assert LegalRules.has_modal_contradiction(second, first) is expected

    def test_confidence_multipliers(self) -> None:
        national_statute = SimilarClause(clause_id="1", document_id="d", document_title="Judul", clause_ref=None, clause_text="", similarity=0.7,
                                         document_type="statute", jurisdiction="national")
        regulation       = SimilarClause(clause_id="2", document_id="d", document_title="Peraturan Menteri Nomor 5 Tahun 2020", clause_ref=None,
                                         clause_text="", similarity=0.7, document_type="regulation")
        untyped_statute  = SimilarClause(clause_id="3", document_id="d", document_title="Undang-Undang Nomor 1 Tahun 2020", clause_ref=None,
                                         clause_text="", similarity=0.5)

        assert calculate_confidence(0.7, ClauseType.ARTICLE, national_statute) == 1.0
        assert calculate_confidence(0.7, ClauseType.GENERAL, regulation) == pytest.approx(0.7)
        assert calculate_confidence(0.7, ClauseType.PARAGRAPH, regulation) == pytest.approx(0.77)
        assert calculate_confidence(0.5, ClauseType.GENERAL, untyped_statute) == pytest.approx(0.6)

    @pytest.mark.parametrize("title, instrument_type, number, year, authority",
                             [("Undang-Undang No. 20 Tahun 2003 tentang Sistem Pendidikan Nasional", "undang-undang", "20", 2003, "DPR RI dan Presiden"),
                              ("Peraturan Pemerintah Nomor 17 Tahun 2010", "peraturan-pemerintah", "17", 2010, "Presiden RI"),
                              ("PP 57/2021 tentang Standar Nasional Pendidikan", "peraturan-pemerintah", "57", 2021, "Presiden RI"),
                              ("Keputusan Presiden Nomor 3 Tahun 2001", "keputusan-presiden", "3", 2001, "Presiden RI"),
                              ("Surat Edaran Bersama", "lainnya", None, None, "Tidak diketahui"),
                             ])
    def test_build_citation(self, title, instrument_type, number, year, authority) -> None:
        candidate = SimilarClause(clause_id="1", document_id="d", document_title=title, clause_ref="Pasal 3", clause_text="", similarity=0.9, status="revoked")

        citation  = build_citation(candidate)

        assert citation.instrument_type == instrument_type
        assert citation.number == number
        assert citation.year == year
        assert citation.issuing_authority == authority
        assert citation.article == "Pasal 3"
        assert citation.status == "revoked"

    @pytest.mark.parametrize("severities, expected",
                             [([], RiskLevel.LOW),
                              ([Severity.CRITICAL], RiskLevel.CRITICAL),
                              ([Severity.HIGH] * 3, RiskLevel.HIGH),
                              ([Severity.HIGH] + [Severity.MEDIUM] * 3, RiskLevel.HIGH),
                              ([Severity.HIGH], RiskLevel.MEDIUM),
                              ([Severity.MEDIUM] * 3, RiskLevel.MEDIUM),
                              ([Severity.MEDIUM] * 2 + [Severity.LOW] * 5, RiskLevel.LOW),
                             ])
    def test_assess_risk(self, severities, expected) -> None:
        assert assess_risk([make_flag(severity) for severity in severities]) == expected

    def test_confident_contradiction_is_at_least_high_risk(self) -> None:
        severity = Severity(LegalRules.severity_for("contradiction", 0.95))
        risk     = assess_risk([make_flag(severity, confidence=0.95, conflict_type=ConflictType.CONTRADICTION)])

        assert risk in (RiskLevel.HIGH, RiskLevel.CRITICAL)

    def test_compatibility(self) -> None:
        assert calculate_compatibility([]) == 1.0
        assert calculate_compatibility([make_flag(Severity.CRITICAL, confidence=1.0)]) == 0.0
        assert calculate_compatibility([make_flag(Severity.LOW, confidence=0.8), make_flag(Severity.HIGH, confidence=0.8)]) == pytest.approx(1 - (0.8 + 2.4) / 8)

    @pytest.mark.parametrize("conflict_type, confidence, expected",
                             [("contradiction", 0.91, "critical"),
                              ("contradiction", 0.85, "high"),
                              ("contradiction", 0.80, "medium"),
                              ("overlap", 0.96, "high"),
                              ("overlap", 0.90, "medium"),
                              ("overlap", 0.85, "low"),
                              ("inconsistency", 0.80, "medium"),
                              ("gap", 0.90, "high"),
                             ])
    def test_severity_table(self, conflict_type, confidence, expected) -> None:
        assert LegalRules.severity_for(conflict_type, confidence) == expected


class TestOptions:
    def test_update_options_merges(self, make_detector, regional_corpus) -> None:
        detector = make_detector(regional_corpus, jurisdiction_filter="national")

        updated  = detector.update_options({"similarity_threshold": 0.9})

        assert updated["similarity_threshold"] == 0.9
        assert updated["max_conflicts_per_clause"] == 5
        assert updated["jurisdiction_filter"] == "national"
        assert detector.get_options() == updated

    def test_jurisdiction_filter_can_be_cleared(self, make_detector, regional_corpus) -> None:
        detector = make_detector(regional_corpus, jurisdiction_filter="national")

        assert detector.update_options({"jurisdiction_filter": None})["jurisdiction_filter"] is None

    @pytest.mark.parametrize("options", [{"similarity_threshold": 1.2}, {"max_conflicts_per_clause": 0}, {"batch_size": "ten"},
                                         {"document_types": "statute"}, {"document_types": ["statute", 3]}, {"include_ai_explanations": "false"}])
    def test_invalid_options_rejected(self, options) -> None:
        with pytest.raises(ValidationError):
            ConflictDetectionOptions.from_dict(options)

    def test_higher_threshold_drops_weaker_matches(self, make_detector, regional_corpus) -> None:
        result = make_detector(regional_corpus, similarity_threshold=0.9).detect_conflicts([{"text": PROHIBITION}])

        assert result.conflicts == []

    def test_factory_applies_option_overrides(self, make_generator, regional_corpus) -> None:
        detector = create_conflict_detector({"max_conflicts_per_clause": 1, "jurisdiction_filter": "regional"},
                                            search_client       = regional_corpus,
                                            embedding_generator = make_generator(),
                                           )

        assert detector.get_options()["max_conflicts_per_clause"] == 1
        assert detector.get_options()["jurisdiction_filter"] == "regional"
        assert detector.search_client is regional_corpus
