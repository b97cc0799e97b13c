# DEPENDENCIES
import sys
import time
from typing import Any
from typing import List
from typing import Dict
from pathlib import Path
from typing import Callable
from typing import Optional
from datetime import datetime
from dataclasses import field
from dataclasses import asdict
from dataclasses import replace
from dataclasses import dataclass

# Add parent directory to path for imports
sys.path.append(str(Path(__file__).parent.parent))

from utils.logger import log_info
from utils.logger import log_error
from utils.logger import log_warning
from config.legal_rules import ClauseType
from config.legal_rules import LegalRules
from config.model_config import ModelConfig
from config.legal_rules import InstrumentType
from utils.exceptions import PartialFailure
from utils.validators import ClauseValidator
from utils.text_processor import TextProcessor
from utils.exceptions import TerminalRemoteError
from utils.exceptions import TransientRemoteError
from utils.exceptions import StatuteAnalyzerError
from utils.exceptions import OperationTimeoutError
from utils.exceptions import ConflictDetectionError
from utils.logger import StatuteAnalyzerLogger
from config.settings import settings
from services.data_models import Severity
from services.data_models import RiskLevel
from services.data_models import ConflictType
from services.data_models import ConflictFlag
from services.data_models import LegalCitation
from services.data_models import SimilarClause
from services.data_models import ClauseSegment
from services.data_models import prepare_clauses
from services.data_models import ConflictStatistics
from services.data_models import ConflictDetectionResult
from services.data_models import ConflictDetectionProgress
from services.corpus_search import CorpusSearchClient
from services.corpus_search import create_corpus_search
from services.explanation_generator import ExplanationGenerator
from model_manager.retry_policy import RetryPolicy
from model_manager.embedding_generator import EmbeddingGenerator


NO_CONFLICTS_SUMMARY = "Tidak ditemukan konflik signifikan dengan peraturan perundang-undangan yang ada."

EMPTY_CORPUS_SUMMARY = "Korpus peraturan perundang-undangan kosong; tidak ada peraturan yang dapat dibandingkan sehingga hasil ini bukan jaminan keselarasan."

RISK_LABELS          = {RiskLevel.LOW      : "rendah",
                        RiskLevel.MEDIUM   : "sedang",
                        RiskLevel.HIGH     : "tinggi",
                        RiskLevel.CRITICAL : "kritis",
                       }

# Templated explanations used when no enrichment is available
FALLBACK_EXPLANATIONS = {ConflictType.CONTRADICTION : "Potensi konflik: ketentuan ini bertentangan dengan {law}. Kedua ketentuan memuat norma yang berlawanan (misalnya dilarang dan diperbolehkan).",
                         ConflictType.OVERLAP       : "Potensi konflik: ketentuan ini tumpang tindih dengan {law} (kemiripan {similarity}%).",
                         ConflictType.INCONSISTENCY : "Potensi konflik: prosedur atau persyaratan dalam ketentuan ini tidak konsisten dengan {law}.",
                         ConflictType.GAP           : "Potensi konflik: terdapat kekosongan pengaturan dibandingkan dengan {law}.",
                        }

RESOLUTION_SUGGESTIONS = {ConflictType.CONTRADICTION : "Selaraskan norma dengan peraturan yang lebih tinggi atau nyatakan pengecualian secara eksplisit.",
                          ConflictType.OVERLAP       : "Rujuk ketentuan yang sudah ada alih-alih mengatur ulang materi yang sama.",
                          ConflictType.INCONSISTENCY : "Harmonisasikan prosedur dan persyaratan dengan peraturan terkait.",
                          ConflictType.GAP           : "Lengkapi pengaturan agar tidak terjadi kekosongan hukum.",
                         }

LEGAL_IMPLICATIONS     = {ConflictType.CONTRADICTION : "Ketentuan yang bertentangan dapat dibatalkan melalui uji materiil.",
                          ConflictType.OVERLAP       : "Pengaturan ganda menimbulkan ketidakpastian hukum dalam penerapannya.",
                          ConflictType.INCONSISTENCY : "Perbedaan prosedur dapat menimbulkan sengketa administratif.",
                          ConflictType.GAP           : "Kekosongan pengaturan dapat menghambat pelaksanaan ketentuan.",
                         }


@dataclass
class ConflictDetectionOptions:
    """
    Options for one conflict detection run
    """
    similarity_threshold     : float         = ModelConfig.CONFLICT_DETECTION["similarity_threshold"]
    max_conflicts_per_clause : int           = ModelConfig.CONFLICT_DETECTION["max_conflicts_per_clause"]
    jurisdiction_filter      : Optional[str] = None
    document_types           : List[str]     = field(default_factory = lambda: list(ModelConfig.CONFLICT_DETECTION["document_types"]))
    include_ai_explanations  : bool          = True
    batch_size               : int           = ModelConfig.CONFLICT_DETECTION["batch_size"]
    timeout_ms               : int           = ModelConfig.CONFLICT_DETECTION["timeout_ms"]


    @classmethod
    def from_dict(cls, options: Optional[Dict[str, Any]] = None, base: Optional["ConflictDetectionOptions"] = None) -> "ConflictDetectionOptions":
        """
        Build options from a dictionary, on top of `base` when given; unknown keys are ignored with a warning

        Raises:
        -------
            ValidationError : If a threshold is outside [0, 1], a size is not a positive integer or a value has the wrong type
        """
        options = dict(options or {})
        known   = {key: value for key, value in options.items() if key in cls.__dataclass_fields__}
        unknown = sorted(set(options) - set(cls.__dataclass_fields__))

        if unknown:
            log_warning("Ignoring unknown conflict detection options", options = unknown)

        ClauseValidator.validate_options(known,
                                         thresholds    = ["similarity_threshold"],
                                         positive_ints = ["max_conflicts_per_clause", "batch_size", "timeout_ms"],
                                         booleans      = ["include_ai_explanations"],
                                         string_lists  = ["document_types"],
                                         strings       = ["jurisdiction_filter"],
                                        )

        # Only the filter may be explicitly cleared with None
        known   = {key: value for key, value in known.items() if (value is not None) or (key == "jurisdiction_filter")}

        return replace(base, **known) if base is not None else cls(**known)


    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def is_outage(error: Optional[BaseException]) -> bool:
    """
    Whether a failure points at the remote service rather than at one clause (exhausted transient retries or a provider-wide terminal error)
    """
    if isinstance(error, TransientRemoteError):
        return True

    return isinstance(error, TerminalRemoteError) and (error.scope == "provider")


def classify_conflict(input_text: str, existing_text: str, similarity: float) -> ConflictType:
    """
    Conflict type in priority order: near-duplicate, opposing legal modality, procedural mismatch, default overlap
    """
    config = ModelConfig.CONFLICT_DETECTION

    if (similarity > config["overlap_similarity"]):
        return ConflictType.OVERLAP

    if LegalRules.has_modal_contradiction(input_text, existing_text):
        return ConflictType.CONTRADICTION

    shared_keywords = set(LegalRules.procedural_keywords_in(input_text)) & set(LegalRules.procedural_keywords_in(existing_text))

    if shared_keywords and (similarity > config["inconsistency_similarity"]):
        return ConflictType.INCONSISTENCY

    return ConflictType.OVERLAP


def calculate_confidence(similarity: float, clause_type: ClauseType, candidate: SimilarClause) -> float:
    """
    Similarity scaled by the input clause's type and the matched entry's jurisdiction and rank, capped at 1.0

    Arguments:
    ----------
        similarity  { float }         : Search similarity

        clause_type { ClauseType }    : Type of the input clause

        candidate   { SimilarClause } : Matched corpus entry

    Returns:
    --------
              { float }               : Confidence in [0, 1]
    """
    confidence = similarity * LegalRules.CLAUSE_TYPE_CONFIDENCE.get(ClauseType.normalize(clause_type), 1.0)

    if candidate.jurisdiction and (candidate.jurisdiction.lower() in LegalRules.NATIONAL_JURISDICTIONS):
        confidence *= LegalRules.NATIONAL_JURISDICTION

    if candidate.document_type:
        is_primary = candidate.document_type.lower() in LegalRules.PRIMARY_STATUTE_TYPES

    else:
        is_primary = LegalRules.classify_instrument(candidate.document_title) == InstrumentType.STATUTE

    if is_primary:
        confidence *= LegalRules.PRIMARY_STATUTE

    return max(0.0, min(1.0, confidence))


def build_citation(candidate: SimilarClause) -> LegalCitation:
    """
    Structured citation parsed from the matched document title
    """
    instrument_type = LegalRules.classify_instrument(candidate.document_title)
    number, year    = LegalRules.extract_number_and_year(candidate.document_title)

    return LegalCitation(title             = candidate.document_title,
                         instrument_type   = instrument_type.value,
                         number            = number,
                         year              = year,
                         article           = candidate.clause_ref,
                         jurisdiction      = candidate.jurisdiction,
                         status            = candidate.status or "active",
                         issuing_authority = LegalRules.ISSUING_AUTHORITIES[instrument_type],
                         url               = candidate.source_url,
                        )


def assess_risk(conflicts: List[ConflictFlag]) -> RiskLevel:
    """
    Overall risk from the severity counts of all flags
    """
    critical = sum(1 for conflict in conflicts if conflict.severity == Severity.CRITICAL)
    high     = sum(1 for conflict in conflicts if conflict.severity == Severity.HIGH)
    medium   = sum(1 for conflict in conflicts if conflict.severity == Severity.MEDIUM)

    if (critical > 0):
        return RiskLevel.CRITICAL

    if (high >= 3) or ((high >= 1) and (medium >= 3)):
        return RiskLevel.HIGH

    if (high >= 1) or (medium >= 3):
        return RiskLevel.MEDIUM

    return RiskLevel.LOW


def calculate_compatibility(conflicts: List[ConflictFlag]) -> float:
    """
    1 - (sum of severity weight x confidence) / (flag count x maximum weight); 1.0 when there are no flags
    """
    if not conflicts:
        return 1.0

    max_weight = max(LegalRules.SEVERITY_WEIGHTS.values())
    weighted   = sum(LegalRules.SEVERITY_WEIGHTS[conflict.severity.value] * conflict.confidence_score for conflict in conflicts)

    return max(0.0, min(1.0, 1.0 - weighted / (len(conflicts) * max_weight)))


class ConflictDetector:
    """
    Retrieval-augmented conflict detection: embed each clause, search the legislation corpus for similar provisions,
    classify and grade every match, then aggregate an overall risk verdict
    """
    SEARCH_OPERATION = "search_similar_clauses"


    def __init__(self, search_client: Optional[CorpusSearchClient] = None, embedding_generator: Optional[EmbeddingGenerator] = None,
                 explanation_generator: Optional[ExplanationGenerator] = None, options: Optional[Any] = None,
                 retry_policy: Optional[RetryPolicy] = None, sleep: Callable[[float], None] = time.sleep):
        """
        Initialize conflict detector

        Arguments:
        ----------
            search_client         { CorpusSearchClient }              : Corpus similarity search (default: from settings)

            embedding_generator   { EmbeddingGenerator }              : Clause vector source (default: from settings)

            explanation_generator { ExplanationGenerator }            : Optional LLM enrichment of flags

            options               { ConflictDetectionOptions | dict } : Detection options

            retry_policy          { RetryPolicy }                     : Retry policy for corpus searches

            sleep                 { callable }                        : Sleep function for retry backoff (injectable for tests)
        """
        self.search_client         = search_client or create_corpus_search()
        self.embedding_generator   = embedding_generator or EmbeddingGenerator()
        self.explanation_generator = explanation_generator
        self.options               = options if isinstance(options, ConflictDetectionOptions) else ConflictDetectionOptions.from_dict(options)
        self.retry_policy          = retry_policy or RetryPolicy.from_settings()
        self._sleep                = sleep

        log_info("ConflictDetector initialized", **self.options.to_dict())


    def get_options(self) -> Dict[str, Any]:
        return self.options.to_dict()


    def update_options(self, options: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merge new option values into the current ones and return the result
        """
        self.options = ConflictDetectionOptions.from_dict(options, base = self.options)

        log_info("ConflictDetector options updated", **self.options.to_dict())

        return self.get_options()


    @staticmethod
    def _report(callback: Optional[Callable[[ConflictDetectionProgress], None]], phase: str, percentage: float, processed: int, total: int,
                conflicts_found: int, message: str = ""):
        if callback is None:
            return

        try:
            callback(ConflictDetectionProgress(current_phase     = phase,
                                               percentage        = percentage,
                                               processed_clauses = processed,
                                               total_clauses     = total,
                                               conflicts_found   = conflicts_found,
                                               message           = message,
                                              ))

        except Exception as e:
            log_error(e, context = {"component" : "ConflictDetector", "operation" : "progress_callback", "phase" : phase})


    @StatuteAnalyzerLogger.log_execution_time("detect_conflicts")
    def detect_conflicts(self, clauses: List[Any], exclude_doc_id: Optional[str] = None,
                         on_progress: Optional[Callable[[ConflictDetectionProgress], None]] = None) -> ConflictDetectionResult:
        """
        Find provisions in the corpus that may conflict with the given clauses

        Arguments:
        ----------
            clauses        { list }     : ClauseSegment objects or dicts (clause_index in flags refers to their sequence-sorted position)

            exclude_doc_id { str }      : Corpus document to leave out of the search (usually the document itself)

            on_progress    { callable } : Receives ConflictDetectionProgress updates

        Returns:
        --------
            { ConflictDetectionResult } : Flags sorted by confidence then overlap, statistics, risk verdict and recommendations

        Raises:
        -------
            ValidationError        : Malformed input

            ConflictDetectionError : A whole batch was lost to a service outage, or the embedding provider is unusable

            OperationTimeoutError  : timeout_ms elapsed
        """
        start_time = time.time()
        deadline   = time.monotonic() + self.options.timeout_ms / 1000.0
        segments   = prepare_clauses(clauses, label = "clauses", max_clauses = settings.MAX_CLAUSES_PER_DOCUMENT)
        total      = len(segments)
        step       = self.options.batch_size
        batches    = [list(range(start, min(start + step, total))) for start in range(0, total, step)]

        conflicts  = list()
        failures   = list()
        tokens     = 0
        searched   = 0
        candidates = 0

        corpus_size  = self.search_client.corpus_size()
        corpus_empty = (corpus_size == 0)

        if corpus_empty:
            log_warning("Conflict detection over an empty corpus", total_clauses = total)

        log_info("Starting conflict detection", total_clauses = total, batches = len(batches), exclude_doc_id = exclude_doc_id)

        for batch_number, indices in enumerate(batches):
            if (time.monotonic() >= deadline):
                raise OperationTimeoutError("Conflict detection timed out", context = {"operation" : "detect_conflicts", "batch_index" : batch_number})

            base_percentage = 90.0 * batch_number / len(batches)

            self._report(on_progress, "embedding", base_percentage, indices[0], total, len(conflicts), f"Embedding batch {batch_number + 1}/{len(batches)}")

            embeddings, embed_errors = self._embed_batch(segments, indices, deadline, failures)
            tokens                  += sum(embedding.tokens_used for embedding in embeddings.values())

            # Clauses rejected on their own merits are skipped; a batch lost entirely to the service is an outage
            if (not embeddings) and embed_errors and all(is_outage(error) for error in embed_errors):
                self._raise_outage(embed_errors[-1], "embed_batch", batch_number)

            self._report(on_progress, "searching", base_percentage + 30.0 / len(batches), indices[0], total, len(conflicts), "Searching corpus")

            results, search_errors = self._search_batch(embeddings, exclude_doc_id, deadline, failures)
            searched              += len(results)

            if (not results) and search_errors and all(is_outage(error) for error in search_errors):
                self._raise_outage(search_errors[-1], self.SEARCH_OPERATION, batch_number)

            self._report(on_progress, "analyzing", base_percentage + 60.0 / len(batches), indices[0], total, len(conflicts), "Analyzing matches")

            for index in sorted(results):
                for candidate in results[index]:
                    candidates += 1

                    if (candidate.similarity < self.options.similarity_threshold):
                        continue

                    conflicts.append(self._build_flag(index, segments[index], candidate, deadline))

        conflicts.sort(key = lambda conflict: (-conflict.confidence_score, -conflict.overlap_score))

        statistics    = self._calculate_statistics(conflicts)
        risk          = assess_risk(conflicts)
        compatibility = calculate_compatibility(conflicts)

        processing_info = {"total_clauses"           : total,
                           "clauses_analyzed"        : searched,
                           "failed_clauses"          : len(failures),
                           "failures"                : [failure.to_dict() for failure in failures],
                           "corpus_searched"         : corpus_size if corpus_size is not None else candidates,
                           "corpus_empty"            : corpus_empty,
                           "candidates_evaluated"    : candidates,
                           "similarity_threshold"    : self.options.similarity_threshold,
                           "tokens_used"             : tokens,
                           "processing_time_seconds" : round(time.time() - start_time, 3),
                           "timestamp"               : datetime.now().isoformat(),
                          }

        self._report(on_progress, "finalizing", 100.0, total, total, len(conflicts), "Conflict detection complete")

        log_info("Conflict detection complete",
                 conflicts       = len(conflicts),
                 risk_assessment = risk.value,
                 compatibility   = round(compatibility, 4),
                 failed_clauses  = len(failures),
                )

        return ConflictDetectionResult(conflicts                   = conflicts,
                                       statistics                  = statistics,
                                       summary                     = self.generate_summary(statistics, risk, corpus_empty),
                                       risk_assessment             = risk,
                                       overall_compatibility_score = compatibility,
                                       recommendations             = self.generate_recommendations(statistics, risk, len(failures), corpus_empty),
                                       processing_info             = processing_info,
                                      )


    @staticmethod
    def _raise_outage(cause: StatuteAnalyzerError, operation: str, batch_number: int):
        error = ConflictDetectionError(f"Conflict detection failed: {cause.message}",
                                       context = {"operation"   : operation,
                                                  "batch_index" : batch_number,
                                                  "attempts"    : cause.context.get("attempts"),
                                                  "scope"       : getattr(cause, "scope", "transient"),
                                                 },
                                      )
        log_error(error, context = {"component" : "ConflictDetector", "operation" : "detect_conflicts"})

        raise error from cause


    def _embed_batch(self, segments: List[ClauseSegment], indices: List[int], deadline: float, failures: List[PartialFailure]):
        """
        Vectors for one batch keyed by clause index; clauses that could not be embedded are recorded as failures

        Returns:
        --------
            { tuple } : (vectors by clause index, causes of this batch's embedding failures)
        """
        try:
            result = self.embedding_generator.embed_batch([segments[index].text for index in indices], deadline = deadline)

        except TerminalRemoteError as e:
            if (e.scope != "provider"):
                raise

            log_error(e, context = {"component" : "ConflictDetector", "operation" : "embed_batch"})
            raise ConflictDetectionError(f"Conflict detection failed: {e.message}", context = dict(e.context)) from e

        embeddings = dict()
        errors     = list()

        for position, index in enumerate(indices):
            if position in result.failures:
                failure = result.failures[position]
                errors.append(failure.cause)
                failures.append(PartialFailure(f"Embedding failed for clause {index}: {failure.cause}",
                                               index     = index,
                                               operation = failure.operation,
                                               cause     = failure.cause,
                                              ))
                continue

            embeddings[index] = result.embeddings[position]

        return embeddings, errors


    def _search_batch(self, embeddings: Dict[int, Any], exclude_doc_id: Optional[str], deadline: float, failures: List[PartialFailure]):
        """
        Search the corpus once per embedded clause

        Returns:
        --------
            { tuple } : (candidates by clause index, causes of this batch's search failures)
        """
        results = dict()
        errors  = list()

        for index in sorted(embeddings):
            vector = embeddings[index].vector

            try:
                results[index] = self.retry_policy.execute(lambda: self.search_client.search(query_vector         = vector,
                                                                                            similarity_threshold = self.options.similarity_threshold,
                                                                                            max_results          = self.options.max_conflicts_per_clause,
                                                                                            exclude_document_id  = exclude_doc_id,
                                                                                            jurisdiction         = self.options.jurisdiction_filter,
                                                                                            document_types       = self.options.document_types,
                                                                                           ),
                                                            operation = self.SEARCH_OPERATION,
                                                            sleep     = self._sleep,
                                                            deadline  = deadline,
                                                            context   = {"clause_index" : index},
                                                           )

            except OperationTimeoutError:
                raise

            except StatuteAnalyzerError as e:
                errors.append(e)
                failure = PartialFailure(f"Corpus search failed for clause {index}: {e.message}",
                                         index     = index,
                                         operation = self.SEARCH_OPERATION,
                                         cause     = e,
                                        )
                failures.append(failure)

                log_error(failure, context = {"component" : "ConflictDetector", "operation" : "search", "clause_index" : index})

        return results, errors


    def _build_flag(self, index: int, segment: ClauseSegment, candidate: SimilarClause, deadline: float) -> ConflictFlag:
        conflict_type  = classify_conflict(segment.text, candidate.clause_text, candidate.similarity)
        confidence     = calculate_confidence(candidate.similarity, segment.clause_type, candidate)
        severity       = Severity(LegalRules.severity_for(conflict_type.value, confidence))
        law_ref        = candidate.document_title + (f", {candidate.clause_ref}" if candidate.clause_ref else "")
        excerpt_length = ModelConfig.CONFLICT_DETECTION["excerpt_length"]

        explanation    = FALLBACK_EXPLANATIONS[conflict_type].format(law = law_ref, similarity = round(candidate.similarity * 100))
        resolution     = RESOLUTION_SUGGESTIONS[conflict_type]
        implications   = [LEGAL_IMPLICATIONS[conflict_type]]
        factors        = list()
        precedent      = None

        if self.options.include_ai_explanations and (self.explanation_generator is not None) and (time.monotonic() < deadline):
            try:
                enrichment   = self.explanation_generator.explain_conflict(segment.text, candidate.clause_text, candidate.document_title, conflict_type.value)
                explanation  = enrichment.explanation
                implications = enrichment.legal_implications or implications
                resolution   = enrichment.resolution_suggestions[0] if enrichment.resolution_suggestions else resolution
                factors      = enrichment.severity_factors
                precedent    = enrichment.legal_precedent

            except Exception as e:
                # Keep the templated explanation
                log_error(e, context = {"component" : "ConflictDetector", "operation" : "explain_conflict", "clause_index" : index})

        return ConflictFlag(clause_index          = index,
                            clause_ref            = segment.clause_ref,
                            law_ref               = law_ref,
                            matched_clause_ref    = candidate.clause_ref,
                            overlap_score         = candidate.similarity,
                            conflict_type         = conflict_type,
                            excerpt_input         = TextProcessor.truncate_excerpt(segment.text, excerpt_length),
                            excerpt_existing      = TextProcessor.truncate_excerpt(candidate.clause_text, excerpt_length),
                            explanation           = explanation,
                            citation              = build_citation(candidate),
                            confidence_score      = confidence,
                            severity              = severity,
                            resolution_suggestion = resolution,
                            legal_implications    = implications,
                            legal_precedent       = precedent,
                            severity_factors      = factors,
                           )


    @staticmethod
    def _calculate_statistics(conflicts: List[ConflictFlag]) -> ConflictStatistics:
        statistics = ConflictStatistics(total_conflicts = len(conflicts))

        for conflict in conflicts:
            statistics.by_severity[conflict.severity.value]  += 1
            statistics.by_type[conflict.conflict_type.value] += 1

        return statistics


    @staticmethod
    def generate_summary(statistics: ConflictStatistics, risk: RiskLevel, corpus_empty: bool = False) -> str:
        """
        Deterministic Indonesian summary of the detection run
        """
        if corpus_empty:
            return EMPTY_CORPUS_SUMMARY

        if (statistics.total_conflicts == 0):
            return NO_CONFLICTS_SUMMARY

        severity = statistics.by_severity

        return (f"Ditemukan {statistics.total_conflicts} potensi konflik dengan peraturan yang ada: "
                f"{severity['critical']} kritis, {severity['high']} tinggi, {severity['medium']} sedang, {severity['low']} rendah. "
                f"Tingkat risiko keseluruhan: {RISK_LABELS[risk]}."
               )


    @staticmethod
    def generate_recommendations(statistics: ConflictStatistics, risk: RiskLevel, failed_clauses: int = 0, corpus_empty: bool = False) -> List[str]:
        recommendations = list()

        if corpus_empty:
            recommendations.append("Muat korpus peraturan perundang-undangan (Supabase atau CORPUS_FILE) lalu ulangi analisis konflik.")

        elif (statistics.total_conflicts == 0):
            recommendations.append("Dokumen tampak selaras dengan peraturan yang ada; tetap lakukan tinjauan hukum secara berkala.")

        if (statistics.by_severity["critical"] > 0):
            recommendations.append(f"Segera tinjau {statistics.by_severity['critical']} konflik kritis sebelum dokumen disahkan.")

        if (statistics.by_type["contradiction"] > 0):
            recommendations.append("Selaraskan ketentuan yang bertentangan dengan peraturan yang lebih tinggi atau nyatakan pengecualian secara eksplisit.")

        if (statistics.by_type["overlap"] > 0):
            recommendations.append("Pertimbangkan merujuk ketentuan yang sudah ada alih-alih mengatur ulang materi yang sama.")

        if (statistics.by_type["inconsistency"] > 0):
            recommendations.append("Harmonisasikan prosedur dan persyaratan dengan peraturan terkait.")

        if risk in (RiskLevel.HIGH, RiskLevel.CRITICAL):
            recommendations.append("Libatkan tim harmonisasi peraturan perundang-undangan untuk tinjauan menyeluruh.")

        if (failed_clauses > 0):
            recommendations.append(f"{failed_clauses} klausul tidak dapat dianalisis; ulangi analisis untuk klausul tersebut.")

        return recommendations


def create_conflict_detector(options: Optional[Dict[str, Any]] = None, search_client: Optional[CorpusSearchClient] = None,
                             embedding_generator: Optional[EmbeddingGenerator] = None,
                             explanation_generator: Optional[ExplanationGenerator] = None) -> ConflictDetector:
    """
    Factory with option overrides applied on top of the defaults
    """
    return ConflictDetector(search_client         = search_client,
                            embedding_generator   = embedding_generator,
                            explanation_generator = explanation_generator,
                            options               = ConflictDetectionOptions.from_dict(options),
                           )
