# DEPENDENCIES
import sys
import math
import time
import numpy as np
from typing import Any
from typing import List
from typing import Dict
from typing import Tuple
from pathlib import Path
from typing import Callable
from typing import Optional
from datetime import datetime
from dataclasses import asdict
from dataclasses import dataclass

# Add parent directory to path for imports
sys.path.append(str(Path(__file__).parent.parent))

from utils.logger import log_info
from utils.logger import log_error
from utils.logger import log_warning
from config.settings import settings
from config.legal_rules import ClauseType
from config.legal_rules import LegalRules
from config.model_config import ModelConfig
from utils.exceptions import ComparisonError
from utils.text_processor import TextProcessor
from utils.validators import ClauseValidator
from utils.exceptions import StatuteAnalyzerError
from utils.exceptions import OperationTimeoutError
from utils.logger import StatuteAnalyzerLogger
from services.data_models import ChangeType
from services.data_models import MappingType
from services.data_models import DocumentDiff
from services.data_models import ClauseMapping
from services.data_models import ClauseSegment
from services.data_models import prepare_clauses
from services.data_models import ComparisonProgress
from services.data_models import ComparisonStatistics
from services.data_models import DocumentComparisonResult
from services.explanation_generator import ExplanationGenerator
from model_manager.embedding_generator import EmbeddingGenerator


NO_CHANGES_SUMMARY = "No changes detected between document versions."

# Report order for diffs sharing a sequence position
CHANGE_RANK        = {ChangeType.DELETED  : 0,
                      ChangeType.MODIFIED : 1,
                      ChangeType.MOVED    : 2,
                      ChangeType.ADDED    : 3,
                     }


@dataclass
class ComparisonOptions:
    """
    Options for one document comparison
    """
    semantic_threshold       : float = ModelConfig.DIFF_ENGINE["semantic_threshold"]
    enable_semantic_analysis : bool  = True
    include_ai_explanations  : bool  = True
    batch_size               : int   = ModelConfig.DIFF_ENGINE["batch_size"]
    timeout_ms               : int   = ModelConfig.DIFF_ENGINE["timeout_ms"]


    @classmethod
    def from_dict(cls, options: Optional[Dict[str, Any]] = None) -> "ComparisonOptions":
        """
        Build options from a plain dictionary; unknown keys are ignored with a warning

        Raises:
        -------
            ValidationError : If a threshold is outside [0, 1], a size is not a positive integer or a value has the wrong type
        """
        options = dict(options or {})
        known   = {key: value for key, value in options.items() if key in cls.__dataclass_fields__ and value is not None}
        unknown = sorted(set(options) - set(cls.__dataclass_fields__))

        if unknown:
            log_warning("Ignoring unknown comparison options", options = unknown)

        ClauseValidator.validate_options(known,
                                         thresholds    = ["semantic_threshold"],
                                         positive_ints = ["batch_size", "timeout_ms"],
                                         booleans      = ["enable_semantic_analysis", "include_ai_explanations"],
                                        )

        return cls(**known)


    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class _PreparedClause:
    segment    : ClauseSegment
    position   : int
    collapsed  : str
    normalized : str
    words      : frozenset


def _prepare(segment: ClauseSegment, position: int) -> _PreparedClause:
    normalized = TextProcessor.normalize_for_comparison(segment.text)

    return _PreparedClause(segment    = segment,
                           position   = position,
                           collapsed  = " ".join(segment.text.split()),
                           normalized = normalized,
                           words      = frozenset(word for word in normalized.split() if len(word) >= ModelConfig.DIFF_ENGINE["min_word_length"]),
                          )


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def calculate_significance(change_type: ChangeType, clause_type: ClauseType, similarity: Optional[float] = None) -> int:
    """
    Integer significance in [1, 5] : hierarchy weight of the clause type scaled by the change-kind factor

    Arguments:
    ----------
        change_type { ChangeType } : Kind of change

        clause_type { ClauseType } : Clause type the weight is taken from

        similarity     { float }   : Alignment similarity (modifications only)

    Returns:
    --------
               { int }             : Rounded (half up) and clamped significance
    """
    weight = LegalRules.hierarchy_weight(clause_type)

    if (change_type == ChangeType.MODIFIED):
        factor = 1.0 + (1.0 - (1.0 if similarity is None else similarity))

    else:
        factor = LegalRules.CHANGE_TYPE_FACTORS[change_type.value]

    score  = round_half_up(weight * factor)

    return max(LegalRules.MIN_SIGNIFICANCE, min(LegalRules.MAX_SIGNIFICANCE, score))


class LegalDocumentComparator:
    """
    Aligns the clauses of two versions of a statute and reports legally weighted changes

    Alignment is greedy: every old clause scores every still-unclaimed new clause, which is O(n·m) in clause counts.
    This is fine for documents of a few hundred clauses and is the main limit on larger inputs.
    """
    def __init__(self, options: Optional[Any] = None, embedding_generator: Optional[EmbeddingGenerator] = None,
                 explanation_generator: Optional[ExplanationGenerator] = None, progress_callback: Optional[Callable[[ComparisonProgress], None]] = None):
        """
        Initialize comparator

        Arguments:
        ----------
            options               { ComparisonOptions | dict } : Comparison options

            embedding_generator   { EmbeddingGenerator }       : Vector source for semantic scoring (created on first use if omitted)

            explanation_generator { ExplanationGenerator }     : Optional LLM enrichment of significant modifications

            progress_callback     { callable }                 : Receives ComparisonProgress updates
        """
        self.options                = options if isinstance(options, ComparisonOptions) else ComparisonOptions.from_dict(options)
        self._embedding_generator   = embedding_generator
        self.explanation_generator  = explanation_generator
        self.progress_callback      = progress_callback
        self.config                 = ModelConfig.DIFF_ENGINE

        log_info("LegalDocumentComparator initialized", **self.options.to_dict())


    @property
    def embedding_generator(self) -> EmbeddingGenerator:
        if self._embedding_generator is None:
            self._embedding_generator = EmbeddingGenerator()

        return self._embedding_generator


    @property
    def comparison_method(self) -> str:
        return "hybrid" if self.options.enable_semantic_analysis else "clause"


    def _report(self, phase: str, percentage: float, processed: int, total: int, message: str = ""):
        if self.progress_callback is None:
            return

        try:
            self.progress_callback(ComparisonProgress(current_phase     = phase,
                                                      percentage        = percentage,
                                                      processed_clauses = processed,
                                                      total_clauses     = total,
                                                      message           = message,
                                                     ))

        except Exception as e:
            log_error(e, context = {"component" : "LegalDocumentComparator", "operation" : "progress_callback", "phase" : phase})


    @staticmethod
    def _check_deadline(deadline: float, stage: str):
        if (time.monotonic() >= deadline):
            raise OperationTimeoutError("Document comparison timed out", context = {"operation" : "compare", "stage" : stage})


    @StatuteAnalyzerLogger.log_execution_time("compare_documents")
    def compare(self, old_clauses: List[Any], new_clauses: List[Any]) -> DocumentComparisonResult:
        """
        Compare two clause-segmented versions of a document

        Arguments:
        ----------
            old_clauses { list } : Clauses of the earlier version (ClauseSegment objects or dicts)

            new_clauses { list } : Clauses of the later version

        Returns:
        --------
            { DocumentComparisonResult } : Ordered changes, statistics, summary and processing metadata

        Raises:
        -------
            ValidationError       : Malformed input

            OperationTimeoutError : timeout_ms elapsed

            ComparisonError       : Unexpected failure during the comparison
        """
        start_time = time.time()
        deadline   = time.monotonic() + self.options.timeout_ms / 1000.0

        try:
            self._report("preparing", 0.0, 0, 0, "Preparing clauses")

            old_segments = prepare_clauses(old_clauses, label = "old clauses", max_clauses = settings.MAX_CLAUSES_PER_DOCUMENT)
            new_segments = prepare_clauses(new_clauses, label = "new clauses", max_clauses = settings.MAX_CLAUSES_PER_DOCUMENT)

            log_info("Starting document comparison",
                     old_clauses = len(old_segments),
                     new_clauses = len(new_segments),
                     method      = self.comparison_method,
                    )

            old_prepared = [_prepare(segment, position) for position, segment in enumerate(old_segments)]
            new_prepared = [_prepare(segment, position) for position, segment in enumerate(new_segments)]

            similarity_matrix, embedding_failures = self._semantic_matrix(old_segments, new_segments, deadline)

            mappings, unclaimed_old, unclaimed_new = self._align(old_prepared, new_prepared, similarity_matrix, deadline)

            self._report("finalizing", 95.0, len(old_segments), len(old_segments), "Building change list")

            changes      = self._build_changes(mappings, unclaimed_old, unclaimed_new, old_prepared, new_prepared, deadline)
            statistics   = self._calculate_statistics(changes, mappings)
            summary      = self.generate_summary(statistics)

        except StatuteAnalyzerError:
            raise

        except Exception as e:
            log_error(e, context = {"component" : "LegalDocumentComparator", "operation" : "compare"})
            raise ComparisonError(f"Document comparison failed: {e}") from e

        processing_info = {"comparison_method"       : self.comparison_method,
                           "processing_time_seconds" : round(time.time() - start_time, 3),
                           "old_clause_count"        : len(old_segments),
                           "new_clause_count"        : len(new_segments),
                           "semantic_threshold"      : self.options.semantic_threshold,
                           "embedding_failures"      : embedding_failures,
                           "confidence_score"        : round(self._confidence_score(changes, len(old_segments), len(new_segments)), 4),
                           "timestamp"               : datetime.now().isoformat(),
                          }

        self._report("finalizing", 100.0, len(old_segments), len(old_segments), "Comparison complete")

        log_info("Document comparison complete",
                 total_changes = statistics.total_changes,
                 unchanged     = statistics.unchanged,
                 elapsed       = processing_info["processing_time_seconds"],
                )

        return DocumentComparisonResult(changes         = changes,
                                        statistics      = statistics,
                                        summary         = summary,
                                        processing_info = processing_info,
                                       )


    def _semantic_matrix(self, old_segments: List[ClauseSegment], new_segments: List[ClauseSegment], deadline: float) -> Tuple[Optional[np.ndarray], int]:
        """
        Cosine similarity of every old/new pair; NaN where either vector is missing, None when semantic scoring is off or failed
        """
        if not self.options.enable_semantic_analysis or not old_segments or not new_segments:
            return None, 0

        self._report("embedding", 5.0, 0, len(old_segments), "Generating embeddings")

        texts = [segment.text for segment in old_segments] + [segment.text for segment in new_segments]

        try:
            result = self.embedding_generator.embed_batch(texts, deadline = deadline)

        except OperationTimeoutError:
            raise

        except StatuteAnalyzerError as e:
            log_warning("Semantic analysis unavailable, using text similarity only", error = e.message)
            return None, len(texts)

        dimension = next((embedding.vector.size for embedding in result.embeddings if embedding is not None), 0)

        if (dimension == 0):
            return None, len(result.failures)

        vectors   = np.full((len(texts), dimension), np.nan)

        for index, embedding in enumerate(result.embeddings):
            if embedding is None:
                continue

            norm = np.linalg.norm(embedding.vector)

            if (norm > 0):
                vectors[index] = embedding.vector / norm

            else:
                vectors[index] = 0.0

        old_vectors = vectors[:len(old_segments)]
        new_vectors = vectors[len(old_segments):]

        if result.failures:
            log_warning("Some clauses could not be embedded; their pairs use text similarity only", failed = len(result.failures))

        return old_vectors @ new_vectors.T, len(result.failures)


    def _lexical_similarity(self, old: _PreparedClause, new: _PreparedClause, floor: float, semantic: Optional[float]) -> Optional[float]:
        """
        Text similarity of a pair, or None when the pair provably cannot reach `floor`
        """
        if (old.collapsed == new.collapsed) or (old.normalized == new.normalized):
            return 1.0

        union   = old.words | new.words
        jaccard = (len(old.words & new.words) / len(union)) if union else 0.0

        # Upper bound with a perfect edit similarity, checked before the quadratic edit distance
        bound   = self.config["edit_distance_weight"] + self.config["jaccard_weight"] * jaccard

        if semantic is not None:
            bound = self.config["semantic_weight"] * semantic + self.config["text_weight"] * bound

        if (bound < floor):
            return None

        edit    = TextProcessor.edit_similarity(old.normalized, new.normalized)

        return self.config["edit_distance_weight"] * edit + self.config["jaccard_weight"] * jaccard


    def _mapping_confidence(self, old: _PreparedClause, new: _PreparedClause, combined: float, old_count: int, new_count: int) -> float:
        confidence = combined

        if (old.segment.clause_type == new.segment.clause_type):
            confidence += self.config["same_type_bonus"]

        old_relative = old.position / max(old_count - 1, 1)
        new_relative = new.position / max(new_count - 1, 1)
        confidence  += self.config["position_bonus"] * max(0.0, 1.0 - abs(old_relative - new_relative))

        if old.segment.clause_ref and (old.segment.clause_ref == new.segment.clause_ref):
            confidence += self.config["same_reference_bonus"]

        return max(0.0, min(1.0, confidence))


    def _classify(self, old: _PreparedClause, new: _PreparedClause, combined: float) -> MappingType:
        displaced = abs(old.position - new.position) > self.config["moved_position_delta"]

        # Identical text is unchanged wherever it sits; only reworded clauses can move
        if (old.collapsed == new.collapsed):
            return MappingType.EXACT

        if (combined >= self.config["moved_threshold"]) and displaced:
            return MappingType.MOVED

        if (combined >= self.config["similar_threshold"]):
            return MappingType.SIMILAR

        return MappingType.RESTRUCTURED


    def align(self, old_clauses: List[Any], new_clauses: List[Any]) -> List[ClauseMapping]:
        """
        Clause mappings only (no diffs), mainly for inspection and tests
        """
        old_prepared = [_prepare(segment, position) for position, segment in enumerate(prepare_clauses(old_clauses, label = "old clauses"))]
        new_prepared = [_prepare(segment, position) for position, segment in enumerate(prepare_clauses(new_clauses, label = "new clauses"))]
        deadline     = time.monotonic() + self.options.timeout_ms / 1000.0
        matrix, _    = self._semantic_matrix([item.segment for item in old_prepared], [item.segment for item in new_prepared], deadline)

        mappings, _, _ = self._align(old_prepared, new_prepared, matrix, deadline)

        return mappings


    def _align(self, old_prepared: List[_PreparedClause], new_prepared: List[_PreparedClause], similarity_matrix: Optional[np.ndarray],
               deadline: float) -> Tuple[List[ClauseMapping], List[int], List[int]]:
        """
        Greedy best-match assignment in old-clause order; ties go to the earliest new clause
        """
        threshold = self.options.semantic_threshold
        claimed   = [False] * len(new_prepared)
        mappings  = list()
        unmatched = list()
        total     = len(old_prepared)
        step      = max(1, self.options.batch_size)

        self._report("analyzing", 10.0, 0, total, "Aligning clauses")

        for i, old in enumerate(old_prepared):
            if (i % step == 0):
                self._check_deadline(deadline, "alignment")

            best_index    = None
            best_combined = -math.inf
            best_text     = None
            best_semantic = None

            for j, new in enumerate(new_prepared):
                if claimed[j]:
                    continue

                semantic = None

                if similarity_matrix is not None:
                    value = float(similarity_matrix[i, j])

                    if not math.isnan(value):
                        semantic = value

                # Only pairs that could beat both the threshold and the current best are scored in full
                floor    = max(threshold, best_combined) if (best_index is not None) else threshold
                text_sim = self._lexical_similarity(old, new, floor, semantic)

                if text_sim is None:
                    continue

                if semantic is not None:
                    combined = self.config["semantic_weight"] * semantic + self.config["text_weight"] * text_sim

                else:
                    combined = text_sim

                if (combined >= threshold) and (combined > best_combined):
                    best_index    = j
                    best_combined = combined
                    best_text     = text_sim
                    best_semantic = semantic

            if best_index is None:
                unmatched.append(i)

            else:
                new                 = new_prepared[best_index]
                claimed[best_index] = True

                mappings.append(ClauseMapping(old_index           = i,
                                              new_index           = best_index,
                                              old_clause          = old.segment,
                                              new_clause          = new.segment,
                                              similarity          = best_combined,
                                              text_similarity     = best_text,
                                              semantic_similarity = best_semantic,
                                              confidence          = self._mapping_confidence(old, new, best_combined, len(old_prepared), len(new_prepared)),
                                              mapping_type        = self._classify(old, new, best_combined),
                                             ))

            if ((i + 1) % step == 0) or (i + 1 == total):
                self._report("analyzing", 10.0 + 80.0 * (i + 1) / total, i + 1, total, "Aligning clauses")

        unclaimed_new = [j for j, is_claimed in enumerate(claimed) if not is_claimed]

        return mappings, unmatched, unclaimed_new


    def _build_changes(self, mappings: List[ClauseMapping], unclaimed_old: List[int], unclaimed_new: List[int],
                       old_prepared: List[_PreparedClause], new_prepared: List[_PreparedClause], deadline: float) -> List[DocumentDiff]:
        changes = list()

        for mapping in mappings:
            if (mapping.mapping_type == MappingType.EXACT):
                continue

            old_segment = mapping.old_clause
            new_segment = mapping.new_clause

            if (mapping.mapping_type == MappingType.MOVED):
                change_type  = ChangeType.MOVED
                significance = calculate_significance(change_type, new_segment.clause_type)
                explanation  = self._moved_explanation(mapping)

            else:
                change_type  = ChangeType.MODIFIED
                heavier      = max((old_segment.clause_type, new_segment.clause_type), key = LegalRules.hierarchy_weight)
                significance = calculate_significance(change_type, heavier, mapping.similarity)
                explanation  = self.generate_change_explanation(old_segment.text, new_segment.text, mapping.similarity)

            changes.append(DocumentDiff(change_type        = change_type,
                                        significance_score = significance,
                                        sequence_position  = new_segment.sequence_order,
                                        clause_type        = new_segment.clause_type,
                                        clause_ref         = new_segment.clause_ref or old_segment.clause_ref,
                                        old_text           = old_segment.text,
                                        new_text           = new_segment.text,
                                        similarity_score   = mapping.similarity,
                                        old_position       = old_segment.sequence_order,
                                        new_position       = new_segment.sequence_order,
                                        context            = f"{mapping.mapping_type.value} match (confidence {mapping.confidence:.2f})",
                                        explanation        = explanation,
                                        page_from          = new_segment.page_from,
                                        page_to            = new_segment.page_to,
                                       ))

        for index in unclaimed_old:
            segment = old_prepared[index].segment

            changes.append(DocumentDiff(change_type        = ChangeType.DELETED,
                                        significance_score = calculate_significance(ChangeType.DELETED, segment.clause_type),
                                        sequence_position  = segment.sequence_order,
                                        clause_type        = segment.clause_type,
                                        clause_ref         = segment.clause_ref,
                                        old_text           = segment.text,
                                        old_position       = segment.sequence_order,
                                        explanation        = self._structural_explanation(ChangeType.DELETED, segment),
                                        page_from          = segment.page_from,
                                        page_to            = segment.page_to,
                                       ))

        for index in unclaimed_new:
            segment = new_prepared[index].segment

            changes.append(DocumentDiff(change_type        = ChangeType.ADDED,
                                        significance_score = calculate_significance(ChangeType.ADDED, segment.clause_type),
                                        sequence_position  = segment.sequence_order,
                                        clause_type        = segment.clause_type,
                                        clause_ref         = segment.clause_ref,
                                        new_text           = segment.text,
                                        new_position       = segment.sequence_order,
                                        explanation        = self._structural_explanation(ChangeType.ADDED, segment),
                                        page_from          = segment.page_from,
                                        page_to            = segment.page_to,
                                       ))

        changes.sort(key = lambda change: (change.sequence_position, CHANGE_RANK[change.change_type]))

        self._enrich_explanations(changes, deadline)

        return changes


    def _structural_explanation(self, change_type: ChangeType, segment: ClauseSegment) -> str:
        if not self.options.include_ai_explanations:
            return ""

        label = segment.clause_ref or segment.clause_type.value

        if (change_type == ChangeType.ADDED):
            return f"New {segment.clause_type.value} added: {label}"

        return f"{segment.clause_type.value.capitalize()} removed: {label}"


    def _moved_explanation(self, mapping: ClauseMapping) -> str:
        if not self.options.include_ai_explanations:
            return ""

        explanation = f"Clause moved from position {mapping.old_clause.sequence_order} to {mapping.new_clause.sequence_order}"

        if (" ".join(mapping.old_clause.text.split()) != " ".join(mapping.new_clause.text.split())):
            explanation += ". " + self.generate_change_explanation(mapping.old_clause.text, mapping.new_clause.text, mapping.similarity)

        return explanation


    def generate_change_explanation(self, old_text: str, new_text: str, similarity: float) -> str:
        """
        Templated explanation from a word-level diff : "<Major|Moderate|Minor> change. Removed: "..." | Added: "...""
        """
        if not self.options.include_ai_explanations:
            return ""

        if (similarity < self.config["major_change_below"]):
            level = "Major"

        elif (similarity < self.config["moderate_change_below"]):
            level = "Moderate"

        else:
            level = "Minor"

        removed, added = TextProcessor.word_level_diff(old_text, new_text)
        parts          = list()

        if removed:
            parts.append(f'Removed: "{TextProcessor.truncate_excerpt(" ".join(removed), 100)}"')

        if added:
            parts.append(f'Added: "{TextProcessor.truncate_excerpt(" ".join(added), 100)}"')

        if not parts:
            return f"{level} change. Formatting changes only"

        return f"{level} change. " + " | ".join(parts)


    def _enrich_explanations(self, changes: List[DocumentDiff], deadline: float):
        """
        Replace templated explanations of significant modifications with LLM output when a generator is configured
        """
        if (self.explanation_generator is None) or not self.options.include_ai_explanations:
            return

        for change in changes:
            if (change.change_type != ChangeType.MODIFIED) or (change.significance_score < self.config["llm_min_significance"]):
                continue

            self._check_deadline(deadline, "explanations")

            try:
                enrichment               = self.explanation_generator.explain_change(change.old_text, change.new_text, change.clause_ref)
                change.explanation       = enrichment.explanation
                change.legal_implication = enrichment.legal_implication

            except Exception as e:
                # Keep the templated explanation
                log_error(e, context = {"component" : "LegalDocumentComparator", "operation" : "explain_change", "clause_ref" : change.clause_ref})


    @staticmethod
    def _calculate_statistics(changes: List[DocumentDiff], mappings: List[ClauseMapping]) -> ComparisonStatistics:
        statistics = ComparisonStatistics(total_changes = len(changes),
                                          unchanged     = sum(1 for mapping in mappings if mapping.mapping_type == MappingType.EXACT),
                                         )

        kind_counters = {ChangeType.ADDED    : "additions",
                         ChangeType.DELETED  : "deletions",
                         ChangeType.MODIFIED : "modifications",
                         ChangeType.MOVED    : "moves",
                        }

        for change in changes:
            counter = kind_counters[change.change_type]
            setattr(statistics, counter, getattr(statistics, counter) + 1)

            for band, (low, high) in LegalRules.SIGNIFICANCE_BANDS.items():
                if (low <= change.significance_score <= high):
                    counter = f"{band}_changes"
                    setattr(statistics, counter, getattr(statistics, counter) + 1)
                    break

        return statistics


    @staticmethod
    def generate_summary(statistics: ComparisonStatistics) -> str:
        """
        Deterministic count-based summary, e.g. "2 clauses added, 1 clause modified (1 major change)."
        """
        if (statistics.total_changes == 0):
            return NO_CHANGES_SUMMARY

        def plural(count: int, noun: str) -> str:
            return f"{count} {noun}{'' if count == 1 else 's'}"

        parts = list()

        for count, verb in ((statistics.additions, "added"), (statistics.deletions, "removed"), (statistics.modifications, "modified"), (statistics.moves, "moved")):
            if (count > 0):
                parts.append(f"{plural(count, 'clause')} {verb}")

        summary = ", ".join(parts)
        notable = list()

        if (statistics.critical_changes > 0):
            notable.append(f"{plural(statistics.critical_changes, 'critical change')}")

        if (statistics.major_changes > 0):
            notable.append(f"{plural(statistics.major_changes, 'major change')}")

        if notable:
            summary += f" ({', '.join(notable)})"

        return summary + "."


    @staticmethod
    def _confidence_score(changes: List[DocumentDiff], old_count: int, new_count: int) -> float:
        """
        Overall confidence : 0.6 x mean change similarity + 0.4 x structural similarity of the clause counts
        """
        if not changes:
            return 1.0

        mean_similarity = sum(change.similarity_score or 0.0 for change in changes) / len(changes)
        structural      = min(old_count, new_count) / max(old_count, new_count)

        return mean_similarity * 0.6 + structural * 0.4


def compare_documents(old_clauses: List[Any], new_clauses: List[Any], options: Optional[Any] = None,
                      progress_callback: Optional[Callable[[ComparisonProgress], None]] = None,
                      embedding_generator: Optional[EmbeddingGenerator] = None,
                      explanation_generator: Optional[ExplanationGenerator] = None) -> DocumentComparisonResult:
    """
    One-shot comparison with the given options
    """
    comparator = LegalDocumentComparator(options               = options,
                                         embedding_generator   = embedding_generator,
                                         explanation_generator = explanation_generator,
                                         progress_callback     = progress_callback,
                                        )

    return comparator.compare(old_clauses, new_clauses)


def quick_compare(old_clauses: List[Any], new_clauses: List[Any], progress_callback: Optional[Callable[[ComparisonProgress], None]] = None) -> DocumentComparisonResult:
    """
    Text-only comparison without explanations (comparison_method "clause")
    """
    options = ComparisonOptions(enable_semantic_analysis = False, include_ai_explanations = False)

    return compare_documents(old_clauses, new_clauses, options = options, progress_callback = progress_callback)


def detailed_compare(old_clauses: List[Any], new_clauses: List[Any], progress_callback: Optional[Callable[[ComparisonProgress], None]] = None,
                     embedding_generator: Optional[EmbeddingGenerator] = None,
                     explanation_generator: Optional[ExplanationGenerator] = None) -> DocumentComparisonResult:
    """
    Semantic comparison with explanations (comparison_method "hybrid")
    """
    options = ComparisonOptions(enable_semantic_analysis = True, include_ai_explanations = True)

    return compare_documents(old_clauses, new_clauses,
                             options               = options,
                             progress_callback     = progress_callback,
                             embedding_generator   = embedding_generator,
                             explanation_generator = explanation_generator,
                            )
