# DEPENDENCIES
import sys
from enum import Enum
from typing import Any
from typing import Dict
from typing import List
from pathlib import Path
from typing import Optional
from dataclasses import field
from dataclasses import dataclass

# Add parent directory to path for imports
sys.path.append(str(Path(__file__).parent.parent))

from utils.logger import log_warning
from config.legal_rules import ClauseType
from utils.exceptions import ValidationError



class ChangeType(Enum):
    ADDED    = "added"
    DELETED  = "deleted"
    MODIFIED = "modified"
    MOVED    = "moved"


class MappingType(Enum):
    EXACT        = "exact"
    SIMILAR      = "similar"
    MOVED        = "moved"
    RESTRUCTURED = "restructured"


class ConflictType(Enum):
    CONTRADICTION = "contradiction"
    OVERLAP       = "overlap"
    INCONSISTENCY = "inconsistency"
    GAP           = "gap"


class Severity(Enum):
    LOW      = "low"
    MEDIUM   = "medium"
    HIGH     = "high"
    CRITICAL = "critical"


class RiskLevel(Enum):
    LOW      = "low"
    MEDIUM   = "medium"
    HIGH     = "high"
    CRITICAL = "critical"



def _as_int(value: Any, name: str, default: Optional[int] = None) -> Optional[int]:
    """
    Integer field from untyped input; whole floats and digit strings are accepted
    """
    if value is None or value == "":
        return default

    if isinstance(value, bool):
        raise ValidationError(f"{name} must be an integer", context = {name : value})

    if isinstance(value, float) and value.is_integer():
        return int(value)

    if isinstance(value, int):
        return value

    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value.strip())

    raise ValidationError(f"{name} must be an integer", context = {name : value})


@dataclass(frozen = True)
class ClauseSegment:
    """
    One structural unit of a statute as produced by upstream segmentation; never mutated
    """
    text           : str
    clause_type    : ClauseType    = ClauseType.GENERAL
    sequence_order : int           = 0
    clause_ref     : Optional[str] = None
    page_from      : Optional[int] = None
    page_to        : Optional[int] = None
    clause_id      : Optional[str] = None


    def __post_init__(self):
        # Free-form type strings are normalized at the boundary
        object.__setattr__(self, "clause_type", ClauseType.normalize(self.clause_type))


    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ClauseSegment":
        return cls(text           = data.get("text"),
                   clause_type    = data.get("clause_type", data.get("type")),
                   sequence_order = _as_int(data.get("sequence_order"), "sequence_order", default = 0),
                   clause_ref     = data.get("clause_ref", data.get("reference")),
                   page_from      = _as_int(data.get("page_from"), "page_from"),
                   page_to        = _as_int(data.get("page_to"), "page_to"),
                   clause_id      = data.get("clause_id", data.get("id")),
                  )


    def to_dict(self) -> Dict[str, Any]:
        return {"text"           : self.text,
                "clause_type"    : self.clause_type.value,
                "sequence_order" : self.sequence_order,
                "clause_ref"     : self.clause_ref,
                "page_from"      : self.page_from,
                "page_to"        : self.page_to,
               }


def prepare_clauses(clauses: Any, label: str = "clauses", max_clauses: int = 2000) -> List[ClauseSegment]:
    """
    Convert raw clause input to ClauseSegments, drop clauses without text and order them by sequence

    Arguments:
    ----------
        clauses     { list } : ClauseSegment objects or dictionaries

        label       { str }  : Name of the input (used in error messages)

        max_clauses { int }  : Upper bound on accepted clauses

    Returns:
    --------
             { list }        : ClauseSegments sorted by sequence order (stable for ties)
    """
    if clauses is None:
        return list()

    if not isinstance(clauses, (list, tuple)):
        raise ValidationError(f"Invalid {label}: expected a list of clauses", context = {"received_type" : type(clauses).__name__})

    if (len(clauses) > max_clauses):
        raise ValidationError(f"Too many {label}: {len(clauses)} exceeds limit of {max_clauses}")

    segments = list()

    for index, clause in enumerate(clauses):
        if isinstance(clause, ClauseSegment):
            segment = clause

        elif isinstance(clause, dict):
            data = dict(clause)
            data.setdefault("sequence_order", index)

            try:
                segment = ClauseSegment.from_dict(data)

            except ValidationError as e:
                raise e.with_context(clause_index = index, input = label)

        else:
            raise ValidationError(f"Invalid clause in {label}", context = {"clause_index" : index, "received_type" : type(clause).__name__})

        if not isinstance(segment.text, str) or not segment.text.strip():
            continue

        segments.append(segment)

    orders = [segment.sequence_order for segment in segments]

    if (len(set(orders)) != len(orders)):
        log_warning(f"Duplicate sequence orders in {label}; input order kept for ties", clause_count = len(segments))

    return sorted(segments, key = lambda segment: segment.sequence_order)



@dataclass
class ClauseMapping:
    """
    Candidate pairing of an old and a new clause (transient, never persisted)
    """
    old_index           : int
    new_index           : int
    old_clause          : ClauseSegment
    new_clause          : ClauseSegment
    similarity          : float
    text_similarity     : float
    semantic_similarity : Optional[float]
    confidence          : float
    mapping_type        : MappingType


@dataclass
class DocumentDiff:
    """
    One reported change between two document versions
    """
    change_type        : ChangeType
    significance_score : int
    sequence_position  : int
    clause_type        : ClauseType
    clause_ref         : Optional[str]   = None
    old_text           : Optional[str]   = None
    new_text           : Optional[str]   = None
    similarity_score   : Optional[float] = None
    old_position       : Optional[int]   = None
    new_position       : Optional[int]   = None
    context            : Optional[str]   = None
    explanation        : str             = ""
    legal_implication  : Optional[str]   = None
    page_from          : Optional[int]   = None
    page_to            : Optional[int]   = None


    def __post_init__(self):
        needs_old = self.change_type in (ChangeType.DELETED, ChangeType.MODIFIED, ChangeType.MOVED)
        needs_new = self.change_type in (ChangeType.ADDED, ChangeType.MODIFIED, ChangeType.MOVED)

        if (needs_old != (self.old_text is not None)) or (needs_new != (self.new_text is not None)):
            raise ValueError(f"Text fields do not match change type '{self.change_type.value}'")


    def to_dict(self) -> Dict[str, Any]:
        result = {"change_type"        : self.change_type.value,
                  "clause_ref"         : self.clause_ref,
                  "clause_type"        : self.clause_type.value,
                  "significance_score" : self.significance_score,
                  "sequence_position"  : self.sequence_position,
                  "old_position"       : self.old_position,
                  "new_position"       : self.new_position,
                  "context"            : self.context,
                  "explanation"        : self.explanation,
                  "legal_implication"  : self.legal_implication,
                  "page_from"          : self.page_from,
                  "page_to"            : self.page_to,
                 }

        if self.old_text is not None:
            result["old_text"] = self.old_text

        if self.new_text is not None:
            result["new_text"] = self.new_text

        if self.similarity_score is not None:
            result["similarity_score"] = round(self.similarity_score, 4)

        return result


@dataclass
class ComparisonStatistics:
    total_changes     : int = 0
    additions         : int = 0
    deletions         : int = 0
    modifications     : int = 0
    moves             : int = 0
    unchanged         : int = 0
    critical_changes  : int = 0
    major_changes     : int = 0
    minor_changes     : int = 0
    trivial_changes   : int = 0


    def to_dict(self) -> Dict[str, Any]:
        return {"total_changes"    : self.total_changes,
                "additions"        : self.additions,
                "deletions"        : self.deletions,
                "modifications"    : self.modifications,
                "moves"            : self.moves,
                "unchanged"        : self.unchanged,
                "critical_changes" : self.critical_changes,
                "major_changes"    : self.major_changes,
                "minor_changes"    : self.minor_changes,
                "trivial_changes"  : self.trivial_changes,
               }


@dataclass
class DocumentComparisonResult:
    changes         : List[DocumentDiff]
    statistics      : ComparisonStatistics
    summary         : str
    processing_info : Dict[str, Any] = field(default_factory = dict)


    def to_dict(self) -> Dict[str, Any]:
        return {"changes"         : [change.to_dict() for change in self.changes],
                "statistics"      : self.statistics.to_dict(),
                "summary"         : self.summary,
                "processing_info" : self.processing_info,
               }


@dataclass
class ComparisonProgress:
    current_phase     : str
    percentage        : float
    processed_clauses : int
    total_clauses     : int
    message           : str = ""


    def to_dict(self) -> Dict[str, Any]:
        return {"current_phase"     : self.current_phase,
                "percentage"        : round(self.percentage, 1),
                "processed_clauses" : self.processed_clauses,
                "total_clauses"     : self.total_clauses,
                "message"           : self.message,
               }



@dataclass
class SimilarClause:
    """
    One ranked candidate returned by the corpus similarity search
    """
    clause_id      : str
    document_id    : Optional[str]
    document_title : str
    clause_ref     : Optional[str]
    clause_text    : str
    similarity     : float
    document_type  : Optional[str] = None
    jurisdiction   : Optional[str] = None
    status         : Optional[str] = None
    source_url     : Optional[str] = None


    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "SimilarClause":
        """
        Build from a search row; accepts the RPC column names as well as the flattened conflict_* names
        """
        def first(*keys, default = None):
            for key in keys:
                if row.get(key) is not None:
                    return row[key]

            return default

        return cls(clause_id      = str(first("clause_id", "conflict_clause_id", "id", default = "")),
                   document_id    = first("document_id", "version_id"),
                   document_title = first("document_title", "conflict_document_title", "law_reference", "law_title", default = ""),
                   clause_ref     = first("clause_ref"),
                   clause_text    = first("clause_text", "conflict_text", "text", default = ""),
                   similarity     = float(first("similarity_score", "similarity", default = 0.0)),
                   document_type  = first("document_type", "conflict_document_type"),
                   jurisdiction   = first("jurisdiction"),
                   status         = first("status"),
                   source_url     = first("source_url"),
                  )


@dataclass
class LegalCitation:
    title              : str
    instrument_type    : str
    number             : Optional[str]
    year               : Optional[int]
    article            : Optional[str]
    jurisdiction       : Optional[str]
    status             : str
    issuing_authority  : str
    url                : Optional[str] = None


    def to_dict(self) -> Dict[str, Any]:
        return {"title"             : self.title,
                "type"              : self.instrument_type,
                "number"            : self.number,
                "year"              : self.year,
                "article"           : self.article,
                "jurisdiction"      : self.jurisdiction,
                "status"            : self.status,
                "issuing_authority" : self.issuing_authority,
                "url"               : self.url,
               }


@dataclass
class ConflictFlag:
    """
    One potential conflict between an input clause and an existing corpus clause
    """
    clause_index           : int
    clause_ref             : Optional[str]
    law_ref                : str
    matched_clause_ref     : Optional[str]
    overlap_score          : float
    conflict_type          : ConflictType
    excerpt_input          : str
    excerpt_existing       : str
    explanation            : str
    citation               : LegalCitation
    confidence_score       : float
    severity               : Severity
    resolution_suggestion  : Optional[str] = None
    legal_implications     : List[str]     = field(default_factory = list)
    legal_precedent        : Optional[str] = None
    severity_factors       : List[str]     = field(default_factory = list)


    def to_dict(self) -> Dict[str, Any]:
        return {"clause_index"          : self.clause_index,
                "clause_ref"            : self.clause_ref,
                "law_ref"               : self.law_ref,
                "matched_clause_ref"    : self.matched_clause_ref,
                "overlap_score"         : round(self.overlap_score, 4),
                "conflict_type"         : self.conflict_type.value,
                "excerpt_input"         : self.excerpt_input,
                "excerpt_existing"      : self.excerpt_existing,
                "explanation"           : self.explanation,
                "citation_data"         : self.citation.to_dict(),
                "confidence_score"      : round(self.confidence_score, 4),
                "severity"              : self.severity.value,
                "resolution_suggestion" : self.resolution_suggestion,
                "legal_implications"    : self.legal_implications,
                "legal_precedent"       : self.legal_precedent,
                "severity_factors"      : self.severity_factors,
               }


@dataclass
class ConflictStatistics:
    total_conflicts : int            = 0
    by_severity     : Dict[str, int] = field(default_factory = lambda: {severity.value: 0 for severity in Severity})
    by_type         : Dict[str, int] = field(default_factory = lambda: {conflict_type.value: 0 for conflict_type in ConflictType})


    def to_dict(self) -> Dict[str, Any]:
        return {"total_conflicts" : self.total_conflicts,
                "by_severity"     : dict(self.by_severity),
                "by_type"         : dict(self.by_type),
               }


@dataclass
class ConflictDetectionResult:
    conflicts                     : List[ConflictFlag]
    statistics                    : ConflictStatistics
    summary                       : str
    risk_assessment               : RiskLevel
    overall_compatibility_score   : float
    recommendations               : List[str]      = field(default_factory = list)
    processing_info               : Dict[str, Any] = field(default_factory = dict)


    def to_dict(self) -> Dict[str, Any]:
        return {"conflicts"                   : [conflict.to_dict() for conflict in self.conflicts],
                "statistics"                  : self.statistics.to_dict(),
                "summary"                     : self.summary,
                "risk_assessment"             : self.risk_assessment.value,
                "overall_compatibility_score" : round(self.overall_compatibility_score, 4),
                "recommendations"             : self.recommendations,
                "processing_info"             : self.processing_info,
               }


@dataclass
class ConflictDetectionProgress:
    current_phase     : str
    percentage        : float
    processed_clauses : int
    total_clauses     : int
    conflicts_found   : int = 0
    message           : str = ""


    def to_dict(self) -> Dict[str, Any]:
        return {"current_phase"     : self.current_phase,
                "percentage"        : round(self.percentage, 1),
                "processed_clauses" : self.processed_clauses,
                "total_clauses"     : self.total_clauses,
                "conflicts_found"   : self.conflicts_found,
                "message"           : self.message,
               }
