# DEPENDENCIES
from .data_models import Severity
from .data_models import RiskLevel
from .data_models import ChangeType
from .data_models import ConflictFlag
from .data_models import DocumentDiff
from .data_models import ConflictType
from .data_models import ClauseSegment
from .data_models import LegalCitation
from .data_models import SimilarClause
from .data_models import prepare_clauses
from .diff_engine import quick_compare
from .diff_engine import detailed_compare
from .diff_engine import compare_documents
from .diff_engine import ComparisonOptions
from .corpus_search import CorpusEntry
from .corpus_search import CorpusSearchClient
from .corpus_search import InMemoryCorpusSearch
from .corpus_search import SupabaseCorpusSearch
from .data_models import ConflictDetectionResult
from .data_models import DocumentComparisonResult
from .conflict_detector import ConflictDetector
from .diff_engine import LegalDocumentComparator
from .conflict_detector import create_conflict_detector
from .conflict_detector import ConflictDetectionOptions
from .explanation_generator import ExplanationGenerator


__all__ = ['Severity',
           'RiskLevel',
           'ChangeType',
           'CorpusEntry',
           'ConflictFlag',
           'DocumentDiff',
           'ConflictType',
           'ClauseSegment',
           'LegalCitation',
           'SimilarClause',
           'quick_compare',
           'prepare_clauses',
           'detailed_compare',
           'ConflictDetector',
           'compare_documents',
           'ComparisonOptions',
           'CorpusSearchClient',
           'ExplanationGenerator',
           'InMemoryCorpusSearch',
           'SupabaseCorpusSearch',
           'LegalDocumentComparator',
           'ConflictDetectionResult',
           'create_conflict_detector',
           'ConflictDetectionOptions',
           'DocumentComparisonResult',
          ]
