# DEPENDENCIES
import sys
import json
import requests
import numpy as np
from abc import ABC
from typing import Any
from typing import Dict
from typing import List
from pathlib import Path
from typing import Union
from typing import Optional
from abc import abstractmethod
from dataclasses import dataclass

# Add parent directory to path for imports
sys.path.append(str(Path(__file__).parent.parent))

from utils.logger import log_info
from utils.logger import log_debug
from utils.logger import log_warning
from config.settings import settings
from utils.exceptions import ValidationError
from utils.exceptions import TerminalRemoteError
from services.data_models import SimilarClause
from model_manager.embedding_generator import cosine_similarity


class CorpusSearchClient(ABC):
    """
    Ranked vector similarity search over the corpus of indexed legislation
    """
    @abstractmethod
    def search(self, query_vector: List[float], similarity_threshold: float, max_results: int, exclude_document_id: Optional[str] = None,
               jurisdiction: Optional[str] = None, document_types: Optional[List[str]] = None, timeout: Optional[float] = None) -> List[SimilarClause]:
        """
        Candidates ordered by similarity (descending), all at or above `similarity_threshold`; raise on backend failure
        """
        raise NotImplementedError


    def corpus_size(self) -> Optional[int]:
        """
        Number of searchable clauses, when the backend can tell cheaply
        """
        return None


def _document_type_set(document_types: Union[str, List[str], None]) -> set:
    if not document_types:
        return set()

    if isinstance(document_types, str):
        document_types = [document_types]

    allowed = {document_type.lower() for document_type in document_types}

    # "statute" and "law" are the same category in corpus metadata
    if "statute" in allowed:
        allowed.add("law")

    return allowed


def _passes_filters(candidate: SimilarClause, jurisdiction: Optional[str], document_types: Union[str, List[str], None]) -> bool:
    """
    Filters are only applied to candidates that carry the attribute
    """
    if jurisdiction and candidate.jurisdiction and (candidate.jurisdiction.lower() != jurisdiction.lower()):
        return False

    allowed = _document_type_set(document_types)

    if allowed and candidate.document_type and (candidate.document_type.lower() not in allowed):
        return False

    return True


class SupabaseCorpusSearch(CorpusSearchClient):
    """
    Calls the `search_similar_clauses` Postgres function through the PostgREST RPC endpoint
    """
    def __init__(self, url: Optional[str] = None, service_key: Optional[str] = None, rpc_name: Optional[str] = None,
                 timeout: Optional[float] = None, session: Optional[requests.Session] = None, overfetch: Optional[int] = None):
        self.url         = (url or settings.SUPABASE_URL or "").rstrip("/")
        self.service_key = service_key or settings.SUPABASE_SERVICE_KEY
        self.rpc_name    = rpc_name or settings.SEARCH_RPC_NAME
        self.timeout     = timeout or settings.SEARCH_TIMEOUT
        self.session     = session or requests.Session()
        self.overfetch   = max(1, overfetch or settings.SEARCH_FILTER_OVERFETCH)

        if not self.url or not self.service_key:
            raise TerminalRemoteError("Corpus search is not configured: SUPABASE_URL and SUPABASE_SERVICE_KEY are required", service = self.rpc_name, scope = "provider")

        log_info("SupabaseCorpusSearch initialized", url = self.url, rpc_name = self.rpc_name)


    def _headers(self) -> Dict[str, str]:
        return {"apikey"        : self.service_key,
                "Authorization" : f"Bearer {self.service_key}",
                "Content-Type"  : "application/json",
               }


    def search(self, query_vector: List[float], similarity_threshold: float, max_results: int, exclude_document_id: Optional[str] = None,
               jurisdiction: Optional[str] = None, document_types: Optional[List[str]] = None, timeout: Optional[float] = None) -> List[SimilarClause]:
        """
        The RPC cannot filter by jurisdiction or document type, so filtered searches request `overfetch` times more rows before
        filtering them here
        """
        filtered = bool(jurisdiction) or bool(_document_type_set(document_types))
        limit    = (max_results * self.overfetch) if filtered else max_results

        payload  = {"query_embedding"      : [float(value) for value in query_vector],
                    "similarity_threshold" : similarity_threshold,
                    "max_results"          : limit,
                    "exclude_version_id"   : exclude_document_id,
                   }

        response = self.session.post(f"{self.url}/rest/v1/rpc/{self.rpc_name}",
                                     json    = payload,
                                     headers = self._headers(),
                                     timeout = timeout or self.timeout,
                                    )
        response.raise_for_status()

        rows       = response.json() or []
        candidates = [SimilarClause.from_row(row) for row in rows]
        candidates = [candidate for candidate in candidates if _passes_filters(candidate, jurisdiction, document_types)]

        log_debug("Corpus search completed", requested = limit, returned = len(rows), kept = len(candidates))

        return sorted(candidates, key = lambda candidate: -candidate.similarity)[:max_results]


@dataclass
class CorpusEntry:
    """
    A corpus clause with a precomputed vector, for the in-memory backend
    """
    clause_id      : str
    document_id    : str
    document_title : str
    clause_text    : str
    vector         : Any
    clause_ref     : Optional[str] = None
    document_type  : Optional[str] = None
    jurisdiction   : Optional[str] = None
    status         : Optional[str] = None
    source_url     : Optional[str] = None


class InMemoryCorpusSearch(CorpusSearchClient):
    """
    Client-side cosine ranking over a locally held corpus (fallback when no search backend is reachable)
    """
    def __init__(self, entries: Optional[List[CorpusEntry]] = None):
        self.entries = list(entries or [])


    @classmethod
    def from_json_file(cls, path: Union[str, Path]) -> "InMemoryCorpusSearch":
        """
        Load a corpus exported as a JSON list of clause objects

        Each object needs `clause_id`, `document_id`, `document_title`, `clause_text` and an `embedding` list; `clause_ref`,
        `document_type`, `jurisdiction`, `status` and `source_url` are optional

        Arguments:
        ----------
            path { str } : Path of the JSON file

        Raises:
        -------
            ValidationError : If the file is missing, is not a JSON list or holds an incomplete clause
        """
        path = Path(path)

        if not path.is_file():
            raise ValidationError(f"Corpus file not found: {path}", context = {"path" : str(path)})

        try:
            with open(path, "r", encoding = "utf-8") as corpus_file:
                rows = json.load(corpus_file)

        except json.JSONDecodeError as e:
            raise ValidationError(f"Corpus file is not valid JSON: {e.msg}", context = {"path" : str(path), "line" : e.lineno}) from e

        if not isinstance(rows, list):
            raise ValidationError("Corpus file must contain a JSON list of clauses", context = {"path" : str(path)})

        entries = list()

        for index, row in enumerate(rows):
            missing = [name for name in ("clause_id", "document_id", "document_title", "clause_text", "embedding") if not isinstance(row, dict) or (row.get(name) in (None, "", []))]

            if missing:
                raise ValidationError("Corpus clause is incomplete", context = {"path" : str(path), "index" : index, "missing" : missing})

            entries.append(CorpusEntry(clause_id      = str(row["clause_id"]),
                                       document_id    = str(row["document_id"]),
                                       document_title = row["document_title"],
                                       clause_text    = row["clause_text"],
                                       vector         = np.asarray(row["embedding"], dtype = np.float32),
                                       clause_ref     = row.get("clause_ref"),
                                       document_type  = row.get("document_type"),
                                       jurisdiction   = row.get("jurisdiction"),
                                       status         = row.get("status"),
                                       source_url     = row.get("source_url"),
                                      ))

        log_info("Corpus loaded from file", path = str(path), clauses = len(entries))

        return cls(entries)


    def add(self, entry: CorpusEntry):
        self.entries.append(entry)


    def corpus_size(self) -> Optional[int]:
        return len(self.entries)


    def search(self, query_vector: List[float], similarity_threshold: float, max_results: int, exclude_document_id: Optional[str] = None,
               jurisdiction: Optional[str] = None, document_types: Optional[List[str]] = None, timeout: Optional[float] = None) -> List[SimilarClause]:
        query   = np.asarray(query_vector, dtype = np.float64)
        matches = list()

        for entry in self.entries:
            if exclude_document_id and (entry.document_id == exclude_document_id):
                continue

            similarity = cosine_similarity(query, entry.vector)

            if (similarity < similarity_threshold):
                continue

            candidate  = SimilarClause(clause_id      = entry.clause_id,
                                       document_id    = entry.document_id,
                                       document_title = entry.document_title,
                                       clause_ref     = entry.clause_ref,
                                       clause_text    = entry.clause_text,
                                       similarity     = similarity,
                                       document_type  = entry.document_type,
                                       jurisdiction   = entry.jurisdiction,
                                       status         = entry.status,
                                       source_url     = entry.source_url,
                                      )

            if _passes_filters(candidate, jurisdiction, document_types):
                matches.append(candidate)

        # Stable sort keeps corpus order for equal similarities
        matches.sort(key = lambda candidate: -candidate.similarity)

        return matches[:max_results]


def create_corpus_search(entries: Optional[List[CorpusEntry]] = None, corpus_file: Optional[str] = None) -> CorpusSearchClient:
    """
    Remote search when Supabase is configured, otherwise the in-memory corpus (from `entries`, else from CORPUS_FILE)
    """
    if settings.SUPABASE_URL and settings.SUPABASE_SERVICE_KEY:
        return SupabaseCorpusSearch()

    corpus_file = corpus_file or settings.CORPUS_FILE

    if (entries is None) and corpus_file:
        return InMemoryCorpusSearch.from_json_file(corpus_file)

    if not entries:
        log_warning("Supabase not configured and no corpus loaded: conflict detection has nothing to search")

    log_info("Supabase not configured, using in-memory corpus search", entries = len(entries or []))

    return InMemoryCorpusSearch(entries)
