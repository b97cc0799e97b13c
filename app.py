# app.py
# DEPENDENCIES
import sys
import time
import json
import signal
import uvicorn
import numpy as np
from typing import Any
from typing import List
from typing import Dict
from pathlib import Path
from pydantic import Field
from fastapi import FastAPI
from fastapi import Depends
from fastapi import Request
from typing import Optional
from datetime import datetime
from pydantic import BaseModel
from fastapi import HTTPException
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from fastapi.middleware.cors import CORSMiddleware

# Add parent directory to path
sys.path.append(str(Path(__file__).parent))

from utils.logger import log_info
from utils.logger import log_error
from config.settings import settings
from utils.exceptions import JobFailure
from utils.exceptions import ValidationError
from utils.exceptions import RemoteServiceError
from utils.exceptions import StatuteAnalyzerError
from utils.exceptions import OperationTimeoutError
from utils.logger import StatuteAnalyzerLogger
from services.diff_engine import ComparisonOptions
from services.corpus_search import CorpusSearchClient
from services.corpus_search import create_corpus_search
from services.conflict_detector import ConflictDetector
from services.diff_engine import LegalDocumentComparator
from services.conflict_detector import ConflictDetectionOptions
from services.explanation_generator import ExplanationGenerator
from model_manager.embedding_generator import EmbeddingGenerator


# ============================================================================
# CUSTOM SERIALIZATION METHODS
# ============================================================================
class NumpyJSONEncoder(json.JSONEncoder):
    def default(self, obj: Any) -> Any:
        if isinstance(obj, (np.floating,)):
            return float(obj)

        elif isinstance(obj, (np.integer,)):
            return int(obj)

        elif isinstance(obj, np.ndarray):
            return obj.tolist()

        elif isinstance(obj, np.bool_):
            return bool(obj)

        elif hasattr(obj, 'to_dict'):
            return obj.to_dict()

        elif isinstance(obj, (set, tuple)):
            return list(obj)

        return super().default(obj)


class NumpyJSONResponse(JSONResponse):
    def render(self, content: Any) -> bytes:

        return json.dumps(obj          = content,
                          ensure_ascii = False,
                          allow_nan    = False,
                          indent       = None,
                          separators   = (",", ":"),
                          cls          = NumpyJSONEncoder,
                         ).encode("utf-8")


# PYDANTIC SCHEMAS
class ClauseInput(BaseModel):
    text           : str
    clause_type    : Optional[str] = "general"
    sequence_order : Optional[int] = None
    clause_ref     : Optional[str] = None
    page_from      : Optional[int] = None
    page_to        : Optional[int] = None
    clause_id      : Optional[str] = None


class CompareRequest(BaseModel):
    old_clauses : List[ClauseInput]
    new_clauses : List[ClauseInput]
    options     : Dict[str, Any]   = Field(default_factory = dict)


class ConflictRequest(BaseModel):
    clauses        : List[ClauseInput]
    exclude_doc_id : Optional[str]     = None
    options        : Dict[str, Any]    = Field(default_factory = dict)


class ErrorResponse(BaseModel):
    error     : str
    detail    : str
    context   : Dict[str, Any] = Field(default_factory = dict)
    timestamp : str


def clauses_to_dicts(clauses: List[ClauseInput]) -> List[Dict[str, Any]]:
    # Unset sequence orders fall back to list position
    return [clause.model_dump(exclude_none = True) for clause in clauses]


# SERVICE INITIALIZATION
class AnalysisService:
    """
    Long-lived components shared by all requests: one embedding generator (and cache), the corpus search client and
    the optional explanation generator
    """
    def __init__(self, embedding_generator: Optional[EmbeddingGenerator] = None, search_client: Optional[CorpusSearchClient] = None,
                 explanation_generator: Optional[ExplanationGenerator] = None):
        self.embedding_generator   = embedding_generator or EmbeddingGenerator()
        self.search_client         = search_client or create_corpus_search()
        self.explanation_generator = explanation_generator

        if (self.explanation_generator is None) and settings.ENABLE_LLM_EXPLANATIONS:
            try:
                self.explanation_generator = ExplanationGenerator()

            except Exception as e:
                log_error(e, context = {"component" : "AnalysisService", "operation" : "init_explanation_generator"})
                log_info("LLM explanations not available, using templated explanations")

        self.conflict_options      = ConflictDetectionOptions()

        log_info("AnalysisService initialized",
                 embedding_model  = self.embedding_generator.model_name,
                 search_backend   = type(self.search_client).__name__,
                 llm_explanations = self.explanation_generator is not None,
                )


    def compare(self, old_clauses: List[Dict[str, Any]], new_clauses: List[Dict[str, Any]], options: Dict[str, Any]) -> Dict[str, Any]:
        comparator = LegalDocumentComparator(options               = ComparisonOptions.from_dict(options),
                                             embedding_generator   = self.embedding_generator,
                                             explanation_generator = self.explanation_generator,
                                            )

        return comparator.compare(old_clauses, new_clauses).to_dict()


    def detect_conflicts(self, clauses: List[Dict[str, Any]], exclude_doc_id: Optional[str], options: Dict[str, Any]) -> Dict[str, Any]:
        detector = ConflictDetector(search_client         = self.search_client,
                                    embedding_generator   = self.embedding_generator,
                                    explanation_generator = self.explanation_generator,
                                    options               = ConflictDetectionOptions.from_dict(options, base = self.conflict_options),
                                   )

        return detector.detect_conflicts(clauses, exclude_doc_id = exclude_doc_id).to_dict()


    def health(self) -> Dict[str, Any]:
        """
        Degraded when the embedding provider fails its probe or the corpus has nothing to search
        """
        embedding_health = self.embedding_generator.health_check()
        corpus_size      = self.search_client.corpus_size()
        issues           = list()

        if not embedding_health["test_passed"]:
            issues.append("embedding provider unavailable")

        if (corpus_size == 0):
            issues.append("corpus is empty")

        return {"status"           : "degraded" if issues else "healthy",
                "issues"           : issues,
                "version"          : settings.APP_VERSION,
                "timestamp"        : datetime.now().isoformat(),
                "embedding"        : embedding_health,
                "search_backend"   : type(self.search_client).__name__,
                "corpus_size"      : corpus_size,
                "llm_explanations" : self.explanation_generator is not None,
               }


# Initialize logging
StatuteAnalyzerLogger.setup(log_dir  = str(settings.LOG_DIR),
                            app_name = settings.LOG_APP_NAME,
                            level    = settings.LOG_LEVEL,
                           )

analysis_service : Optional[AnalysisService] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    global analysis_service
    log_info(f"{settings.APP_NAME} v{settings.APP_VERSION} starting up")

    try:
        analysis_service = AnalysisService()

    except Exception as e:
        log_error(e, context = {"component" : "app", "operation" : "startup"})
        raise

    log_info(f"Server: {settings.HOST}:{settings.PORT}")

    try:
        yield

    finally:
        log_info("Server shutdown complete")


# Define the application
app = FastAPI(title                  = settings.APP_NAME,
              version                = settings.APP_VERSION,
              description            = "Statute version comparison and legislative conflict detection",
              docs_url               = "/api/docs",
              redoc_url              = "/api/redoc",
              default_response_class = NumpyJSONResponse,
              lifespan               = lifespan,
             )

# CORS middleware
app.add_middleware(CORSMiddleware,
                   allow_origins     = settings.CORS_ORIGINS,
                   allow_credentials = settings.CORS_ALLOW_CREDENTIALS,
                   allow_methods     = settings.CORS_ALLOW_METHODS,
                   allow_headers     = settings.CORS_ALLOW_HEADERS,
                  )


def get_analysis_service() -> AnalysisService:
    if analysis_service is None:
        raise HTTPException(status_code = 503,
                            detail      = "Service not initialized",
                           )

    return analysis_service


# API ROUTES
@app.get("/api/v1/health")
def health_check(service: AnalysisService = Depends(get_analysis_service)):
    return service.health()


@app.post("/api/v1/compare")
def compare_documents_endpoint(request: CompareRequest, service: AnalysisService = Depends(get_analysis_service)):
    return service.compare(old_clauses = clauses_to_dicts(request.old_clauses),
                           new_clauses = clauses_to_dicts(request.new_clauses),
                           options     = request.options,
                          )


@app.post("/api/v1/conflicts")
def detect_conflicts_endpoint(request: ConflictRequest, service: AnalysisService = Depends(get_analysis_service)):
    return service.detect_conflicts(clauses        = clauses_to_dicts(request.clauses),
                                    exclude_doc_id = request.exclude_doc_id,
                                    options        = request.options,
                                   )


@app.get("/api/v1/cache/stats")
async def cache_stats(service: AnalysisService = Depends(get_analysis_service)):
    return service.embedding_generator.get_cache_stats()


@app.post("/api/v1/cache/clear")
async def clear_cache(service: AnalysisService = Depends(get_analysis_service)):
    cleared = service.embedding_generator.clear_cache()

    log_info("Embedding cache cleared", entries = cleared)

    return {"cleared" : cleared}


# ERROR HANDLERS AND MIDDLEWARE
def error_response(status_code: int, error: str, exc: Exception, context: Optional[Dict[str, Any]] = None) -> NumpyJSONResponse:
    return NumpyJSONResponse(status_code = status_code,
                             content     = ErrorResponse(error     = error,
                                                         detail    = getattr(exc, "message", str(exc)),
                                                         context   = context or {},
                                                         timestamp = datetime.now().isoformat(),
                                                        ).model_dump()
                            )


@app.exception_handler(HTTPException)
async def http_exception_handler(request, exc):
    return error_response(exc.status_code, str(exc.detail), exc)


@app.exception_handler(StatuteAnalyzerError)
async def analyzer_exception_handler(request, exc):
    if isinstance(exc, ValidationError):
        status_code = 422

    elif isinstance(exc, OperationTimeoutError):
        status_code = 504

    elif isinstance(exc, (RemoteServiceError, JobFailure)):
        status_code = 502

    else:
        status_code = 500

    log_error(exc, context = {"component" : "app", "operation" : request.url.path, "status_code" : status_code})

    return error_response(status_code, type(exc).__name__, exc, exc.context)


@app.exception_handler(Exception)
async def general_exception_handler(request, exc):
    log_error(exc, context = {"component" : "app", "operation" : request.url.path})

    return error_response(500, "Internal server error", exc)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start_time   = time.time()
    response     = await call_next(request)
    process_time = time.time() - start_time

    log_info(f"API Request: {request.method} {request.url.path} - Status: {response.status_code} - Duration: {process_time:.3f}s")

    return response


# MAIN
def main():
    def signal_handler(sig, frame):
        log_info("Received interrupt, shutting down")
        sys.exit(0)

    signal.signal(signal.SIGINT, signal_handler)

    try:
        uvicorn.run("app:app",
                    host      = settings.HOST,
                    port      = settings.PORT,
                    reload    = settings.RELOAD,
                    workers   = settings.WORKERS,
                    log_level = settings.LOG_LEVEL.lower(),
                   )

    except Exception as e:
        log_error(e, context = {"component" : "app", "operation" : "main"})

        sys.exit(1)


if __name__ == "__main__":
    main()
