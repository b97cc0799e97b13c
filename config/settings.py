# DEPENDENCIES
from pathlib import Path
from typing import Optional
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application-wide settings: primary configuration source (environment variables / .env)
    """
    # Application Info
    APP_NAME                          : str           = "AI Statute Analyzer"
    APP_VERSION                       : str           = "1.0.0"

    # Server Configuration
    HOST                              : str           = "0.0.0.0"
    PORT                              : int           = 8000
    RELOAD                            : bool          = False
    WORKERS                           : int           = 1

    # CORS Settings
    CORS_ORIGINS                      : list          = ["http://localhost:3000", "http://localhost:8000", "http://127.0.0.1:8000"]
    CORS_ALLOW_CREDENTIALS            : bool          = True
    CORS_ALLOW_METHODS                : list          = ["*"]
    CORS_ALLOW_HEADERS                : list          = ["*"]

    # Embedding Provider Settings
    EMBEDDING_PROVIDER                : str           = "openai"   # "openai" or "sentence-transformers"
    OPENAI_API_KEY                    : Optional[str] = None
    OPENAI_EMBEDDING_MODEL            : str           = "text-embedding-3-small"
    EMBEDDING_BATCH_SIZE              : int           = 100        # Texts per provider call
    EMBEDDING_BATCH_DELAY_MS          : int           = 100        # Pause between provider calls
    EMBEDDING_MAX_CHARS               : int           = 30000
    EMBEDDING_TIMEOUT                 : float         = 60.0       # seconds per provider call
    USE_GPU                           : bool          = True

    # Embedding Cache Settings
    EMBEDDING_CACHE_MAX_SIZE          : int           = 10000
    EMBEDDING_CACHE_TTL               : int           = 24 * 3600
    EMBEDDING_CACHE_EVICTION_FRACTION : float         = 0.1

    # Retry Policy Settings
    RETRY_MAX_ATTEMPTS                : int           = 3
    RETRY_BASE_DELAY_MS               : int           = 1000
    RETRY_MAX_DELAY_MS                : int           = 10000
    RETRY_BACKOFF_MULTIPLIER          : float         = 2.0
    RETRY_JITTER                      : float         = 0.1

    # Corpus Search Settings
    SUPABASE_URL                      : Optional[str] = None
    SUPABASE_SERVICE_KEY              : Optional[str] = None
    SEARCH_RPC_NAME                   : str           = "search_similar_clauses"
    SEARCH_TIMEOUT                    : float         = 30.0
    SEARCH_FILTER_OVERFETCH           : int           = 5          # Rows requested per wanted result when filtering client-side
    CORPUS_FILE                       : Optional[str] = None       # JSON corpus for the in-memory backend

    # Text Generation Settings
    LLM_PROVIDER                      : str           = "openai"
    LLM_MODEL                         : Optional[str] = None
    OLLAMA_BASE_URL                   : str           = "http://localhost:11434"
    OLLAMA_MODEL                      : str           = "llama3:8b"
    OLLAMA_TIMEOUT                    : int           = 300
    ANTHROPIC_API_KEY                 : Optional[str] = None
    LLM_FALLBACK_PROVIDERS            : list          = []         # Tried in order when LLM_PROVIDER fails
    ENABLE_LLM_EXPLANATIONS           : bool          = False

    # Analysis Limits
    MAX_CLAUSES_PER_DOCUMENT          : int           = 2000

    # Logging Settings
    LOG_LEVEL                         : str           = "INFO"
    LOG_DIR                           : Path          = Path("logs")
    LOG_APP_NAME                      : str           = "statute_analyzer"


    class Config:
        env_file          = ".env"
        env_file_encoding = "utf-8"
        case_sensitive    = True
        extra             = "ignore"


# Global settings instance
settings = Settings()
