# DEPENDENCIES
import sys
import math
import time
import openai
from abc import ABC
from typing import List
from typing import Tuple
from pathlib import Path
from typing import Optional
from abc import abstractmethod
from dataclasses import dataclass

# Add parent directory to path for imports
sys.path.append(str(Path(__file__).parent.parent))

from utils.logger import log_info
from config.settings import settings
from config.model_config import ModelConfig
from model_manager.model_loader import ModelLoader
from utils.validators import ClauseValidator
from utils.exceptions import TerminalRemoteError


def estimate_token_count(text: str) -> int:
    """
    Rough token estimate (about four characters per token)
    """
    return math.ceil(len(text or "") / ModelConfig.OPENAI_EMBEDDING["chars_per_token"])


def estimate_embedding_cost(token_count: int) -> float:
    """
    Estimated provider cost in USD for a token count
    """
    return round((token_count / 1000) * ModelConfig.OPENAI_EMBEDDING["price_per_1k_tokens"], 8)


@dataclass
class ProviderResponse:
    """
    Raw provider output for one call, vectors in input order
    """
    vectors         : List[List[float]]
    total_tokens    : int
    model           : str
    latency_seconds : float = 0.0


class EmbeddingProvider(ABC):
    """
    Text-to-vector backend
    """
    model_name     : str
    max_batch_size : int


    @abstractmethod
    def embed_texts(self, texts: List[str], timeout: Optional[float] = None) -> ProviderResponse:
        """
        Embed already-normalized texts in a single call; raise the client library's exception on failure
        """
        raise NotImplementedError


    def validate_configuration(self) -> Tuple[bool, List[str]]:
        return True, []


class OpenAIEmbeddingProvider(EmbeddingProvider):
    """
    OpenAI embeddings API (v1 client); retries are handled by RetryPolicy, so the client's own retries are disabled
    """
    def __init__(self, api_key: Optional[str] = None, model_name: Optional[str] = None, max_batch_size: Optional[int] = None,
                 timeout: Optional[float] = None, client = None):
        self.api_key         = api_key or settings.OPENAI_API_KEY
        self.model_name      = model_name or settings.OPENAI_EMBEDDING_MODEL
        self.max_batch_size  = max_batch_size or min(settings.EMBEDDING_BATCH_SIZE, ModelConfig.OPENAI_EMBEDDING["max_batch_size"])
        self.timeout         = timeout or settings.EMBEDDING_TIMEOUT
        self._client         = client


    @property
    def client(self):
        if self._client is None:
            if not self.api_key:
                raise TerminalRemoteError("OPENAI_API_KEY environment variable is not set", service = "embeddings.create", scope = "provider")

            self._client = openai.OpenAI(api_key = self.api_key, timeout = self.timeout, max_retries = 0)

        return self._client


    def validate_configuration(self) -> Tuple[bool, List[str]]:
        if self._client is not None:
            return True, []

        return ClauseValidator.validate_openai_config(self.api_key)


    def embed_texts(self, texts: List[str], timeout: Optional[float] = None) -> ProviderResponse:
        start_time = time.time()

        response   = self.client.embeddings.create(model           = self.model_name,
                                                   input           = list(texts),
                                                   encoding_format = "float",
                                                   timeout         = timeout or self.timeout,
                                                  )

        data       = sorted(response.data, key = lambda item: item.index)
        usage      = getattr(response, "usage", None)
        tokens     = getattr(usage, "total_tokens", None)

        if tokens is None:
            tokens = sum(estimate_token_count(text) for text in texts)

        return ProviderResponse(vectors         = [item.embedding for item in data],
                                total_tokens    = int(tokens),
                                model           = getattr(response, "model", None) or self.model_name,
                                latency_seconds = time.time() - start_time,
                               )


class SentenceTransformerEmbeddingProvider(EmbeddingProvider):
    """
    Local sentence-transformers model; token usage is estimated since no provider bills it
    """
    def __init__(self, model_loader: Optional[ModelLoader] = None, max_batch_size: Optional[int] = None):
        config               = ModelConfig.EMBEDDING_MODEL

        self.model_loader    = model_loader or ModelLoader()
        self.model_name      = config["model_name"]
        self.max_batch_size  = max_batch_size or config["batch_size"]
        self.normalize       = config["normalize"]


    def embed_texts(self, texts: List[str], timeout: Optional[float] = None) -> ProviderResponse:
        start_time = time.time()
        model      = self.model_loader.load_embedding_model()

        vectors    = model.encode(list(texts),
                                  batch_size           = self.max_batch_size,
                                  normalize_embeddings = self.normalize,
                                  convert_to_numpy     = True,
                                  show_progress_bar    = False,
                                 )

        return ProviderResponse(vectors         = [vector.tolist() for vector in vectors],
                                total_tokens    = sum(estimate_token_count(text) for text in texts),
                                model           = self.model_name,
                                latency_seconds = time.time() - start_time,
                               )


def create_embedding_provider(provider_name: Optional[str] = None) -> EmbeddingProvider:
    """
    Build the configured embedding provider ("openai" or "sentence-transformers")
    """
    provider_name = (provider_name or settings.EMBEDDING_PROVIDER).lower()

    if provider_name == "openai":
        provider = OpenAIEmbeddingProvider()

    elif provider_name in ("sentence-transformers", "local"):
        provider = SentenceTransformerEmbeddingProvider()

    else:
        raise ValueError(f"Unsupported embedding provider: {provider_name}")

    log_info("Embedding provider created", provider = provider_name, model = provider.model_name)

    return provider
