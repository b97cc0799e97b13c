"""Pytest configuration and shared fixtures."""

# DEPENDENCIES
import sys
import math
import hashlib
import pytest
import numpy as np
from typing import Dict
from typing import List
from pathlib import Path
from typing import Optional

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from utils.logger import StatuteAnalyzerLogger
from utils.text_processor import TextProcessor
from model_manager.retry_policy import RetryPolicy
from services.corpus_search import CorpusEntry
from model_manager.embedding_cache import EmbeddingCache
from services.corpus_search import InMemoryCorpusSearch
from model_manager.embedding_provider import ProviderResponse
from model_manager.embedding_provider import EmbeddingProvider
from model_manager.embedding_generator import EmbeddingGenerator


DIMENSION = 64


class FakeEmbeddingProvider(EmbeddingProvider):
    """Deterministic hashed bag-of-words provider.

    Texts listed in `overrides` get a fixed vector; a call containing a text with one of the
    `reject_markers` fails with a content-policy message; `error` is raised on every call and
    `transient_failures` makes the first N calls time out.
    """

    def __init__(self, overrides: Optional[Dict[str, List[float]]] = None, reject_markers: Optional[List[str]] = None,
                 error: Optional[Exception] = None, transient_failures: int = 0, max_batch_size: int = 16):
        self.model_name         = "fake-embedding-model"
        self.max_batch_size     = max_batch_size
        self.overrides          = dict(overrides or {})
        self.reject_markers     = list(reject_markers or [])
        self.error              = error
        self.transient_failures = transient_failures
        self.calls              = list()

    def vector_for(self, text: str) -> List[float]:
        if text in self.overrides:
            return list(self.overrides[text])

        vector = np.zeros(DIMENSION)

        for word in TextProcessor.normalize_for_comparison(text).split():
            digest          = hashlib.md5(word.encode("utf-8")).hexdigest()
            vector[int(digest, 16) % DIMENSION] += 1.0

        return vector.tolist()

    def embed_texts(self, texts, timeout = None) -> ProviderResponse:
        self.calls.append(list(texts))

        if self.error is not None:
            raise self.error

        if self.transient_failures > 0:
            self.transient_failures -= 1
            raise TimeoutError("Request timed out")

        for text in texts:
            if any(marker in text for marker in self.reject_markers):
                raise ValueError("content_policy_violation: input was rejected")

        return ProviderResponse(vectors      = [self.vector_for(text) for text in texts],
                                total_tokens = sum(len(text.split()) for text in texts),
                                model        = self.model_name,
                               )


def vector_with_similarity(similarity: float, dimension: int = DIMENSION) -> List[float]:
    """Unit vector whose cosine similarity with the first basis vector equals `similarity`."""
    vector    = [0.0] * dimension
    vector[0] = similarity
    vector[1] = math.sqrt(max(0.0, 1.0 - similarity ** 2))

    return vector


def basis_vector(index: int = 0, dimension: int = DIMENSION) -> List[float]:
    vector        = [0.0] * dimension
    vector[index] = 1.0

    return vector


@pytest.fixture(autouse=True, scope="session")
def configure_logging(tmp_path_factory):
    """Send log files to a temporary directory."""
    StatuteAnalyzerLogger.setup(log_dir=str(tmp_path_factory.mktemp("logs")), app_name="statute_analyzer_test", level="DEBUG")
    yield


@pytest.fixture
def sleeps() -> List[float]:
    """Records every delay requested by code under test instead of sleeping."""
    return list()


@pytest.fixture
def fake_sleep(sleeps):
    return sleeps.append


@pytest.fixture
def fake_provider() -> FakeEmbeddingProvider:
    return FakeEmbeddingProvider()


@pytest.fixture
def make_generator(fake_sleep):
    """Factory for an EmbeddingGenerator over a fake provider with a fresh cache and no real sleeping."""

    def _make(provider: Optional[FakeEmbeddingProvider] = None, batch_delay_ms: int = 0, cache: Optional[EmbeddingCache] = None) -> EmbeddingGenerator:
        return EmbeddingGenerator(provider       = provider or FakeEmbeddingProvider(),
                                  cache          = cache if cache is not None else EmbeddingCache(max_size = 1000),
                                  retry_policy   = RetryPolicy(max_attempts = 3, base_delay_ms = 10, max_delay_ms = 100, jitter = 0.0),
                                  batch_delay_ms = batch_delay_ms,
                                  sleep          = fake_sleep,
                                 )

    return _make


@pytest.fixture
def embedding_generator(make_generator, fake_provider) -> EmbeddingGenerator:
    return make_generator(fake_provider)


@pytest.fixture
def vector_at():
    """Returns a helper building vectors at a chosen cosine similarity to the first basis vector."""
    return vector_with_similarity


@pytest.fixture
def unit_vector():
    return basis_vector


@pytest.fixture
def make_corpus():
    """Factory for an in-memory corpus from (title, text, vector, extra fields) tuples."""

    def _make(*entries) -> InMemoryCorpusSearch:
        corpus = InMemoryCorpusSearch()

        for number, (title, text, vector, extra) in enumerate(entries, start=1):
            corpus.add(CorpusEntry(clause_id      = f"clause-{number}",
                                   document_id    = extra.pop("document_id", f"doc-{number}"),
                                   document_title = title,
                                   clause_text    = text,
                                   vector         = vector,
                                   **extra,
                                  ))

        return corpus

    return _make


@pytest.fixture
def pasal_1() -> Dict[str, str]:
    return {"text": "Pasal 1. X berhak atas Y.", "clause_type": "article", "clause_ref": "Pasal 1"}


@pytest.fixture
def pasal_2() -> Dict[str, str]:
    return {"text": "Pasal 2. Z wajib menyediakan W.", "clause_type": "article", "clause_ref": "Pasal 2"}


@pytest.fixture
def statute_clauses() -> List[Dict[str, str]]:
    """Five distinct articles of a fictional statute."""
    return [{"text": "Pasal 1. Dalam Undang-Undang ini yang dimaksud dengan pendidikan adalah usaha sadar dan terencana.", "clause_type": "article", "clause_ref": "Pasal 1"},
            {"text": "Pasal 2. Pendidikan nasional berdasarkan Pancasila dan Undang-Undang Dasar.", "clause_type": "article", "clause_ref": "Pasal 2"},
            {"text": "Pasal 3. Setiap warga negara berhak memperoleh pendidikan yang bermutu.", "clause_type": "article", "clause_ref": "Pasal 3"},
            {"text": "Pasal 4. Pemerintah wajib membiayai pendidikan dasar tanpa memungut biaya.", "clause_type": "article", "clause_ref": "Pasal 4"},
            {"text": "Pasal 5. Ketentuan lebih lanjut mengenai kurikulum diatur dengan Peraturan Menteri.", "clause_type": "article", "clause_ref": "Pasal 5"},
           ]
