# DEPENDENCIES
import sys
import time
import random
import numpy as np
from typing import Any
from typing import Dict
from typing import List
from typing import Tuple
from pathlib import Path
from typing import Callable
from typing import Optional
from dataclasses import field
from dataclasses import dataclass
from collections import OrderedDict

# Add parent directory to path for imports
sys.path.append(str(Path(__file__).parent.parent))

from utils.logger import log_info
from utils.logger import log_error
from utils.logger import log_warning
from config.settings import settings
from utils.exceptions import PartialFailure
from utils.exceptions import ValidationError
from utils.text_processor import TextProcessor
from utils.exceptions import RemoteServiceError
from utils.exceptions import TerminalRemoteError
from utils.exceptions import StatuteAnalyzerError
from utils.exceptions import OperationTimeoutError
from utils.logger import StatuteAnalyzerLogger
from model_manager.retry_policy import RetryPolicy
from model_manager.embedding_cache import EmbeddingCache
from model_manager.embedding_provider import ProviderResponse
from model_manager.embedding_provider import EmbeddingProvider
from model_manager.embedding_provider import estimate_token_count
from model_manager.embedding_provider import create_embedding_provider


HEALTH_CHECK_TEXT = "This is a test sentence for embedding generation."


def cosine_similarity(first: Any, second: Any) -> float:
    """
    Cosine similarity of two vectors

    Raises:
    -------
        ValidationError : If either vector is empty or their lengths differ
    """
    first  = np.asarray(first, dtype = np.float64)
    second = np.asarray(second, dtype = np.float64)

    if (first.size == 0) or (second.size == 0) or (first.shape != second.shape):
        raise ValidationError("Invalid embeddings: vectors must be non-empty and of equal length",
                              context = {"first_length" : int(first.size), "second_length" : int(second.size)},
                             )

    norm_product = float(np.linalg.norm(first) * np.linalg.norm(second))

    if (norm_product == 0.0):
        return 0.0

    return float(np.dot(first, second) / norm_product)


@dataclass
class EmbeddingVector:
    """
    Fixed-dimension vector with provenance
    """
    vector      : np.ndarray
    tokens_used : int
    model       : str
    cached      : bool


    def to_dict(self) -> Dict[str, Any]:
        return {"embedding"   : self.vector.tolist(),
                "tokens_used" : self.tokens_used,
                "model"       : self.model,
                "cached"      : self.cached,
               }


@dataclass
class EmbeddingProgress:
    current     : int
    total       : int
    percentage  : float
    batch_index : int
    batch_count : int
    eta_seconds : float


    def to_dict(self) -> Dict[str, Any]:
        return {"current"     : self.current,
                "total"       : self.total,
                "percentage"  : round(self.percentage, 1),
                "batch_index" : self.batch_index,
                "batch_count" : self.batch_count,
                "eta_seconds" : round(self.eta_seconds, 2),
               }


@dataclass
class BatchEmbeddingResult:
    """
    Order-preserving batch output : a failed item holds None and its error is kept in `failures`
    """
    embeddings   : List[Optional[EmbeddingVector]]
    model        : str
    total_tokens : int                  = 0
    cache_hits   : int                  = 0
    cache_misses : int                  = 0
    failures     : Dict[int, PartialFailure] = field(default_factory = dict)


    def get(self, index: int) -> EmbeddingVector:
        """
        Vector for one input position; re-raises that item's failure if it could not be embedded
        """
        if index in self.failures:
            raise self.failures[index]

        return self.embeddings[index]


    @property
    def succeeded(self) -> int:
        return sum(1 for embedding in self.embeddings if embedding is not None)


    def to_dict(self) -> Dict[str, Any]:
        return {"embeddings"   : [{"index" : index, "embedding" : embedding.vector.tolist()} for index, embedding in enumerate(self.embeddings) if embedding is not None],
                "model"        : self.model,
                "total_tokens" : self.total_tokens,
                "cache_hits"   : self.cache_hits,
                "cache_misses" : self.cache_misses,
                "failures"     : [failure.to_dict() for failure in self.failures.values()],
               }


class EmbeddingGenerator:
    """
    Cached, batched, retrying text-to-vector generation on top of an EmbeddingProvider
    """
    OPERATION = "embeddings.create"


    def __init__(self, provider: Optional[EmbeddingProvider] = None, cache: Optional[EmbeddingCache] = None, retry_policy: Optional[RetryPolicy] = None,
                 batch_size: Optional[int] = None, batch_delay_ms: Optional[int] = None, max_chars: Optional[int] = None,
                 sleep: Callable[[float], None] = time.sleep, rng: Optional[random.Random] = None):
        """
        Initialize the generator

        Arguments:
        ----------
            provider       { EmbeddingProvider } : Text-to-vector backend (default: from settings)

            cache          { EmbeddingCache }    : Shared cache (default: new cache sized from settings)

            retry_policy   { RetryPolicy }       : Default retry policy for remote calls

            batch_size     { int }               : Maximum texts per provider call

            batch_delay_ms { int }               : Pause between provider calls for a full group

            max_chars      { int }               : Length cap applied during normalization

            sleep          { callable }          : Sleep function (injectable for tests)

            rng            { Random }            : Random source for retry jitter
        """
        self.provider       = provider or create_embedding_provider()
        self.cache          = cache if cache is not None else EmbeddingCache(max_size          = settings.EMBEDDING_CACHE_MAX_SIZE,
                                                                             ttl_seconds       = settings.EMBEDDING_CACHE_TTL,
                                                                             eviction_fraction = settings.EMBEDDING_CACHE_EVICTION_FRACTION,
                                                                            )
        self.retry_policy   = retry_policy or RetryPolicy.from_settings()
        self.batch_size     = min(batch_size or settings.EMBEDDING_BATCH_SIZE, self.provider.max_batch_size)
        self.batch_delay_ms = settings.EMBEDDING_BATCH_DELAY_MS if batch_delay_ms is None else batch_delay_ms
        self.max_chars      = max_chars or settings.EMBEDDING_MAX_CHARS
        self._sleep         = sleep
        self._rng           = rng

        log_info("EmbeddingGenerator initialized",
                 model          = self.model_name,
                 batch_size     = self.batch_size,
                 batch_delay_ms = self.batch_delay_ms,
                )


    @property
    def model_name(self) -> str:
        return self.provider.model_name


    def _prepare(self, text: str) -> Tuple[str, str]:
        cleaned = TextProcessor.clean_for_embedding(text, max_chars = self.max_chars)

        return cleaned, EmbeddingCache.make_key(cleaned, self.model_name)


    def _call_provider(self, texts: List[str], timeout: Optional[float]) -> ProviderResponse:
        response = self.provider.embed_texts(texts, timeout = timeout)

        if (len(response.vectors) != len(texts)):
            raise TerminalRemoteError(f"Provider returned {len(response.vectors)} vectors for {len(texts)} inputs", service = self.OPERATION, scope = "item")

        return response


    def _execute(self, texts: List[str], policy: RetryPolicy, timeout: Optional[float], deadline: Optional[float], context: Dict[str, Any]) -> ProviderResponse:
        return policy.execute(lambda: self._call_provider(texts, timeout),
                              operation = self.OPERATION,
                              sleep     = self._sleep,
                              rng       = self._rng,
                              deadline  = deadline,
                              context   = context,
                             )


    def embed(self, text: str, retry_policy: Optional[RetryPolicy] = None, timeout: Optional[float] = None, deadline: Optional[float] = None) -> EmbeddingVector:
        """
        Embed one text, serving it from the cache when possible

        Arguments:
        ----------
            text         { str }         : Raw text (normalized before hashing)

            retry_policy { RetryPolicy } : Override of the default retry policy

            timeout      { float }       : Seconds allowed for each remote call

            deadline     { float }       : time.monotonic() value after which retries stop

        Returns:
        --------
            { EmbeddingVector }          : Vector with provenance; cached=True and tokens_used=0 on a cache hit
        """
        cleaned, key = self._prepare(text)
        entry        = self.cache.get(key)

        if entry is not None:
            return EmbeddingVector(vector = entry.vector, tokens_used = 0, model = entry.model, cached = True)

        response     = self._execute([cleaned], retry_policy or self.retry_policy, timeout, deadline, context = {"text_length" : len(cleaned)})
        entry        = self.cache.set(key, response.vectors[0], self.model_name, response.total_tokens)

        return EmbeddingVector(vector = entry.vector, tokens_used = response.total_tokens, model = self.model_name, cached = False)


    @StatuteAnalyzerLogger.log_execution_time("embed_batch")
    def embed_batch(self, texts: List[str], progress_callback: Optional[Callable[[EmbeddingProgress], None]] = None, retry_policy: Optional[RetryPolicy] = None,
                    timeout: Optional[float] = None, deadline: Optional[float] = None) -> BatchEmbeddingResult:
        """
        Embed many texts, preserving input order

        Cache hits are returned immediately; misses are deduplicated by content hash and sent in provider-bounded groups
        with pacing between groups. A group that still fails after retries is re-sent item by item so one bad text
        cannot sink the group; items that fail individually are recorded in `failures`.

        Arguments:
        ----------
            texts             { list }        : Raw texts

            progress_callback { callable }    : Receives an EmbeddingProgress after each group

            retry_policy      { RetryPolicy } : Override of the default retry policy

            timeout           { float }       : Seconds allowed for each remote call

            deadline          { float }       : time.monotonic() value after which the batch is abandoned

        Returns:
        --------
            { BatchEmbeddingResult }          : Results aligned with `texts`

        Raises:
        -------
            ValidationError       : Input is not a non-empty list or an item is empty after cleaning

            TerminalRemoteError   : Provider-wide failure (credentials, quota)

            OperationTimeoutError : Deadline passed before all groups were sent
        """
        if not isinstance(texts, (list, tuple)) or not texts:
            raise ValidationError("Invalid texts input: expected a non-empty list of strings")

        policy   = retry_policy or self.retry_policy
        prepared = list()

        for index, text in enumerate(texts):
            try:
                prepared.append(self._prepare(text))

            except ValidationError as e:
                raise e.with_context(index = index)

        result   = BatchEmbeddingResult(embeddings = [None] * len(texts), model = self.model_name)
        pending  = OrderedDict()

        for index, (cleaned, key) in enumerate(prepared):
            if key in pending:
                pending[key][1].append(index)
                result.cache_misses += 1
                continue

            entry = self.cache.get(key)

            if entry is not None:
                result.embeddings[index] = EmbeddingVector(vector = entry.vector, tokens_used = 0, model = entry.model, cached = True)
                result.cache_hits       += 1

            else:
                pending[key]             = (cleaned, [index])
                result.cache_misses     += 1

        items       = list(pending.items())
        groups      = [items[start:start + self.batch_size] for start in range(0, len(items), self.batch_size)]
        completed   = result.cache_hits
        started_at  = time.monotonic()

        if not groups:
            self._report_progress(progress_callback, EmbeddingProgress(current = completed, total = len(texts), percentage = 100.0, batch_index = 0, batch_count = 0, eta_seconds = 0.0))

        for batch_index, group in enumerate(groups):
            if (deadline is not None) and (time.monotonic() >= deadline):
                raise OperationTimeoutError("Embedding batch timed out",
                                            context = {"operation" : self.OPERATION, "batch_index" : batch_index, "completed" : completed},
                                           )

            if (batch_index > 0) and (self.batch_delay_ms > 0):
                self._sleep(self.batch_delay_ms * len(group) / self.batch_size / 1000.0)

            self._embed_group(group, result, policy, timeout, deadline, batch_index)

            completed  += sum(len(indices) for _, (_, indices) in group)
            elapsed     = time.monotonic() - started_at
            mean_batch  = elapsed / (batch_index + 1)

            self._report_progress(progress_callback, EmbeddingProgress(current     = completed,
                                                                        total       = len(texts),
                                                                        percentage  = completed / len(texts) * 100.0,
                                                                        batch_index = batch_index + 1,
                                                                        batch_count = len(groups),
                                                                        eta_seconds = mean_batch * (len(groups) - batch_index - 1),
                                                                       ))

        log_info("Batch embedding completed",
                 total        = len(texts),
                 succeeded    = result.succeeded,
                 failed       = len(result.failures),
                 cache_hits   = result.cache_hits,
                 cache_misses = result.cache_misses,
                 total_tokens = result.total_tokens,
                 batches      = len(groups),
                )

        return result


    def _embed_group(self, group: List, result: BatchEmbeddingResult, policy: RetryPolicy, timeout: Optional[float], deadline: Optional[float], batch_index: int):
        texts = [cleaned for _, (cleaned, _) in group]

        try:
            response = self._execute(texts, policy, timeout, deadline, context = {"batch_index" : batch_index, "batch_size" : len(texts)})

        except TerminalRemoteError as e:
            if (e.scope == "provider"):
                log_error(e, context = {"component" : "EmbeddingGenerator", "operation" : "embed_batch", "batch_index" : batch_index})
                raise

            log_warning("Embedding group rejected, falling back to individual requests", batch_index = batch_index, error = str(e))
            self._embed_individually(group, result, policy, timeout, deadline)
            return

        except RemoteServiceError as e:
            log_warning("Embedding group failed after retries, falling back to individual requests", batch_index = batch_index, error = str(e))
            self._embed_individually(group, result, policy, timeout, deadline)
            return

        estimates = [max(1, estimate_token_count(text)) for text in texts]
        estimated = sum(estimates)

        for (key, (cleaned, indices)), vector, estimate in zip(group, response.vectors, estimates):
            tokens = int(round(response.total_tokens * estimate / estimated))

            self._store(key, vector, tokens, indices, result)

        result.total_tokens += response.total_tokens


    def _embed_individually(self, group: List, result: BatchEmbeddingResult, policy: RetryPolicy, timeout: Optional[float], deadline: Optional[float]):
        for key, (cleaned, indices) in group:
            try:
                response = self._execute([cleaned], policy, timeout, deadline, context = {"index" : indices[0]})

            except TerminalRemoteError as e:
                if (e.scope == "provider"):
                    raise

                self._record_failure(e, indices, result)
                continue

            except RemoteServiceError as e:
                self._record_failure(e, indices, result)
                continue

            self._store(key, response.vectors[0], response.total_tokens, indices, result)
            result.total_tokens += response.total_tokens


    def _store(self, key: str, vector: List[float], tokens: int, indices: List[int], result: BatchEmbeddingResult):
        entry = self.cache.set(key, vector, self.model_name, tokens)

        # Duplicates inside one batch share the first occurrence's vector at no extra cost
        for position, index in enumerate(indices):
            result.embeddings[index] = EmbeddingVector(vector      = entry.vector,
                                                       tokens_used = tokens if (position == 0) else 0,
                                                       model       = self.model_name,
                                                       cached      = position > 0,
                                                      )


    def _record_failure(self, error: StatuteAnalyzerError, indices: List[int], result: BatchEmbeddingResult):
        for index in indices:
            failure = PartialFailure(f"Embedding failed for item {index}: {error.message}",
                                     index     = index,
                                     operation = self.OPERATION,
                                     cause     = error,
                                    )

            result.failures[index] = failure

            log_error(failure, context = {"component" : "EmbeddingGenerator", "operation" : "embed_batch", "index" : index})


    @staticmethod
    def _report_progress(callback: Optional[Callable[[EmbeddingProgress], None]], progress: EmbeddingProgress):
        if callback is None:
            return

        try:
            callback(progress)

        except Exception as e:
            log_error(e, context = {"component" : "EmbeddingGenerator", "operation" : "progress_callback"})


    def warm_up_cache(self, texts: List[str]) -> Dict[str, int]:
        """
        Pre-compute embeddings for frequently used texts

        Returns:
        --------
            { dict } : processed (embedded successfully), cached (already cached), errors
        """
        valid  = list()
        errors = 0

        for text in texts or []:
            try:
                self._prepare(text)
                valid.append(text)

            except ValidationError:
                errors += 1

        if not valid:
            return {"processed" : 0, "cached" : 0, "errors" : errors}

        try:
            result = self.embed_batch(valid)

        except StatuteAnalyzerError as e:
            log_error(e, context = {"component" : "EmbeddingGenerator", "operation" : "warm_up_cache"})

            return {"processed" : 0, "cached" : 0, "errors" : errors + len(valid)}

        stats = {"processed" : result.succeeded,
                 "cached"    : result.cache_hits,
                 "errors"    : errors + len(result.failures),
                }

        log_info("Embedding cache warm-up completed", **stats)

        return stats


    def process_document_embeddings(self, segments: List[Any], progress_callback: Optional[Callable[[EmbeddingProgress], None]] = None) -> List[Dict[str, Any]]:
        """
        Embed every segment of a document; segments are ClauseSegment-like objects or dicts with `text` and `clause_ref`

        Segments with no usable text or whose embedding failed are logged and left out of the output
        """
        texts   = list()
        sources = list()

        for index, segment in enumerate(segments or []):
            text = segment.get("text") if isinstance(segment, dict) else getattr(segment, "text", None)
            ref  = segment.get("clause_ref") if isinstance(segment, dict) else getattr(segment, "clause_ref", None)

            if not isinstance(text, str) or not text.strip():
                log_warning("Skipping segment without text", index = index)
                continue

            texts.append(text)
            sources.append((index, text, ref))

        if not texts:
            return list()

        result  = self.embed_batch(texts, progress_callback = progress_callback)
        output  = list()

        for position, (index, text, ref) in enumerate(sources):
            embedding = result.embeddings[position]

            if embedding is None:
                continue

            output.append({"index"       : index,
                           "text"        : text,
                           "clause_ref"  : ref,
                           "embedding"   : embedding.vector.tolist(),
                           "tokens_used" : embedding.tokens_used,
                           "cached"      : embedding.cached,
                          })

        return output


    def test_embedding_generation(self) -> bool:
        """
        Embed a fixed sentence to check the provider end to end
        """
        try:
            embedding = self.embed(HEALTH_CHECK_TEXT)

            return embedding.vector.size > 0

        except StatuteAnalyzerError as e:
            log_error(e, context = {"component" : "EmbeddingGenerator", "operation" : "test_embedding_generation"})

            return False


    def health_check(self) -> Dict[str, Any]:
        """
        Report configuration validity, provider reachability and cache statistics
        """
        config_valid, config_errors = self.provider.validate_configuration()
        errors                      = list(config_errors)

        test_passed  = False

        if config_valid:
            test_passed = self.test_embedding_generation()

            if not test_passed:
                errors.append("Embedding generation test failed")

        return {"config_valid"   : config_valid,
                "api_accessible" : test_passed,
                "test_passed"    : test_passed,
                "cache_stats"    : self.cache.get_stats(),
                "errors"         : errors,
               }


    def get_cache_stats(self) -> Dict[str, Any]:
        return self.cache.get_stats()


    def clear_cache(self) -> int:
        return self.cache.clear_all()


    def clear_expired(self) -> int:
        return self.cache.clear_expired()
