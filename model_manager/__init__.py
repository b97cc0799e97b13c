# DEPENDENCIES
from .llm_manager import LLMManager
from .llm_manager import LLMProvider
from .llm_manager import LLMResponse
from .model_loader import ModelLoader
from .retry_policy import RetryPolicy
from .embedding_cache import EmbeddingCache
from .embedding_generator import EmbeddingVector
from .embedding_generator import cosine_similarity
from .embedding_generator import EmbeddingGenerator
from .embedding_provider import EmbeddingProvider
from .embedding_provider import OpenAIEmbeddingProvider
from .embedding_provider import create_embedding_provider


__all__ = ['LLMManager',
           'LLMProvider',
           'LLMResponse',
           'ModelLoader',
           'RetryPolicy',
           'EmbeddingCache',
           'EmbeddingVector',
           'cosine_similarity',
           'EmbeddingProvider',
           'EmbeddingGenerator',
           'OpenAIEmbeddingProvider',
           'create_embedding_provider',
          ]
