# DEPENDENCIES
from pathlib import Path


class ModelConfig:
    """
    Model and algorithm configuration : embedding models, alignment and conflict-detection thresholds
    """
    # Directory Settings
    MODEL_DIR          = Path("models")

    # Local embedding model (used when EMBEDDING_PROVIDER = "sentence-transformers")
    EMBEDDING_MODEL    = {"model_name" : "sentence-transformers/paraphrase-multilingual-MiniLM-L12-v2",
                          "local_path" : MODEL_DIR / "embeddings",
                          "normalize"  : True,
                          "batch_size" : 32,
                         }

    # Remote embedding model
    OPENAI_EMBEDDING   = {"max_batch_size"      : 100,
                          "price_per_1k_tokens" : 0.00002,
                          "chars_per_token"     : 4,
                         }

    # Clause alignment / diff settings
    DIFF_ENGINE        = {"semantic_threshold"         : 0.70,
                          "semantic_weight"            : 0.7,
                          "text_weight"                : 0.3,
                          "edit_distance_weight"       : 0.3,
                          "jaccard_weight"             : 0.7,
                          "min_word_length"            : 3,
                          "similar_threshold"          : 0.85,
                          "moved_threshold"            : 0.95,
                          "moved_position_delta"       : 2,
                          "same_type_bonus"            : 0.1,
                          "position_bonus"             : 0.1,
                          "same_reference_bonus"       : 0.2,
                          "major_change_below"         : 0.7,
                          "moderate_change_below"      : 0.9,
                          "llm_min_significance"       : 4,
                          "batch_size"                 : 10,
                          "timeout_ms"                 : 300000,
                         }

    # Conflict detection settings
    CONFLICT_DETECTION = {"similarity_threshold"        : 0.80,
                          "max_conflicts_per_clause"    : 5,
                          "document_types"              : ["statute", "regulation"],
                          "batch_size"                  : 10,
                          "timeout_ms"                  : 300000,
                          "overlap_similarity"          : 0.9,
                          "inconsistency_similarity"    : 0.7,
                          "excerpt_length"              : 300,
                         }

    # LLM Generation Settings
    LLM_GENERATION     = {"max_tokens"  : 1000,
                          "temperature" : 0.1,
                          "model"       : {"openai"    : "gpt-4o-mini",
                                           "anthropic" : "claude-3-5-haiku-latest",
                                           "ollama"    : "llama3:8b",
                                          },
                         }


    @classmethod
    def ensure_directories(cls):
        """
        Ensure model directories exist
        """
        for directory in [cls.MODEL_DIR, cls.EMBEDDING_MODEL["local_path"]]:
            directory.mkdir(parents = True, exist_ok = True)

