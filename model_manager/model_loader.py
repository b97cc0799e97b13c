# DEPENDENCIES
import sys
import torch
import threading
from pathlib import Path
from typing import Optional
from sentence_transformers import SentenceTransformer

# Add parent directory to path for imports
sys.path.append(str(Path(__file__).parent.parent))

from utils.logger import log_info
from utils.logger import log_error
from config.settings import settings
from config.model_config import ModelConfig


class ModelLoader:
    """
    Loads the local sentence-transformers embedding model once per process, with local disk caching and GPU support
    """
    _model : Optional[SentenceTransformer] = None
    _lock  = threading.Lock()


    def __init__(self):
        self.config = ModelConfig()
        self.device = "cuda" if (settings.USE_GPU and torch.cuda.is_available()) else "cpu"

        log_info("ModelLoader initialized", device = self.device, gpu_available = torch.cuda.is_available())


    def load_embedding_model(self) -> SentenceTransformer:
        """
        Load sentence transformer for embeddings (downloaded on first use, then served from the local copy)
        """
        with ModelLoader._lock:
            if ModelLoader._model is not None:
                return ModelLoader._model

            config     = self.config.EMBEDDING_MODEL
            local_path = Path(config["local_path"])

            try:
                if (local_path / "config.json").exists():
                    log_info("Loading embedding model from local cache", path = str(local_path))

                    model = SentenceTransformer(model_name_or_path = str(local_path), device = self.device)

                else:
                    log_info("Downloading embedding model from HuggingFace", model_name = config["model_name"])

                    model = SentenceTransformer(model_name_or_path = config["model_name"], device = self.device)

                    ModelConfig.ensure_directories()
                    model.save(str(local_path))

                    log_info("Embedding model saved to local cache", path = str(local_path))

            except Exception as e:
                log_error(e, context = {"component" : "ModelLoader", "operation" : "load_embedding_model", "model_name" : config["model_name"]})
                raise

            log_info("Embedding model loaded successfully",
                     device    = self.device,
                     dimension = model.get_sentence_embedding_dimension(),
                    )

            ModelLoader._model = model

            return model


    @classmethod
    def clear_cache(cls):
        """
        Drop the loaded model from memory
        """
        with cls._lock:
            cls._model = None

        log_info("Embedding model released from memory")
