"""LiteLLM embedding provider with API key and dimensionality validation.

All embedding calls for ingestion and query go through this module.
LiteLLM's built-in retry is used (num_retries=3); no retry policy is added here.
"""

from __future__ import annotations

import os
from enum import Enum

import litellm

from docrag.config import EmbeddingCfg
from docrag.errors import EmbeddingDimensionError

# Disable LiteLLM verbose logging unless explicitly enabled
litellm.suppress_debug_info = True

# Providers that accept a retrieval task type on embedding requests.
_TASK_TYPE_PROVIDERS = frozenset(["gemini", "vertex_ai"])

_PROVIDER_ENV: dict[str, str | None] = {
    "gemini": "GEMINI_API_KEY",
    "vertex_ai": None,  # Uses application default credentials
    "openai": "OPENAI_API_KEY",
    "azure": "AZURE_API_KEY",
    "cohere": "COHERE_API_KEY",
    "mistral": "MISTRAL_API_KEY",
    "voyage": "VOYAGE_API_KEY",
    "ollama": None,  # Local, no key required
}


class TaskType(str, Enum):
    """Embedding task types; documents and queries are embedded asymmetrically."""

    RETRIEVAL_QUERY = "RETRIEVAL_QUERY"
    RETRIEVAL_DOCUMENT = "RETRIEVAL_DOCUMENT"
    SEMANTIC_SIMILARITY = "SEMANTIC_SIMILARITY"
    CLASSIFICATION = "CLASSIFICATION"
    CLUSTERING = "CLUSTERING"


def _provider(model: str) -> str:
    return model.split("/")[0].lower() if "/" in model else "openai"


def validate_api_key(model: str) -> None:
    """Check that the required API key env var is set for *model*.

    Raises:
        EnvironmentError: If the required key is missing from environment.
    """
    provider = _provider(model)
    env_var = _PROVIDER_ENV.get(provider)
    if env_var is None:
        return
    if not os.getenv(env_var):
        raise EnvironmentError(
            f"API key not found for provider '{provider}'. "
            f"Set the {env_var} environment variable."
        )


class EmbeddingProvider:
    """Embed text into fixed-length vectors of ``config.dimensions`` floats.

    Args:
        config: Embedding model, dimensionality and batch size.
        num_retries: Passed through to LiteLLM for transient errors.
    """

    def __init__(self, config: EmbeddingCfg | None = None, num_retries: int = 3) -> None:
        self.config = config or EmbeddingCfg()
        self.num_retries = num_retries

    @property
    def dimensions(self) -> int:
        return self.config.dimensions

    def embed(self, text: str, task_type: TaskType = TaskType.RETRIEVAL_QUERY) -> list[float]:
        """Embed a single text."""
        return self._embed_many([text], task_type)[0]

    def embed_batch(
        self,
        texts: list[str],
        task_type: TaskType = TaskType.RETRIEVAL_DOCUMENT,
    ) -> list[list[float]]:
        """Embed *texts* in requests of ``config.batch_size``, preserving order.

        Errors propagate; a failed batch is never replaced by placeholder vectors.
        """
        vectors: list[list[float]] = []
        size = self.config.batch_size
        for start in range(0, len(texts), size):
            vectors.extend(self._embed_many(texts[start : start + size], task_type))
        return vectors

    def _embed_many(self, texts: list[str], task_type: TaskType) -> list[list[float]]:
        kwargs: dict = {}
        if _provider(self.config.model) in _TASK_TYPE_PROVIDERS:
            kwargs["task_type"] = TaskType(task_type).value

        response = litellm.embedding(
            model=self.config.model,
            input=texts,
            dimensions=self.config.dimensions,
            num_retries=self.num_retries,
            drop_params=True,
            **kwargs,
        )
        vectors = [item["embedding"] for item in response.data]
        for vector in vectors:
            if len(vector) != self.config.dimensions:
                raise EmbeddingDimensionError(
                    f"Model '{self.config.model}' returned {len(vector)} dimensions, "
                    f"expected {self.config.dimensions}"
                )
        return vectors
