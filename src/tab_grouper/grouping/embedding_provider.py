"""
Embedding providers that turn tab titles into vectors.

The grouping engine never calls a provider itself; callers (the HTTP service,
scripts) embed first and pass plain vectors in.
"""

import logging
from typing import Optional

import openai
from openai import OpenAI
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from tab_grouper.config import get_settings, get_logger
from tab_grouper.grouping.models import EmbeddingUnavailableError, TabDescriptor

logger = get_logger(__name__)

# Transient failures worth retrying
_RETRYABLE = (
    openai.APIConnectionError,
    openai.APITimeoutError,
    openai.RateLimitError,
    openai.InternalServerError,
)


def tab_text(tab: TabDescriptor) -> str:
    """Text embedded for a tab: its title, or its URL when untitled."""
    return tab.title.strip() or tab.url or "Untitled"


class OpenAIEmbeddingProvider:
    """
    Batch embeddings from the OpenAI embeddings API.

    Attributes:
        model: Embedding model name
        openai_client: OpenAI client, or None when no API key is configured
    """

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        """
        Initialize the provider.

        Args:
            api_key: OpenAI API key. If not provided, loaded from config.
            model: Embedding model. If not provided, loaded from config.
        """
        settings = get_settings()
        api_key = api_key or settings.openai_api_key
        self.model = model or settings.openai_embedding_model
        self.openai_client = OpenAI(api_key=api_key) if api_key else None

    @property
    def available(self) -> bool:
        return self.openai_client is not None

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type(_RETRYABLE),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    def _create(self, texts: list[str]) -> list[list[float]]:
        response = self.openai_client.embeddings.create(model=self.model, input=texts)
        # Extract embeddings in order
        return [data.embedding for data in response.data]

    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        """
        Generate embeddings for multiple texts in a single API call.

        Args:
            texts: Texts to embed

        Returns:
            One embedding per text, in input order

        Raises:
            EmbeddingUnavailableError: If no API key is configured, or the API
                keeps failing after retries
        """
        if not texts:
            return []

        if not self.available:
            raise EmbeddingUnavailableError("No OpenAI API key configured")

        try:
            embeddings = self._create(texts)
        except openai.OpenAIError as e:
            logger.warning(f"Embedding request for {len(texts)} texts failed: {e}")
            raise EmbeddingUnavailableError(f"Failed to generate batch embeddings: {e}") from e

        if len(embeddings) != len(texts):
            raise EmbeddingUnavailableError(
                f"Expected {len(texts)} embeddings, got {len(embeddings)}"
            )
        return embeddings

    def embed_tabs(self, tabs: list[TabDescriptor]) -> list[list[float]]:
        """Embed tab titles, one vector per tab."""
        return self.embed_texts([tab_text(tab) for tab in tabs])
