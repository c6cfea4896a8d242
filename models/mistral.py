"""Mistral AI LLM provider.

Uses the Mistral chat API in JSON mode for batch classification.
"""

import os

from mistralai import Mistral

from shelfsort import ShelfSort
from utils.retry import retry_on_transient_error

from .base import LLM, LLMError, BatchRequest, BatchResponse
from .retry import is_retryable, log_retry


class MistralLLM(LLM):
    """Mistral AI implementation for batch classification.

    Uses:
    - MISTRAL_MODEL (default mistral-small-latest) for classification
    """

    def __init__(self) -> None:
        """Initialize Mistral client.

        Raises:
            KeyError: If MISTRAL_API_KEY environment variable is not set
        """
        api_key = os.environ["MISTRAL_API_KEY"]
        self.model = os.environ.get("MISTRAL_MODEL", "mistral-small-latest")
        self.client = Mistral(api_key=api_key)

    @property
    def name(self) -> str:
        return "mistral"

    def classify(self, request: BatchRequest) -> BatchResponse:
        """Classify a batch with one chat completion call."""
        prompt = self._build_classification_prompt(request)

        try:
            response_text = self._complete(prompt)
        except Exception as e:
            raise LLMError(f"Mistral API error: {e}")

        return self._parse_classification_response(response_text, request)

    @retry_on_transient_error(is_retryable=is_retryable, max_retries=3, on_retry=log_retry)
    def _complete(self, prompt: str) -> str:
        response = self.client.chat.complete(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
            response_format={"type": "json_object"},
            timeout_ms=int(ShelfSort.oracle_timeout * 1000),
        )
        return response.choices[0].message.content
