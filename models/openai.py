"""OpenAI LLM provider.

Uses the OpenAI chat completions API in JSON mode for batch classification.
"""

import os

from openai import OpenAI

from shelfsort import ShelfSort
from utils.retry import retry_on_transient_error

from .base import LLM, LLMError, BatchRequest, BatchResponse
from .retry import is_retryable, log_retry


class OpenAILLM(LLM):
    """OpenAI implementation for batch classification.

    Uses:
    - OPENAI_MODEL (default gpt-4o) with a JSON object response format
    - Client-side timeout from ShelfSort.oracle_timeout; retries are handled
      by the retry decorator rather than the SDK
    """

    def __init__(self) -> None:
        """Initialize OpenAI client.

        Uses OPENAI_API_KEY environment variable automatically.
        """
        self.model = os.environ.get("OPENAI_MODEL", "gpt-4o")
        self.client = OpenAI(timeout=ShelfSort.oracle_timeout, max_retries=0)

    @property
    def name(self) -> str:
        return "openai"

    def classify(self, request: BatchRequest) -> BatchResponse:
        """Classify a batch with one chat completion call."""
        prompt = self._build_classification_prompt(request)

        try:
            response_text = self._complete(prompt)
        except Exception as e:
            raise LLMError(f"OpenAI API error: {e}")

        return self._parse_classification_response(response_text, request)

    @retry_on_transient_error(is_retryable=is_retryable, max_retries=3, on_retry=log_retry)
    def _complete(self, prompt: str) -> str:
        response = self.client.chat.completions.create(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
            response_format={"type": "json_object"},
        )
        return response.choices[0].message.content
