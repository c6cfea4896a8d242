"""Classification oracle abstraction for shelfsort.

Provides a uniform interface for batch classification across providers:
- OpenAILLM: OpenAI (default)
- MistralLLM: Mistral AI

Usage:
    from models import create_llm

    llm = create_llm("openai")
    response = llm.classify(request)
"""

from .base import (
    LLM, LLMError, OracleResponseError,
    ItemMetadata, CabinetInfo, ShelfInfo, BatchRequest,
    ExistingAssignment, NewAssignment, Assignment, parse_assignment,
    ItemAnalysis, BatchResponse, validate_response,
)
from .mistral import MistralLLM
from .openai import OpenAILLM


def create_llm(provider: str = "openai") -> LLM:
    """Create an LLM instance for the specified provider.

    Args:
        provider: LLM provider name ("openai" or "mistral")

    Returns:
        LLM instance for the specified provider

    Raises:
        ValueError: If provider is not recognized
    """
    provider = provider.lower()

    if provider == "mistral":
        return MistralLLM()
    elif provider == "openai":
        return OpenAILLM()
    else:
        raise ValueError(
            f"Unknown LLM provider: {provider}. "
            "Must be 'openai' or 'mistral'"
        )


__all__ = [
    'LLM',
    'LLMError',
    'OracleResponseError',
    'ItemMetadata',
    'CabinetInfo',
    'ShelfInfo',
    'BatchRequest',
    'ExistingAssignment',
    'NewAssignment',
    'Assignment',
    'parse_assignment',
    'ItemAnalysis',
    'BatchResponse',
    'validate_response',
    'MistralLLM',
    'OpenAILLM',
    'create_llm',
]
