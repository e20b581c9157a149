"""
Single-attempt calls to the completion endpoint.
"""
import logging
from dataclasses import dataclass
from typing import Dict, List

from mogumogu_api.core import config
from mogumogu_api.core.errors import UpstreamError, EmptyCompletion
from mogumogu_api.llm.provider import LLMProvider, LLMProviderError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompletionSettings:
    """Fixed sampling parameters for one feature."""
    model: str
    temperature: float
    max_tokens: int


CONSULTATION_COMPLETION = CompletionSettings(config.OPENAI_MODEL_CONSULTATION, 0.7, 1000)
RECIPE_GENERATION_COMPLETION = CompletionSettings(config.OPENAI_MODEL_RECIPE_GENERATION, 0.8, 3000)
RECIPE_SEARCH_COMPLETION = CompletionSettings(config.OPENAI_MODEL_RECIPE_SEARCH, 0.85, 3000)
BLOG_COMPLETION = CompletionSettings(config.OPENAI_MODEL_BLOG, 0.7, 4000)


def invoke_completion(
    llm: LLMProvider,
    messages: List[Dict[str, str]],
    settings: CompletionSettings,
) -> str:
    """
    Call the completion endpoint once and return the raw text.

    Raises:
        UpstreamError: Non-success status or transport failure (no retry)
        EmptyCompletion: Success with an empty or missing text field
    """
    try:
        response = llm.chat(
            messages=messages,
            model=settings.model,
            temperature=settings.temperature,
            max_tokens=settings.max_tokens,
        )
    except LLMProviderError as e:
        raise UpstreamError(upstream_status=e.status_code, upstream_body=e.body or str(e)) from e

    content = response.content if response else None
    if not content or not content.strip():
        logger.error(f"Completion returned empty content: model={settings.model}")
        raise EmptyCompletion()

    logger.debug(
        f"Completion ok: model={settings.model}, tokens_in={response.tokens_in}, "
        f"tokens_out={response.tokens_out}"
    )
    return content
