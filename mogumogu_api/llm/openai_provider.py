"""
OpenAI provider implementation.
"""
import logging
from typing import Optional, Dict
from openai import OpenAI, APIError, APIStatusError

from mogumogu_api.core.config import OPENAI_API_KEY
from mogumogu_api.llm.provider import LLMProvider, LLMResponse, LLMProviderError

logger = logging.getLogger(__name__)


class OpenAIProvider(LLMProvider):
    """OpenAI provider using the official SDK, one attempt per call."""

    def __init__(self, api_key: Optional[str] = None):
        self.api_key = api_key or OPENAI_API_KEY
        if not self.api_key:
            raise ValueError("OPENAI_API_KEY not configured")
        self.client = OpenAI(api_key=self.api_key, max_retries=0)
        logger.info("OpenAI provider initialized")

    def chat(
        self,
        messages: list[Dict[str, str]],
        model: str = "gpt-4o-mini",
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
    ) -> LLMResponse:
        """Generate a chat completion."""
        try:
            response = self.client.chat.completions.create(
                model=model,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens or 2000,
            )
        except APIStatusError as e:
            raise LLMProviderError(
                f"OpenAI returned {e.status_code}",
                status_code=e.status_code,
                body=e.response.text if e.response is not None else None,
            ) from e
        except APIError as e:
            raise LLMProviderError(f"OpenAI API error: {e}") from e

        choice = response.choices[0] if response.choices else None
        content = (choice.message.content if choice and choice.message else None) or ""
        usage = response.usage

        return LLMResponse(
            content=content,
            tokens_in=usage.prompt_tokens if usage else 0,
            tokens_out=usage.completion_tokens if usage else 0,
            model=model,
            metadata={
                "finish_reason": choice.finish_reason if choice else None,
            },
        )


class UnconfiguredProvider(LLMProvider):
    """Stand-in used when no API key is set; every call fails as upstream unavailable."""

    def chat(self, messages, model, temperature=0.7, max_tokens=None) -> LLMResponse:
        raise LLMProviderError("OPENAI_API_KEY not configured")


def build_default_provider() -> LLMProvider:
    """Construct the process-wide provider once at startup."""
    if not OPENAI_API_KEY:
        logger.warning("OPENAI_API_KEY not configured - AI features will return 502")
        return UnconfiguredProvider()
    return OpenAIProvider()
