"""
OpenRouter AI provider.

OpenRouter exposes an OpenAI-compatible API, so the OpenAI async client is
pointed at the OpenRouter base URL.
"""

import time
from typing import Optional

import openai

from .base import AIProvider, CompletionResult
from ...config.settings import AIProvider as AIProviderType
from ...utils.exceptions import AIError, ErrorCode
from ...utils.logging import get_logger_for_component


class OpenRouterProvider(AIProvider):
    """OpenRouter chat-completions provider."""

    BASE_URL = "https://openrouter.ai/api/v1"
    DEFAULT_REQUESTS_PER_MINUTE = 20

    def __init__(self, api_key: str, model_name: str = "meta-llama/llama-3.2-3b-instruct:free", **kwargs):
        if not api_key:
            raise AIError(
                "OpenRouter API key is required",
                provider="openrouter",
                error_code=ErrorCode.AI_INVALID_CREDENTIALS,
            )

        super().__init__(api_key, model_name, AIProviderType.OPENROUTER, **kwargs)
        self.client = openai.AsyncOpenAI(api_key=api_key, base_url=self.BASE_URL, timeout=self.timeout)
        self.logger = get_logger_for_component("openrouter_provider")
        self.logger.info(f"OpenRouter provider initialized with model: {model_name}")

    async def complete(self, prompt: str, max_tokens: Optional[int] = None) -> CompletionResult:
        if not self.can_make_request():
            raise AIError("OpenRouter rate limit reached", provider="openrouter",
                          error_code=ErrorCode.AI_RATE_LIMIT)

        start_time = time.time()
        self.rate_limit.record_request()
        try:
            response = await self.client.chat.completions.create(
                model=self.model_name,
                messages=[{"role": "user", "content": prompt}],
                temperature=self.temperature,
                max_tokens=max_tokens or self.max_tokens,
            )

        except openai.RateLimitError as e:
            self.rate_limit.mark_exhausted()
            raise AIError(f"OpenRouter rate limit: {e}", provider="openrouter",
                          error_code=ErrorCode.AI_RATE_LIMIT)
        except openai.AuthenticationError as e:
            raise AIError(f"Invalid OpenRouter API key: {e}", provider="openrouter",
                          error_code=ErrorCode.AI_INVALID_CREDENTIALS, recoverable=False)
        except openai.APIConnectionError as e:
            raise AIError(f"Connection to OpenRouter failed: {e}", provider="openrouter",
                          error_code=ErrorCode.AI_CONNECTION_ERROR)
        except openai.APIError as e:
            raise AIError(f"OpenRouter API error: {e}", provider="openrouter",
                          error_code=ErrorCode.AI_API_ERROR)

        text = (response.choices[0].message.content or "").strip() if response.choices else ""
        if not text:
            raise AIError("OpenRouter returned an empty response", provider="openrouter",
                          error_code=ErrorCode.AI_INVALID_RESPONSE)

        usage = getattr(response, "usage", None)
        return CompletionResult(
            text=text,
            provider="openrouter",
            model_used=self.model_name,
            tokens_used=getattr(usage, "total_tokens", None),
            processing_time_ms=self._elapsed_ms(start_time),
        )
