"""
Google Gemini AI provider.
"""

import time
from typing import Optional

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions
from google.generativeai.types import HarmCategory, HarmBlockThreshold

from .base import AIProvider, CompletionResult
from ...config.settings import AIProvider as AIProviderType
from ...utils.exceptions import AIError, ErrorCode
from ...utils.logging import get_logger_for_component


class GeminiProvider(AIProvider):
    """Google Gemini provider using the async generate API."""

    DEFAULT_REQUESTS_PER_MINUTE = 15

    def __init__(self, api_key: str, model_name: str = "gemini-1.5-flash", **kwargs):
        if not api_key:
            raise AIError(
                "Gemini API key is required",
                provider="gemini",
                error_code=ErrorCode.AI_INVALID_CREDENTIALS,
            )

        super().__init__(api_key, model_name, AIProviderType.GEMINI, **kwargs)

        genai.configure(api_key=api_key)
        self.model = genai.GenerativeModel(
            model_name=model_name,
            safety_settings={
                HarmCategory.HARM_CATEGORY_HATE_SPEECH: HarmBlockThreshold.BLOCK_NONE,
                HarmCategory.HARM_CATEGORY_HARASSMENT: HarmBlockThreshold.BLOCK_NONE,
                HarmCategory.HARM_CATEGORY_SEXUALLY_EXPLICIT: HarmBlockThreshold.BLOCK_NONE,
                HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT: HarmBlockThreshold.BLOCK_NONE,
            },
        )
        self.logger = get_logger_for_component("gemini_provider")
        self.logger.info(f"Gemini provider initialized with model: {model_name}")

    async def complete(self, prompt: str, max_tokens: Optional[int] = None) -> CompletionResult:
        if not self.can_make_request():
            raise AIError("Gemini rate limit reached", provider="gemini",
                          error_code=ErrorCode.AI_RATE_LIMIT)

        start_time = time.time()
        self.rate_limit.record_request()
        try:
            response = await self.model.generate_content_async(
                prompt,
                generation_config=genai.types.GenerationConfig(
                    temperature=self.temperature,
                    max_output_tokens=max_tokens or self.max_tokens,
                ),
                request_options={"timeout": self.timeout},
            )
            # .text raises ValueError when the candidate was blocked or empty
            text = response.text.strip()

        except ValueError as e:
            raise AIError(f"Gemini response blocked or empty: {e}", provider="gemini",
                          error_code=ErrorCode.AI_INVALID_RESPONSE)
        except google_exceptions.ResourceExhausted as e:
            self.rate_limit.mark_exhausted()
            raise AIError(f"Gemini rate limit exceeded: {e}", provider="gemini",
                          error_code=ErrorCode.AI_RATE_LIMIT)
        except (google_exceptions.Unauthenticated, google_exceptions.PermissionDenied) as e:
            raise AIError(f"Invalid Gemini API key: {e}", provider="gemini",
                          error_code=ErrorCode.AI_INVALID_CREDENTIALS, recoverable=False)
        except google_exceptions.GoogleAPIError as e:
            raise AIError(f"Gemini API error: {e}", provider="gemini",
                          error_code=ErrorCode.AI_API_ERROR)

        if not text:
            raise AIError("Gemini returned an empty response", provider="gemini",
                          error_code=ErrorCode.AI_INVALID_RESPONSE)

        return CompletionResult(
            text=text,
            provider="gemini",
            model_used=self.model_name,
            processing_time_ms=self._elapsed_ms(start_time),
        )
