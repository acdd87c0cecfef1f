"""
Content Rewriter
================

Optional AI style rewrite of an article body. A failed rewrite never blocks
publication: the original body is returned instead.
"""

from typing import Optional

from ..ai.ai_manager import AIManager
from ..database.models import RewriteStyle
from ..utils.exceptions import AIError, RewriteError
from ..utils.logging import get_logger_for_component

STYLE_INSTRUCTIONS = {
    RewriteStyle.PROFESSIONAL: (
        "Rewrite this content in a professional, journalistic style suitable for a news website. "
        "Maintain factual accuracy while improving readability and engagement."
    ),
    RewriteStyle.CASUAL: (
        "Rewrite this content in a casual, conversational style that feels friendly and "
        "approachable while maintaining the key information."
    ),
    RewriteStyle.FORMAL: (
        "Rewrite this content in a formal, academic style with precise language and "
        "structured presentation."
    ),
    RewriteStyle.CREATIVE: (
        "Rewrite this content in a creative, engaging style that captures attention and "
        "tells a compelling story."
    ),
}


def build_rewrite_prompt(content: str, style: RewriteStyle) -> str:
    return (
        f"You are a professional content writer. Please rewrite the following content in a {style.value} style.\n\n"
        "Requirements:\n"
        "- Maintain all factual information and key details\n"
        "- Improve readability and flow\n"
        f"- {STYLE_INSTRUCTIONS[style]}\n"
        "- Keep the same language as the original\n"
        "- Make it engaging for readers\n"
        "- Ensure it's suitable for a news website\n"
        "- Length should be similar to original (within 10% difference)\n\n"
        f"Original content:\n{content}\n\n"
        "Please provide only the rewritten content without any additional commentary or formatting."
    )


class ContentRewriter:
    """Rewrites bodies in one of the supported styles."""

    def __init__(self, ai_manager: Optional[AIManager] = None):
        self.ai_manager = ai_manager
        self.logger = get_logger_for_component("content_rewriter")

    @property
    def available(self) -> bool:
        return self.ai_manager is not None and self.ai_manager.has_providers()

    async def request_rewrite(self, content: str, style: RewriteStyle) -> str:
        """Ask the AI providers for a rewrite.

        Raises:
            RewriteError: when no provider is configured or the answer is unusable
        """
        if not self.available:
            raise RewriteError("No AI credential configured")

        try:
            result = await self.ai_manager.complete(build_rewrite_prompt(content, style))
        except AIError as e:
            raise RewriteError(f"AI rewrite failed: {e}")

        text = (result.text or "").strip()
        if not text:
            raise RewriteError("AI rewrite returned empty text", provider=result.provider)
        return text

    async def rewrite(self, content: str, style: RewriteStyle = RewriteStyle.PROFESSIONAL) -> str:
        """Return the rewritten body, or ``content`` unchanged on any failure."""
        try:
            style = RewriteStyle(style)
            return await self.request_rewrite(content, style)
        except Exception as e:
            self.logger.warning(f"Keeping original content, rewrite unavailable: {e}")
            return content
