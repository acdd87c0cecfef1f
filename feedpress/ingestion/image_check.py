"""
Image reachability check used by the image-required publish gate.
"""

import asyncio
import ssl

import aiohttp
import certifi

from ..utils.logging import get_logger_for_component


class ImageChecker:
    """HEAD-requests an image URL and reports whether it answered 2xx/3xx."""

    def __init__(self, timeout: float = 5.0, user_agent: str = "Mozilla/5.0 (compatible; RSSBot/1.0)"):
        self.timeout = timeout
        self.user_agent = user_agent
        self.ssl_context = ssl.create_default_context(cafile=certifi.where())
        self.logger = get_logger_for_component("image_checker")

    @classmethod
    def from_settings(cls, settings) -> "ImageChecker":
        return cls(timeout=settings.fetch.image_check_timeout, user_agent=settings.fetch.user_agent)

    async def is_reachable(self, image_url: str) -> bool:
        if not image_url:
            return False

        connector = aiohttp.TCPConnector(ssl=self.ssl_context)
        timeout = aiohttp.ClientTimeout(total=self.timeout)
        try:
            async with aiohttp.ClientSession(connector=connector, timeout=timeout,
                                             headers={"User-Agent": self.user_agent}) as session:
                async with session.head(image_url, allow_redirects=True) as response:
                    reachable = 200 <= response.status < 400
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            self.logger.debug(f"Image check failed for {image_url}: {e}")
            return False

        if not reachable:
            self.logger.debug(f"Image check for {image_url} returned {response.status}")
        return reachable

    async def __call__(self, image_url: str) -> bool:
        return await self.is_reachable(image_url)
