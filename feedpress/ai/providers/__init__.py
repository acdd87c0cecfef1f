"""
AI Providers
============

Text completion providers behind a common interface.
"""

from .base import AIProvider, CompletionResult, RateLimitInfo

__all__ = ["AIProvider", "CompletionResult", "RateLimitInfo"]
