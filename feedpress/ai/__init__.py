"""
FeedPress AI
============

Provider-agnostic text completion used for classification and rewriting.
"""

from .ai_manager import AIManager, ProviderHealth

__all__ = ["AIManager", "ProviderHealth"]
