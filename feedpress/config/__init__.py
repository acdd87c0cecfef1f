"""
FeedPress Configuration
=======================
"""

from .settings import FeedPressSettings, QueueBackend, get_settings, load_settings

__all__ = ["FeedPressSettings", "QueueBackend", "get_settings", "load_settings"]
