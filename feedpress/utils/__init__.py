"""
FeedPress Utilities
===================

Logging, exceptions and input validation shared by every layer.
"""
