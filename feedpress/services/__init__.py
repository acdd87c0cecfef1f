"""
FeedPress Services
==================

Operator-facing operations shared by the CLI and admin surfaces.
"""

from .admin_service import AdminService, FeedTestSummary

__all__ = ["AdminService", "FeedTestSummary"]
