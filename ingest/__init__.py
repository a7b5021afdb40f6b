"""
Ingest package: GraphQL project items client and the cache-aware retrieval coordinator.
"""

from .github import ProjectItemsClient
from .retrieval import IssueRetrievalCoordinator

__all__ = ["ProjectItemsClient", "IssueRetrievalCoordinator"]
