"""Retrieval sources for the search tool.

Each source sits behind the ``SourceConnector`` protocol so the search tool can
fan out to any mix of live and in-memory sources.

Usage:
    from helpdesk_agent.sources import default_catalog_connectors

    connectors = default_catalog_connectors()
    results = await connectors["zoom_support"].query("camera not working")
"""

from .models import CatalogArticle, SourceResult
from .protocols import SourceConnector
from .client import GoogleSearchClient
from .connectors import CatalogConnector, GoogleSearchConnector, default_catalog_connectors
from .deduplication import deduplicate_evidence, evidence_id

__all__ = [
    # Models
    "SourceResult",
    "CatalogArticle",
    # Protocols
    "SourceConnector",
    # Connectors
    "CatalogConnector",
    "GoogleSearchConnector",
    "GoogleSearchClient",
    "default_catalog_connectors",
    # Deduplication
    "deduplicate_evidence",
    "evidence_id",
]
