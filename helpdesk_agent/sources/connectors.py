"""Source connector implementations."""

from __future__ import annotations

import logging

import httpx
from pydantic import ValidationError

from ..errors import SourceFetchError
from ..settings import GOOGLE_SEARCH_BASE_URL, GOOGLE_SITE_FILTER
from .client import GoogleSearchClient
from .models import CatalogArticle, GoogleSearchResponse, SourceResult
from .protocols import SourceConnector

logger = logging.getLogger(__name__)


class GoogleSearchConnector(SourceConnector):
    """
    Connector for Google Custom Search restricted to the support sites.

    Google does not return a relevance score, so every hit gets the same
    placeholder score and ordering falls back to fan-out order.

    Usage:
        connector = GoogleSearchConnector(api_key="...", cx="...")
        results = await connector.query("audio not working")
    """

    PLACEHOLDER_RELEVANCE = 0.9

    def __init__(
        self,
        api_key: str,
        cx: str,
        source_id: str = "google",
        base_url: str = GOOGLE_SEARCH_BASE_URL,
        site_filter: str = GOOGLE_SITE_FILTER,
        num_results: int = 5,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        if not api_key or not cx:
            raise ValueError("Google search requires GOOGLE_API_KEY and GOOGLE_SEARCH_CX")

        self.source_id = source_id
        self.label = "Google Search"
        self._api_key = api_key
        self._cx = cx
        self._base_url = base_url
        self._site_filter = site_filter
        self._num_results = num_results
        self._timeout = timeout
        self._transport = transport

    def _origin_label(self, display_link: str) -> str:
        return "Zoom Community" if "community" in display_link else "Zoom Support"

    async def query(self, text: str) -> list[SourceResult]:
        q = f"{text} {self._site_filter}" if self._site_filter else text

        try:
            async with GoogleSearchClient(
                api_key=self._api_key,
                cx=self._cx,
                base_url=self._base_url,
                timeout=self._timeout,
                transport=self._transport,
            ) as client:
                data = await client.search(q, num=self._num_results)
            response = GoogleSearchResponse.model_validate(data)
        except (httpx.HTTPError, ValidationError) as e:
            raise SourceFetchError(self.source_id, f"Google search error: {e}") from e

        return [
            SourceResult(
                title=item.title,
                url=item.link,
                snippet=item.snippet,
                origin_label=self._origin_label(item.display_link),
                relevance_score=self.PLACEHOLDER_RELEVANCE,
            )
            for item in response.items
        ]


class CatalogConnector(SourceConnector):
    """
    In-memory source backed by a fixed list of articles.

    An article scores ``matched_relevance`` when the query mentions any of its
    keywords and ``base_relevance`` otherwise. Used for sources without a
    public search API and for offline runs.
    """

    def __init__(
        self,
        source_id: str,
        label: str,
        articles: list[CatalogArticle],
    ):
        self.source_id = source_id
        self.label = label
        self._articles = list(articles)

    async def query(self, text: str) -> list[SourceResult]:
        lowered = text.lower()
        logger.debug(f"Searching catalog {self.source_id} for '{text}'")

        results = []
        for article in self._articles:
            matched = any(keyword in lowered for keyword in article.keywords)
            results.append(
                SourceResult(
                    title=article.title,
                    url=article.url,
                    snippet=article.snippet,
                    origin_label=self.label,
                    relevance_score=(
                        article.matched_relevance if matched else article.base_relevance
                    ),
                )
            )
        return results


ZOOM_COMMUNITY_ARTICLES = [
    CatalogArticle(
        title="Troubleshooting Zoom Connection Issues",
        url="https://community.zoom.com/t5/Zoom-Rooms/Connection-Issues-Troubleshooting/td-p/37482",
        snippet=(
            "Common connection issues include firewall blocking, network instability, "
            "and server overload. To resolve these issues, try the following steps..."
        ),
        keywords=["connection"],
        matched_relevance=0.95,
        base_relevance=0.7,
    ),
    CatalogArticle(
        title="How to resolve audio problems in Zoom meetings",
        url="https://community.zoom.com/t5/Meetings/Audio-Issues-Solutions/td-p/28943",
        snippet=(
            "If you're experiencing audio issues in Zoom meetings, check your "
            "speaker/microphone settings, ensure proper device permissions..."
        ),
        keywords=["audio"],
        matched_relevance=0.92,
        base_relevance=0.6,
    ),
]

ZOOM_SUPPORT_ARTICLES = [
    CatalogArticle(
        title="Getting Started with Zoom: A Comprehensive Guide",
        url="https://support.zoom.com/hc/en-us/articles/360034967471-Getting-started-guide-for-new-users",
        snippet=(
            "This guide walks through setting up your Zoom account, scheduling your "
            "first meeting, and customizing your settings for optimal performance."
        ),
        keywords=["start", "guide"],
        matched_relevance=0.9,
        base_relevance=0.65,
    ),
    CatalogArticle(
        title="Resolving Common Video and Camera Issues",
        url="https://support.zoom.com/hc/en-us/articles/202952568-My-Video-Camera-Isn-t-Working",
        snippet=(
            "Learn how to troubleshoot video and camera problems in Zoom meetings, "
            "including checking device permissions, testing your video, and updating drivers."
        ),
        keywords=["video", "camera"],
        matched_relevance=0.94,
        base_relevance=0.6,
    ),
]

GOOGLE_FALLBACK_ARTICLES = [
    CatalogArticle(
        title="Top 10 Zoom Tips for Remote Work Success",
        url="https://example.com/zoom-tips",
        snippet=(
            "Discover the best practices for using Zoom effectively in remote work "
            "environments, including keyboard shortcuts, security settings, and engagement tools."
        ),
        keywords=["tips"],
        matched_relevance=0.85,
        base_relevance=0.5,
    ),
]


def default_catalog_connectors() -> dict[str, CatalogConnector]:
    """Catalog connectors for every default source."""
    return {
        "zoom_community": CatalogConnector("zoom_community", "Zoom Community", ZOOM_COMMUNITY_ARTICLES),
        "zoom_support": CatalogConnector("zoom_support", "Zoom Support", ZOOM_SUPPORT_ARTICLES),
        "google": CatalogConnector("google", "Google Search", GOOGLE_FALLBACK_ARTICLES),
    }
