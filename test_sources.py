"""
Source Connector Tests

Tests for the Google Custom Search connector (against a mocked transport),
the article catalog and evidence identity.
"""

import asyncio

import httpx
import pytest

from helpdesk_agent.errors import SourceFetchError
from helpdesk_agent.orchestration.models import Evidence
from helpdesk_agent.sources import (
    CatalogConnector,
    GoogleSearchConnector,
    SourceResult,
    deduplicate_evidence,
    default_catalog_connectors,
    evidence_id,
)
from helpdesk_agent.sources.models import CatalogArticle

GOOGLE_RESPONSE = {
    "items": [
        {
            "title": "Audio not working - Zoom Community",
            "link": "https://community.zoom.com/t5/Meetings/audio/td-p/1",
            "snippet": "Try re-selecting your speaker.",
            "displayLink": "community.zoom.com",
        },
        {
            "title": "Testing computer audio",
            "link": "https://support.zoom.com/hc/en/article?id=zm_kb&sysparm_article=KB0060",
            "snippet": "Join a test meeting.",
            "displayLink": "support.zoom.com",
        },
    ]
}


def make_google(handler) -> GoogleSearchConnector:
    return GoogleSearchConnector(
        api_key="test-key",
        cx="test-cx",
        transport=httpx.MockTransport(handler),
    )


def test_google_connector_maps_items():
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json=GOOGLE_RESPONSE)

    results = asyncio.run(make_google(handler).query("audio not working"))

    assert [r.origin_label for r in results] == ["Zoom Community", "Zoom Support"]
    assert all(r.relevance_score == GoogleSearchConnector.PLACEHOLDER_RELEVANCE for r in results)
    assert results[0].url == "https://community.zoom.com/t5/Meetings/audio/td-p/1"

    params = requests[0].url.params
    assert params["key"] == "test-key"
    assert params["cx"] == "test-cx"
    assert params["num"] == "5"
    assert params["q"] == "audio not working site:community.zoom.com OR site:support.zoom.com"


def test_google_connector_no_items():
    results = asyncio.run(make_google(lambda request: httpx.Response(200, json={})).query("x"))

    assert results == []


def test_google_connector_http_error_becomes_source_failure():
    connector = make_google(lambda request: httpx.Response(403, json={"error": "forbidden"}))

    with pytest.raises(SourceFetchError) as exc_info:
        asyncio.run(connector.query("audio"))

    assert exc_info.value.source_id == "google"
    assert exc_info.value.message.startswith("google: Google search error")


def test_google_connector_requires_credentials():
    with pytest.raises(ValueError):
        GoogleSearchConnector(api_key="", cx="cx")


def test_catalog_connector_scores_keyword_matches():
    connector = CatalogConnector(
        "zoom_support",
        "Zoom Support",
        [
            CatalogArticle(title="Camera", url="https://s/camera", snippet="", keywords=["camera"],
                           matched_relevance=0.94, base_relevance=0.6),
        ],
    )

    matched = asyncio.run(connector.query("My Camera is black"))
    unmatched = asyncio.run(connector.query("screen share"))

    assert matched[0].relevance_score == 0.94
    assert unmatched[0].relevance_score == 0.6
    assert matched[0].origin_label == "Zoom Support"


def test_default_catalog_sources():
    connectors = default_catalog_connectors()

    assert list(connectors) == ["zoom_community", "zoom_support", "google"]
    assert {c.source_id for c in connectors.values()} == set(connectors)


def test_source_result_accepts_wire_aliases():
    result = SourceResult.model_validate(
        {"title": "t", "url": "https://u", "source": "Zoom Support", "relevance": 0.7}
    )

    assert result.origin_label == "Zoom Support"
    assert result.relevance_score == 0.7


def test_evidence_id_ignores_trailing_slash():
    assert evidence_id("https://support.zoom.com/a/") == evidence_id("https://support.zoom.com/a")
    assert evidence_id("https://support.zoom.com/a") != evidence_id("https://support.zoom.com/b")
    assert len(evidence_id("https://support.zoom.com/a")) == 16


def test_deduplicate_keeps_first_and_order():
    def ev(url, title):
        return Evidence(evidence_id(url), title, url, "Zoom Support", "", 0.5)

    items = [ev("https://a", "a1"), ev("https://b", "b1"), ev("https://a", "a2"), ev("https://c", "c1")]

    assert [e.title for e in deduplicate_evidence(items)] == ["a1", "b1", "c1"]
