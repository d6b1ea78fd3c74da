"""Pydantic models for retrieval source responses."""

from pydantic import BaseModel, Field


class SourceResult(BaseModel):
    """A single hit returned by a source connector."""

    title: str
    url: str
    snippet: str = ""
    origin_label: str = Field("", alias="source")
    relevance_score: float = Field(0.0, alias="relevance")

    model_config = {"populate_by_name": True}


class GoogleSearchItem(BaseModel):
    """Item from the Custom Search JSON API."""

    title: str = ""
    link: str
    snippet: str = ""
    display_link: str = Field("", alias="displayLink")

    model_config = {"populate_by_name": True}


class GoogleSearchResponse(BaseModel):
    """Response from the Custom Search JSON API."""

    items: list[GoogleSearchItem] = Field(default_factory=list)


class CatalogArticle(BaseModel):
    """An article held by an in-memory catalog source."""

    title: str
    url: str
    snippet: str
    keywords: list[str] = Field(default_factory=list)
    matched_relevance: float = 0.9
    base_relevance: float = 0.5
