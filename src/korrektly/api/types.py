"""Request and response models for the Korrektly REST API.

Field limits mirror the server-side validation rules so that obviously
invalid payloads fail before a network round-trip.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

SearchType = Literal["hybrid", "semantic", "fulltext"]
MetadataValue = str | int | float | bool | list[str]
ScalarValue = str | int | float | bool
RangeBound = float | str


class _ResponseModel(BaseModel):
    model_config = ConfigDict(extra="allow")


# ---------------------------------------------------------------------------
# Autocomplete
# ---------------------------------------------------------------------------


class AutocompleteFilters(BaseModel):
    tags: list[str] | None = None


class AutocompleteRequest(BaseModel):
    query: str = Field(min_length=2, max_length=100)
    limit: int | None = Field(default=None, ge=1, le=20)
    extend_results: bool | None = None
    content_only: bool | None = None
    score_threshold: float | None = Field(default=None, ge=0.0, le=1.0)
    filters: AutocompleteFilters | None = None


class AutocompleteSuggestion(_ResponseModel):
    id: str
    content: str
    similarity_score: float
    tag_set: list[str] = Field(default_factory=list)


class AutocompleteData(_ResponseModel):
    query: str
    total_suggestions: int
    suggestions: list[AutocompleteSuggestion]


class AutocompleteResponse(_ResponseModel):
    success: bool = True
    data: AutocompleteData


class AutocompleteContentOnlyResponse(_ResponseModel):
    suggestions: list[str]


# ---------------------------------------------------------------------------
# Chunks
# ---------------------------------------------------------------------------


class ChunkInput(BaseModel):
    chunk_html: str = Field(max_length=65535)
    tracking_id: str | None = Field(default=None, max_length=255)
    tag_set: list[str] | None = None
    metadata: dict[str, MetadataValue] | None = None
    weight: float | None = Field(default=None, ge=0.0, le=2.0)
    num_value: float | None = None
    timestamp: str | None = None
    source_url: str | None = Field(default=None, max_length=2048)
    group_tracking_ids: list[str] | None = None
    image_urls: list[str] | None = None
    semantic_content: str | None = None
    fulltext_content: str | None = None
    upsert_by_tracking_id: bool | None = None
    refresh_on_duplicate: bool | None = None


class ChunkBatchRequest(BaseModel):
    chunks: list[ChunkInput] = Field(min_length=1, max_length=120)
    upsert_by_tracking_id: bool | None = None
    refresh_on_duplicate: bool | None = None


ChunkRequest = ChunkInput | ChunkBatchRequest


class ChunkOutput(_ResponseModel):
    id: str
    tracking_id: str | None = None
    content: str
    weight: float
    tag_set: list[str] = Field(default_factory=list)
    timestamp: str | None = None
    group_id: str | None = None
    created_at: str


class ChunkData(_ResponseModel):
    chunks_created: int
    chunks: list[ChunkOutput]


class ChunkResponse(_ResponseModel):
    success: bool = True
    message: str
    data: ChunkData


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------


class RangeFilter(BaseModel):
    gte: RangeBound | None = None
    lte: RangeBound | None = None
    gt: RangeBound | None = None
    lt: RangeBound | None = None


class RangeConditions(BaseModel):
    num_value: RangeFilter | None = None
    timestamp: RangeFilter | None = None


class FilterCondition(BaseModel):
    tags: list[str] | None = None
    group_ids: list[str] | None = None
    range: RangeConditions | None = None


class NegatedFilterCondition(BaseModel):
    """``must_not`` clauses accept everything but range filters."""

    tags: list[str] | None = None
    group_ids: list[str] | None = None


class LegacyFilters(BaseModel):
    model_config = ConfigDict(extra="forbid")

    tags: list[str] | None = None
    group_ids: list[str] | None = None
    metadata: dict[str, ScalarValue] | None = None


class AdvancedFilters(BaseModel):
    model_config = ConfigDict(extra="forbid")

    must: list[FilterCondition] | None = None
    must_not: list[NegatedFilterCondition] | None = None
    should: list[FilterCondition] | None = None
    minimum_should_match: int | None = Field(default=None, ge=1)


class SearchRequest(BaseModel):
    query: str = Field(min_length=1, max_length=500)
    limit: int | None = Field(default=None, ge=1, le=100)
    search_type: SearchType | None = None
    track_query: bool | None = None
    filters: AdvancedFilters | LegacyFilters | None = None


class SearchResultGroup(_ResponseModel):
    id: str
    tracking_id: str | None = None
    name: str | None = None


class SearchResultMetadata(_ResponseModel):
    key: str
    value: ScalarValue
    value_type: Literal["string", "number", "boolean"]


class SearchResultScores(_ResponseModel):
    hybrid: float = 0.0
    dense: float = 0.0
    sparse: float = 0.0
    fulltext: float = 0.0


class SearchResultRanks(_ResponseModel):
    dense: int | None = None
    sparse: int | None = None
    fulltext: int | None = None


class SearchResult(_ResponseModel):
    id: str
    content: str
    content_html: str | None = None
    source_type: str = "api"
    source_url: str | None = None
    weight: float = 1.0
    tag_set: list[str] = Field(default_factory=list)
    timestamp: str | None = None
    num_value: float | None = None
    group: SearchResultGroup | None = None
    scores: SearchResultScores = Field(default_factory=SearchResultScores)
    ranks: SearchResultRanks = Field(default_factory=SearchResultRanks)
    metadata: list[SearchResultMetadata] = Field(default_factory=list)

    def metadata_value(self, key: str) -> ScalarValue | None:
        for entry in self.metadata:
            if entry.key == key:
                return entry.value
        return None


class SearchData(_ResponseModel):
    query: str
    total_results: int
    search_query_id: str | None = None
    results: list[SearchResult]


class SearchResponse(_ResponseModel):
    success: bool = True
    data: SearchData


# ---------------------------------------------------------------------------
# Click tracking
# ---------------------------------------------------------------------------


class ClickRequest(BaseModel):
    """Attribute a click on ``chunk_id`` to an earlier tracked search."""

    search_query_id: str = Field(min_length=1)
    chunk_id: str = Field(min_length=1)
    position: int | None = Field(default=None, ge=0)


class ClickData(_ResponseModel):
    message: str
    search_query_id: str
    chunk_id: str
    position: int | None = None


class ClickResponse(_ResponseModel):
    success: bool = True
    data: ClickData


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class ApiErrorResponse(_ResponseModel):
    success: bool = False
    message: str
    errors: dict[str, list[str]] | None = None
