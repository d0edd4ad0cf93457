"""Pydantic schemas for the search index API."""

from pydantic import BaseModel, ConfigDict, Field


class IndexRowResponse(BaseModel):
    """One search index row."""

    model_config = ConfigDict(from_attributes=True)

    param_name: str
    param_type: str
    value: str | None = None
    value_high: str | None = None
    system: str | None = None
    code: str | None = None
    text: str | None = None
    kind: str | None = None
    value_local: str | None = None
    value_high_local: str | None = None


class IndexRowsResponse(BaseModel):
    """Search index rows of one resource."""

    resource_type: str
    resource_id: str
    total: int
    rows: list[IndexRowResponse] = Field(default_factory=list)


class TagResponse(BaseModel):
    """A distinct meta tag."""

    system: str | None = None
    code: str
    display: str | None = None


class TagListResponse(BaseModel):
    """Distinct meta tags across stored resources."""

    tags: list[TagResponse] = Field(default_factory=list)
