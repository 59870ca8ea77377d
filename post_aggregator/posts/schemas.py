"""Pydantic models for the posts API: upstream payloads, queries, responses."""

from __future__ import annotations

import math
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator


# ═══════════════ QUERY ENUMS ═══════════════

class SortBy(str, Enum):
    ID = "id"
    READS = "reads"
    LIKES = "likes"
    POPULARITY = "popularity"


class Direction(str, Enum):
    ASC = "asc"
    DESC = "desc"


# ═══════════════ UPSTREAM PAYLOADS ═══════════════

class Post(BaseModel):
    """A single blog post. Two posts with the same id are the same post."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: int
    author: str
    author_id: int = Field(alias="authorId")
    likes: int
    popularity: float
    reads: int
    tags: list[str]

    # NaN/Infinity are not JSON; they travel as null and come back as NaN
    @field_validator("popularity", mode="before")
    @classmethod
    def parse_null_popularity(cls, value):
        return math.nan if value is None else value

    @field_serializer("popularity")
    def serialize_popularity(self, value: float) -> float | None:
        return value if math.isfinite(value) else None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Post):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)


class TagResponse(BaseModel):
    """Blog API response for one tag; also the per-tag cache entry."""
    posts: list[Post]


# ═══════════════ VALIDATED QUERY ═══════════════

class PostsQuery(BaseModel):
    tags: list[str] = Field(min_length=1)
    sort_by: SortBy = SortBy.ID
    direction: Direction = Direction.ASC


# ═══════════════ API RESPONSES ═══════════════

class PostsResponse(BaseModel):
    posts: list[Post] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    error: str


class InternalErrorResponse(BaseModel):
    status: str = "error"
    message: str = "Internal Server Error"


class PingResponse(BaseModel):
    success: bool = True
