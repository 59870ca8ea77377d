"""Query validation: raw query-string values to a PostsQuery.

A parameter that is absent falls back to its default. A parameter that is
present but unparseable (including an empty value) is an error.
"""

from enum import Enum

from post_aggregator.errors import ValidationError
from post_aggregator.posts.schemas import Direction, PostsQuery, SortBy

TAGS_REQUIRED = "Tags parameter is required"
SORT_BY_INVALID = "sortBy parameter is invalid"
DIRECTION_INVALID = "direction parameter is invalid"


def parse_tags(raw: str | None) -> list[str]:
    """Split a comma-separated tag string, dropping empty segments."""
    if raw is None:
        return []
    return [t for t in raw.split(",") if t]


def _parse_enum(enum_cls: type[Enum], raw: str | None, default: Enum, error: str):
    if raw is None:
        return default
    try:
        return enum_cls(raw.lower())
    except ValueError:
        raise ValidationError(error) from None


def validate_query(
    tags: str | None,
    sort_by: str | None = None,
    direction: str | None = None,
) -> PostsQuery:
    """Validate raw parameters. Raises ValidationError with a client message."""
    tag_list = parse_tags(tags)
    if not tag_list:
        raise ValidationError(TAGS_REQUIRED)

    return PostsQuery(
        tags=tag_list,
        sort_by=_parse_enum(SortBy, sort_by, SortBy.ID, SORT_BY_INVALID),
        direction=_parse_enum(Direction, direction, Direction.ASC, DIRECTION_INVALID),
    )
