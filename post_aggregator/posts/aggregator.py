"""Post aggregator: fan out per tag, merge, dedup, sort, cache.

Flow: query cache → [TagFetcher per tag, concurrently] → dedup by id → sort →
serialize → query cache write.
"""

import asyncio
import json
import logging
import math
import time

from post_aggregator.errors import SerializationError, ValidationError
from post_aggregator.posts.schemas import (
    Direction,
    ErrorResponse,
    Post,
    PostsQuery,
    PostsResponse,
    SortBy,
    TagResponse,
)
from post_aggregator.posts.tag_fetcher import TagFetcher
from post_aggregator.posts.validator import validate_query
from post_aggregator.services.cache import CacheFacade, make_query_key

logger = logging.getLogger(__name__)


def dedup_posts(responses: list[TagResponse]) -> list[Post]:
    """Flatten tag responses and keep the first post seen for each id."""
    unique: dict[int, Post] = {}
    for response in responses:
        for post in response.posts:
            unique.setdefault(post.id, post)
    return list(unique.values())


def _popularity_key(post: Post) -> tuple[int, float]:
    if math.isnan(post.popularity):
        logger.warning("NaN popularity ordered least | post_id=%d", post.id)
        return (0, 0.0)
    return (1, post.popularity)


def sort_posts(posts: list[Post], sort_by: SortBy, direction: Direction) -> list[Post]:
    """Stable ascending sort, reversed for desc so ties flip consistently."""
    if sort_by == SortBy.POPULARITY:
        ordered = sorted(posts, key=_popularity_key)
    else:
        field = sort_by.value
        ordered = sorted(posts, key=lambda p: getattr(p, field))

    if direction == Direction.DESC:
        ordered.reverse()
    return ordered


def encode_posts(posts: list[Post]) -> str:
    payload = PostsResponse(posts=posts).model_dump(by_alias=True)
    try:
        return json.dumps(payload, ensure_ascii=False, allow_nan=False)
    except (TypeError, ValueError) as e:
        raise SerializationError(f"Could not encode posts response: {e}") from e


class PostAggregator:
    """Aggregates posts for a set of tags behind a per-query cache."""

    def __init__(self, cache: CacheFacade, fetcher: TagFetcher):
        self.cache = cache
        self.fetcher = fetcher

    async def handle(
        self,
        tags: str | None,
        sort_by: str | None = None,
        direction: str | None = None,
    ) -> tuple[int, str]:
        """Validate raw parameters and return (status, JSON body).

        Validation problems come back as a 400 body. Any other failure is
        raised for the HTTP layer to turn into an opaque 500.
        """
        try:
            query = validate_query(tags, sort_by, direction)
        except ValidationError as e:
            logger.info("Posts query rejected | %s", e.message)
            return 400, ErrorResponse(error=e.message).model_dump_json()

        key = make_query_key(query.tags, query.sort_by.value, query.direction.value)
        cached = await self.cache.try_read(key)
        if cached is not None:
            logger.info("Query cache hit | key=%s", key[:80])
            return 200, cached

        posts = await self.aggregate(query)
        body = encode_posts(posts)
        await self.cache.try_write(key, body)
        return 200, body

    async def aggregate(self, query: PostsQuery) -> list[Post]:
        """Fetch every tag concurrently and return merged, sorted posts.

        The first fetch error fails the whole query. Remaining fetches are
        still awaited so no task outlives the request; their results are
        discarded.
        """
        start = time.monotonic()
        responses = await self._fetch_all(query.tags)
        posts = sort_posts(dedup_posts(responses), query.sort_by, query.direction)

        elapsed_ms = int((time.monotonic() - start) * 1000)
        logger.info(
            "Aggregated | tags=%d | posts=%d | sort=%s:%s | %dms",
            len(query.tags), len(posts), query.sort_by.value, query.direction.value, elapsed_ms,
        )
        return posts

    async def _fetch_all(self, tags: list[str]) -> list[TagResponse]:
        async def fetch_indexed(index: int, tag: str) -> tuple[int, TagResponse]:
            return index, await self.fetcher.fetch(tag)

        tasks = [asyncio.create_task(fetch_indexed(i, tag)) for i, tag in enumerate(tags)]

        results: list[TagResponse | None] = [None] * len(tags)
        first_error: Exception | None = None

        try:
            for next_done in asyncio.as_completed(tasks):
                try:
                    index, response = await next_done
                except Exception as e:
                    if first_error is None:
                        first_error = e
                        logger.warning("Tag fetch failed, discarding siblings | %s", str(e)[:200])
                    continue
                results[index] = response
        finally:
            # Only reached with pending tasks when the request itself is cancelled
            for task in tasks:
                if not task.done():
                    task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

        if first_error is not None:
            raise first_error

        # Keep request tag order so dedup keeps the first tag's copy
        return [r for r in results if r is not None]
