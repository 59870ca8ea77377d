"""Tag fetcher: per-tag read-through cache in front of the blog API."""

import json
import logging

from post_aggregator.errors import CacheError, SerializationError
from post_aggregator.integrations.blog_api import BlogPostsClient
from post_aggregator.posts.schemas import TagResponse
from post_aggregator.services.cache import CacheFacade, make_tag_key

logger = logging.getLogger(__name__)


def encode_tag_response(response: TagResponse) -> str:
    try:
        return json.dumps(response.model_dump(by_alias=True), ensure_ascii=False, allow_nan=False)
    except (TypeError, ValueError) as e:
        raise SerializationError(f"Could not encode tag response: {e}") from e


def decode_tag_response(raw: str) -> TagResponse:
    return TagResponse.model_validate(json.loads(raw))


class TagFetcher:
    """Returns the posts for one tag, from cache when possible."""

    def __init__(self, cache: CacheFacade, client: BlogPostsClient):
        self.cache = cache
        self.client = client

    async def fetch(self, tag: str) -> TagResponse:
        key = make_tag_key(tag)

        cached = await self.cache.try_read(key)
        if cached is not None:
            # A cached entry that cannot be decoded is an error, not a miss
            try:
                response = decode_tag_response(cached)
            except ValueError as e:
                logger.error("Tag cache entry unreadable | tag=%s | %s", tag, str(e)[:200])
                raise CacheError(f"Cached entry for tag {tag!r} is unreadable") from e
            logger.info("Tag cache hit | tag=%s | posts=%d", tag, len(response.posts))
            return response

        response = await self.client.fetch_tag(tag)
        await self.cache.try_write(key, encode_tag_response(response))
        return response
