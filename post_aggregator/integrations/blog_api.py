"""Hatchways blog posts API integration.

Endpoint: GET https://api.hatchways.io/assessment/blog/posts?tag=<tag>
Returns {"posts": [...]} for a single tag.
"""

import logging
import time

import httpx

from post_aggregator.errors import UpstreamError
from post_aggregator.posts.schemas import TagResponse

logger = logging.getLogger(__name__)

BASE_URL = "https://api.hatchways.io/assessment/blog/posts"

RETRYABLE_STATUS = (429, 500, 502, 503, 504)


class BlogPostsClient:
    """Async client for the blog posts API: one request per tag."""

    def __init__(self, base_url: str = BASE_URL, timeout: int = 30, max_retries: int = 0):
        self.base_url = base_url
        self.timeout = timeout
        self.max_retries = max_retries

    async def fetch_tag(self, tag: str) -> TagResponse:
        """Fetch all posts for `tag`. Raises UpstreamError on any failure."""
        params = {"tag": tag}
        max_attempts = self.max_retries + 1
        last_error: UpstreamError | None = None

        for attempt in range(1, max_attempts + 1):
            start = time.monotonic()
            try:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.get(self.base_url, params=params)
            except httpx.TimeoutException as e:
                elapsed_ms = int((time.monotonic() - start) * 1000)
                logger.warning(
                    "Blog API timeout | tag=%s | attempt=%d/%d | %dms",
                    tag, attempt, max_attempts, elapsed_ms,
                )
                last_error = UpstreamError(f"Timeout fetching tag {tag!r}: {e}", tag=tag)
                continue
            except httpx.HTTPError as e:
                elapsed_ms = int((time.monotonic() - start) * 1000)
                logger.warning(
                    "Blog API connection error | tag=%s | attempt=%d/%d | %dms | %s",
                    tag, attempt, max_attempts, elapsed_ms, str(e)[:200],
                )
                last_error = UpstreamError(f"Request for tag {tag!r} failed: {e}", tag=tag)
                continue

            elapsed_ms = int((time.monotonic() - start) * 1000)

            if response.status_code != 200:
                logger.warning(
                    "Blog API | status=%d | tag=%s | attempt=%d/%d | %dms",
                    response.status_code, tag, attempt, max_attempts, elapsed_ms,
                )
                last_error = UpstreamError(
                    f"Blog API returned {response.status_code} for tag {tag!r}",
                    tag=tag,
                    status_code=response.status_code,
                )
                if response.status_code in RETRYABLE_STATUS:
                    continue
                raise last_error

            result = self._parse_response(response, tag)
            logger.info(
                "Blog API OK | tag=%s | posts=%d | %dms",
                tag, len(result.posts), elapsed_ms,
            )
            return result

        raise last_error or UpstreamError(f"Fetching tag {tag!r} failed", tag=tag)

    def _parse_response(self, response: httpx.Response, tag: str) -> TagResponse:
        # pydantic's ValidationError and JSONDecodeError are both ValueErrors
        try:
            return TagResponse.model_validate(response.json())
        except ValueError as e:
            logger.error("Blog API bad payload | tag=%s | %s", tag, str(e)[:200])
            raise UpstreamError(f"Malformed response for tag {tag!r}", tag=tag) from e
