"""Post aggregator: FastAPI application entry point.

Provides /api/posts (tag aggregation) and /api/ping (liveness).
"""

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Query, Request
from fastapi.responses import JSONResponse, Response

from post_aggregator.config import settings
from post_aggregator.errors import CacheError
from post_aggregator.integrations.blog_api import BlogPostsClient
from post_aggregator.posts.aggregator import PostAggregator
from post_aggregator.posts.tag_fetcher import TagFetcher
from post_aggregator.posts.schemas import InternalErrorResponse, PingResponse
from post_aggregator.services.cache import CacheFacade, connect_cache

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
)
logger = logging.getLogger("post_aggregator")


def build_aggregator(cache: CacheFacade) -> PostAggregator:
    """Wire the aggregator with a shared cache handle and upstream client."""
    client = BlogPostsClient(
        base_url=settings.upstream_base_url,
        timeout=settings.upstream_timeout_seconds,
        max_retries=settings.upstream_max_retries,
    )
    return PostAggregator(cache, TagFetcher(cache, client))


# ═══════════════ LIFESPAN ═══════════════

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Post aggregator starting | cache_backend=%s", settings.resolved_cache_backend)

    # A configured but unusable cache aborts startup
    try:
        cache = await connect_cache(settings)
    except CacheError as e:
        logger.error("Cache setup failed: %s", e)
        raise

    logger.info("Cache: %s", f"using {cache.backend.name}" if cache.enabled else "not using a cache")
    app.state.aggregator = build_aggregator(cache)

    yield

    await cache.close()
    logger.info("Post aggregator shutting down")


# ═══════════════ APP ═══════════════

app = FastAPI(
    title="Post Aggregator API",
    description="Aggregates blog posts across tags with two-tier caching",
    version="1.0.0",
    lifespan=lifespan,
)


def get_aggregator(request: Request) -> PostAggregator:
    """FastAPI dependency: the aggregator built at startup."""
    return request.app.state.aggregator


# ═══════════════ ENDPOINTS ═══════════════

@app.get("/api/ping")
async def ping():
    return PingResponse().model_dump()


@app.get("/api/posts")
async def posts(
    tags: str | None = None,
    sort_by: str | None = Query(None, alias="sortBy"),
    direction: str | None = None,
    aggregator: PostAggregator = Depends(get_aggregator),
):
    """Posts for all `tags`, deduplicated and sorted."""
    try:
        status, body = await aggregator.handle(tags, sort_by, direction)
    except Exception as e:
        logger.error(
            "Posts failed | tags=%s | %s: %s",
            tags, type(e).__name__, str(e)[:300],
        )
        return JSONResponse(status_code=500, content=InternalErrorResponse().model_dump())

    return Response(content=body, status_code=status, media_type="application/json")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("post_aggregator.main:app", host=settings.host, port=settings.port)
