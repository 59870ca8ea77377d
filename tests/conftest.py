"""Shared test fixtures and configuration."""

import os

import pytest

# No real cache during tests; individual tests opt into the memory backend
os.environ.pop("REDIS_URL", None)
os.environ["CACHE_BACKEND"] = "none"

from post_aggregator.integrations.blog_api import BASE_URL, BlogPostsClient  # noqa: E402
from post_aggregator.posts.aggregator import PostAggregator  # noqa: E402
from post_aggregator.posts.tag_fetcher import TagFetcher  # noqa: E402
from post_aggregator.services.cache import CacheFacade, MemoryCacheBackend  # noqa: E402


def _make_post(id: int, **overrides) -> dict:
    post = {
        "id": id,
        "author": f"Author {id}",
        "authorId": 100 + id,
        "likes": 10 * id,
        "popularity": round(0.1 * id, 2),
        "reads": 1000 * id,
        "tags": ["tech"],
    }
    post.update(overrides)
    return post


@pytest.fixture
def make_post():
    """Factory for upstream-shaped post dicts with sensible defaults."""
    return _make_post


@pytest.fixture
def tag_url():
    return lambda tag: f"{BASE_URL}?tag={tag}"


@pytest.fixture
def sample_tag_payloads():
    """Two tags sharing post id 2."""
    return {
        "tech": {"posts": [
            _make_post(1, likes=3, reads=300, popularity=0.9, tags=["tech"]),
            _make_post(2, likes=1, reads=100, popularity=0.5, tags=["tech", "health"]),
        ]},
        "health": {"posts": [
            _make_post(2, likes=1, reads=100, popularity=0.5, tags=["tech", "health"]),
            _make_post(3, likes=2, reads=200, popularity=0.7, tags=["health"]),
        ]},
    }


@pytest.fixture
def memory_cache():
    return CacheFacade(MemoryCacheBackend())


@pytest.fixture
def null_cache():
    return CacheFacade()


@pytest.fixture
def blog_client():
    """Blog API client without retries."""
    return BlogPostsClient()


@pytest.fixture
def build_aggregator(blog_client):
    """Factory wiring an aggregator around a given cache facade."""
    def _build(cache: CacheFacade, client: BlogPostsClient | None = None) -> PostAggregator:
        client = client or blog_client
        return PostAggregator(cache, TagFetcher(cache, client))
    return _build
