#!/usr/bin/env python3
"""Live verification script: run with network access.

Usage:
  1. Optionally set REDIS_URL / UPSTREAM_BASE_URL in .env
  2. Run: python scripts/verify_upstream.py [tag,tag,...]

Steps:
  Step 1: Show configuration and connect the cache
  Step 2: Fetch a single tag from the blog API
  Step 3: Aggregate several tags (likes, desc) and check dedup + ordering
  Step 4: Repeat the query against an in-memory cache and compare bodies
"""

import asyncio
import json
import os
import sys

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

DEFAULT_TAGS = "tech,health,history"


def step_header(n: int, title: str) -> None:
    print(f"\n{'='*60}")
    print(f"  Step {n}: {title}")
    print(f"{'='*60}\n")


def ok(msg: str) -> None:
    print(f"  ✅ {msg}")


def fail(msg: str) -> None:
    print(f"  ❌ {msg}")


def info(msg: str) -> None:
    print(f"  ℹ️  {msg}")


def _client():
    from post_aggregator.config import settings
    from post_aggregator.integrations.blog_api import BlogPostsClient

    return BlogPostsClient(
        base_url=settings.upstream_base_url,
        timeout=settings.upstream_timeout_seconds,
        max_retries=settings.upstream_max_retries,
    )


async def step1_config():
    step_header(1, "Configuration & Cache")
    from post_aggregator.config import settings
    from post_aggregator.errors import CacheError
    from post_aggregator.services.cache import connect_cache

    ok(f"Upstream: {settings.upstream_base_url}")
    ok(f"Cache backend: {settings.resolved_cache_backend}")
    if settings.redis_url:
        info(f"REDIS_URL: {settings.redis_url.split('@')[-1]}")

    try:
        cache = await connect_cache(settings)
    except CacheError as e:
        fail(f"Cache setup failed: {e}")
        return False

    ok(f"Cache connected ({cache.backend.name})")
    await cache.close()
    return True


async def step2_single_tag(tag: str):
    step_header(2, f"Fetch single tag '{tag}'")
    from post_aggregator.errors import UpstreamError

    try:
        response = await _client().fetch_tag(tag)
    except UpstreamError as e:
        fail(f"Upstream error: {e}")
        return False

    ok(f"Got {len(response.posts)} posts")
    for post in response.posts[:3]:
        print(f"    - [{post.id}] {post.author} | likes={post.likes} | tags={','.join(post.tags)}")
    return bool(response.posts)


async def step3_aggregate(tags: str):
    step_header(3, f"Aggregate tags={tags} sortBy=likes direction=desc")
    from post_aggregator.posts.aggregator import PostAggregator
    from post_aggregator.posts.tag_fetcher import TagFetcher
    from post_aggregator.services.cache import CacheFacade

    cache = CacheFacade()
    aggregator = PostAggregator(cache, TagFetcher(cache, _client()))

    status, body = await aggregator.handle(tags, "likes", "desc")
    if status != 200:
        fail(f"Status {status}: {body[:200]}")
        return False

    posts = json.loads(body)["posts"]
    ids = [p["id"] for p in posts]
    likes = [p["likes"] for p in posts]
    ok(f"Got {len(posts)} posts")

    if len(ids) == len(set(ids)):
        ok("No duplicate ids")
    else:
        fail("Duplicate ids in response")
        return False

    if likes == sorted(likes, reverse=True):
        ok("Sorted by likes, descending")
    else:
        fail("Not sorted by likes")
        return False
    return True


async def step4_cache_roundtrip(tags: str):
    step_header(4, "Query cache round trip (in-memory)")
    from post_aggregator.posts.aggregator import PostAggregator
    from post_aggregator.posts.tag_fetcher import TagFetcher
    from post_aggregator.services.cache import CacheFacade, MemoryCacheBackend

    cache = CacheFacade(MemoryCacheBackend())
    aggregator = PostAggregator(cache, TagFetcher(cache, _client()))

    _, first = await aggregator.handle(tags, "popularity", "asc")
    _, second = await aggregator.handle(tags, "popularity", "asc")
    info(f"Cache entries: {len(cache.backend)}")

    if first == second:
        ok("Second response is byte-identical")
        return True
    fail("Cached response differs from the first response")
    return False


async def main():
    tags = sys.argv[1] if len(sys.argv) > 1 else DEFAULT_TAGS
    first_tag = tags.split(",")[0]

    print("\n📰 Post Aggregator: Live Upstream Verification")
    print("=" * 60)

    results = {}
    results[1] = await step1_config()
    results[2] = await step2_single_tag(first_tag)

    if not results[2]:
        print("\n⚠️  Upstream unreachable: skipping aggregation steps")
        results[3] = results[4] = False
    else:
        results[3] = await step3_aggregate(tags)
        results[4] = await step4_cache_roundtrip(tags)

    # Summary
    print(f"\n{'='*60}")
    print("  SUMMARY")
    print(f"{'='*60}")
    for step_n, passed in sorted(results.items()):
        status = "✅ PASS" if passed else "❌ FAIL"
        print(f"  Step {step_n}: {status}")

    total_passed = sum(1 for v in results.values() if v)
    print(f"\n  {total_passed}/{len(results)} steps passed")
    print(f"{'='*60}\n")

    sys.exit(0 if all(results.values()) else 1)


if __name__ == "__main__":
    asyncio.run(main())
