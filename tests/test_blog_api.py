"""Tests for the blog posts API integration."""

import httpx
import pytest

from post_aggregator.errors import UpstreamError
from post_aggregator.integrations.blog_api import BlogPostsClient


class TestBlogPostsClient:
    @pytest.mark.asyncio
    async def test_fetch_success(self, httpx_mock, blog_client, tag_url, make_post):
        httpx_mock.add_response(url=tag_url("tech"), json={"posts": [make_post(1), make_post(2)]})
        result = await blog_client.fetch_tag("tech")
        assert [p.id for p in result.posts] == [1, 2]
        assert result.posts[0].author_id == 101

    @pytest.mark.asyncio
    async def test_tag_sent_as_query_param(self, httpx_mock, blog_client):
        httpx_mock.add_response(json={"posts": []})
        await blog_client.fetch_tag("science")
        request = httpx_mock.get_requests()[0]
        assert request.url.params["tag"] == "science"
        assert request.url.path == "/assessment/blog/posts"

    @pytest.mark.asyncio
    async def test_custom_base_url(self, httpx_mock):
        httpx_mock.add_response(url="http://upstream.local/posts?tag=a", json={"posts": []})
        client = BlogPostsClient(base_url="http://upstream.local/posts")
        result = await client.fetch_tag("a")
        assert result.posts == []

    @pytest.mark.asyncio
    async def test_non_200_raises(self, httpx_mock, blog_client):
        httpx_mock.add_response(status_code=404, json={"error": "not found"})
        with pytest.raises(UpstreamError) as exc:
            await blog_client.fetch_tag("tech")
        assert exc.value.status_code == 404
        assert exc.value.tag == "tech"

    @pytest.mark.asyncio
    async def test_timeout_raises(self, httpx_mock, blog_client):
        httpx_mock.add_exception(httpx.ReadTimeout("timeout"))
        with pytest.raises(UpstreamError):
            await blog_client.fetch_tag("tech")

    @pytest.mark.asyncio
    async def test_connection_error_raises(self, httpx_mock, blog_client):
        httpx_mock.add_exception(httpx.ConnectError("refused"))
        with pytest.raises(UpstreamError):
            await blog_client.fetch_tag("tech")

    @pytest.mark.asyncio
    async def test_invalid_json_raises(self, httpx_mock, blog_client):
        httpx_mock.add_response(text="<html>oops</html>")
        with pytest.raises(UpstreamError):
            await blog_client.fetch_tag("tech")

    @pytest.mark.asyncio
    async def test_wrong_shape_raises(self, httpx_mock, blog_client):
        httpx_mock.add_response(json={"posts": [{"id": "not-an-int"}]})
        with pytest.raises(UpstreamError):
            await blog_client.fetch_tag("tech")


class TestRetries:
    @pytest.mark.asyncio
    async def test_no_retry_by_default(self, httpx_mock, blog_client):
        httpx_mock.add_response(status_code=503)
        with pytest.raises(UpstreamError):
            await blog_client.fetch_tag("tech")
        assert len(httpx_mock.get_requests()) == 1

    @pytest.mark.asyncio
    async def test_retry_then_success(self, httpx_mock, make_post):
        httpx_mock.add_response(status_code=503)
        httpx_mock.add_response(json={"posts": [make_post(1)]})
        client = BlogPostsClient(max_retries=1)
        result = await client.fetch_tag("tech")
        assert len(result.posts) == 1
        assert len(httpx_mock.get_requests()) == 2

    @pytest.mark.asyncio
    async def test_retry_after_timeout(self, httpx_mock, make_post):
        httpx_mock.add_exception(httpx.ReadTimeout("timeout"))
        httpx_mock.add_response(json={"posts": [make_post(1)]})
        client = BlogPostsClient(max_retries=2)
        result = await client.fetch_tag("tech")
        assert len(result.posts) == 1

    @pytest.mark.asyncio
    async def test_retries_exhausted(self, httpx_mock):
        httpx_mock.add_response(status_code=500)
        httpx_mock.add_response(status_code=502)
        client = BlogPostsClient(max_retries=1)
        with pytest.raises(UpstreamError) as exc:
            await client.fetch_tag("tech")
        assert exc.value.status_code == 502

    @pytest.mark.asyncio
    async def test_client_error_not_retried(self, httpx_mock):
        httpx_mock.add_response(status_code=400)
        client = BlogPostsClient(max_retries=3)
        with pytest.raises(UpstreamError):
            await client.fetch_tag("tech")
        assert len(httpx_mock.get_requests()) == 1
