"""
Regression tests for defects fixed in the HTTP contract.

1. /add-reply must be reachable (the route was registered without its slash)
2. add-comment must check the commenter, not look an author up by post id
3. Validation failures are 400 with {"error": ...}, never FastAPI's 422
4. Feed query count must not grow with the number of posts/comments (N+1)
5. Login must lowercase the email it looks up, as registration does
6. CORS must not set allow_credentials=true with allow_origins=*
"""
import pytest
from httpx import AsyncClient

from conftest import bearer, register


async def _post_with_thread(client: AsyncClient, headers: dict, content: str) -> None:
    resp = await client.post("/create-post", json={"content": content}, headers=headers)
    post_id = resp.json()["data"]["id"]
    resp = await client.post(
        "/add-comment", json={"postId": post_id, "content": "c"}, headers=headers
    )
    comment_id = resp.json()["data"]["comments"][0]["id"]
    await client.post(
        "/add-reply",
        json={"postId": post_id, "commentId": comment_id, "content": "r"},
        headers=headers,
    )


# ---------------------------------------------------------------------------
# 1. /add-reply route
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_add_reply_route_is_registered(async_client: AsyncClient):
    """Without a token the route answers 401 (not 404 from a missing route)."""
    resp = await async_client.post("/add-reply", json={})
    assert resp.status_code == 401


# ---------------------------------------------------------------------------
# 2. add-comment author check
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_add_comment_does_not_resolve_author_by_post_id(async_client: AsyncClient, alice_headers: dict):
    """
    No author ever has a post's id, so looking the author up by post id
    rejected every comment.  A valid author commenting must succeed.
    """
    resp = await async_client.post("/create-post", json={"content": "p"}, headers=alice_headers)
    post_id = resp.json()["data"]["id"]

    resp = await async_client.post(
        "/add-comment", json={"postId": post_id, "content": "works"}, headers=alice_headers
    )
    assert resp.status_code == 201


# ---------------------------------------------------------------------------
# 3. 400 instead of 422
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_malformed_json_is_400(async_client: AsyncClient):
    resp = await async_client.post(
        "/login", content=b"{not json", headers={"Content-Type": "application/json"}
    )
    assert resp.status_code == 400
    assert "error" in resp.json()


@pytest.mark.asyncio
async def test_empty_body_is_400(async_client: AsyncClient):
    resp = await async_client.post("/create-author", json={})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Please provide name"}


# ---------------------------------------------------------------------------
# 4. Feed query count independent of feed size
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_feed_query_count_constant(async_client: AsyncClient, alice_headers: dict):
    """
    Comments and replies are batch-loaded: one post with a thread and six
    posts with threads cost the same number of queries.
    """
    await _post_with_thread(async_client, alice_headers, "first")
    small = await async_client.get("/all-posts", headers=alice_headers)
    assert small.status_code == 200

    for i in range(5):
        await _post_with_thread(async_client, alice_headers, f"more {i}")
    large = await async_client.get("/all-posts", headers=alice_headers)
    assert len(large.json()["data"]) == 6

    assert int(large.headers["x-query-count"]) == int(small.headers["x-query-count"])


@pytest.mark.asyncio
async def test_response_time_header(async_client: AsyncClient):
    resp = await async_client.get("/health")
    assert float(resp.headers["x-response-time-ms"]) >= 0


# ---------------------------------------------------------------------------
# 5. Login email case
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_login_with_registration_casing(async_client: AsyncClient):
    """Registering Mixed@Case.com and logging in with the same spelling works."""
    await register(async_client, "mixed", "Mixed@Case.com")

    resp = await async_client.post("/login", json={"email": "Mixed@Case.com", "password": "pw1"})
    assert resp.status_code == 200
    token = resp.json()["token"]

    feed = await async_client.get("/all-posts", headers=bearer(token))
    assert feed.status_code == 200


# ---------------------------------------------------------------------------
# 6. CORS headers
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_cors_no_credentials_with_wildcard_origin(async_client: AsyncClient):
    resp = await async_client.options(
        "/all-posts",
        headers={
            "Origin": "https://example.com",
            "Access-Control-Request-Method": "GET",
        },
    )
    cred_header = resp.headers.get("access-control-allow-credentials", "").lower()
    assert cred_header != "true"
