import pytest
from httpx import AsyncClient, ASGITransport

from blog_api.config import Settings
from blog_api.exceptions import StoreError
from blog_api.main import create_app
from blog_api.services.comment_service import CommentService
from blog_api.utils.rate_limit import limiter

async def post_comment(client: AsyncClient, headers, article="x", content="hello", parent_id=None):
    body = {"articleSlug": article, "content": content}
    if parent_id:
        body["parentId"] = parent_id
    return await client.post("/api/comments", json=body, headers=headers)

@pytest.mark.asyncio
async def test_create_comment(client: AsyncClient, sign_in):
    headers, user = await sign_in()

    response = await post_comment(client, headers, content="Nice article")

    assert response.status_code == 201
    data = response.json()
    assert data["content"] == "Nice article"
    assert data["articleSlug"] == "x"
    assert data["parentId"] is None
    assert data["likes"] == 0
    assert data["likedBy"] == []
    assert data["isEdited"] is False
    assert data["author"]["id"] == user["id"]
    assert "createdAt" in data and "updatedAt" in data

@pytest.mark.asyncio
async def test_create_accepts_snake_case_body(client: AsyncClient, sign_in):
    headers, _ = await sign_in()

    response = await client.post(
        "/api/comments",
        json={"article_slug": "snake", "content": "ok"},
        headers=headers
    )

    assert response.status_code == 201
    assert response.json()["articleSlug"] == "snake"

@pytest.mark.asyncio
async def test_create_requires_authentication(client: AsyncClient):
    response = await post_comment(client, headers={})

    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"

@pytest.mark.asyncio
async def test_create_empty_content(client: AsyncClient, sign_in):
    headers, _ = await sign_in()

    response = await post_comment(client, headers, content="")

    assert response.status_code == 400

@pytest.mark.asyncio
async def test_create_reply_to_missing_parent(client: AsyncClient, sign_in):
    headers, _ = await sign_in()

    response = await post_comment(client, headers, content="reply", parent_id="nope")

    assert response.status_code == 404

@pytest.mark.asyncio
async def test_list_returns_tree(client: AsyncClient, sign_in):
    headers, _ = await sign_in()
    a = (await post_comment(client, headers, content="A")).json()
    b = (await post_comment(client, headers, content="B", parent_id=a["id"])).json()
    await post_comment(client, headers, article="other", content="C")

    response = await client.get("/api/comments", params={"article": "x"})

    assert response.status_code == 200
    data = response.json()
    assert len(data) == 1
    assert data[0]["id"] == a["id"]
    assert [r["id"] for r in data[0]["replies"]] == [b["id"]]

@pytest.mark.asyncio
async def test_list_flat(client: AsyncClient, sign_in):
    headers, _ = await sign_in()
    a = (await post_comment(client, headers, content="A")).json()
    b = (await post_comment(client, headers, content="B", parent_id=a["id"])).json()

    response = await client.get("/api/comments", params={"article": "x", "tree": "false"})

    assert response.status_code == 200
    assert [c["id"] for c in response.json()] == [a["id"], b["id"]]

@pytest.mark.asyncio
async def test_list_unknown_article_is_empty(client: AsyncClient):
    response = await client.get("/api/comments", params={"article": "nothing"})

    assert response.status_code == 200
    assert response.json() == []

@pytest.mark.asyncio
async def test_list_requires_article(client: AsyncClient):
    response = await client.get("/api/comments")

    assert response.status_code == 422

@pytest.mark.asyncio
async def test_like_twice_restores_state(client: AsyncClient, sign_in):
    headers, user = await sign_in()
    comment = (await post_comment(client, headers)).json()

    first = await client.post(f"/api/comments/{comment['id']}/like", headers=headers)
    assert first.status_code == 200
    assert first.json()["likes"] == 1
    assert first.json()["likedBy"] == [user["id"]]

    second = await client.post(f"/api/comments/{comment['id']}/like", headers=headers)
    assert second.status_code == 200
    assert second.json()["likes"] == 0
    assert second.json()["likedBy"] == []

@pytest.mark.asyncio
async def test_like_requires_auth_and_existing_comment(client: AsyncClient, sign_in):
    anonymous = await client.post("/api/comments/whatever/like")
    assert anonymous.status_code == 401

    headers, _ = await sign_in()
    missing = await client.post("/api/comments/whatever/like", headers=headers)
    assert missing.status_code == 404

@pytest.mark.asyncio
async def test_edit_comment(client: AsyncClient, sign_in):
    author_headers, _ = await sign_in("github", id=1, login="author")
    other_headers, _ = await sign_in("qq", openid="other", nickname="Other")
    comment = (await post_comment(client, author_headers, content="first draft")).json()

    forbidden = await client.put(
        f"/api/comments/{comment['id']}",
        json={"content": "hijacked"},
        headers=other_headers
    )
    assert forbidden.status_code == 403

    response = await client.put(
        f"/api/comments/{comment['id']}",
        json={"content": "second draft"},
        headers=author_headers
    )
    assert response.status_code == 200
    assert response.json()["content"] == "second draft"
    assert response.json()["isEdited"] is True

    fetched = await client.get(f"/api/comments/{comment['id']}")
    assert fetched.json()["content"] == "second draft"

@pytest.mark.asyncio
async def test_delete_comment_with_replies(client: AsyncClient, sign_in):
    author_headers, _ = await sign_in("github", id=1, login="author")
    other_headers, _ = await sign_in("qq", openid="other", nickname="Other")
    root = (await post_comment(client, author_headers, content="root")).json()
    reply = (await post_comment(client, other_headers, content="reply", parent_id=root["id"])).json()

    forbidden = await client.delete(f"/api/comments/{root['id']}", headers=other_headers)
    assert forbidden.status_code == 403

    response = await client.delete(f"/api/comments/{root['id']}", headers=author_headers)
    assert response.status_code == 200
    assert set(response.json()["deletedIds"]) == {root["id"], reply["id"]}

    assert (await client.get(f"/api/comments/{reply['id']}")).status_code == 404
    assert (await client.get("/api/comments", params={"article": "x"})).json() == []

@pytest.mark.asyncio
async def test_stats(client: AsyncClient, sign_in):
    headers, _ = await sign_in()
    await post_comment(client, headers, article="a")
    await post_comment(client, headers, article="a")
    await post_comment(client, headers, article="b")

    response = await client.get("/api/comments/stats")
    assert response.status_code == 200
    assert response.json() == {"total": 3, "byArticle": {"a": 2, "b": 1}}

    scoped = await client.get("/api/comments/stats", params={"article": "b"})
    assert scoped.json() == {"total": 1, "byArticle": {"b": 1}}

@pytest.mark.asyncio
@pytest.mark.parametrize("body", [
    {"content": "missing slug"},
    {"articleSlug": "x", "content": 123},
    {"articleSlug": "x", "content": "hi", "parentId": ["not", "an", "id"]},
])
async def test_create_malformed_body(client: AsyncClient, sign_in, body):
    headers, _ = await sign_in()

    response = await client.post("/api/comments", json=body, headers=headers)

    assert response.status_code == 400
    assert response.json()["detail"].startswith("Invalid comment body")

@pytest.mark.asyncio
async def test_create_non_json_body(client: AsyncClient, sign_in):
    headers, _ = await sign_in()

    response = await client.post(
        "/api/comments",
        content="not json",
        headers={**headers, "Content-Type": "application/json"}
    )

    assert response.status_code == 400

@pytest.mark.asyncio
@pytest.mark.parametrize("body", [{}, {"content": None}, {"content": ["a"]}])
async def test_update_malformed_body(client: AsyncClient, sign_in, body):
    headers, _ = await sign_in()
    comment = (await post_comment(client, headers)).json()

    response = await client.put(f"/api/comments/{comment['id']}", json=body, headers=headers)

    assert response.status_code == 400
    assert "content" in response.json()["detail"]

    unchanged = await client.get(f"/api/comments/{comment['id']}")
    assert unchanged.json()["isEdited"] is False

@pytest.mark.asyncio
async def test_bad_query_still_unprocessable(client: AsyncClient):
    response = await client.get("/api/comments", params={"article": "x", "max_depth": 0})

    assert response.status_code == 422

@pytest.mark.asyncio
@pytest.mark.parametrize("error, detail", [
    (StoreError("connection reset"), "Internal server error"),
    (RuntimeError("boom"), "Failed to get comments"),
])
async def test_list_store_failure(client: AsyncClient, monkeypatch, error, detail):
    async def failing_list(self, article_slug):
        raise error

    monkeypatch.setattr(CommentService, "list", failing_list)

    response = await client.get("/api/comments", params={"article": "x"})

    assert response.status_code == 500
    assert response.json()["detail"] == detail
    assert "connection reset" not in response.text

@pytest.mark.asyncio
async def test_comment_rate_limit_follows_app_settings(database, redis):
    settings = Settings(TESTING=True, RATE_LIMIT_ENABLED=True, COMMENT_RATE_LIMIT="2/minute")
    app = create_app(settings, database=database, redis=redis)
    limiter.reset()

    try:
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            signin = await client.post("/api/auth/signin/github", json={"id": 7, "login": "limited"})
            headers = {"Authorization": f"Bearer {signin.json()['accessToken']}"}

            codes = [(await post_comment(client, headers)).status_code for _ in range(3)]

        assert codes == [201, 201, 429]
    finally:
        limiter.reset()
        limiter.enabled = False
