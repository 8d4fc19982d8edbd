"""Feed API tests.

Learn: Tests cover:
1. Post creation by an authenticated caller (scenario B)
2. Ownership on update/delete (scenario C)
3. Backlink consistency on /auth/me
4. Paged listing: page size, ordering, total count, page defaults
5. Authentication still wins when the body is not JSON at all
"""

import uuid

import pytest

HELLO = {"title": "Hi There", "content": "Hello world!"}


async def _create(client, headers, **fields):
    body = {**HELLO, **fields}
    r = await client.post("/api/v1/feed/posts", json=body, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()


# ═══════════════════════════════════════════════════════════
# Create + read
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_create_post_scenario(client, ann):
    user_id, headers = ann
    post = await _create(client, headers)
    assert post["title"] == "Hi There"
    assert post["content"] == "Hello world!"
    assert post["creator_id"] == user_id
    assert post["image_url"] == ""
    assert post["created_at"] == post["updated_at"]

    r = await client.get("/api/v1/feed/posts", params={"page": 1})
    assert r.status_code == 200
    listing = r.json()
    assert listing["page_size"] == 2
    assert listing["total_items"] == 1
    assert listing["posts"][0]["id"] == post["id"]


@pytest.mark.asyncio
async def test_create_post_requires_auth(client):
    r = await client.post("/api/v1/feed/posts", json=HELLO)
    assert r.status_code == 401
    assert r.json()["kind"] == "unauthenticated"


@pytest.mark.asyncio
async def test_create_post_unauthenticated_invalid_body(client):
    r = await client.post("/api/v1/feed/posts", json={"title": "x"})
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_create_post_validation(client, ann):
    _, headers = ann
    r = await client.post(
        "/api/v1/feed/posts", json={"title": "Hi", "content": "Hey"}, headers=headers
    )
    assert r.status_code == 422
    fields = {e["field"] for e in r.json()["errors"]}
    assert fields == {"title", "content"}


@pytest.mark.asyncio
async def test_create_post_ignores_caller_supplied_creator(client, ann, bob):
    ann_id, ann_headers = ann
    bob_id, _ = bob
    post = await _create(client, ann_headers, creator_id=bob_id)
    assert post["creator_id"] == ann_id


@pytest.mark.asyncio
async def test_get_post(client, ann):
    _, headers = ann
    post = await _create(client, headers, image_url="images/duck.png")
    r = await client.get(f"/api/v1/feed/posts/{post['id']}", headers=headers)
    assert r.status_code == 200
    assert r.json() == post


@pytest.mark.asyncio
async def test_get_post_requires_auth(client, ann):
    _, headers = ann
    post = await _create(client, headers)
    r = await client.get(f"/api/v1/feed/posts/{post['id']}")
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_get_missing_post(client, ann):
    _, headers = ann
    r = await client.get(f"/api/v1/feed/posts/{uuid.uuid4()}", headers=headers)
    assert r.status_code == 404
    assert r.json()["kind"] == "not_found"


# ═══════════════════════════════════════════════════════════
# Ownership
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_update_by_creator(client, ann):
    _, headers = ann
    post = await _create(client, headers, image_url="images/a.png")
    r = await client.put(
        f"/api/v1/feed/posts/{post['id']}",
        json={"title": "Edited title", "content": "Edited content"},
        headers=headers,
    )
    assert r.status_code == 200
    updated = r.json()
    assert updated["id"] == post["id"]
    assert updated["title"] == "Edited title"
    assert updated["image_url"] == "images/a.png"  # kept when omitted
    assert updated["creator_id"] == post["creator_id"]
    assert updated["created_at"] == post["created_at"]
    assert updated["updated_at"] >= updated["created_at"]


@pytest.mark.asyncio
async def test_update_replaces_image_when_given(client, ann):
    _, headers = ann
    post = await _create(client, headers, image_url="images/a.png")
    r = await client.put(
        f"/api/v1/feed/posts/{post['id']}",
        json={**HELLO, "image_url": "images/b.png"},
        headers=headers,
    )
    assert r.json()["image_url"] == "images/b.png"


@pytest.mark.asyncio
async def test_update_by_other_user_is_unauthorized(client, ann, bob):
    _, ann_headers = ann
    _, bob_headers = bob
    post = await _create(client, ann_headers)
    r = await client.put(
        f"/api/v1/feed/posts/{post['id']}",
        json={"title": "Hijacked", "content": "Not yours anymore"},
        headers=bob_headers,
    )
    assert r.status_code == 403
    assert r.json()["kind"] == "unauthorized"

    r = await client.get(f"/api/v1/feed/posts/{post['id']}", headers=ann_headers)
    assert r.json()["title"] == "Hi There"


@pytest.mark.asyncio
async def test_update_missing_post_is_not_found(client, ann):
    _, headers = ann
    r = await client.put(
        f"/api/v1/feed/posts/{uuid.uuid4()}", json=HELLO, headers=headers
    )
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_update_validation_after_auth(client, ann):
    _, headers = ann
    post = await _create(client, headers)
    r = await client.put(
        f"/api/v1/feed/posts/{post['id']}",
        json={"title": "x", "content": "y"},
    )
    assert r.status_code == 401

    r = await client.put(
        f"/api/v1/feed/posts/{post['id']}",
        json={"title": "x", "content": "y"},
        headers=headers,
    )
    assert r.status_code == 422


@pytest.mark.asyncio
async def test_delete_scenario(client, ann, bob):
    """B can't delete A's post; A can; then the post is gone."""
    _, ann_headers = ann
    _, bob_headers = bob
    post = await _create(client, ann_headers)
    url = f"/api/v1/feed/posts/{post['id']}"

    r = await client.delete(url, headers=bob_headers)
    assert r.status_code == 403
    assert r.json()["kind"] == "unauthorized"

    r = await client.delete(url, headers=ann_headers)
    assert r.status_code == 200
    assert r.json() == {"deleted": True}

    r = await client.get(url, headers=ann_headers)
    assert r.status_code == 404

    # A second delete is NotFound, not a silent success
    r = await client.delete(url, headers=ann_headers)
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_delete_requires_auth(client, ann):
    _, headers = ann
    post = await _create(client, headers)
    r = await client.delete(f"/api/v1/feed/posts/{post['id']}")
    assert r.status_code == 401


# ═══════════════════════════════════════════════════════════
# Backlink
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_backlink_tracks_create_and_delete(client, ann, bob):
    _, ann_headers = ann
    _, bob_headers = bob
    first = await _create(client, ann_headers)
    second = await _create(client, ann_headers, title="Second post")
    await _create(client, bob_headers, title="Bob's post")

    r = await client.get("/api/v1/auth/me", headers=ann_headers)
    assert r.json()["posts"] == [first["id"], second["id"]]

    await client.delete(f"/api/v1/feed/posts/{first['id']}", headers=ann_headers)
    r = await client.get("/api/v1/auth/me", headers=ann_headers)
    assert r.json()["posts"] == [second["id"]]

    r = await client.get("/api/v1/auth/me", headers=bob_headers)
    assert len(r.json()["posts"]) == 1


# ═══════════════════════════════════════════════════════════
# Listing
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_listing_is_public_and_empty(client):
    r = await client.get("/api/v1/feed/posts")
    assert r.status_code == 200
    assert r.json() == {"posts": [], "total_items": 0, "page": 1, "page_size": 2}


@pytest.mark.asyncio
async def test_listing_pages_newest_first(client, ann):
    _, headers = ann
    created = [await _create(client, headers, title=f"Post {i}") for i in range(5)]
    newest_first = [p["id"] for p in reversed(created)]

    seen = []
    for page in (1, 2, 3):
        r = await client.get("/api/v1/feed/posts", params={"page": page})
        listing = r.json()
        assert listing["total_items"] == 5
        assert listing["page"] == page
        assert len(listing["posts"]) <= 2
        stamps = [p["created_at"] for p in listing["posts"]]
        assert stamps == sorted(stamps, reverse=True)
        seen.extend(p["id"] for p in listing["posts"])

    assert seen == newest_first

    r = await client.get("/api/v1/feed/posts", params={"page": 4})
    assert r.json()["posts"] == []
    assert r.json()["total_items"] == 5


@pytest.mark.asyncio
@pytest.mark.parametrize("page", [0, -3])
async def test_non_positive_page_means_first(client, ann, page):
    _, headers = ann
    for i in range(3):
        await _create(client, headers, title=f"Post {i}")
    first = (await client.get("/api/v1/feed/posts")).json()
    r = await client.get("/api/v1/feed/posts", params={"page": page})
    assert r.json()["page"] == 1
    assert r.json()["posts"] == first["posts"]


@pytest.mark.asyncio
async def test_listing_total_follows_deletes(client, ann):
    _, headers = ann
    posts = [await _create(client, headers, title=f"Post {i}") for i in range(3)]
    await client.delete(f"/api/v1/feed/posts/{posts[0]['id']}", headers=headers)
    r = await client.get("/api/v1/feed/posts")
    assert r.json()["total_items"] == 2


@pytest.mark.asyncio
async def test_listing_rejects_non_integer_page(client):
    r = await client.get("/api/v1/feed/posts", params={"page": "two"})
    assert r.status_code == 422
    assert r.json()["errors"][0]["field"] == "page"


@pytest.mark.asyncio
async def test_listing_far_past_the_end_is_empty(client, ann):
    _, headers = ann
    await _create(client, headers)
    r = await client.get("/api/v1/feed/posts", params={"page": 10**19})
    assert r.status_code == 200
    listing = r.json()
    assert listing["posts"] == []
    assert listing["total_items"] == 1
    assert listing["page"] == 10**19


# ═══════════════════════════════════════════════════════════
# Undecodable bodies and unsupported methods
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_unauthenticated_non_json_body_is_unauthenticated(client):
    r = await client.post(
        "/api/v1/feed/posts",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )
    assert r.status_code == 401
    assert r.json()["kind"] == "unauthenticated"
    assert r.headers["WWW-Authenticate"] == "Bearer"


@pytest.mark.asyncio
async def test_authenticated_non_json_body_is_validation(client, ann):
    _, headers = ann
    r = await client.post(
        "/api/v1/feed/posts",
        content=b"{not json",
        headers={**headers, "Content-Type": "application/json"},
    )
    assert r.status_code == 422
    body = r.json()
    assert body["kind"] == "validation"
    assert [e["field"] for e in body["errors"]] == ["body"]


@pytest.mark.asyncio
async def test_public_route_non_json_body_is_validation(client):
    r = await client.post(
        "/api/v1/auth/login",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )
    assert r.status_code == 422
    assert r.json()["kind"] == "validation"


@pytest.mark.asyncio
async def test_unsupported_method_maps_to_not_found_kind(client):
    r = await client.delete("/api/v1/feed/posts")
    assert r.status_code == 405
    assert r.json()["kind"] == "not_found"
