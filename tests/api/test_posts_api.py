import pytest

from tests.fakes import make_user

ALICE = {"X-User-Id": "alice", "X-User-UId": "100000000001", "X-Username": "alice"}
BOB = {"X-User-Id": "bob", "X-User-UId": "100000000002", "X-Username": "bob"}


async def _seed(container):
    await container.caches.user.save_user(make_user("alice", 100000000001))
    await container.caches.user.save_user(make_user("bob", 100000000002))


@pytest.mark.asyncio
async def test_create_then_list_and_comment(api_client, container):
    await _seed(container)

    created = await api_client.post("/api/v1/post", json={"post": "hello", "privacy": "public"}, headers=ALICE)
    assert created.status_code == 201
    post_id = created.json()["post"]["id"]

    listing = await api_client.get("/api/v1/post/all/1", headers=BOB)
    body = listing.json()
    assert listing.status_code == 200
    assert body["total_posts"] == 1
    assert body["posts"][0]["id"] == post_id
    assert body["posts"][0]["reactions"]["like"] == 0

    comment = await api_client.post(
        "/api/v1/post/comment",
        json={"post_id": post_id, "user_to": "alice", "comment": "nice"},
        headers=BOB,
    )
    assert comment.status_code == 201
    names = await api_client.get(f"/api/v1/post/commentsnames/{post_id}", headers=ALICE)
    assert names.json()["comments"] == {"count": 1, "names": ["bob"]}


@pytest.mark.asyncio
async def test_reaction_endpoints(api_client, container):
    await _seed(container)
    post_id = (await api_client.post("/api/v1/post", json={"post": "react"}, headers=ALICE)).json()["post"]["id"]

    added = await api_client.post(
        "/api/v1/post/reaction",
        json={"post_id": post_id, "type": "happy", "user_to": "alice"},
        headers=BOB,
    )
    assert added.status_code == 200
    reactions = (await api_client.get(f"/api/v1/post/reactions/{post_id}", headers=ALICE)).json()
    assert reactions["count"] == 1

    removed = await api_client.delete(f"/api/v1/post/reaction/{post_id}/happy", headers=BOB)
    assert removed.status_code == 200
    reactions = (await api_client.get(f"/api/v1/post/reactions/{post_id}", headers=ALICE)).json()
    assert reactions["count"] == 0


@pytest.mark.asyncio
async def test_missing_credentials_are_rejected(api_client):
    response = await api_client.get("/api/v1/post/all/1")

    assert response.status_code == 401
    assert response.json()["message"] == "invalid_token"
    assert "request_id" in response.json()


@pytest.mark.asyncio
async def test_error_translation(api_client, container):
    await _seed(container)

    empty = await api_client.post("/api/v1/post", json={}, headers=ALICE)
    assert empty.status_code == 400
    assert empty.json()["message"] == "post_is_empty"

    missing = await api_client.put("/api/v1/post/nope", json={"post": "x"}, headers=ALICE)
    assert missing.status_code == 404
    assert missing.json()["message"] == "post_not_found"

    invalid = await api_client.get("/api/v1/post/all/0", headers=ALICE)
    assert invalid.status_code == 422
    assert invalid.json()["message"] == "validation_error"

    post_id = (await api_client.post("/api/v1/post", json={"post": "mine"}, headers=ALICE)).json()["post"]["id"]
    foreign = await api_client.delete(f"/api/v1/post/{post_id}", headers=BOB)
    assert foreign.status_code == 401
    assert foreign.json()["message"] == "not_post_owner"


@pytest.mark.asyncio
async def test_signup_then_signin(api_client, container):
    signup = await api_client.post(
        "/api/v1/signup",
        json={"username": "carol", "email": "Carol@Example.com", "password": "pass1", "avatar_color": "red", "avatar_image": "data:image/png;base64,AAAA"},
    )
    assert signup.status_code == 201
    body = signup.json()
    assert body["token"]
    assert body["user"]["email"] == "carol@example.com"

    await container.queues["auth"].process_once("add_auth_user_to_db")
    signin = await api_client.post("/api/v1/signin", json={"username": "carol", "password": "pass1"})
    assert signin.status_code == 200
    assert signin.json()["user"]["id"] == body["user"]["id"]

    bad = await api_client.post("/api/v1/signin", json={"username": "carol", "password": "wrong"})
    assert bad.status_code == 400

    current = await api_client.get("/api/v1/currentuser", headers={"Authorization": f"Bearer {body['token']}"})
    assert current.status_code == 200
    assert current.json()["user"]["username"] == "Carol"
