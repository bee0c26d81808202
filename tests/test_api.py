from fastapi import status
from conftest import ALICE, BOB, CAROL

from services.social_graph import user_target_id


def create_post(client, content="hello", author=ALICE, **extra):
    response = client.post("/records/posts", json={"content": content, "author": author, **extra})
    assert response.status_code == status.HTTP_201_CREATED
    return response.json()["record_id"]


def interact(client, type_, target_id, from_user, **extra):
    response = client.post(
        "/records/interactions",
        json={"type": type_, "target_id": target_id, "from_user": from_user, **extra},
    )
    assert response.status_code == status.HTTP_201_CREATED
    return response.json()


def test_health(client):
    response = client.get("/health")
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["status"] == "healthy"


def test_feed_empty(client):
    response = client.get("/feed")
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"page": 0, "page_size": 20, "total": 0, "posts": []}


def test_feed_page_size_limits(client):
    assert client.get("/feed", params={"page_size": 0}).status_code == 422
    assert client.get("/feed", params={"page_size": 101}).status_code == 422
    assert client.get("/feed", params={"page": -1}).status_code == 422


def test_post_like_and_comment_flow(client):
    post_id = create_post(client)
    interact(client, 0, post_id, BOB)
    comment = interact(client, 2, post_id, CAROL, content="nice")
    interact(client, 2, post_id, ALICE, content="thanks", parent_id=comment["record_id"])

    feed = client.get("/feed", params={"viewer": BOB}).json()
    assert feed["total"] == 1
    post = feed["posts"][0]
    assert (post["likes"], post["comments"], post["is_liked"]) == (1, 2, True)

    stats = client.get(f"/posts/{post_id}/stats").json()
    assert stats["liked_by"] == [BOB]

    threads = client.get(f"/posts/{post_id}/comments").json()
    assert len(threads) == 1
    assert threads[0]["content"] == "nice"
    assert [r["content"] for r in threads[0]["replies"]] == ["thanks"]


def test_unlike_removes_like(client):
    post_id = create_post(client)
    interact(client, 0, post_id, BOB)
    interact(client, 1, post_id, BOB)
    assert client.get(f"/posts/{post_id}").json()["likes"] == 0


def test_get_post_with_quote(client):
    original = create_post(client, "original")
    quote = create_post(client, "quoting", author=BOB, quoted_post_id=original)
    body = client.get(f"/posts/{quote}").json()
    assert body["quoted_post"]["id"] == original
    assert client.get(f"/posts/{original}").json()["quotes"] == 1


def test_missing_post_is_404(client):
    assert client.get("/posts/123").status_code == status.HTTP_404_NOT_FOUND


def test_delete_post(client):
    post_id = create_post(client)
    response = client.request("DELETE", f"/records/posts/{post_id}", json={"author": BOB})
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    response = client.request("DELETE", f"/records/posts/{post_id}", json={"author": ALICE})
    assert response.status_code == status.HTTP_200_OK
    assert client.get(f"/posts/{post_id}").status_code == status.HTTP_404_NOT_FOUND


def test_invalid_writes_are_422(client):
    response = client.post("/records/interactions", json={"type": 2, "target_id": 1, "from_user": ALICE, "content": ""})
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    assert response.json()["error_code"] == "VALIDATION_FAILURE"

    response = client.post("/records/posts", json={"content": "x" * 5001, "author": ALICE})
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    response = client.post(
        "/records/interactions",
        json={"type": 11, "target_id": user_target_id(ALICE), "target_type": 2, "from_user": BOB, "content": CAROL},
    )
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_plays_and_trending(client):
    first = client.post("/plays", json={"token_id": 1, "listener": ALICE, "duration": 60})
    assert first.status_code == status.HTTP_201_CREATED
    assert first.json()["recorded"] is True
    again = client.post("/plays", json={"token_id": 1, "listener": ALICE, "duration": 60})
    assert again.json()["recorded"] is False
    client.post("/plays", json={"token_id": 2, "listener": BOB, "duration": 60})
    client.post("/plays", json={"token_id": 2, "listener": CAROL, "duration": 60})

    trending = client.get("/trending").json()
    assert [e["token_id"] for e in trending] == [2, 1]

    counts = client.get("/plays/counts", params={"token_ids": "1,2,3"}).json()
    assert counts == {"1": 1, "2": 2, "3": 0}

    best = client.get("/plays/best", params={"token_ids": "1,2"}).json()
    assert best == {"token_id": 2, "play_count": 2}

    assert client.get("/plays/counts", params={"token_ids": "a,b"}).status_code == 400


def test_follow_graph_and_bookmarks(client):
    interact(client, 11, user_target_id(ALICE), BOB, target_type=2, content=ALICE)
    interact(client, 11, user_target_id(CAROL), BOB, target_type=2, content=CAROL)
    post_id = create_post(client)
    interact(client, 6, post_id, BOB)

    followers = client.get(f"/users/{ALICE}/followers").json()
    assert followers == {"address": ALICE, "count": 1, "addresses": [BOB]}
    following = client.get(f"/users/{BOB}/following").json()
    assert following["addresses"] == [ALICE, CAROL]
    assert client.get(f"/users/{BOB}/following/{ALICE}").json()["following"] is True
    assert client.get(f"/users/{ALICE}/following/{BOB}").json()["following"] is False

    bookmarks = client.get(f"/users/{BOB}/bookmarks").json()
    assert [p["id"] for p in bookmarks] == [post_id]
    assert bookmarks[0]["is_bookmarked"] is True

    assert client.get("/users/nobody/followers").status_code == 400
    assert client.get(f"/users/{ALICE}%0A/followers").status_code == 400
    assert client.get(f"/users/{BOB}/following/{ALICE}%0A").status_code == 400


def test_admin_publishers_and_refresh(client):
    response = client.post("/admin/publishers", json={"address": CAROL})
    assert response.json()["message"] == "Publisher registered"
    response = client.post("/admin/publishers", json={"address": CAROL.upper().replace("0X", "0x")})
    assert response.json()["message"] == "Publisher already registered"
    assert client.post("/admin/publishers", json={"address": "bad"}).status_code == 400
    assert CAROL in client.get("/admin/publishers").json()["publishers"]

    create_post(client)
    refreshed = client.post("/admin/refresh").json()
    assert refreshed["posts"] == 1
    assert refreshed["generation"] >= 1

    assert client.post("/admin/cache/clear").status_code == status.HTTP_200_OK
