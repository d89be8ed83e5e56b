from horizon.app.services.feed_service import toggle_like


OWNER = {"X-User-ID": "owner"}
FAN = {"X-User-ID": "fan"}


def _create(client, **overrides):
    payload = {"imageUrl": "https://cdn.example.com/a.png", "prompt": "a castle", "userName": "Owner"}
    payload.update(overrides)
    return client.post("/api/feed", json=payload, headers=OWNER)


def test_create_requires_auth_and_image(client, mongo_db):
    assert client.post("/api/feed", json={"imageUrl": "x"}).status_code == 401
    resp = client.post("/api/feed", json={"prompt": "no image"}, headers=OWNER)
    assert resp.status_code == 400


def test_create_and_list(client, mongo_db):
    item = _create(client).json()["item"]
    assert item["likes"] == 0
    assert item["userId"] == "owner"

    items = client.get("/api/feed").json()["items"]
    assert [i["id"] for i in items] == [item["id"]]
    assert items[0]["hasLiked"] is False


def test_like_toggle(client, mongo_db):
    post_id = _create(client).json()["item"]["id"]

    first = client.post(f"/api/feed/{post_id}/like", headers=FAN).json()
    assert first == {"success": True, "hasLiked": True, "likes": 1}
    repeat_list = client.get("/api/feed", headers=FAN).json()["items"]
    assert repeat_list[0]["hasLiked"] is True

    second = client.post(f"/api/feed/{post_id}/like", headers=FAN).json()
    assert second == {"success": True, "hasLiked": False, "likes": 0}
    assert mongo_db["communityFeed"].find_one({"_id": post_id})["likedBy"] == []


def test_interleaved_likes_keep_count_in_step(client, mongo_db):
    post_id = _create(client).json()["item"]["id"]
    users = [{"X-User-ID": name} for name in ("fan", "critic", "fan", "fan", "critic", "owner", "fan")]

    for headers in users:
        client.post(f"/api/feed/{post_id}/like", headers=headers)
        doc = mongo_db["communityFeed"].find_one({"_id": post_id})
        assert doc["likes"] == len(doc["likedBy"])

    doc = mongo_db["communityFeed"].find_one({"_id": post_id})
    assert sorted(doc["likedBy"]) == ["fan", "owner"]


def test_like_state_comes_from_stored_document(mongo_db):
    feed = mongo_db["communityFeed"]
    feed.insert_one({"_id": "p1", "likes": 1, "likedBy": ["fan"]})

    assert toggle_like(feed, "p1", "fan") == {"hasLiked": False, "likes": 0}
    assert toggle_like(feed, "p1", "fan") == {"hasLiked": True, "likes": 1}
    assert toggle_like(feed, "p1", "critic") == {"hasLiked": True, "likes": 2}
    assert feed.find_one({"_id": "p1"})["likedBy"] == ["fan", "critic"]


def test_like_missing_post(client, mongo_db):
    resp = client.post("/api/feed/nope/like", headers=FAN)
    assert resp.status_code == 404
    assert resp.json() == {"error": "Feed item not found"}


def test_delete_checks_ownership(client, mongo_db):
    post_id = _create(client).json()["item"]["id"]

    resp = client.delete(f"/api/feed/{post_id}", headers=FAN)
    assert resp.status_code == 403
    assert resp.json() == {"error": "Forbidden: You don't own this post"}

    assert client.delete(f"/api/feed/{post_id}", headers=OWNER).json() == {"success": True}
    assert client.delete(f"/api/feed/{post_id}", headers=OWNER).status_code == 404
