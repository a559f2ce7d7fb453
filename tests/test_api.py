from fastapi.testclient import TestClient

from main import app


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_user_routes_require_token(client):
    assert client.get("/user/favorites").status_code == 401
    resp = client.get("/user/profile", headers={"Authorization": "Bearer nope"})
    assert resp.status_code == 401


def test_signup_duplicate_email(auth_client):
    resp = auth_client.post("/auth/signup", json={"email": "reader@example.com", "password": "x"})
    assert resp.status_code == 400


def test_signin_stamps_last_login(auth_client):
    assert auth_client.get("/user/profile").json()["data"]["user"]["lastLogin"] is None

    resp = auth_client.post("/auth/signin", json={"email": "reader@example.com", "password": "s3cret"})
    assert resp.status_code == 200
    assert resp.json()["name"] == "Reader"

    auth_client.headers["Authorization"] = f"Bearer {resp.json()['token']}"
    assert auth_client.get("/user/profile").json()["data"]["user"]["lastLogin"] is not None


def test_signin_bad_password(auth_client):
    resp = auth_client.post("/auth/signin", json={"email": "reader@example.com", "password": "wrong"})
    assert resp.status_code == 401


def test_favorites_flow(auth_client):
    resp = auth_client.post(
        "/user/favorites",
        json={"articleId": "a1", "title": "T", "url": "http://x", "source": "BBC"},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "success"
    assert body["message"] == "Article added to favorites"
    assert body["data"]["favorites"][0]["articleId"] == "a1"
    assert body["data"]["favorites"][0]["source"] == "BBC"
    assert "savedAt" in body["data"]["favorites"][0]

    resp = auth_client.post("/user/favorites", json={"articleId": "a2", "title": "T2", "url": "http://y"})
    assert resp.json()["data"]["favorites"][1]["source"] == "Unknown"

    body = auth_client.get("/user/favorites").json()
    assert body["results"] == 2
    assert [f["articleId"] for f in body["data"]["favorites"]] == ["a2", "a1"]

    resp = auth_client.delete("/user/favorites/a1")
    assert resp.status_code == 200
    assert resp.json()["message"] == "Article removed from favorites"
    assert [f["articleId"] for f in resp.json()["data"]["favorites"]] == ["a2"]


def test_add_favorite_missing_fields(auth_client):
    resp = auth_client.post("/user/favorites", json={"articleId": "a1"})
    assert resp.status_code == 400
    assert resp.json() == {
        "status": "error",
        "message": "Missing required fields: articleId, title, and url are required",
    }


def test_add_duplicate_favorite(auth_client):
    payload = {"articleId": "a1", "title": "T", "url": "http://x"}
    auth_client.post("/user/favorites", json=payload)
    resp = auth_client.post("/user/favorites", json=payload)
    assert resp.status_code == 400
    assert resp.json() == {"status": "error", "message": "Article already in favorites"}
    assert auth_client.get("/user/favorites").json()["results"] == 1


def test_remove_unknown_favorite(auth_client):
    resp = auth_client.delete("/user/favorites/missing")
    assert resp.status_code == 404
    assert resp.json() == {"status": "error", "message": "Article not found in favorites"}


def test_profile(auth_client):
    auth_client.post("/user/favorites", json={"articleId": "a1", "title": "T", "url": "http://x"})
    user = auth_client.get("/user/profile").json()["data"]["user"]
    assert user["email"] == "reader@example.com"
    assert user["favoritesCount"] == 1
    assert set(user) == {"id", "name", "email", "preferences", "favoritesCount", "createdAt", "lastLogin"}


def test_update_profile(auth_client):
    resp = auth_client.put("/user/profile", json={"name": "Renamed"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["message"] == "Profile updated successfully"
    user = body["data"]["user"]
    assert user["name"] == "Renamed"
    assert user["email"] == "reader@example.com"
    assert "password_hash" not in user and "salt" not in user

    user = auth_client.put("/user/profile", json={}).json()["data"]["user"]
    assert user["name"] == "Renamed"


def test_update_preferences(auth_client):
    auth_client.put("/user/preferences", json={"categories": ["tech"], "language": "fr"})
    resp = auth_client.put("/user/preferences", json={"theme": "dark"})
    assert resp.status_code == 200
    assert resp.json()["message"] == "Preferences updated successfully"
    assert resp.json()["data"]["preferences"] == {"categories": ["tech"], "theme": "dark", "language": "fr"}


def test_unexpected_store_failure_returns_500(store, auth_client, monkeypatch):
    def boom(user_id):
        raise RuntimeError("store unavailable")

    monkeypatch.setattr(store, "find_user", boom)
    with TestClient(app, raise_server_exceptions=False) as client:
        client.headers.update(auth_client.headers)
        resp = client.get("/user/favorites")
    assert resp.status_code == 500
    assert resp.json() == {"status": "error", "message": "Internal server error"}


def test_update_preferences_clears_categories(auth_client):
    auth_client.put("/user/preferences", json={"categories": ["tech", "world"]})
    resp = auth_client.put("/user/preferences", json={"categories": []})
    assert resp.status_code == 200
    assert resp.json()["data"]["preferences"]["categories"] == []


def test_malformed_bodies_use_error_envelope(auth_client):
    resp = auth_client.post("/user/favorites", json={"articleId": 123, "title": "T", "url": "http://x"})
    assert resp.status_code == 400
    body = resp.json()
    assert body["status"] == "error"
    assert "articleId" in body["message"]
    assert auth_client.get("/user/favorites").json()["results"] == 0

    resp = auth_client.put("/user/preferences", json={"categories": "tech"})
    assert resp.status_code == 400
    assert resp.json()["status"] == "error"
    assert "categories" in resp.json()["message"]

    resp = auth_client.post("/user/favorites")
    assert resp.status_code == 400
    assert set(resp.json()) == {"status", "message"}
