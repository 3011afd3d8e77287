import json

import jwt
import pytest

from app.core.config import Settings
from app.core.security import AuthError, TokenVerifier

from conftest import bearer


def test_health(client):
    res = client.get("/health")
    assert res.status_code == 200
    body = res.json()
    assert body["status"] == "ok"
    assert body["timestamp"]


def test_generate_then_cached(client):
    res = client.post("/recipe/generate", json={"recipeName": "Chicken Tikka Masala"})
    assert res.status_code == 200
    first = res.json()
    assert first["cached"] is False
    assert len(first["ingredients"]) >= 1
    assert len(first["steps"]) >= 1
    assert "Chicken%20Tikka%20Masala" in first["youtubeUrl"]
    assert "normalizedName" not in first

    res = client.post("/recipe/generate", json={"recipeName": "Chicken Tikka Masala"})
    second = res.json()
    assert second["cached"] is True
    assert second["searchCount"] >= first["searchCount"] + 1
    assert second["id"] == first["id"]


def test_generate_rejects_empty_name(client):
    for body in ({}, {"recipeName": ""}, {"recipeName": "  !!  "}):
        res = client.post("/recipe/generate", json=body)
        assert res.status_code == 400


def test_generate_with_broken_llm_still_succeeds(client, fake_chat):
    fake_chat.replies = lambda kwargs: "definitely not json"
    res = client.post("/recipe/generate", json={"recipeName": "Mystery Stew"})
    assert res.status_code == 200
    body = res.json()
    assert body["difficulty"] == "Unknown"
    assert body["servings"] == 1
    assert body["error"]


def test_get_recipe(client):
    created = client.post("/recipe/generate", json={"recipeName": "Pad Thai"}).json()
    res = client.get(f"/recipe/{created['id']}")
    assert res.status_code == 200
    assert res.json()["displayName"] == "Pad Thai"
    assert res.json()["ingredients"] == created["ingredients"]

    assert client.get("/recipe/does-not-exist").status_code == 404


def test_like_toggle(client):
    rid = client.post("/recipe/generate", json={"recipeName": "Chicken Tikka Masala"}).json()["id"]
    auth = bearer("user-1")

    first = client.post("/recipe/like", json={"recipeId": rid}, headers=auth).json()
    assert first["success"] is True
    assert first["isLiked"] is True
    assert first["likes"] == 1

    second = client.post("/recipe/like", json={"recipeId": rid}, headers=auth).json()
    assert second["isLiked"] is False
    assert second["likes"] == 0


def test_like_requires_auth(client):
    assert client.post("/recipe/like", json={"recipeId": "x"}).status_code == 401
    bad = {"Authorization": "Bearer not-a-jwt"}
    assert client.post("/recipe/like", json={"recipeId": "x"}, headers=bad).status_code == 401
    assert client.get("/user/liked-recipes").status_code == 401


def test_like_unknown_recipe(client):
    res = client.post("/recipe/like", json={"recipeId": "missing"}, headers=bearer("u"))
    assert res.status_code == 404
    res = client.post("/recipe/like", json={}, headers=bearer("u"))
    assert res.status_code == 400


def test_liked_and_popular(client):
    rid = client.post("/recipe/generate", json={"recipeName": "Ramen"}).json()["id"]
    other = client.post("/recipe/generate", json={"recipeName": "Udon"}).json()["id"]
    client.post("/recipe/like", json={"recipeId": rid}, headers=bearer("u1"))
    client.post("/recipe/like", json={"recipeId": rid}, headers=bearer("u2"))

    liked = client.get("/user/liked-recipes", headers=bearer("u1")).json()
    assert [r["id"] for r in liked] == [rid]
    assert client.get("/user/liked-recipes", headers=bearer("u3")).json() == []

    popular = client.get("/recipes/popular", params={"limit": 2}).json()
    assert [r["id"] for r in popular] == [rid, other]
    assert popular[0]["likes"] == 2
    assert client.get("/recipes/popular", params={"limit": 0}).status_code == 422


def test_suggestions(client, fake_chat):
    fake_chat.replies = lambda kwargs: json.dumps({"suggestions": ["Chicken Parmesan", "Parmesan Chicken"]})
    res = client.post("/recipe/suggestions", json={"query": " parmedan chicken "})
    assert res.json() == {"suggestions": ["Chicken Parmesan", "Parmesan Chicken"], "query": "parmedan chicken"}

    short = client.post("/recipe/suggestions", json={"query": "ch"})
    assert short.json() == {"suggestions": [], "query": "ch"}


def test_recipe_videos(client):
    rid = client.post("/recipe/generate", json={"recipeName": "Chicken Tikka Masala"}).json()["id"]
    body = client.get(f"/recipe/{rid}/videos").json()
    assert body["success"] is True
    assert body["recipeName"] == "Chicken Tikka Masala"
    assert body["totalRegularVideos"] == 5
    assert body["totalShorts"] == 6
    assert client.get("/recipe/missing/videos").status_code == 404


def test_analyze_video(client, fake_chat):
    rid = client.post("/recipe/generate", json={"recipeName": "Chicken Tikka Masala"}).json()["id"]
    fake_chat.replies = lambda kwargs: "{broken"
    res = client.post(f"/recipe/{rid}/analyze-video", json={"videoId": "v1", "title": "Best Tikka"})
    assert res.status_code == 200
    enhanced = res.json()["enhancedRecipe"]
    assert enhanced["enhancedBy"] == "Best Tikka"
    assert len(enhanced["enhancedSteps"]) == 3

    assert client.post(f"/recipe/{rid}/analyze-video", json={}).status_code == 400
    assert client.post("/recipe/missing/analyze-video", json={"videoId": "v1"}).status_code == 404


def test_generate_rejects_non_string_name(client):
    for name in (123, ["Ramen"], {"name": "Ramen"}):
        assert client.post("/recipe/generate", json={"recipeName": name}).status_code == 400


def test_analyze_video_fills_missing_video_info(client, fake_chat):
    rid = client.post("/recipe/generate", json={"recipeName": "Chicken Tikka Masala"}).json()["id"]
    fake_chat.replies = lambda kwargs: "{broken"
    res = client.post(f"/recipe/{rid}/analyze-video", json={"videoId": "v3"})
    assert res.status_code == 200
    assert res.json()["enhancedRecipe"]["enhancedBy"] == "Video v3"
    prompt = fake_chat.calls[-1]["messages"][1]["content"]
    assert "Channel: Chef" in prompt


def test_unconfigured_auth_secret_rejects_tokens(client):
    client.app.state.verifier = TokenVerifier(Settings(AUTH_SECRET_KEY=None))
    res = client.get("/user/liked-recipes", headers=bearer("u1"))
    assert res.status_code == 401

    with pytest.raises(AuthError):
        TokenVerifier(Settings(AUTH_SECRET_KEY="")).verify(jwt.encode({"sub": "u1"}, "x" * 32, algorithm="HS256"))
