import json
from types import SimpleNamespace
from typing import Any, Callable, Dict, List, Union

import httpx
import jwt
import pytest
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

from app.core.config import Settings
from app.core.security import TokenVerifier
from app.main import attach_services, create_app
from app.services.llm import RecipeLLM
from app.services.youtube import YOUTUBE_API_BASE_URL, YouTubeClient

SECRET = "test-secret"

TIKKA = {
    "ingredients": [
        {"name": "chicken breast", "quantity": "500", "unit": "g"},
        {"name": "garam masala", "quantity": "2", "unit": "tsp"},
        {"name": "heavy cream", "quantity": "1", "unit": "cup"},
    ],
    "steps": [
        {"description": "Marinate the chicken in yogurt and spices", "timeMinutes": 30},
        {"description": "Grill the chicken until charred", "timeMinutes": 10},
        {"description": "Simmer in the tomato cream sauce", "timeMinutes": 15},
    ],
    "difficulty": "Medium",
    "estimatedTime": 60,
    "servings": 4,
}

Reply = Union[str, Exception]


class FakeChat:
    """openai.AsyncOpenAI 대역: chat.completions.create 만 흉내"""

    def __init__(self, replies: Union[List[Reply], Callable[[Dict[str, Any]], Reply]]) -> None:
        self.replies = replies
        self.calls: List[Dict[str, Any]] = []
        self.chat = SimpleNamespace(completions=self)

    async def create(self, **kwargs: Any) -> Any:
        self.calls.append(kwargs)
        reply = self.replies(kwargs) if callable(self.replies) else self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        message = SimpleNamespace(content=reply)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def youtube_handler(request: httpx.Request) -> httpx.Response:
    if request.url.path.endswith("/search"):
        items = [{"id": {"videoId": f"v{i}"}} for i in range(12)]
        return httpx.Response(200, json={"items": items})
    ids = request.url.params["id"].split(",")
    # 짝수 = 쇼츠(45초), 홀수 = 일반(4분 10초)
    items = [
        {
            "id": vid,
            "snippet": {"title": f"Video {vid}", "channelTitle": "Chef"},
            "contentDetails": {"duration": "PT45S" if int(vid[1:]) % 2 == 0 else "PT4M10S"},
            "statistics": {"viewCount": "100"},
        }
        for vid in ids
    ]
    return httpx.Response(200, json={"items": items})


@pytest.fixture
def settings() -> Settings:
    return Settings(
        OPENAI_API_KEY=None,
        YOUTUBE_API_KEY="yt-test-key",
        AUTH_SECRET_KEY=SECRET,
        RECIPE_FRESHNESS_HOURS=None,
    )


@pytest.fixture
def db():
    return AsyncMongoMockClient()["recipes_test"]


@pytest.fixture
def fake_chat() -> FakeChat:
    return FakeChat(lambda kwargs: json.dumps(TIKKA))


@pytest.fixture
def llm(settings: Settings, fake_chat: FakeChat) -> RecipeLLM:
    return RecipeLLM(settings, client=fake_chat)


@pytest.fixture
def videos(settings: Settings) -> YouTubeClient:
    http = httpx.AsyncClient(base_url=YOUTUBE_API_BASE_URL, transport=httpx.MockTransport(youtube_handler))
    return YouTubeClient(settings, http=http)


@pytest.fixture
def client(settings: Settings, db, llm: RecipeLLM, videos: YouTubeClient) -> TestClient:
    app = create_app(settings)
    attach_services(app, db, settings, llm=llm, videos=videos, verifier=TokenVerifier(settings))
    return TestClient(app)


def bearer(user_id: str) -> Dict[str, str]:
    token = jwt.encode({"sub": user_id}, SECRET, algorithm="HS256")
    return {"Authorization": f"Bearer {token}"}
