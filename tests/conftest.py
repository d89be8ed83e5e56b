import os
import tempfile
from pathlib import Path

_TEST_DIR = Path(tempfile.mkdtemp(prefix="horizon-tests-"))
os.environ["DATABASE_URL"] = f"sqlite:///{_TEST_DIR / 'horizon.db'}"
os.environ.setdefault("APP_ENV", "test")

import mongomock
import pytest
from fastapi.testclient import TestClient

from horizon.app.ai.service import get_ai_service
from horizon.app.core.db.mongo import get_feed_collection, get_feedback_collection
from horizon.app.core.db.relational import Base, engine, init_relational_db
from horizon.app.media.freepik import get_freepik_engine
from horizon.main import app


class FakeAI:
    """Stands in for AIService; replies are queued per provider."""

    def __init__(self):
        self.replies = {"groq": [], "gemini": []}
        self.failures = set()
        self.calls = []

    def queue(self, provider, text):
        self.replies[provider].append(text)

    def generate_text(self, prompt, provider=None, history=None, context=None, image=None, system_instruction=None):
        provider = provider or "gemini"
        self.calls.append({"provider": provider, "prompt": prompt, "history": history, "context": context, "image": image})
        if provider in self.failures:
            raise RuntimeError(f"{provider} unavailable")
        queued = self.replies[provider]
        return queued.pop(0) if queued else f"{provider} reply"

    def stream_text(self, prompt, provider=None, history=None, context=None, image=None, system_instruction=None):
        self.calls.append({"provider": provider, "prompt": prompt, "history": history, "stream": True})
        yield "Hello "
        yield "world"

    def analyze_image(self, image, prompt, provider="groq"):
        self.calls.append({"provider": provider, "prompt": prompt, "image": image})
        if provider in self.failures:
            raise RuntimeError("vision unavailable")
        return "  A red bicycle leaning on a wall.  "


class FakeEngine:
    def __init__(self):
        self.image_result = {"data": {"generated": ["https://cdn.example.com/generated.png"]}}
        self.video_result = {"data": {"generated": [{"url": "https://cdn.example.com/clip.mp4"}]}}
        self.error = None
        self.calls = []

    def generate_image(self, options):
        self.calls.append(("image", options))
        if self.error:
            raise self.error
        return self.image_result

    def generate_video(self, options):
        self.calls.append(("video", options))
        if self.error:
            raise self.error
        return self.video_result


@pytest.fixture(autouse=True)
def clean_database():
    init_relational_db()
    yield
    with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())


@pytest.fixture
def fake_ai():
    ai = FakeAI()
    app.dependency_overrides[get_ai_service] = lambda: ai
    yield ai
    app.dependency_overrides.pop(get_ai_service, None)


@pytest.fixture
def fake_engine():
    fake = FakeEngine()
    app.dependency_overrides[get_freepik_engine] = lambda: fake
    yield fake
    app.dependency_overrides.pop(get_freepik_engine, None)


@pytest.fixture
def mongo_db():
    db = mongomock.MongoClient()["horizon-test"]
    app.dependency_overrides[get_feed_collection] = lambda: db["communityFeed"]
    app.dependency_overrides[get_feedback_collection] = lambda: db["chatFeedback"]
    yield db
    app.dependency_overrides.pop(get_feed_collection, None)
    app.dependency_overrides.pop(get_feedback_collection, None)


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def no_search(monkeypatch):
    """Serper calls return nothing unless a test overrides them."""
    from horizon.app.search import serper
    from horizon.app.services import chat_service

    async def empty(*args, **kwargs):
        return []

    monkeypatch.setattr(serper, "perform_web_search", empty)
    monkeypatch.setattr(serper, "perform_video_search", empty)
    monkeypatch.setattr(chat_service, "perform_shopping_search", empty)


