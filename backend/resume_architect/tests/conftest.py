import inspect
from types import SimpleNamespace

import pytest
from httpx import ASGITransport, AsyncClient

from resume_architect import ai
from resume_architect import main
from resume_architect.services.history import HistoryStore

PDF_BYTES = b"%PDF-1.4\n1 0 obj\n<<>>\nendobj\ntrailer\n<<>>\n%%EOF"


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def offline(monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
    monkeypatch.setattr(ai, "MOCK_DELAY_S", 0)
    monkeypatch.setattr(ai, "ACHIEVEMENT_MOCK_DELAY_S", 0)


@pytest.fixture
def history(tmp_path):
    store = HistoryStore(tmp_path / "resume_history.json")
    store.load()
    return store


@pytest.fixture
async def client(monkeypatch, history):
    monkeypatch.setattr(main, "history", history)
    monkeypatch.setattr(main, "sessions", {})
    transport = ASGITransport(app=main.app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac


class FakeModels:
    def __init__(self, handler):
        self.handler = handler
        self.calls = []

    async def generate_content(self, *, model, contents, config=None):
        self.calls.append({"model": model, "contents": contents, "config": config})
        out = self.handler(model, contents, config)
        if inspect.isawaitable(out):
            out = await out
        return out


class FakeGemini:
    def __init__(self, handler):
        self.models = FakeModels(handler)
        self.aio = SimpleNamespace(models=self.models)

    @property
    def calls(self):
        return self.models.calls


def reply(text):
    return SimpleNamespace(text=text)


@pytest.fixture
def gemini(monkeypatch):
    """Install a fake Gemini client; ``handler(model, contents, config)`` builds each reply."""

    def install(handler):
        fake = FakeGemini(handler)
        monkeypatch.setenv("GEMINI_API_KEY", "test-key")
        monkeypatch.setattr(ai, "_client", lambda: fake)
        return fake

    return install
