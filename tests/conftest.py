import pytest
from fastapi.testclient import TestClient
from langchain_core.messages import AIMessage

from clue.core.config import get_settings
from clue.main import create_app
from clue.services import llm


class StubChatModel:
    """Canned chat model: records every call, replies or raises."""

    def __init__(self, reply="", error: Exception | None = None) -> None:
        self.reply = reply
        self.error = error
        self.calls: list[list] = []

    async def ainvoke(self, messages):
        self.calls.append(messages)
        if self.error is not None:
            raise self.error
        return AIMessage(content=self.reply)


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch, tmp_path):
    # Keep a developer's real .env and keys out of the tests.
    monkeypatch.chdir(tmp_path)
    for name in ("OPENAI_API_KEY", "GEMINI_API_KEY", "LLM_MODEL", "CODE_CHAR_LIMIT", "ENVIRONMENT", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def stub_llm(monkeypatch):
    """Install a StubChatModel in place of the real provider and return a setter."""

    def install(reply="", error: Exception | None = None) -> StubChatModel:
        model = StubChatModel(reply=reply, error=error)
        monkeypatch.setattr(llm, "_create_llm", lambda: model)
        return model

    return install


@pytest.fixture
def app():
    return create_app()


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client
