# Shared fixtures: isolated settings per test.

import pytest

from config.settings import get_settings


@pytest.fixture(autouse=True)
def relay_env(monkeypatch, tmp_path):
    monkeypatch.setenv("GEMINI_API_KEY", "test-key")
    monkeypatch.setenv("GEMINI_MODEL", "gemini-test")
    monkeypatch.setenv("GEMINI_API_BASE", "https://gemini.example/v1beta")
    monkeypatch.setenv("CHAT_API_URL", "http://relay.example/api/chat")
    monkeypatch.setenv("SAVED_CHATS_PATH", str(tmp_path / "saved.json"))
    for name in ("UPSTREAM_TIMEOUT", "MAX_BODY_BYTES", "MODEL_TEMPERATURE", "MODEL_MAX_OUTPUT_TOKENS"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


