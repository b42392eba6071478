from __future__ import annotations


import pytest

from medquiz.core import ai
from medquiz.core.ai import load_client


class RecordingOpenAI:
    def __init__(self, **kwargs) -> None:
        self.init_kwargs = kwargs


@pytest.fixture
def fake_openai(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(ai, "OpenAI", RecordingOpenAI)
    monkeypatch.setattr(ai, "load_dotenv", lambda: False)
    return RecordingOpenAI


def test_load_client_requires_api_key(
    monkeypatch: pytest.MonkeyPatch, fake_openai
) -> None:
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    with pytest.raises(RuntimeError) as exc:
        load_client()
    assert "OPENAI_API_KEY" in str(exc.value)


def test_load_client_reads_key_from_environment(
    monkeypatch: pytest.MonkeyPatch, fake_openai
) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "test-key")
    client = load_client()
    assert isinstance(client, fake_openai)
    assert client.init_kwargs == {"api_key": "test-key"}


def test_load_client_honours_explicit_env_and_api_base(
    monkeypatch: pytest.MonkeyPatch, fake_openai
) -> None:
    calls = []
    monkeypatch.setattr(ai, "load_dotenv", lambda: calls.append("dotenv"))

    client = load_client(
        api_base="https://proxy.local/v1",
        env={"OPENAI_API_KEY": "mapped-key"},
    )

    assert client.init_kwargs == {
        "api_key": "mapped-key",
        "base_url": "https://proxy.local/v1",
    }
    # An explicit mapping skips .env discovery.
    assert calls == []


def test_load_client_rejects_blank_key(fake_openai) -> None:
    with pytest.raises(RuntimeError):
        load_client(env={"OPENAI_API_KEY": ""})
