# FILE: tests/test_llm_clients.py
"""
Tests for chainpad/llm/clients.py
OpenAI chat wrapper - message envelope, error wrapping, empty replies.
"""

import sys
from pathlib import Path

_project_root = Path(__file__).parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

import pytest
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

from chainpad.errors import ExternalServiceError
from chainpad.llm import clients
from chainpad.settings import reset_settings


def _completion(content, model="gpt-4", total_tokens=42):
    return SimpleNamespace(
        model=model,
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
        usage=SimpleNamespace(prompt_tokens=30, completion_tokens=12, total_tokens=total_tokens),
    )


@pytest.fixture
def api_key(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.delenv("OPENAI_MODEL", raising=False)
    reset_settings()


@pytest.fixture
def mock_client():
    client = MagicMock()
    client.chat.completions.create = AsyncMock()
    with patch.object(clients, "_make_client", return_value=client):
        yield client


class TestBuildMessages:
    """Test message envelope building."""

    def test_system_prompt_first(self):
        out = clients._build_messages([{"role": "user", "content": "hi"}], "be brief")
        assert out == [
            {"role": "system", "content": "be brief"},
            {"role": "user", "content": "hi"},
        ]

    def test_caller_system_messages_dropped(self):
        out = clients._build_messages(
            [{"role": "system", "content": "x"}, {"role": "user", "content": "hi"}], None
        )
        assert out == [{"role": "user", "content": "hi"}]


class TestChatCompletion:
    """Test chat_completion."""

    async def test_missing_key_raises(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        reset_settings()
        assert clients.is_llm_configured() is False
        with pytest.raises(ExternalServiceError) as exc:
            await clients.chat_completion([{"role": "user", "content": "hi"}])
        assert exc.value.status_code == 502

    async def test_returns_first_choice(self, api_key, mock_client):
        mock_client.chat.completions.create.return_value = _completion("Hello there")

        reply = await clients.chat_completion(
            [{"role": "user", "content": "hi"}], system_prompt="sys", max_tokens=2000
        )

        assert reply.content == "Hello there"
        assert reply.model == "gpt-4"
        assert reply.usage.total_tokens == 42
        kwargs = mock_client.chat.completions.create.await_args.kwargs
        assert kwargs["model"] == "gpt-4"
        assert kwargs["temperature"] == 0.7
        assert kwargs["max_tokens"] == 2000
        assert kwargs["messages"][0] == {"role": "system", "content": "sys"}

    async def test_model_from_settings(self, api_key, mock_client, monkeypatch):
        monkeypatch.setenv("OPENAI_MODEL", "gpt-4o-mini")
        reset_settings()
        mock_client.chat.completions.create.return_value = _completion("ok", model="gpt-4o-mini")

        await clients.chat_completion([{"role": "user", "content": "hi"}])
        assert mock_client.chat.completions.create.await_args.kwargs["model"] == "gpt-4o-mini"

    async def test_empty_reply_falls_back(self, api_key, mock_client):
        mock_client.chat.completions.create.return_value = _completion("")
        reply = await clients.chat_completion([{"role": "user", "content": "hi"}])
        assert reply.content == "Sorry, I could not generate a response"

    async def test_api_failure_wrapped(self, api_key, mock_client):
        mock_client.chat.completions.create.side_effect = RuntimeError("rate limited")
        with pytest.raises(ExternalServiceError) as exc:
            await clients.chat_completion([{"role": "user", "content": "hi"}])
        assert exc.value.message == "Failed to process your request"
        assert exc.value.details == "rate limited"
