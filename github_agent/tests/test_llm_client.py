from types import SimpleNamespace

import pytest

from github_agent.core.config import AgentSettings
from github_agent.core.exceptions import ConfigurationError
from github_agent.llm.schemas.chat import ChatMessage
from github_agent.llm.services.llm_client import LLMClient


class FakeCompletions:
    def __init__(self, content):
        self.content = content
        self.kwargs = None

    async def create(self, **kwargs):
        self.kwargs = kwargs
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def _install_fake_sdk(monkeypatch, content):
    completions = FakeCompletions(content)

    class FakeAsyncOpenAI:
        def __init__(self, api_key, base_url):
            self.api_key = api_key
            self.base_url = base_url
            self.chat = SimpleNamespace(completions=completions)

    monkeypatch.setattr("github_agent.llm.services.llm_client.AsyncOpenAI", FakeAsyncOpenAI)
    return completions


def test_missing_api_key_is_a_configuration_error():
    with pytest.raises(ConfigurationError):
        LLMClient(AgentSettings(_env_file=None, llm_api_key=None))


@pytest.mark.asyncio
async def test_complete_sends_messages_and_returns_text(monkeypatch):
    completions = _install_fake_sdk(monkeypatch, '{"toolCalls": []}')
    client = LLMClient(AgentSettings(_env_file=None, llm_api_key="sk-test-123456", llm_model="m1"))

    reply = await client.complete([ChatMessage(role="user", content="hi")], max_tokens=50)

    assert reply == '{"toolCalls": []}'
    assert completions.kwargs["model"] == "m1"
    assert completions.kwargs["messages"] == [{"role": "user", "content": "hi"}]
    assert completions.kwargs["temperature"] == 0.0
    assert completions.kwargs["max_tokens"] == 50


@pytest.mark.asyncio
async def test_empty_choice_returns_empty_text(monkeypatch):
    _install_fake_sdk(monkeypatch, None)
    client = LLMClient(AgentSettings(_env_file=None, llm_api_key="sk-test-123456"))

    assert await client.complete([ChatMessage(role="user", content="hi")]) == ""
