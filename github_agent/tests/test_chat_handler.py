from datetime import datetime, timezone

import pytest

from github_agent.core.config import AgentSettings
from github_agent.core.credential_store import CredentialStore
from github_agent.core.exceptions import ToolConnectionError
from github_agent.core.types import CredentialRecord
from github_agent.llm.services.chat_handler import (
    CLARIFICATION_MESSAGE,
    NO_TOOLS_MESSAGE,
    GitHubChatHandler,
    is_github_request,
)

from conftest import FakeToolClient


class UnreachableToolClient(FakeToolClient):
    async def connect(self):
        raise ToolConnectionError("https://mcp.invalid", "connection refused")


class FakeModel:
    def __init__(self, reply: str) -> None:
        self.reply = reply

    async def complete(self, messages, **kwargs):
        return self.reply


def _settings(**overrides) -> AgentSettings:
    values = {"bot_endpoint": "http://bot.test/", "intent_strategy": "pattern"}
    values.update(overrides)
    return AgentSettings(_env_file=None, **values)


async def _store_with_token(login: str | None = "mona") -> CredentialStore:
    store = CredentialStore()
    await store.put(
        "user-1",
        CredentialRecord(
            access_token="gho_token",
            token_type="bearer",
            scope="repo,read:user",
            obtained_at=datetime.now(tz=timezone.utc),
            login=login,
        ),
    )
    return store


def _handler(store, client, **kwargs) -> tuple[GitHubChatHandler, list]:
    tokens = []

    def factory(token):
        tokens.append(token)
        return client

    settings = kwargs.pop("settings", None) or _settings()
    return GitHubChatHandler(settings, store, client_factory=factory, **kwargs), tokens


@pytest.mark.parametrize(
    "text,expected",
    [
        ("list my GitHub repos", True),
        ("any open Pull Request?", True),
        ("show issue 5", True),
        ("what's the weather", False),
        ("", False),
    ],
)
def test_is_github_request(text, expected):
    assert is_github_request(text) is expected


@pytest.mark.asyncio
async def test_missing_credential_sends_sign_in_card(fake_client, recording_reply):
    handler, tokens = _handler(CredentialStore(), fake_client)

    await handler.handle("user 1", "list my repos", recording_reply)

    assert recording_reply.texts == []
    card = recording_reply.cards[0]
    assert card["type"] == "AdaptiveCard"
    assert card["actions"][0]["url"] == "http://bot.test/auth/github?userId=user%201"
    assert tokens == []


@pytest.mark.asyncio
async def test_resolved_request_is_executed_and_formatted(github_tools, recording_reply):
    client = FakeToolClient(
        tools=github_tools,
        responses={"get_issue": {"number": 68, "title": "Crash on start", "state": "open"}},
    )
    handler, tokens = _handler(await _store_with_token(), client)

    await handler.handle("user-1", "show issue #68 in octocat/hello", recording_reply)

    assert tokens == ["gho_token"]
    assert recording_reply.texts[0] == "🔄 Getting issue #68 from octocat/hello..."
    assert recording_reply.texts[1].startswith("✅ **get_issue**\n\n🐛 **Issue #68**")
    assert client.calls == [("get_issue", {"owner": "octocat", "repo": "hello", "issue_number": 68})]
    assert client.connected and client.disconnected


@pytest.mark.asyncio
async def test_failed_tool_reports_error(github_tools, recording_reply):
    client = FakeToolClient(tools=github_tools, failures={"list_issues": "Bad credentials"})
    handler, _ = _handler(await _store_with_token(), client)

    await handler.handle("user-1", "list issues for octocat/hello", recording_reply)

    assert recording_reply.texts[-1].startswith(
        "❌ **list_issues** failed: Failed to call tool 'list_issues': Bad credentials"
    )
    assert "permissions, network issues" in recording_reply.texts[-1]


@pytest.mark.asyncio
async def test_bare_repository_uses_signed_in_login(github_tools, recording_reply):
    client = FakeToolClient(tools=github_tools, responses={"list_issues": []})
    handler, _ = _handler(await _store_with_token(login="mona"), client)

    await handler.handle("user-1", "list issues in repo widgets", recording_reply)

    assert client.calls == [("list_issues", {"owner": "mona", "repo": "widgets", "state": "open"})]


@pytest.mark.asyncio
async def test_empty_catalog_short_circuits(recording_reply):
    client = FakeToolClient(tools=[])
    handler, _ = _handler(await _store_with_token(), client)

    await handler.handle("user-1", "list my repos", recording_reply)

    assert recording_reply.texts == [NO_TOOLS_MESSAGE]
    assert client.calls == []


@pytest.mark.asyncio
async def test_available_tools_question_lists_catalog(fake_client, recording_reply):
    handler, _ = _handler(await _store_with_token(), fake_client)

    await handler.handle("user-1", "What GitHub tools are available?", recording_reply)

    assert recording_reply.texts[0].startswith("🛠️ **Available GitHub Tools:**")
    assert "• **get_me**: Get details of the authenticated user" in recording_reply.texts[0]
    assert fake_client.calls == []


@pytest.mark.asyncio
async def test_unclear_request_asks_for_details(fake_client, recording_reply):
    handler, _ = _handler(await _store_with_token(), fake_client)

    await handler.handle("user-1", "hmm what", recording_reply)

    assert recording_reply.texts[0].startswith("🤔 I need more information to help you.")
    assert fake_client.calls == []


@pytest.mark.asyncio
async def test_unparseable_model_reply_asks_to_rephrase(fake_client, recording_reply):
    handler, _ = _handler(
        await _store_with_token(),
        fake_client,
        settings=_settings(intent_strategy="llm"),
        model=FakeModel("I am not sure."),
    )

    await handler.handle("user-1", "do the github thing", recording_reply)

    assert recording_reply.texts == [CLARIFICATION_MESSAGE]
    assert fake_client.disconnected


@pytest.mark.asyncio
async def test_connection_failure_becomes_reply(github_tools, recording_reply):
    client = UnreachableToolClient(tools=github_tools)
    handler, _ = _handler(await _store_with_token(), client)

    await handler.handle("user-1", "list my repos", recording_reply)

    assert recording_reply.texts[0].startswith("❌ **GitHub MCP server unavailable**")
    assert "connection refused" in recording_reply.texts[0]
    assert client.disconnected
