import asyncio

import pytest

from github_agent.mcp.catalog import NO_TOOLS_CONTEXT, ToolCatalog

from conftest import FakeToolClient


class SlowToolClient(FakeToolClient):
    async def list_tools(self):
        await asyncio.sleep(0.01)
        return await super().list_tools()


@pytest.mark.asyncio
async def test_concurrent_first_access_lists_tools_once(github_tools):
    client = SlowToolClient(tools=github_tools)
    catalog = ToolCatalog(client)

    results = await asyncio.gather(*(catalog.get_available_tools() for _ in range(5)))

    assert client.list_calls == 1
    assert all(result == github_tools for result in results)


@pytest.mark.asyncio
async def test_failed_load_is_cached_as_empty():
    client = FakeToolClient(list_error="server unavailable")
    catalog = ToolCatalog(client)

    assert await catalog.get_available_tools() == []
    assert await catalog.get_available_tools() == []
    assert client.list_calls == 1
    assert await catalog.get_tools_context() == NO_TOOLS_CONTEXT


@pytest.mark.asyncio
async def test_tools_context_lists_parameters(fake_client):
    context = await ToolCatalog(fake_client).get_tools_context()

    assert context.startswith("Available GitHub MCP tools:")
    assert "**list_issues**" in context
    assert "Description: List issues in a GitHub repository" in context
    assert "  - owner (required): Repository owner" in context
    assert "  - state (optional): string" in context
    assert "**get_me**" in context


@pytest.mark.asyncio
async def test_default_repository_requires_owner_and_name(fake_client):
    assert ToolCatalog(fake_client, default_owner="octocat").get_default_repository() is None

    repo = ToolCatalog(
        fake_client, default_owner="octocat", default_repo="hello"
    ).get_default_repository()
    assert repo.full_name == "octocat/hello"


@pytest.mark.asyncio
async def test_system_prompt_mentions_defaults(fake_client):
    with_defaults = await ToolCatalog(
        fake_client, default_owner="octocat", default_repo="hello"
    ).create_system_prompt()
    without_defaults = await ToolCatalog(fake_client).create_system_prompt()

    assert "- Owner: octocat" in with_defaults
    assert "- Repository: hello" in with_defaults
    assert "Guidelines for tool usage:" in with_defaults
    assert "No default repository configured" in without_defaults


@pytest.mark.asyncio
async def test_list_tools_payload(fake_client):
    payload = await ToolCatalog(fake_client).list_tools_payload()

    assert payload["tools"][0] == {
        "name": "list_issues",
        "description": "List issues in a GitHub repository",
    }
    assert len(payload["tools"]) == 5
