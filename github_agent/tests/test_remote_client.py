import pytest
from fastmcp import FastMCP

from github_agent.core.exceptions import ListToolsError, ToolCallError, ToolConnectionError
from github_agent.mcp.client import RemoteToolClient


def _build_server() -> FastMCP:
    server = FastMCP("fake-github")

    @server.tool()
    def get_me() -> dict:
        """Details of the authenticated user."""
        return {"login": "octocat", "public_repos": 8}

    @server.tool()
    def list_issues(owner: str, repo: str, state: str = "open") -> list[dict]:
        """List issues in a repository."""
        return [{"number": 1, "title": f"{owner}/{repo} {state}"}]

    @server.tool()
    def explode() -> str:
        """Always fails."""
        raise ValueError("boom")

    return server


@pytest.mark.asyncio
async def test_list_tools_connects_implicitly():
    client = RemoteToolClient("memory://github", transport=_build_server())
    assert not client.connected

    tools = await client.list_tools()

    assert client.connected
    names = {tool.name for tool in tools}
    assert names == {"get_me", "list_issues", "explode"}
    issues = next(tool for tool in tools if tool.name == "list_issues")
    assert issues.description == "List issues in a repository."
    assert set(issues.input_schema["required"]) == {"owner", "repo"}
    await client.disconnect()


@pytest.mark.asyncio
async def test_call_tool_returns_structured_payload():
    async with RemoteToolClient("memory://github", transport=_build_server()) as client:
        profile = await client.call_tool("get_me", {})
        issues = await client.call_tool("list_issues", {"owner": "octocat", "repo": "hello"})

    assert profile == {"login": "octocat", "public_repos": 8}
    assert issues == [{"number": 1, "title": "octocat/hello open"}]


@pytest.mark.asyncio
async def test_tool_error_raises_tool_call_error():
    async with RemoteToolClient("memory://github", transport=_build_server()) as client:
        with pytest.raises(ToolCallError) as excinfo:
            await client.call_tool("explode", {})

    assert excinfo.value.tool_name == "explode"
    assert "Failed to call tool 'explode'" in str(excinfo.value)


@pytest.mark.asyncio
async def test_unknown_tool_raises_tool_call_error():
    async with RemoteToolClient("memory://github", transport=_build_server()) as client:
        with pytest.raises(ToolCallError):
            await client.call_tool("does_not_exist", {})


class _UnreachableClient:
    def __init__(self, *args, **kwargs):
        pass

    async def __aenter__(self):
        raise OSError("connection refused")

    async def __aexit__(self, *exc_info):
        return None


@pytest.mark.asyncio
async def test_connect_failure_raises_tool_connection_error(monkeypatch):
    monkeypatch.setattr("github_agent.mcp.client.Client", _UnreachableClient)
    client = RemoteToolClient("https://mcp.invalid/mcp", "token")

    with pytest.raises(ToolConnectionError) as excinfo:
        await client.connect()

    assert excinfo.value.endpoint == "https://mcp.invalid/mcp"
    assert "connection refused" in str(excinfo.value)
    assert not client.connected


@pytest.mark.asyncio
async def test_list_tools_failure_is_wrapped(monkeypatch):
    monkeypatch.setattr("github_agent.mcp.client.Client", _UnreachableClient)
    client = RemoteToolClient("https://mcp.invalid/mcp", "token")

    with pytest.raises(ListToolsError):
        await client.list_tools()


@pytest.mark.asyncio
async def test_disconnect_is_idempotent():
    client = RemoteToolClient("memory://github", transport=_build_server())
    await client.connect()

    await client.disconnect()
    await client.disconnect()

    assert not client.connected
