from typing import Any

import pytest

from github_agent.core.exceptions import ListToolsError, ToolCallError
from github_agent.core.types import ToolDescriptor


class FakeToolClient:
    """In-process stand-in for RemoteToolClient."""

    def __init__(
        self,
        tools: list[ToolDescriptor] | None = None,
        responses: dict[str, Any] | None = None,
        failures: dict[str, str] | None = None,
        list_error: str | None = None,
    ) -> None:
        self.tools = tools or []
        self.responses = responses or {}
        self.failures = failures or {}
        self.list_error = list_error
        self.list_calls = 0
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.connected = False
        self.disconnected = False

    async def connect(self) -> None:
        self.connected = True

    async def list_tools(self) -> list[ToolDescriptor]:
        self.list_calls += 1
        if self.list_error:
            raise ListToolsError(self.list_error)
        return list(self.tools)

    async def call_tool(self, name: str, arguments: dict[str, Any]) -> Any:
        self.calls.append((name, dict(arguments)))
        if name in self.failures:
            raise ToolCallError(name, self.failures[name])
        return self.responses.get(name)

    async def disconnect(self) -> None:
        self.disconnected = True


class RecordingReply:
    def __init__(self) -> None:
        self.texts: list[str] = []
        self.cards: list[dict[str, Any]] = []

    async def send_text(self, text: str) -> None:
        self.texts.append(text)

    async def send_card(self, card: dict[str, Any]) -> None:
        self.cards.append(card)


GITHUB_TOOLS = [
    ToolDescriptor(
        name="list_issues",
        description="List issues in a GitHub repository",
        input_schema={
            "type": "object",
            "properties": {
                "owner": {"type": "string", "description": "Repository owner"},
                "repo": {"type": "string", "description": "Repository name"},
                "state": {"type": "string"},
            },
            "required": ["owner", "repo"],
        },
    ),
    ToolDescriptor(name="get_issue", description="Get details of a specific issue"),
    ToolDescriptor(name="get_me", description="Get details of the authenticated user"),
    ToolDescriptor(name="create_issue", description="Create a new issue"),
    ToolDescriptor(name="get_file_contents", description="Get the contents of a file"),
]


@pytest.fixture
def github_tools() -> list[ToolDescriptor]:
    return list(GITHUB_TOOLS)


@pytest.fixture
def fake_client(github_tools) -> FakeToolClient:
    return FakeToolClient(tools=github_tools)


@pytest.fixture
def recording_reply() -> RecordingReply:
    return RecordingReply()
