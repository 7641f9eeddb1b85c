"""Tool discovery and LLM context rendering for the GitHub MCP server."""

from __future__ import annotations

import asyncio
from typing import Any, Protocol

from ..core.exceptions import RemoteToolError
from ..core.logging_config import get_logger
from ..core.types import RepositoryRef, ToolDescriptor

logger = get_logger(__name__)

NO_TOOLS_CONTEXT = "No GitHub MCP tools are currently available."

_GUIDELINES = """Guidelines for tool usage:
1. Always choose the most appropriate tool based on user intent
2. Use default repository when not specified by user
3. Extract relevant parameters from user messages (issue numbers, PR numbers, etc.)
4. If multiple tools could work, choose the most specific one
5. Provide helpful error messages if required parameters are missing
6. Format responses in a user-friendly way

When responding about tool execution:
- Be conversational and helpful
- Include relevant details from the results
- Provide links when available
- Suggest related actions when appropriate"""


class ToolLister(Protocol):
    async def list_tools(self) -> list[ToolDescriptor]: ...


class ToolCatalog:
    """Point-in-time snapshot of the tools one MCP session offers."""

    def __init__(
        self,
        client: ToolLister,
        *,
        default_owner: str | None = None,
        default_repo: str | None = None,
    ) -> None:
        self._client = client
        self._default_owner = default_owner
        self._default_repo = default_repo
        self._tools: list[ToolDescriptor] = []
        self._loaded = False
        self._lock = asyncio.Lock()

    async def get_available_tools(self) -> list[ToolDescriptor]:
        """Return the cached tool list, loading it on first access.

        A failed load is cached as an empty list; build a new catalog to retry.
        """

        if self._loaded:
            return self._tools

        async with self._lock:
            if not self._loaded:
                await self._load()
        return self._tools

    async def _load(self) -> None:
        try:
            self._tools = await self._client.list_tools()
        except RemoteToolError as exc:
            logger.error("mcp_tools_load_failed", error=str(exc))
            self._tools = []
        else:
            logger.info("mcp_tools_loaded", count=len(self._tools))
        self._loaded = True

    async def get_tools_context(self) -> str:
        tools = await self.get_available_tools()
        if not tools:
            return NO_TOOLS_CONTEXT

        lines = ["Available GitHub MCP tools:", ""]
        for tool in tools:
            lines.append(f"**{tool.name}**")
            lines.append(f"Description: {tool.description}")

            properties = tool.input_schema.get("properties") or {}
            required = set(tool.input_schema.get("required") or [])
            if properties:
                lines.append("Parameters:")
                for param, schema in properties.items():
                    marker = "required" if param in required else "optional"
                    lines.append(f"  - {param} ({marker}): {_describe_param(schema)}")
            lines.append("")

        return "\n".join(lines)

    def get_default_repository(self) -> RepositoryRef | None:
        if self._default_owner and self._default_repo:
            return RepositoryRef(owner=self._default_owner, name=self._default_repo)
        return None

    async def create_system_prompt(self) -> str:
        tools_context = await self.get_tools_context()
        default_repo = self.get_default_repository()

        if default_repo is not None:
            defaults = (
                f"- Owner: {default_repo.owner}\n"
                f"- Repository: {default_repo.name}\n\n"
                "When users don't specify a repository, use these defaults."
            )
        else:
            defaults = "- No default repository configured. Users must specify owner/repo explicitly."

        return (
            "You are a GitHub assistant that helps users interact with GitHub "
            "repositories using available MCP tools.\n\n"
            f"{tools_context}\n\n"
            f"Default Repository Settings:\n{defaults}\n\n"
            f"{_GUIDELINES}"
        )

    async def list_tools_payload(self) -> dict[str, Any]:
        """Answer for the local `_list_tools` pseudo-tool."""

        tools = await self.get_available_tools()
        return {"tools": [{"name": tool.name, "description": tool.description} for tool in tools]}


def _describe_param(schema: Any) -> str:
    if not isinstance(schema, dict):
        return "No description"
    return str(schema.get("description") or schema.get("type") or "No description")
