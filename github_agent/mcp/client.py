"""FastMCP client wrapper for the remote GitHub MCP server."""

from __future__ import annotations

import json
from contextlib import AsyncExitStack
from typing import Any, Mapping

from fastmcp import Client
from fastmcp.client.transports import StreamableHttpTransport
from mcp.types import CallToolResult

from ..core.exceptions import ListToolsError, ToolCallError, ToolConnectionError
from ..core.logging_config import get_logger
from ..core.types import ToolDescriptor

logger = get_logger(__name__)


class RemoteToolClient:
    """Own one MCP session, opened on first use.

    ``transport`` accepts anything ``fastmcp.Client`` accepts (a transport
    instance or an in-process ``FastMCP`` server); by default a streamable
    HTTP transport bearer-authenticated with ``token`` is used.
    """

    def __init__(
        self,
        url: str,
        token: str | None = None,
        *,
        transport: Any = None,
        timeout: float | None = None,
    ) -> None:
        self.endpoint = url
        if transport is None:
            headers = {"Authorization": f"Bearer {token}"} if token else None
            transport = StreamableHttpTransport(url, headers=headers)
        self._client = Client(transport, timeout=timeout)
        self._stack: AsyncExitStack | None = None

    @property
    def connected(self) -> bool:
        return self._stack is not None

    async def connect(self) -> None:
        if self._stack is not None:
            return

        stack = AsyncExitStack()
        try:
            await stack.enter_async_context(self._client)
        except Exception as exc:
            logger.warning("mcp_connect_failed", endpoint=self.endpoint, error=str(exc))
            raise ToolConnectionError(self.endpoint, exc) from exc

        self._stack = stack
        logger.info("mcp_connected", endpoint=self.endpoint)

    async def list_tools(self) -> list[ToolDescriptor]:
        try:
            await self.connect()
            tools = await self._client.list_tools()
        except Exception as exc:
            raise ListToolsError(str(exc)) from exc

        return [
            ToolDescriptor(
                name=tool.name,
                description=tool.description or "No description available",
                input_schema=tool.inputSchema or {},
            )
            for tool in tools
        ]

    async def call_tool(self, name: str, arguments: Mapping[str, Any]) -> Any:
        logger.debug("mcp_tool_call", tool=name, arguments=dict(arguments))
        try:
            await self.connect()
            result = await self._client.call_tool_mcp(name, dict(arguments))
        except Exception as exc:
            raise ToolCallError(name, str(exc)) from exc

        if result.isError:
            message = _joined_text(result) or "the server reported an error"
            raise ToolCallError(name, message)

        return _serialize_tool_result(result)

    async def disconnect(self) -> None:
        stack, self._stack = self._stack, None
        if stack is None:
            return
        try:
            await stack.aclose()
        except Exception as exc:
            logger.warning("mcp_disconnect_failed", endpoint=self.endpoint, error=str(exc))

    async def __aenter__(self) -> RemoteToolClient:
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.disconnect()


def _joined_text(result: CallToolResult) -> str:
    return "\n".join(
        block.text for block in result.content if getattr(block, "type", None) == "text"
    )


def _serialize_tool_result(result: CallToolResult) -> Any:
    """Convert an MCP CallToolResult into a JSON-ready payload."""

    if result.structuredContent is not None:
        payload = result.structuredContent
        if isinstance(payload, dict) and set(payload.keys()) == {"result"}:
            return payload["result"]
        return payload

    blocks = [block.model_dump(mode="json", exclude_none=True) for block in result.content]
    # The GitHub server answers with a single JSON-encoded text block.
    if len(blocks) == 1 and blocks[0].get("type") == "text":
        try:
            return json.loads(blocks[0]["text"])
        except (TypeError, ValueError):
            pass
    return {"content": blocks}
