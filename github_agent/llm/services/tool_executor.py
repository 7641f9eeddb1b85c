"""Sequential execution of resolved tool invocations."""

from __future__ import annotations

import time
from typing import Any, Mapping, Protocol, Sequence

from ...core.exceptions import RemoteToolError
from ...core.logging_config import get_logger
from ...core.types import ToolInvocation, ToolInvocationResult
from ...mcp.catalog import ToolCatalog
from .intent_resolver import LIST_TOOLS
from .result_formatter import ResultFormatter

logger = get_logger(__name__)


class ToolCaller(Protocol):
    async def call_tool(self, name: str, arguments: Mapping[str, Any]) -> Any: ...


def describe_invocations(invocations: Sequence[ToolInvocation]) -> str:
    """Comma-joined progress text shown before a batch runs."""

    return ", ".join(
        invocation.description or f"calling {invocation.tool_name}" for invocation in invocations
    )


class ToolExecutor:
    """Run invocations one after another; a failure never stops the batch."""

    def __init__(
        self,
        client: ToolCaller,
        catalog: ToolCatalog,
        formatter: ResultFormatter | None = None,
    ) -> None:
        self._client = client
        self._catalog = catalog
        self._formatter = formatter or ResultFormatter()

    async def execute(self, invocations: Sequence[ToolInvocation]) -> list[ToolInvocationResult]:
        results: list[ToolInvocationResult] = []
        for invocation in invocations:
            results.append(await self.execute_one(invocation))

        logger.info(
            "tool_batch_completed",
            total=len(results),
            failed=sum(1 for result in results if not result.success),
        )
        return results

    async def execute_one(self, invocation: ToolInvocation) -> ToolInvocationResult:
        started = time.perf_counter()
        try:
            if invocation.tool_name == LIST_TOOLS:
                data = await self._catalog.list_tools_payload()
            else:
                data = await self._client.call_tool(invocation.tool_name, invocation.arguments)
        except RemoteToolError as exc:
            logger.warning(
                "tool_call_failed",
                tool=invocation.tool_name,
                arguments=invocation.arguments,
                error=str(exc),
            )
            return ToolInvocationResult(
                success=False,
                tool_name=invocation.tool_name,
                error=str(exc),
            )
        except Exception as exc:
            logger.exception("tool_call_crashed", tool=invocation.tool_name)
            return ToolInvocationResult(
                success=False,
                tool_name=invocation.tool_name,
                error=f"Unexpected error: {exc}",
            )

        logger.info(
            "tool_call_executed",
            tool=invocation.tool_name,
            arguments=invocation.arguments,
            latency_ms=round((time.perf_counter() - started) * 1000, 1),
            result_summary=str(data)[:200],
        )
        return ToolInvocationResult(
            success=True,
            tool_name=invocation.tool_name,
            data=data,
            formatted_result=self._formatter.format(invocation.tool_name, data),
        )
