"""Shared type definitions."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping


@dataclass(frozen=True, slots=True)
class CredentialRecord:
    """GitHub OAuth credential held for one chat user."""

    access_token: str
    token_type: str
    scope: str
    obtained_at: datetime
    login: str | None = None


@dataclass(frozen=True, slots=True)
class ToolDescriptor:
    """A tool advertised by the MCP server."""

    name: str
    description: str = "No description available"
    input_schema: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class RepositoryRef:
    owner: str
    name: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"


@dataclass(slots=True)
class ToolInvocation:
    """A resolved tool call waiting to be executed."""

    tool_name: str
    arguments: dict[str, Any]
    description: str = ""


@dataclass(slots=True)
class ToolInvocationResult:
    """Represents the outcome of executing one tool invocation."""

    success: bool
    tool_name: str
    data: Any = None
    error: str | None = None
    formatted_result: str | None = None


@dataclass(slots=True)
class IntentResolution:
    """What a resolver decided for one message."""

    invocations: list[ToolInvocation] = field(default_factory=list)
    needs_more_info: bool = False
    missing_info: str | None = None
