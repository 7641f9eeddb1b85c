"""Custom exception hierarchy for the GitHub agent service."""


class AgentError(Exception):
    """Base exception for agent-level issues."""


class ConfigurationError(AgentError):
    """Raised when configuration is invalid or missing."""


class ExternalServiceError(AgentError):
    """Raised when an external dependency responds with an error."""


class RemoteToolError(AgentError):
    """Raised at the MCP client boundary."""


class ToolConnectionError(RemoteToolError):
    """Raised when the MCP session cannot be established."""

    def __init__(self, endpoint: str, cause: BaseException | str) -> None:
        self.endpoint = endpoint
        self.cause = str(cause) or type(cause).__name__
        super().__init__(f"Failed to connect to GitHub MCP server at {endpoint}: {self.cause}")


class ListToolsError(RemoteToolError):
    """Raised when the tool inventory cannot be fetched."""

    def __init__(self, message: str) -> None:
        super().__init__(f"Failed to list tools: {message}")


class ToolCallError(RemoteToolError):
    """Raised when a remote tool invocation fails."""

    def __init__(self, tool_name: str, message: str) -> None:
        self.tool_name = tool_name
        self.message = message
        super().__init__(f"Failed to call tool '{tool_name}': {message}")


class IntentParseError(AgentError):
    """Raised when a resolver cannot derive a structured decision."""


class MissingCredentialError(AgentError):
    """Raised when a user has no usable GitHub credential."""

    def __init__(self, user_id: str) -> None:
        self.user_id = user_id
        super().__init__(f"No valid GitHub credential for user {user_id}")


class FormattingError(AgentError):
    """Raised inside the result formatter; never leaves it."""


class OAuthError(AgentError):
    """Raised when the OAuth handshake cannot be completed."""
